import logging
from typing import Mapping, Optional

from repomap.catalog import Catalog, DEFAULT_CATALOG
from repomap.config import MODES
from repomap.dsl.mermaid import apply_font_size_scaling
from repomap.errors import PipelineError
from repomap.inference.base import LLMClient
from repomap.inference.prompt import PromptTemplate
from repomap.ir.changes import ChangeProposal
from repomap.ir.structure_ir import StructureIR
from repomap.pipeline.context import PipelineContext
from repomap.pipeline.synthesis import DiagramSynthesisPipeline
from repomap.validation.schema_validator import Contract

logger = logging.getLogger(__name__)


class PipelineController:
    """
    Drives the synthesis runs for a repository map.

    Modes:
    - decomposed: xml -> structure -> diagram (two model calls)
    - direct: xml -> diagram (one model call)

    The base diagram run always completes before any feature run starts.
    """

    def __init__(
        self,
        client: LLMClient,
        catalog: Catalog = DEFAULT_CATALOG,
        mode: str = "decomposed",
    ):
        if mode not in MODES:
            raise ValueError(f"mode must be one of {', '.join(MODES)}, got '{mode}'")

        self.catalog = catalog
        self.mode = mode
        self.pipeline = DiagramSynthesisPipeline(client, catalog)

    # ------------------------------------------------
    # Single runs
    # ------------------------------------------------

    def extract_structure(self, xml: str) -> StructureIR:
        structure = self.pipeline.synthesize(
            PromptTemplate.EXTRACT_STRUCTURE,
            {"xml": xml},
            Contract.STRUCTURE,
        )
        if structure.is_empty():
            logger.warning("[CONTROLLER] structure extraction produced no files")
        return structure

    def generate_base_diagram(
        self,
        xml: str,
        line_counts: Optional[Mapping[str, int]] = None,
        structure: Optional[StructureIR] = None,
    ) -> str:
        if self.mode == "direct":
            document = self.pipeline.synthesize(
                PromptTemplate.GENERATE_DIAGRAM_FROM_XML,
                {"xml": xml},
                Contract.DIAGRAM,
            )
        else:
            if structure is None:
                structure = self.extract_structure(xml)
            document = self.pipeline.synthesize(
                PromptTemplate.GENERATE_DIAGRAM,
                {"structure": structure},
                Contract.DIAGRAM,
            )

        return apply_font_size_scaling(document.diagram, line_counts or {})

    def propose_changes(
        self,
        feature_request: str,
        xml: Optional[str] = None,
        structure: Optional[StructureIR] = None,
        base_diagram: Optional[str] = None,
    ) -> ChangeProposal:
        payload = {"feature_request": feature_request, "diagram": base_diagram}

        if self.mode == "decomposed" and structure is None and xml is not None:
            structure = self.extract_structure(xml)

        prefer_structure = self.mode == "decomposed" or xml is None
        if prefer_structure and structure is not None:
            payload["structure"] = structure
        else:
            payload["xml"] = xml

        return self.pipeline.synthesize(
            PromptTemplate.PROPOSE_CHANGES,
            payload,
            Contract.CHANGE_PROPOSAL,
        )

    def integrate_changes(
        self,
        base_diagram: str,
        proposal: ChangeProposal,
        line_counts: Optional[Mapping[str, int]] = None,
    ) -> str:
        document = self.pipeline.synthesize(
            PromptTemplate.INTEGRATE_CHANGES,
            {"diagram": base_diagram, "changes": proposal},
            Contract.DIAGRAM,
        )
        return apply_font_size_scaling(document.diagram, line_counts or {})

    # ------------------------------------------------
    # Full run
    # ------------------------------------------------

    def run(
        self,
        source_xml: str,
        line_counts: Optional[Mapping[str, int]] = None,
        feature_request: Optional[str] = None,
    ) -> PipelineContext:
        """
        Base diagram, then (optionally) the feature flow.

        A failing base run raises. A failing feature run is recorded in
        context.errors and the base diagram is kept.
        """
        context = PipelineContext(
            source_xml=source_xml,
            line_counts=dict(line_counts or {}),
            feature_request=feature_request,
        )

        if self.mode == "decomposed":
            context.structure = self.extract_structure(source_xml)

        context.base_diagram = self.generate_base_diagram(
            source_xml,
            context.line_counts,
            structure=context.structure,
        )

        if not feature_request:
            return context

        try:
            context.proposal = self.propose_changes(
                feature_request,
                xml=source_xml,
                structure=context.structure,
                base_diagram=context.base_diagram,
            )
            context.updated_diagram = self.integrate_changes(
                context.base_diagram,
                context.proposal,
                context.line_counts,
            )
        except PipelineError as e:
            logger.error("[CONTROLLER] feature run failed: %s", e)
            context.add_error(str(e))

        return context
