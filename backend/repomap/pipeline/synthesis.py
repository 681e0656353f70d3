"""
Diagram Synthesis Pipeline.

One run produces one document:

    BuildPrompt -> Invoke -> Decode -> Validate -> ContractCheck -> Done

Any stage may divert the run to Failed(reason). Stages run strictly in order,
one model call per run, and nothing is shared between runs.
"""

import logging
from typing import Any, List, Mapping, Optional

from repomap.catalog import Catalog, DEFAULT_CATALOG
from repomap.errors import PipelineError
from repomap.inference.base import LLMClient
from repomap.inference.prompt import PromptTemplate
from repomap.pipeline.context import SynthesisContext, SynthesisStage
from repomap.pipeline.stage import PipelineStage
from repomap.pipeline.synthesis_stages import (
    BuildPromptStage,
    ContractCheckStage,
    DecodeStage,
    InvokeStage,
    ValidateStage,
)
from repomap.validation.schema_validator import Contract, SchemaValidator

logger = logging.getLogger(__name__)


class DiagramSynthesisPipeline:
    def __init__(
        self,
        client: LLMClient,
        catalog: Catalog = DEFAULT_CATALOG,
        validator: Optional[SchemaValidator] = None,
    ):
        self.client = client
        self.catalog = catalog
        self.validator = validator or SchemaValidator(catalog)

        self.stages: List[PipelineStage] = [
            BuildPromptStage(catalog),
            InvokeStage(client),
            DecodeStage(),
            ValidateStage(self.validator),
            ContractCheckStage(),
        ]

    def run(
        self,
        template: PromptTemplate,
        payload: Mapping[str, Any],
        contract: Contract,
    ) -> SynthesisContext:
        context = SynthesisContext(template=template, payload=payload, contract=contract)

        for stage in self.stages:
            context.stage = stage.stage
            result = stage.run(context)

            # Hard stop on failure
            if not result.is_valid:
                context.fail(stage.stage, result.reason)
                logger.error(
                    "[PIPELINE] %s failed at %s: %s",
                    template.value,
                    stage.stage.value,
                    context.failure_reason,
                )
                return context

        context.stage = SynthesisStage.DONE
        logger.info(
            "[PIPELINE] %s done (decoded via %s)",
            template.value,
            context.decode_strategy or "empty default",
        )
        return context

    def synthesize(
        self,
        template: PromptTemplate,
        payload: Mapping[str, Any],
        contract: Contract,
    ):
        """Run the pipeline and return the validated document, or raise PipelineError."""
        context = self.run(template, payload, contract)
        if not context.succeeded:
            raise PipelineError(
                f"{template.value}/{context.failed_stage.value}",
                context.failure_reason,
            ) from context.error
        return context.document
