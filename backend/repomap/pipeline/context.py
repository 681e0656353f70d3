from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from repomap.inference.prompt import PromptTemplate
from repomap.ir.changes import ChangeProposal
from repomap.ir.structure_ir import StructureIR
from repomap.validation.schema_validator import Contract


class SynthesisStage(Enum):
    BUILD_PROMPT = "build_prompt"
    INVOKE = "invoke"
    DECODE = "decode"
    VALIDATE = "validate"
    CONTRACT_CHECK = "contract_check"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SynthesisContext:
    """State of one document synthesis: one prompt, one model call."""

    template: PromptTemplate
    payload: Mapping[str, Any]
    contract: Contract

    stage: SynthesisStage = SynthesisStage.BUILD_PROMPT
    messages: List[Dict[str, str]] = field(default_factory=list)
    raw_response: Any = None
    decoded: Optional[Dict[str, Any]] = None
    decode_strategy: Optional[str] = None
    document: Any = None

    failed_stage: Optional[SynthesisStage] = None
    failure_reason: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.stage is SynthesisStage.DONE

    def fail(self, stage: SynthesisStage, reason: str):
        self.failed_stage = stage
        self.failure_reason = reason
        self.stage = SynthesisStage.FAILED


@dataclass
class PipelineContext:
    # Raw input (authoritative)
    source_xml: str
    line_counts: Dict[str, int] = field(default_factory=dict)
    feature_request: Optional[str] = None

    structure: Optional[StructureIR] = None
    base_diagram: Optional[str] = None
    proposal: Optional[ChangeProposal] = None
    updated_diagram: Optional[str] = None

    errors: List[str] = field(default_factory=list)

    def add_error(self, message: str):
        self.errors.append(message)
