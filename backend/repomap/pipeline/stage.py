from abc import ABC, abstractmethod

from repomap.ir.validation import ValidationResult
from repomap.pipeline.context import SynthesisContext, SynthesisStage


class PipelineStage(ABC):
    stage: SynthesisStage

    @abstractmethod
    def run(self, context: SynthesisContext) -> ValidationResult:
        """
        Advance one synthesis step.

        Reads what earlier stages left on the context and writes its own
        result back. A failed result stops the run; the stage never retries
        and never calls another stage.
        """
        pass
