from repomap.catalog import Catalog
from repomap.dsl.mermaid import require_header
from repomap.errors import ContractViolation, PromptError, SchemaViolation
from repomap.inference.base import LLMClient
from repomap.inference.chat_completions_client import JSON_OBJECT_FORMAT
from repomap.inference.prompt import build_messages
from repomap.ir.validation import ValidationResult
from repomap.llm.parser import decode_with_strategy
from repomap.pipeline.context import SynthesisContext, SynthesisStage
from repomap.pipeline.stage import PipelineStage
from repomap.validation.schema_validator import Contract, SchemaValidator


class BuildPromptStage(PipelineStage):
    stage = SynthesisStage.BUILD_PROMPT

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def run(self, context: SynthesisContext) -> ValidationResult:
        try:
            context.messages = build_messages(context.template, context.payload, self.catalog)
        except PromptError as e:
            context.error = e
            return ValidationResult.fail(self.stage.value, str(e), context.template.value)
        return ValidationResult.success()


class InvokeStage(PipelineStage):
    """Retries live inside the client; a raise here means attempts ran out."""

    stage = SynthesisStage.INVOKE

    def __init__(self, client: LLMClient):
        self.client = client

    def run(self, context: SynthesisContext) -> ValidationResult:
        try:
            context.raw_response = self.client.generate(
                context.messages,
                response_format=JSON_OBJECT_FORMAT,
            )
        except Exception as e:
            context.error = e
            return ValidationResult.fail(
                self.stage.value,
                f"model call failed: {e}",
                context.template.value,
            )
        return ValidationResult.success()


class DecodeStage(PipelineStage):
    """Never fails: undecodable output degrades to the empty default."""

    stage = SynthesisStage.DECODE

    def run(self, context: SynthesisContext) -> ValidationResult:
        context.decoded, context.decode_strategy = decode_with_strategy(
            context.raw_response,
            context.contract.shape,
        )
        return ValidationResult.success()


class ValidateStage(PipelineStage):
    stage = SynthesisStage.VALIDATE

    def __init__(self, validator: SchemaValidator):
        self.validator = validator

    def run(self, context: SynthesisContext) -> ValidationResult:
        try:
            context.document = self.validator.validate(context.decoded, context.contract)
        except SchemaViolation as e:
            context.error = e
            return ValidationResult.fail(self.stage.value, str(e), context.template.value)
        return ValidationResult.success()


class ContractCheckStage(PipelineStage):
    """Diagram documents must open with the flowchart header. No repair."""

    stage = SynthesisStage.CONTRACT_CHECK

    def run(self, context: SynthesisContext) -> ValidationResult:
        if context.contract is not Contract.DIAGRAM:
            return ValidationResult.success()

        try:
            require_header(context.document.diagram)
        except ContractViolation as e:
            context.error = e
            return ValidationResult.fail(self.stage.value, str(e), context.template.value)
        return ValidationResult.success()
