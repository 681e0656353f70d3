from typing import Optional


class RepomapError(Exception):
    """Base class for every failure raised by repomap."""


class MalformedEnvelopeError(RepomapError):
    """The model endpoint answered, but not with a chat-completions envelope."""


class SchemaViolation(RepomapError):
    def __init__(self, contract: str, errors: Optional[list] = None):
        self.contract = contract
        self.errors = errors or []
        details = "; ".join(
            f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg')}"
            for e in self.errors
            if isinstance(e, dict)
        )
        message = f"{contract} document failed validation"
        if details:
            message = f"{message}: {details}"
        super().__init__(message)


class ContractViolation(RepomapError):
    """A decoded diagram does not start with the required header."""


class PromptError(RepomapError):
    pass


class PipelineError(RepomapError):
    def __init__(self, stage: str, reason: str):
        self.stage = stage
        self.reason = reason
        super().__init__(f"{stage} failed: {reason}")


class ApiKeyNotFoundError(RepomapError):
    pass


class RepomixError(RepomapError):
    pass
