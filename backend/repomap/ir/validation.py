from dataclasses import dataclass
from typing import List
from .errors import ValidationError


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[ValidationError]

    @classmethod
    def success(cls):
        return cls(is_valid=True, errors=[])

    @classmethod
    def failure(cls, errors: List[ValidationError]):
        return cls(is_valid=False, errors=errors)

    @classmethod
    def fail(cls, stage: str, message: str, template: str = ""):
        return cls.failure([ValidationError(stage=stage, message=message, template=template)])

    @property
    def reason(self) -> str:
        return "; ".join(e.message for e in self.errors)
