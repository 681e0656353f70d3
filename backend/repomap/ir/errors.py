from dataclasses import dataclass


@dataclass
class ValidationError:
    """One failure recorded by a synthesis stage."""

    stage: str
    message: str
    template: str = ""
