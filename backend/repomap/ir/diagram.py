from pydantic import BaseModel, field_validator


class DiagramDocument(BaseModel):
    diagram: str

    @field_validator("diagram")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("diagram must not be empty")
        return value
