from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from typing import List

from repomap.catalog import DEFAULT_CATALOG


class NewNode(BaseModel):
    id: str
    label: str
    role: str

    @field_validator("id", "label")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("role")
    @classmethod
    def _known_role(cls, value: str, info: ValidationInfo) -> str:
        context = info.context or {}
        roles = context.get("roles") or DEFAULT_CATALOG.role_names()
        if value not in roles:
            raise ValueError(f"role '{value}' is not one of: {', '.join(roles)}")
        return value


class NewEdge(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: str = Field(alias="from")
    target: str = Field(alias="to")
    relationship: str  # free text; the verb list is advisory only
    proposed: bool


class ChangeProposal(BaseModel):
    newNodes: List[NewNode]
    newEdges: List[NewEdge]
    explanation: str = Field(
        description="A verbose, human-readable explanation of the proposed changes",
    )

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)
