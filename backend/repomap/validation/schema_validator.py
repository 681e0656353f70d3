"""
Schema Validator - checks decoded model output against a fixed contract.

Contracts:
- DIAGRAM: {"diagram": non-empty text}
- CHANGE_PROPOSAL: newNodes / newEdges / explanation, roles from the catalog
- STRUCTURE: intermediate file structure, repaired leniently instead of rejected

Validation is all-or-nothing: one malformed node rejects the whole proposal.
"""

from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from repomap.catalog import Catalog, DEFAULT_CATALOG
from repomap.errors import SchemaViolation
from repomap.ir.changes import ChangeProposal
from repomap.ir.diagram import DiagramDocument
from repomap.ir.structure_ir import StructureIR
from repomap.llm.parser import ResponseShape, parse_structure


class Contract(Enum):
    STRUCTURE = "structure"
    DIAGRAM = "diagram"
    CHANGE_PROPOSAL = "change_proposal"

    @property
    def shape(self) -> ResponseShape:
        return ResponseShape(self.value)


_MODELS = {
    Contract.DIAGRAM: DiagramDocument,
    Contract.CHANGE_PROPOSAL: ChangeProposal,
}


class SchemaValidator:
    """
    Usage:
        validator = SchemaValidator(catalog)
        proposal = validator.validate(decoded, Contract.CHANGE_PROPOSAL)
    """

    def __init__(self, catalog: Catalog = DEFAULT_CATALOG):
        self.catalog = catalog

    def validate(
        self,
        value: Any,
        contract: Contract,
    ) -> Union[BaseModel, StructureIR]:
        if contract is Contract.STRUCTURE:
            return parse_structure(value if isinstance(value, dict) else {})

        if not isinstance(value, dict):
            raise SchemaViolation(
                contract.value,
                [{"loc": (), "msg": f"expected an object, got {type(value).__name__}"}],
            )

        model = _MODELS[contract]
        try:
            return model.model_validate(
                value,
                context={"roles": self.catalog.role_names()},
            )
        except PydanticValidationError as e:
            raise SchemaViolation(contract.value, e.errors()) from e
