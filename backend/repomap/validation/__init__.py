"""
Validation module for decoded model output.
"""

from repomap.validation.schema_validator import (
    Contract,
    SchemaValidator,
)

__all__ = [
    "Contract",
    "SchemaValidator",
]
