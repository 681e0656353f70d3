"""
Role and relationship catalog.

Every role a node may carry and every verb an edge may use is declared here.
Prompts embed the catalog verbatim and the schema validator checks proposed
nodes against it, so the model's vocabulary is fixed by construction.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class RoleDefinition:
    role: str
    shape: str
    color: str
    brackets: Tuple[str, str] = ("[", "]")

    def render_node(self, node_id: str, label: str) -> str:
        opening, closing = self.brackets
        return f'{node_id}{opening}"{label}"{closing}:::{self.role}'


ROLE_DEFINITIONS: Tuple[RoleDefinition, ...] = (
    RoleDefinition("page", "rectangle", "#d0ebff", ("[", "]")),
    RoleDefinition("component", "stadium", "#d3f9d8", ("([", "])")),
    RoleDefinition("service", "circle", "#ffe8cc", ("((", "))")),
    RoleDefinition("config", "flag", "#ffe3e3", (">", "]")),
    RoleDefinition("context", "hexagon", "#e5dbff", ("{{", "}}")),
    RoleDefinition("model", "cylinder", "#fff3bf", ("[(", ")]")),
)

RELATIONSHIP_VERBS: Tuple[str, ...] = (
    "uses",
    "calls",
    "renders",
    "fetches from",
    "provides data to",
)


@dataclass(frozen=True)
class Catalog:
    roles: Tuple[RoleDefinition, ...] = field(default=ROLE_DEFINITIONS)
    verbs: Tuple[str, ...] = field(default=RELATIONSHIP_VERBS)

    def role_names(self) -> Tuple[str, ...]:
        return tuple(r.role for r in self.roles)

    def get(self, role: str) -> Optional[RoleDefinition]:
        for definition in self.roles:
            if definition.role == role:
                return definition
        return None

    def class_defs(self) -> str:
        """One Mermaid classDef line per role, in catalog order."""
        return "\n".join(
            f"classDef {r.role} fill:{r.color},stroke:#333,stroke-width:1px,color:#000;"
            for r in self.roles
        )

    def roles_note(self) -> str:
        return "\n".join(
            f"- {r.role} ({r.shape}, {r.color}): {r.brackets[0]}text{r.brackets[1]}"
            for r in self.roles
        )

    def relationships_note(self) -> str:
        return (
            f"you can use these verbs: {', '.join(self.verbs)}. "
            "pick what's most relevant."
        )


DEFAULT_CATALOG = Catalog()
