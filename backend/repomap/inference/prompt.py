"""
Prompt Builder.

Renders the instructions, the role/verb catalog and the context payload into
the chat messages sent to the model. Rendering is pure: the same template,
payload and catalog always give byte-identical prompts.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel

from repomap.catalog import Catalog, DEFAULT_CATALOG
from repomap.dsl.mermaid import MERMAID_HEADER
from repomap.errors import PromptError


class PromptTemplate(Enum):
    EXTRACT_STRUCTURE = "extract_structure"
    GENERATE_DIAGRAM = "generate_diagram"
    GENERATE_DIAGRAM_FROM_XML = "generate_diagram_from_xml"
    PROPOSE_CHANGES = "propose_changes"
    INTEGRATE_CHANGES = "integrate_changes"


SYSTEM_PROMPT = """
You turn source code analyses into Mermaid repository maps.

Rules:
- Output ONLY valid JSON
- No markdown fences, no commentary outside the JSON
- Use only the roles and relationship verbs you are given
"""


SHAPE_GUIDE = """
    %% Use bracket syntax for shapes:
    %% [text] for rectangles
    %% ([text]) for stadiums
    %% ((text)) for circles
    %% >text] for flags
    %% {{text}} for hexagons
    %% [(text)] for cylinders
"""


def _to_json(value: Any) -> str:
    if isinstance(value, BaseModel):
        return json.dumps(value.model_dump(by_alias=True), indent=2)
    return json.dumps(value, indent=2)


def _require(payload: Mapping[str, Any], key: str, template: PromptTemplate) -> Any:
    if key not in payload or payload[key] is None:
        raise PromptError(f"template '{template.value}' needs a '{key}' payload entry")
    return payload[key]


def _vocabulary(catalog: Catalog) -> str:
    return (
        "roles, shapes and colors:\n"
        f"{catalog.roles_note()}\n"
        f"assign each file one role from: {', '.join(catalog.role_names())}\n"
        f"relationship verbs: {', '.join(catalog.verbs)}\n"
        f"{catalog.relationships_note()}"
    )


def _diagram_skeleton(catalog: Catalog) -> str:
    return f"""
{MERMAID_HEADER}
    %% First define class styling for colors
{catalog.class_defs()}
{SHAPE_GUIDE.rstrip()}

    subgraph subdirectory1
        file1(["File 1"]):::role1
        file2(("File 2")):::role2
    end

    subgraph subdirectory2
        file3["File 3"]:::role1
    end

    file1 -- relationship1 --> file2
    file2 -- relationship2 --> file3
""".strip("\n")


# ============================================================
# TEMPLATES
# ============================================================

def _extract_structure(payload: Mapping[str, Any], catalog: Catalog) -> str:
    xml = _require(payload, "xml", PromptTemplate.EXTRACT_STRUCTURE)
    return f"""
you have a codebase in repomix xml form. extract its structure.

instructions:
1. list every file with its path, the modules it imports and the symbols it exports.
2. for each file, list its relationships to other files of the codebase as
   {{"type": <verb>, "target": <file path>}}.
3. list every directory that contains at least one file.
4. {_vocabulary(catalog)}
5. output only a json {{ "files": [{{"path": "...", "imports": [], "exports": [], "relationships": []}}], "directories": [] }} with no extra commentary.

xml:
{xml}
"""


def _diagram_instructions(catalog: Catalog) -> str:
    return f"""
instructions:
1. find each file's role.
2. {_vocabulary(catalog)}
   add the classDefs for every role into the code.
3. for each node:
   - use the bracket syntax of its role's shape
   - use the file name as the quoted label
   - apply the color class using :::rolename syntax
4. group nodes into subgraphs by directory.
5. name edges by relationship, choosing from this list: {', '.join(catalog.verbs)}
   e.g. page "renders" component, component "calls" service, service "fetches from" config.
6. the diagram must start with '{MERMAID_HEADER}'.
7. output only a json {{ "diagram": "..." }} with no extra commentary.
"""


def _generate_diagram(payload: Mapping[str, Any], catalog: Catalog) -> str:
    structure = _require(payload, "structure", PromptTemplate.GENERATE_DIAGRAM)
    return f"""
you have the parsed structure of a codebase. produce a mermaid diagram with node types for each role, subgraphs for each directory, and named edges between nodes denoting the relationship:

{_diagram_skeleton(catalog)}
{_diagram_instructions(catalog)}
structure:
{_to_json(structure)}
"""


def _generate_diagram_from_xml(payload: Mapping[str, Any], catalog: Catalog) -> str:
    xml = _require(payload, "xml", PromptTemplate.GENERATE_DIAGRAM_FROM_XML)
    return f"""
you have a codebase in repomix xml form. produce a mermaid diagram with node types for each role, subgraphs for each subdirectory, and named edges between nodes denoting the relationship:

{_diagram_skeleton(catalog)}
{_diagram_instructions(catalog)}
xml:
{xml}
"""


def _propose_changes(payload: Mapping[str, Any], catalog: Catalog) -> str:
    feature = _require(payload, "feature_request", PromptTemplate.PROPOSE_CHANGES)

    if payload.get("structure") is not None:
        source = f"structure:\n{_to_json(payload['structure'])}"
    elif payload.get("xml") is not None:
        source = f"xml:\n{payload['xml']}"
    else:
        raise PromptError(
            f"template '{PromptTemplate.PROPOSE_CHANGES.value}' needs a 'structure' or 'xml' payload entry"
        )

    diagram = payload.get("diagram")
    existing = f"\nexisting diagram:\n{diagram}\n" if diagram else ""

    return f"""
you have a codebase and a user wants to add a new feature.

user request: "{feature}"

instructions:
1. analyze the codebase to understand its structure.
2. propose new nodes/edges for the feature:
   for files: newNodes: {{id, label, role}}
   for relationships: newEdges: {{from, to, relationship, proposed: true}}
3. in addition to newNodes and newEdges, also include an "explanation" field:
   "explanation": "a verbose english description of the reasoning behind these changes, e.g. 'to add search, we introduce a search service which ...'"
   this should describe what was added and why, in human-friendly language.
4. return only {{ "newNodes": [...], "newEdges": [...], "explanation": "..." }} json, no mermaid code.
5. {_vocabulary(catalog)}
6. the feature should fit logically with the existing structure; edges may connect new nodes to existing ones by id.
{existing}
{source}
"""


def _integrate_changes(payload: Mapping[str, Any], catalog: Catalog) -> str:
    diagram = _require(payload, "diagram", PromptTemplate.INTEGRATE_CHANGES)
    changes = _require(payload, "changes", PromptTemplate.INTEGRATE_CHANGES)
    example_role = catalog.get("component") or catalog.roles[0]
    return f"""
you have an original mermaid diagram and proposed changes.

original:
{diagram}

changes:
{_to_json(changes)}

instructions:
1. inspect the original diagram to understand current roles, classes, subgraphs, and relationships.
2. add new nodes using the SAME bracket syntax as existing nodes of the same role, with dashed styling:
   - apply the color class using :::rolename
   - add a style override for a dashed border: style nodeName stroke-dasharray: 5 5
   - group them in the appropriate subgraph based on directory
3. add new relationships with dashed lines:
   - use dotted arrow syntax: A-. "relationship" .->B
   - use relationship verbs from this list: {', '.join(catalog.verbs)}
4. maintain the diagram structure:
   - keep '{MERMAID_HEADER}' at the start
   - preserve all existing nodes, edges, subgraphs and style lines exactly as they are
   - maintain all existing classDefs; if adding new roles, add their classDefs in the same style:
{catalog.class_defs()}
   - place new subgraphs (if needed) after existing ones
5. output only a json with a "diagram" key containing the updated mermaid code.

example of new node with dashed style:
  {example_role.render_node('newNode', 'New Feature')}
  style newNode stroke-dasharray: 5 5

example of new relationship:
  newNode-. "{catalog.verbs[0]}" .->existingNode
"""


_RENDERERS = {
    PromptTemplate.EXTRACT_STRUCTURE: _extract_structure,
    PromptTemplate.GENERATE_DIAGRAM: _generate_diagram,
    PromptTemplate.GENERATE_DIAGRAM_FROM_XML: _generate_diagram_from_xml,
    PromptTemplate.PROPOSE_CHANGES: _propose_changes,
    PromptTemplate.INTEGRATE_CHANGES: _integrate_changes,
}


def build_prompt(
    template: PromptTemplate,
    payload: Mapping[str, Any],
    catalog: Catalog = DEFAULT_CATALOG,
) -> str:
    return _RENDERERS[template](payload, catalog).strip() + "\n"


def build_messages(
    template: PromptTemplate,
    payload: Mapping[str, Any],
    catalog: Catalog = DEFAULT_CATALOG,
) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT.strip()},
        {"role": "user", "content": build_prompt(template, payload, catalog)},
    ]
