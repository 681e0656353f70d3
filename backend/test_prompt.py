"""Tests for prompt rendering"""

import pytest

from repomap.catalog import DEFAULT_CATALOG, RELATIONSHIP_VERBS, Catalog, RoleDefinition
from repomap.errors import PromptError
from repomap.inference.prompt import SYSTEM_PROMPT, PromptTemplate, build_messages, build_prompt
from repomap.ir.changes import ChangeProposal
from repomap.ir.structure_ir import FileEntry, FileRelationship, StructureIR

XML = '<file path="src/pages/Home.tsx">\n1: export default Home;\n</file>'


def make_structure() -> StructureIR:
    return StructureIR(
        files=[
            FileEntry(
                path="src/pages/Home.tsx",
                imports=["react"],
                exports=["Home"],
                relationships=[FileRelationship(type="renders", target="src/components/Header.tsx")],
            ),
        ],
        directories=["src/pages"],
    )


def make_proposal() -> ChangeProposal:
    return ChangeProposal.model_validate(
        {
            "newNodes": [{"id": "search", "label": "Search.tsx", "role": "component"}],
            "newEdges": [{"from": "home", "to": "search", "relationship": "renders", "proposed": True}],
            "explanation": "adds search",
        }
    )


def make_payloads():
    return {
        PromptTemplate.EXTRACT_STRUCTURE: {"xml": XML},
        PromptTemplate.GENERATE_DIAGRAM: {"structure": make_structure()},
        PromptTemplate.GENERATE_DIAGRAM_FROM_XML: {"xml": XML},
        PromptTemplate.PROPOSE_CHANGES: {"feature_request": "add search", "structure": make_structure()},
        PromptTemplate.INTEGRATE_CHANGES: {"diagram": "flowchart TB\n    home", "changes": make_proposal()},
    }


@pytest.mark.parametrize("template", list(PromptTemplate))
def test_rendering_is_deterministic(template):
    first = build_prompt(template, make_payloads()[template])
    second = build_prompt(template, make_payloads()[template])

    assert first == second


@pytest.mark.parametrize("template", list(PromptTemplate))
def test_every_prompt_embeds_the_verbs(template):
    prompt = build_prompt(template, make_payloads()[template])

    for verb in RELATIONSHIP_VERBS:
        assert verb in prompt


@pytest.mark.parametrize(
    "template",
    [
        PromptTemplate.EXTRACT_STRUCTURE,
        PromptTemplate.GENERATE_DIAGRAM,
        PromptTemplate.GENERATE_DIAGRAM_FROM_XML,
        PromptTemplate.PROPOSE_CHANGES,
    ],
)
def test_prompts_embed_the_role_catalog(template):
    prompt = build_prompt(template, make_payloads()[template])

    for role in DEFAULT_CATALOG.roles:
        assert f"- {role.role} ({role.shape}, {role.color})" in prompt


@pytest.mark.parametrize(
    "template",
    [PromptTemplate.GENERATE_DIAGRAM, PromptTemplate.GENERATE_DIAGRAM_FROM_XML, PromptTemplate.INTEGRATE_CHANGES],
)
def test_diagram_prompts_carry_class_defs_and_header(template):
    prompt = build_prompt(template, make_payloads()[template])

    assert "classDef page fill:#d0ebff,stroke:#333,stroke-width:1px,color:#000;" in prompt
    assert "flowchart TB" in prompt


def test_prompt_text_layout():
    prompt = build_prompt(PromptTemplate.EXTRACT_STRUCTURE, {"xml": XML})

    assert prompt.startswith("you have a codebase in repomix xml form. extract its structure.\n")
    assert prompt.endswith(XML + "\n")


def test_structure_payload_is_rendered_as_json():
    prompt = build_prompt(PromptTemplate.GENERATE_DIAGRAM, {"structure": make_structure()})

    assert '"path": "src/pages/Home.tsx"' in prompt
    assert '"target": "src/components/Header.tsx"' in prompt


def test_changes_payload_uses_wire_names():
    prompt = build_prompt(PromptTemplate.INTEGRATE_CHANGES, make_payloads()[PromptTemplate.INTEGRATE_CHANGES])

    assert '"from": "home"' in prompt
    assert '"to": "search"' in prompt
    assert "flowchart TB\n    home" in prompt


def test_propose_changes_falls_back_to_xml():
    prompt = build_prompt(
        PromptTemplate.PROPOSE_CHANGES,
        {"feature_request": "add search", "xml": XML, "diagram": "flowchart TB\n    home"},
    )

    assert 'user request: "add search"' in prompt
    assert XML in prompt
    assert "existing diagram:\nflowchart TB\n    home" in prompt


def test_propose_changes_needs_a_source():
    with pytest.raises(PromptError, match="'structure' or 'xml'"):
        build_prompt(PromptTemplate.PROPOSE_CHANGES, {"feature_request": "add search"})


@pytest.mark.parametrize(
    "template, payload",
    [
        (PromptTemplate.EXTRACT_STRUCTURE, {}),
        (PromptTemplate.GENERATE_DIAGRAM, {"structure": None}),
        (PromptTemplate.INTEGRATE_CHANGES, {"diagram": "flowchart TB"}),
    ],
)
def test_missing_payload_entries_raise(template, payload):
    with pytest.raises(PromptError):
        build_prompt(template, payload)


def test_custom_catalog_is_embedded():
    catalog = Catalog(
        roles=(RoleDefinition("widget", "hexagon", "#abcdef", ("{{", "}}")),),
        verbs=("wraps",),
    )

    prompt = build_prompt(PromptTemplate.GENERATE_DIAGRAM_FROM_XML, {"xml": XML}, catalog)

    assert "- widget (hexagon, #abcdef): {{text}}" in prompt
    assert "classDef widget fill:#abcdef" in prompt
    assert "relationship verbs: wraps" in prompt
    assert "classDef page" not in prompt


def test_messages_are_system_then_user():
    messages = build_messages(PromptTemplate.EXTRACT_STRUCTURE, {"xml": XML})

    assert [m["role"] for m in messages] == ["system", "user"]
    assert messages[0]["content"] == SYSTEM_PROMPT.strip()
    assert messages[1]["content"] == build_prompt(PromptTemplate.EXTRACT_STRUCTURE, {"xml": XML})
