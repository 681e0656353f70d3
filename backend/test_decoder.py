"""Tests for recovering JSON documents from raw model output"""

import json

import pytest

from repomap.llm.parser import ResponseShape, decode, decode_with_strategy, parse_structure
from repomap.utils.json_extract import clean_json_text, extract_json, strip_comments

PROPOSAL = {
    "newNodes": [{"id": "search", "label": "Search.tsx", "role": "component"}],
    "newEdges": [{"from": "home", "to": "search", "relationship": "renders", "proposed": True}],
    "explanation": "adds a search component rendered by the home page",
}


def test_plain_json_uses_direct_strategy():
    raw = json.dumps({"diagram": "flowchart TB\n    a --> b"})

    decoded, strategy = decode_with_strategy(raw, ResponseShape.DIAGRAM)

    assert strategy == "direct"
    assert decoded == {"diagram": "flowchart TB\n    a --> b"}


def test_structured_payload_is_accepted_as_is():
    decoded, strategy = decode_with_strategy(dict(PROPOSAL), ResponseShape.CHANGE_PROPOSAL)

    assert strategy == "direct"
    assert decoded == PROPOSAL


def test_fenced_json_uses_fenced_strategy():
    raw = "```json\n" + json.dumps({"diagram": "flowchart TB"}) + "\n```"

    decoded, strategy = decode_with_strategy(raw, ResponseShape.DIAGRAM)

    assert strategy == "fenced"
    assert decoded == {"diagram": "flowchart TB"}


def test_fenced_json_inside_prose():
    raw = "Here is the diagram:\n```json\n" + json.dumps(PROPOSAL) + "\n```\nLet me know!"

    decoded, strategy = decode_with_strategy(raw, ResponseShape.CHANGE_PROPOSAL)

    assert strategy == "fenced"
    assert decoded == PROPOSAL


def test_corrupted_json_uses_cleaned_strategy():
    raw = """Sure! Here is the structure:
{
  files: [
    {path: "src/Home.tsx", imports: ["react",], exports: ["Home"], relationships: [{type: "renders", target: "src/Header.tsx"},],},
  ],
  // directories found
  directories: ["src",],
}
"""

    decoded, strategy = decode_with_strategy(raw, ResponseShape.STRUCTURE)

    assert strategy == "cleaned"
    assert decoded == {
        "files": [
            {
                "path": "src/Home.tsx",
                "imports": ["react"],
                "exports": ["Home"],
                "relationships": [{"type": "renders", "target": "src/Header.tsx"}],
            }
        ],
        "directories": ["src"],
    }


def test_cleanup_leaves_string_contents_alone():
    raw = '{diagram: "classDef page fill:#d0ebff,stroke:#333;", // note\n}'

    decoded, strategy = decode_with_strategy(raw, ResponseShape.DIAGRAM)

    assert strategy == "cleaned"
    assert decoded == {"diagram": "classDef page fill:#d0ebff,stroke:#333;"}


def test_cleanup_keeps_urls_in_strings():
    text = '{"url": "http://example.com/a"} // trailing'
    assert strip_comments(text) == '{"url": "http://example.com/a"} '


def test_cleaned_strategy_tolerates_raw_newlines_in_strings():
    raw = 'result: {"diagram": "flowchart TB\n    a --> b",}'

    decoded = decode(raw, ResponseShape.DIAGRAM)

    assert decoded == {"diagram": "flowchart TB\n    a --> b"}


@pytest.mark.parametrize(
    "shape, expected",
    [
        (ResponseShape.STRUCTURE, {"files": [], "directories": []}),
        (ResponseShape.DIAGRAM, {"diagram": ""}),
        (ResponseShape.CHANGE_PROPOSAL, {"newNodes": [], "newEdges": [], "explanation": ""}),
    ],
)
@pytest.mark.parametrize("raw", ["I cannot help with that.", "", None, 42, "[1, 2, 3]"])
def test_undecodable_output_degrades_to_empty_default(raw, shape, expected):
    decoded, strategy = decode_with_strategy(raw, shape)

    assert strategy is None
    assert decoded == expected


def test_empty_defaults_are_fresh_copies():
    first = decode("nope", ResponseShape.CHANGE_PROPOSAL)
    first["newNodes"].append({"id": "x"})

    assert decode("nope", ResponseShape.CHANGE_PROPOSAL)["newNodes"] == []


def test_missing_collections_are_filled():
    decoded = decode('{"explanation": "nothing to add", "newEdges": null}', ResponseShape.CHANGE_PROPOSAL)

    assert decoded == {"explanation": "nothing to add", "newNodes": [], "newEdges": []}


@pytest.mark.parametrize("files", [5, True, "src/a.ts", {"path": "src/a.ts"}])
def test_non_list_collections_are_replaced(files):
    decoded = decode(json.dumps({"files": files, "directories": ["src"]}), ResponseShape.STRUCTURE)

    assert decoded == {"files": [], "directories": ["src"]}


def test_extract_json_returns_empty_dict_on_failure():
    assert extract_json("no json here") == {}
    assert extract_json('{"a": 1}') == {"a": 1}


def test_clean_json_text_takes_outermost_object():
    assert clean_json_text('noise {"a": {"b": 1}} more noise') == '{"a": {"b": 1}}'
    assert clean_json_text("no braces at all") == ""


# ------------------------------------------------
# parse_structure
# ------------------------------------------------

def test_parse_structure_drops_malformed_entries():
    structure = parse_structure(
        {
            "files": [
                "src/util.ts",
                {"name": "src/Home.tsx", "imports": "react", "relationships": [{"to": "src/api.ts"}, {"type": "x"}]},
                {"imports": ["react"]},
                17,
            ],
            "directories": ["src", {"path": "src/pages"}, None],
        }
    )

    assert [f.path for f in structure.files] == ["src/util.ts", "src/Home.tsx"]
    home = structure.files[1]
    assert home.imports == ["react"]
    assert [(r.type, r.target) for r in home.relationships] == [("uses", "src/api.ts")]
    assert structure.directories == ["src", "src/pages"]


def test_parse_structure_ignores_non_list_files():
    structure = parse_structure({"files": 5, "directories": "src"})

    assert structure.files == []
    assert structure.directories == ["src"]


def test_parse_structure_from_garbage_is_empty():
    assert parse_structure("not json").is_empty()
