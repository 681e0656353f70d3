"""Tests for font-size annotation of Mermaid node declarations"""

import pytest

from repomap.dsl.mermaid import (
    MAX_FONT,
    MIN_FONT,
    apply_font_size_scaling,
    calculate_font_size,
    font_size_bindings,
    font_size_directive,
    match_node_declaration,
)


def make_diagram(*body: str) -> str:
    return "\n".join(("flowchart TB",) + body)


# ------------------------------------------------
# calculate_font_size
# ------------------------------------------------

@pytest.mark.parametrize("lines", [0, 1, 50, 100])
def test_short_files_get_min_font(lines):
    assert calculate_font_size(lines) == MIN_FONT


@pytest.mark.parametrize("lines", [500, 501, 10_000])
def test_long_files_get_max_font(lines):
    assert calculate_font_size(lines) == MAX_FONT


def test_font_size_is_linear_between_bounds():
    assert calculate_font_size(300) == pytest.approx(15)
    assert calculate_font_size(200) == pytest.approx(12.5)
    for lines in range(101, 500):
        expected = 10 + (lines - 100) / 400 * 10
        assert calculate_font_size(lines) == pytest.approx(expected)


def test_font_size_is_monotonic_and_bounded():
    sizes = [calculate_font_size(n) for n in range(0, 800)]
    assert all(MIN_FONT <= s <= MAX_FONT for s in sizes)
    assert all(a <= b for a, b in zip(sizes, sizes[1:]))


def test_directive_formatting():
    assert font_size_directive("home", 10) == "style home font-size:10px;"
    assert font_size_directive("header", 15.0) == "style header font-size:15px;"
    assert font_size_directive("api", 12.5) == "style api font-size:12.5px;"
    assert font_size_directive("x", calculate_font_size(101)) == "style x font-size:10.025px;"


# ------------------------------------------------
# node matching
# ------------------------------------------------

@pytest.mark.parametrize(
    "line, expected",
    [
        ('    home(["Home.tsx"])', ("home", "Home.tsx")),
        ('    home(["Home.tsx"]):::page', ("home", "Home.tsx")),
        ("    api((api.ts)):::service", ("api", "api.ts")),
        ('    list["List.tsx"]', ("list", "List.tsx")),
        ('    cfg>"config.ts"]:::config', ("cfg", "config.ts")),
        ('    auth{{"AuthContext.tsx"}}:::context', ("auth", "AuthContext.tsx")),
        ('    user[("user.ts")]:::model', ("user", "user.ts")),
    ],
)
def test_node_declarations_are_matched(line, expected):
    assert match_node_declaration(line) == expected


@pytest.mark.parametrize(
    "line",
    [
        "flowchart TB",
        "    subgraph pages",
        "    end",
        "    home -- renders --> header",
        '    home-. "uses" .->search',
        "    classDef page fill:#d0ebff,stroke:#333;",
        "    style home font-size:10px;",
        "    %% a comment",
    ],
)
def test_other_lines_are_not_nodes(line):
    assert match_node_declaration(line) is None


# ------------------------------------------------
# apply_font_size_scaling
# ------------------------------------------------

def test_annotates_known_files():
    diagram = make_diagram(
        "    subgraph pages",
        '        home(["Home.tsx"])',
        '        header(["Header.tsx"])',
        "    end",
        "    home -- renders --> header",
    )

    result = apply_font_size_scaling(diagram, {"Home.tsx": 50, "Header.tsx": 300})

    assert result == make_diagram(
        "    subgraph pages",
        '        home(["Home.tsx"])',
        "style home font-size:10px;",
        '        header(["Header.tsx"])',
        "style header font-size:15px;",
        "    end",
        "    home -- renders --> header",
    )


def test_unknown_labels_are_left_alone():
    diagram = make_diagram('    ghost(["Ghost.tsx"])', '    home(["Home.tsx"])')

    result = apply_font_size_scaling(diagram, {"Home.tsx": 500})

    assert result.split("\n") == [
        "flowchart TB",
        '    ghost(["Ghost.tsx"])',
        '    home(["Home.tsx"])',
        "style home font-size:20px;",
    ]


def test_labels_with_paths_fall_back_to_basename():
    diagram = make_diagram('    home(["src/pages/Home.tsx"]):::page')

    result = apply_font_size_scaling(diagram, {"Home.tsx": 300})

    assert result.endswith("style home font-size:15px;")


def test_only_insertions_are_made():
    diagram = make_diagram(
        "    classDef service fill:#ffe8cc,stroke:#333,stroke-width:1px,color:#000;",
        "    subgraph services",
        "        api((api.ts)):::service",
        "    end",
        "    api -- fetches from --> cfg",
        "",
    )

    result = apply_font_size_scaling(diagram, {"api.ts": 120})

    original = diagram.split("\n")
    remaining = [l for l in result.split("\n") if not l.startswith("style ")]
    assert remaining == original
    assert len(result.split("\n")) == len(original) + 1


def test_scaling_is_idempotent():
    diagram = make_diagram(
        '    home(["Home.tsx"])',
        "    api((api.ts)):::service",
        "    home -- calls --> api",
    )
    counts = {"Home.tsx": 50, "api.ts": 250}

    once = apply_font_size_scaling(diagram, counts)
    twice = apply_font_size_scaling(once, counts)

    assert twice == once
    assert font_size_bindings(twice) == {"home": {"10"}, "api": {"13.75"}}


def test_empty_line_counts_change_nothing():
    diagram = make_diagram('    home(["Home.tsx"])')
    assert apply_font_size_scaling(diagram, {}) == diagram
