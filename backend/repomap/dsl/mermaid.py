import re
from typing import Mapping, Optional, Union

from repomap.errors import ContractViolation

MERMAID_HEADER = "flowchart TB"

# Font size scaling based on source file length
MIN_LINES = 100
MAX_LINES = 500
MIN_FONT = 10
MAX_FONT = 20

# <indent><id><open brackets>"<label>"<close brackets>, e.g.
#   home(["Home.tsx"]):::page
#   api((api.ts)):::service
NODE_DECLARATION_RE = re.compile(
    r"^\s*([A-Za-z0-9_]+)"
    r"[\[\(\{>]+\s*"
    r'"?([^"\[\]\(\)\{\}]+?)"?'
    r"\s*[\]\)\}]+"
)

FONT_SIZE_DIRECTIVE_RE = re.compile(r"^style\s+([A-Za-z0-9_]+)\s+font-size:([0-9.]+)px;$")


def has_required_header(diagram: str) -> bool:
    return bool(diagram) and diagram.strip().startswith(MERMAID_HEADER)


def require_header(diagram: str) -> str:
    if not has_required_header(diagram):
        first = diagram.strip().splitlines()[0] if diagram and diagram.strip() else ""
        raise ContractViolation(
            f"diagram must start with '{MERMAID_HEADER}', got '{first[:60]}'"
        )
    return diagram.strip()


def calculate_font_size(lines: int) -> Union[int, float]:
    if lines <= MIN_LINES:
        return MIN_FONT
    if lines >= MAX_LINES:
        return MAX_FONT
    ratio = (lines - MIN_LINES) / (MAX_LINES - MIN_LINES)
    return MIN_FONT + ratio * (MAX_FONT - MIN_FONT)


def format_font_size(size: Union[int, float]) -> str:
    # 15.0 -> "15", 10.025 -> "10.025"
    return f"{size:g}"


def font_size_directive(node_id: str, size: Union[int, float]) -> str:
    return f"style {node_id} font-size:{format_font_size(size)}px;"


def match_node_declaration(line: str) -> Optional[tuple]:
    """Return (node_id, label) for a node declaration line, else None."""
    match = NODE_DECLARATION_RE.match(line)
    if not match:
        return None
    return match.group(1), match.group(2).strip()


def _lookup_line_count(label: str, line_counts: Mapping[str, int]) -> Optional[int]:
    if label in line_counts:
        return line_counts[label]
    basename = re.split(r"[\\/]", label)[-1]
    return line_counts.get(basename)


def apply_font_size_scaling(diagram: str, line_counts: Mapping[str, int]) -> str:
    """
    Insert a font-size style line after every node whose label names a known file.

    Lines are otherwise passed through untouched and in order. A directive that
    already sits directly after its node is not inserted a second time.
    """
    lines = diagram.split("\n")
    out = []

    for index, line in enumerate(lines):
        out.append(line)

        node = match_node_declaration(line)
        if node is None:
            continue

        node_id, label = node
        count = _lookup_line_count(label, line_counts)
        if count is None:
            continue

        directive = font_size_directive(node_id, calculate_font_size(count))
        following = lines[index + 1].strip() if index + 1 < len(lines) else None
        if following == directive:
            continue

        out.append(directive)

    return "\n".join(out)


def font_size_bindings(diagram: str) -> dict:
    """Map node id -> set of font sizes declared for it by style lines."""
    bindings: dict = {}
    for line in diagram.split("\n"):
        match = FONT_SIZE_DIRECTIVE_RE.match(line.strip())
        if match:
            bindings.setdefault(match.group(1), set()).add(match.group(2))
    return bindings
