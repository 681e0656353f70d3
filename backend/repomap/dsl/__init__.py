from repomap.dsl.mermaid import (
    MERMAID_HEADER,
    apply_font_size_scaling,
    calculate_font_size,
    font_size_directive,
    has_required_header,
    require_header,
)

__all__ = [
    "MERMAID_HEADER",
    "apply_font_size_scaling",
    "calculate_font_size",
    "font_size_directive",
    "has_required_header",
    "require_header",
]
