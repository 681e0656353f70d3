from repomap.llm.parser import (
    ResponseShape,
    decode,
    decode_with_strategy,
    empty_default,
    parse_structure,
)

__all__ = [
    "ResponseShape",
    "decode",
    "decode_with_strategy",
    "empty_default",
    "parse_structure",
]
