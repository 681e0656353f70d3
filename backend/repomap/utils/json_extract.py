"""
JSON recovery for model output.

Providers wrap JSON in prose, markdown fences or comments often enough that a
single ``json.loads`` fails in practice. Each strategy below takes the raw
payload and returns a dict or ``None``; they are tried in order and the first
dict wins.
"""

import json
import re
from typing import Any, Callable, Optional, Tuple

Strategy = Callable[[Any], Optional[dict]]

_FENCED_BLOCK_RE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\n?(.*?)```", re.DOTALL)
_FENCE_MARKER_RE = re.compile(r"```[A-Za-z0-9_-]*")
_STRING_LITERAL_RE = re.compile(r'"(?:\\.|[^"\\])*"', re.DOTALL)
_NON_PRINTABLE_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f\u200b\ufeff]")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_$][\w$-]*)\s*:")
_WHITESPACE_RE = re.compile(r"\s+")


def _loads_object(text: str, strict: bool = True) -> Optional[dict]:
    try:
        value = json.loads(text, strict=strict)
    except (TypeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


# ============================================================
# STRATEGY 1: payload is already JSON (or already structured)
# ============================================================

def parse_direct(raw: Any) -> Optional[dict]:
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        return None
    return _loads_object(raw.strip())


# ============================================================
# STRATEGY 2: markdown fences around otherwise valid JSON
# ============================================================

def strip_fences(text: str) -> str:
    match = _FENCED_BLOCK_RE.search(text)
    if match:
        return match.group(1).strip()
    text = re.sub(r"^```(?:json)?\s*", "", text.strip())
    return re.sub(r"\s*```$", "", text).strip()


def parse_fenced(raw: Any) -> Optional[dict]:
    if not isinstance(raw, str):
        return None
    return _loads_object(strip_fences(raw))


# ============================================================
# STRATEGY 3: aggressive cleanup
# ============================================================

def strip_comments(text: str) -> str:
    """Remove // and /* */ comments that sit outside string literals."""
    out = []
    i = 0
    n = len(text)
    in_string = False

    while i < n:
        ch = text[i]

        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
            continue

        if text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
            continue

        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue

        out.append(ch)
        i += 1

    return "".join(out)


def _outside_strings(text: str, transform: Callable[[str], str]) -> str:
    out = []
    pos = 0
    for match in _STRING_LITERAL_RE.finditer(text):
        out.append(transform(text[pos:match.start()]))
        out.append(match.group(0))
        pos = match.end()
    out.append(transform(text[pos:]))
    return "".join(out)


def _repair_segment(segment: str) -> str:
    segment = _WHITESPACE_RE.sub(" ", segment)
    segment = _TRAILING_COMMA_RE.sub(r"\1", segment)
    return _BARE_KEY_RE.sub(r'\1"\2":', segment)


def clean_json_text(text: str) -> str:
    text = _FENCE_MARKER_RE.sub("", text)
    text = _NON_PRINTABLE_RE.sub("", text)
    text = strip_comments(text)
    text = _outside_strings(text, _repair_segment)
    # a trailing comma can straddle a string literal boundary: `"x", }`
    text = _outside_strings(text, lambda s: _TRAILING_COMMA_RE.sub(r"\1", s))

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return ""
    return text[start:end + 1]


def parse_cleaned(raw: Any) -> Optional[dict]:
    if not isinstance(raw, str):
        return None
    cleaned = clean_json_text(raw)
    if not cleaned:
        return None
    # strict=False tolerates raw newlines inside strings (multi-line diagrams)
    return _loads_object(cleaned, strict=False)


STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("direct", parse_direct),
    ("fenced", parse_fenced),
    ("cleaned", parse_cleaned),
)


def extract_json_with_strategy(raw: Any) -> Tuple[Optional[dict], Optional[str]]:
    """Return the first dict any strategy recovers, with that strategy's name."""
    if raw is None:
        return None, None

    for name, strategy in STRATEGIES:
        value = strategy(raw)
        if value is not None:
            return value, name

    return None, None


def extract_json(text: Any) -> dict:
    """
    Extract the first valid JSON object from LLM output.
    Returns {} if parsing fails.
    """
    value, _ = extract_json_with_strategy(text)
    return value if value is not None else {}
