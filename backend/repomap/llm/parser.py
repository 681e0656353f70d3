import copy
import logging
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from repomap.ir.structure_ir import StructureIR, FileEntry, FileRelationship
from repomap.utils.json_extract import extract_json_with_strategy

logger = logging.getLogger(__name__)


class ResponseShape(Enum):
    STRUCTURE = "structure"
    DIAGRAM = "diagram"
    CHANGE_PROPOSAL = "change_proposal"


_EMPTY_DEFAULTS: Dict[ResponseShape, Dict[str, Any]] = {
    ResponseShape.STRUCTURE: {"files": [], "directories": []},
    ResponseShape.DIAGRAM: {"diagram": ""},
    ResponseShape.CHANGE_PROPOSAL: {"newNodes": [], "newEdges": [], "explanation": ""},
}

_COLLECTIONS: Dict[ResponseShape, Tuple[str, ...]] = {
    ResponseShape.STRUCTURE: ("files", "directories"),
    ResponseShape.DIAGRAM: (),
    ResponseShape.CHANGE_PROPOSAL: ("newNodes", "newEdges"),
}


def empty_default(shape: ResponseShape) -> Dict[str, Any]:
    return copy.deepcopy(_EMPTY_DEFAULTS[shape])


# ============================================================
# SAFE DECODER (LLM TRUST BOUNDARY)
# ============================================================

def decode_with_strategy(
    raw: Any,
    shape: ResponseShape,
) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Decode a raw model payload into a dict of the expected shape.

    Strategy:
    1. Direct parse (payload may already be structured)
    2. Strip markdown fences and parse
    3. Aggressive cleanup, then parse the outermost {...}
    4. Empty default for the shape

    Missing or non-list collections are replaced with empty lists. NEVER throws.
    """
    try:
        value, strategy = extract_json_with_strategy(raw)
    except Exception as e:
        logger.warning("[DECODER] extraction crashed for %s response: %s", shape.value, e)
        value, strategy = None, None

    if value is None:
        logger.warning(
            "[DECODER] decoding degraded: no strategy recovered a %s document, "
            "using the empty default",
            shape.value,
        )
        return empty_default(shape), None

    logger.debug("[DECODER] %s document recovered by '%s' strategy", shape.value, strategy)

    decoded = dict(value)
    for key in _COLLECTIONS[shape]:
        if not isinstance(decoded.get(key), list):
            if decoded.get(key) is not None:
                logger.warning(
                    "[DECODER] %s.%s is not a list, using []",
                    shape.value,
                    key,
                )
            decoded[key] = []

    return decoded, strategy


def decode(raw: Any, shape: ResponseShape) -> Dict[str, Any]:
    decoded, _ = decode_with_strategy(raw, shape)
    return decoded


# ============================================================
# STRUCTURE PARSER
# ============================================================

def _string_list(items: Any) -> list:
    if isinstance(items, str):
        return [items]
    if not isinstance(items, list):
        return []

    out = []
    for item in items:
        if isinstance(item, str):
            out.append(item)
        elif isinstance(item, dict):
            name = item.get("name") or item.get("path") or item.get("id")
            if isinstance(name, str):
                out.append(name)
    return out


def _relationships(items: Any) -> list:
    if not isinstance(items, list):
        return []

    out = []
    for r in items:
        if isinstance(r, dict):
            target = r.get("target") or r.get("to")
            if not isinstance(target, str) or not target:
                continue
            rel_type = r.get("type") or r.get("relationship") or "uses"
            out.append(FileRelationship(type=str(rel_type), target=target))
        elif isinstance(r, str) and r:
            out.append(FileRelationship(type="uses", target=r))
    return out


def parse_structure(raw: Any) -> StructureIR:
    """
    Build the intermediate structure from a model response.
    Malformed entries are dropped, never raised on.
    """
    data = raw if isinstance(raw, dict) else decode(raw, ResponseShape.STRUCTURE)

    raw_files = data.get("files")
    if not isinstance(raw_files, list):
        raw_files = []

    files = []
    for f in raw_files:
        if isinstance(f, str):
            files.append(FileEntry(path=f))
            continue
        if not isinstance(f, dict):
            continue

        path = f.get("path") or f.get("name")
        if not isinstance(path, str) or not path:
            continue

        files.append(
            FileEntry(
                path=path,
                imports=_string_list(f.get("imports")),
                exports=_string_list(f.get("exports")),
                relationships=_relationships(f.get("relationships")),
            )
        )

    return StructureIR(
        files=files,
        directories=_string_list(data.get("directories")),
    )
