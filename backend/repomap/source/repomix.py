"""
Repomix integration.

Repomix packs a directory into one XML document with numbered lines. We run it
as a black box and read two things back: the XML itself (model context) and,
per file, the highest line number (a proxy for file length).
"""

import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Union

from repomap.errors import RepomixError

logger = logging.getLogger(__name__)

INCLUDE_GLOBS = "**/*.ts,**/*.tsx,**/*.js,**/*.jsx"
IGNORE_GLOBS = "**/node_modules/**,**/dist/**,**/.git/**"

_FILE_BLOCK_RE = re.compile(r'<file path="([^"]+)">(.*?)</file>', re.DOTALL)
_LINE_NUMBER_RE = re.compile(r"^\s*(\d+):", re.MULTILINE)


@dataclass(frozen=True)
class SourceFileRecord:
    path: str
    max_line_number: int

    @property
    def basename(self) -> str:
        return os.path.basename(self.path)


def check_repomix_installation():
    if shutil.which("repomix") is None:
        raise RepomixError("repomix not installed. run: npm install -g repomix")
    try:
        subprocess.run(
            ["repomix", "--version"],
            check=True,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except (OSError, subprocess.CalledProcessError) as e:
        raise RepomixError("repomix not installed. run: npm install -g repomix") from e


def repomix_command(target_dir: Union[str, Path], output_file: Union[str, Path]) -> List[str]:
    return [
        "repomix",
        str(target_dir),
        "--style", "xml",
        "--include", INCLUDE_GLOBS,
        "--ignore", IGNORE_GLOBS,
        "--output-show-line-numbers",
        "-o", str(output_file),
    ]


def run_repomix(target_dir: Union[str, Path], output_file: Union[str, Path]) -> Path:
    target_dir = Path(target_dir)
    output_file = Path(output_file)

    logger.info("[REPOMIX] analyzing %s -> %s", target_dir.resolve(), output_file)
    check_repomix_installation()

    command = repomix_command(target_dir, output_file)
    logger.debug("[REPOMIX] running: %s", " ".join(command))

    try:
        subprocess.run(command, check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or e.stdout or "").strip()
        raise RepomixError(f"failed to run repomix: {detail or e}") from e
    except OSError as e:
        raise RepomixError(f"failed to run repomix: {e}") from e

    if not output_file.is_file():
        raise RepomixError(f"repomix finished but {output_file} was not written")
    return output_file


def parse_line_counts(content: str) -> List[SourceFileRecord]:
    """One record per <file path="..."> block, in document order."""
    records = []
    for match in _FILE_BLOCK_RE.finditer(content):
        numbers = [int(n) for n in _LINE_NUMBER_RE.findall(match.group(2))]
        records.append(
            SourceFileRecord(
                path=match.group(1),
                max_line_number=max(numbers, default=0),
            )
        )
    return records


def line_count_map(
    records: Iterable[SourceFileRecord],
    key: str = "basename",
) -> Dict[str, int]:
    """
    Map file key -> line count.

    Keyed by basename by default, since diagram labels carry file names only.
    Two files with the same basename collide; the later record wins.
    """
    if key not in ("basename", "path"):
        raise ValueError(f"key must be 'basename' or 'path', got '{key}'")

    counts: Dict[str, int] = {}
    origin: Dict[str, str] = {}

    for record in records:
        name = record.basename if key == "basename" else record.path
        if name in origin and origin[name] != record.path:
            logger.warning(
                "[REPOMIX] '%s' names both %s and %s; using the latter",
                name,
                origin[name],
                record.path,
            )
        counts[name] = record.max_line_number
        origin[name] = record.path

    return counts


def read_line_counts(repomix_file: Union[str, Path], key: str = "basename") -> Dict[str, int]:
    content = Path(repomix_file).read_text(encoding="utf-8")
    return line_count_map(parse_line_counts(content), key=key)
