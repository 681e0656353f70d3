import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

OUTPUT_DIR_NAME = "repomap_output"
REPOMIX_FILE_NAME = "repomix-output.xml"


def sanitize_feature_name(feature_request: str) -> str:
    name = re.sub(r"[^a-z0-9]+", "_", feature_request.lower())
    return name.strip("_")


def prepare_output_directory(output_dir: Union[str, Path]) -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


@dataclass(frozen=True)
class OutputPaths:
    output_dir: Path
    repomix_file: Path
    base_file: Path
    final_file: Path
    structure_file: Path
    changes_file: Optional[Path] = None

    @classmethod
    def for_target(cls, target_dir: Union[str, Path], feature_request: Optional[str] = None):
        target_dir = Path(target_dir)
        dir_name = target_dir.name
        output_dir = target_dir / OUTPUT_DIR_NAME

        changes_file = None
        if feature_request:
            feature = sanitize_feature_name(feature_request)
            final_file = output_dir / f"add_{feature}.mmd"
            changes_file = output_dir / f"add_{feature}.json"
        else:
            final_file = output_dir / f"{dir_name}_repomap.mmd"

        return cls(
            output_dir=output_dir,
            repomix_file=output_dir / REPOMIX_FILE_NAME,
            base_file=output_dir / f"{dir_name}_base_repomap.mmd",
            final_file=final_file,
            structure_file=output_dir / f"{dir_name}_structure.json",
            changes_file=changes_file,
        )


def save_diagram(diagram: str, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.write_text(diagram, encoding="utf-8")
    logger.info("[OUTPUT] saved diagram to %s", path)
    return path


def save_json(document: Any, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.write_text(json.dumps(document, indent=2), encoding="utf-8")
    logger.info("[OUTPUT] saved %s", path)
    return path
