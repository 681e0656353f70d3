"""
generate-repomap: visualize a codebase as a Mermaid repository map.

usage:
  generate-repomap [directory] [--add "feature request"] [--no-repomix]

examples:
  generate-repomap ./src
  generate-repomap ./src --add "add a search feature for listings"
  generate-repomap ./src --no-repomix --add "add another feature"
"""

import argparse
import logging
import shutil
import sys
from pathlib import Path
from typing import Callable, List, Optional

from pydantic import ValidationError

from repomap.config import MODES, Settings
from repomap.errors import RepomapError
from repomap.inference.config import get_llm_client
from repomap.ir.structure_ir import StructureIR
from repomap.output import OutputPaths, prepare_output_directory, save_diagram, save_json
from repomap.pipeline.controller import PipelineController
from repomap.source.repomix import read_line_counts, run_repomix

logger = logging.getLogger(__name__)

ControllerFactory = Callable[[Optional[str]], PipelineController]


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="generate-repomap",
        description="Generate a Mermaid repository map, optionally with a proposed feature.",
    )
    parser.add_argument(
        "directory",
        nargs="?",
        default=None,
        help="target directory (defaults to the current directory)",
    )
    parser.add_argument(
        "--add",
        dest="feature_request",
        metavar="FEATURE",
        help="add a proposed feature to the diagram",
    )
    parser.add_argument(
        "--no-repomix",
        action="store_true",
        help="skip repomix and rely on previously generated files",
    )
    parser.add_argument(
        "--regenerate",
        action="store_true",
        help="regenerate the base diagram even if one exists",
    )
    parser.add_argument(
        "--mode",
        choices=MODES,
        default=None,
        help="decomposed: xml -> structure -> diagram; direct: xml -> diagram",
    )
    parser.add_argument(
        "--save-structure",
        action="store_true",
        help="also save the intermediate structure as json",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def default_controller_factory(mode: Optional[str]) -> PipelineController:
    settings = Settings.from_env()
    return PipelineController(get_llm_client(settings), mode=mode or settings.mode)


def _load_structure(paths: OutputPaths) -> Optional[StructureIR]:
    if not paths.structure_file.is_file():
        return None
    try:
        return StructureIR.model_validate_json(paths.structure_file.read_text(encoding="utf-8"))
    except ValidationError as e:
        logger.warning("[CLI] ignoring unreadable %s: %s", paths.structure_file, e)
        return None


def generate_repomap(
    target_dir: Path,
    feature_request: Optional[str] = None,
    no_repomix: bool = False,
    regenerate: bool = False,
    mode: Optional[str] = None,
    save_structure: bool = False,
    controller_factory: ControllerFactory = default_controller_factory,
) -> Path:
    """Run the whole flow and return the path of the final diagram."""
    target_dir = Path(target_dir).resolve()
    paths = OutputPaths.for_target(target_dir, feature_request)
    prepare_output_directory(paths.output_dir)

    print("\n🚀 starting repomap generation...")

    if not no_repomix:
        print(f"\n🔍 analyzing dir: {target_dir}")
        run_repomix(target_dir, paths.repomix_file)
    elif not paths.repomix_file.is_file() or not paths.base_file.is_file():
        raise RepomapError(
            "--no-repomix set but missing base diagram or repomix-output.xml. "
            "run without --no-repomix first."
        )

    if not paths.repomix_file.is_file():
        raise RepomapError("no repomix-output.xml found, run without --no-repomix first.")

    line_counts = read_line_counts(paths.repomix_file)
    source_xml = paths.repomix_file.read_text(encoding="utf-8")

    controller = None
    structure = None

    def get_controller() -> PipelineController:
        nonlocal controller
        if controller is None:
            controller = controller_factory(mode)
        return controller

    if regenerate or (not paths.base_file.is_file() and not no_repomix):
        print("\n🤖 generating base repomap...")
        ctrl = get_controller()
        if ctrl.mode == "decomposed":
            structure = ctrl.extract_structure(source_xml)
            if save_structure:
                save_json(structure.model_dump(), paths.structure_file)
        base_diagram = ctrl.generate_base_diagram(source_xml, line_counts, structure=structure)
        save_diagram(base_diagram, paths.base_file)
    else:
        base_diagram = paths.base_file.read_text(encoding="utf-8")

    print(f"\n✅ base repomap diagram at {paths.base_file}")

    if feature_request:
        print(f'\n📜 feature request: "{feature_request}"')
        ctrl = get_controller()
        if ctrl.mode == "decomposed" and structure is None:
            structure = _load_structure(paths)

        print("\n🧩 planning new feature changes...")
        proposal = ctrl.propose_changes(
            feature_request,
            xml=source_xml,
            structure=structure,
            base_diagram=base_diagram,
        )
        save_json(proposal.to_document(), paths.changes_file)
        print(f"✅ saved {paths.changes_file}")

        print("\n🔧 integrating proposed changes...")
        updated = ctrl.integrate_changes(base_diagram, proposal, line_counts)
        save_diagram(updated, paths.final_file)
        print(f"\n✅ updated repomap with proposed features saved to {paths.final_file}")
    else:
        print("\nno features requested. done.")
        shutil.copyfile(paths.base_file, paths.final_file)
        print(f"✅ copied base to {paths.final_file} too.")

    svg_file = paths.final_file.with_suffix(".svg")
    print("\nyou can view the .mmd file on github or use mermaid cli:")
    print(f'  mmdc -i "{paths.final_file}" -o "{svg_file}"\n')

    return paths.final_file


def main(
    argv: Optional[List[str]] = None,
    controller_factory: ControllerFactory = default_controller_factory,
) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    target_dir = Path(args.directory) if args.directory else Path.cwd()

    try:
        generate_repomap(
            target_dir,
            feature_request=args.feature_request,
            no_repomix=args.no_repomix,
            regenerate=args.regenerate,
            mode=args.mode,
            save_structure=args.save_structure,
            controller_factory=controller_factory,
        )
    except (RepomapError, OSError) as e:
        print(f"\n❌ error generating repomap: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("[CLI] unexpected failure")
        print(f"\n❌ unexpected error generating repomap: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
