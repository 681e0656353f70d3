from repomap.source.repomix import (
    SourceFileRecord,
    line_count_map,
    parse_line_counts,
    read_line_counts,
    run_repomix,
)

__all__ = [
    "SourceFileRecord",
    "line_count_map",
    "parse_line_counts",
    "read_line_counts",
    "run_repomix",
]
