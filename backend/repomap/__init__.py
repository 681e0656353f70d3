"""Generate Mermaid repository maps from repomix analyses."""

__version__ = "0.4.0"
