from repomap.ir.changes import ChangeProposal, NewEdge, NewNode
from repomap.ir.diagram import DiagramDocument
from repomap.ir.structure_ir import FileEntry, FileRelationship, StructureIR

__all__ = [
    "ChangeProposal",
    "NewEdge",
    "NewNode",
    "DiagramDocument",
    "FileEntry",
    "FileRelationship",
    "StructureIR",
]
