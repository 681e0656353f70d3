from pydantic import BaseModel, Field
from typing import List


# ---- Intermediate structure produced from the repomix xml ----

class FileRelationship(BaseModel):
    type: str
    target: str


class FileEntry(BaseModel):
    path: str
    imports: List[str] = Field(default_factory=list)
    exports: List[str] = Field(default_factory=list)
    relationships: List[FileRelationship] = Field(default_factory=list)


class StructureIR(BaseModel):
    files: List[FileEntry] = Field(default_factory=list)
    directories: List[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.files and not self.directories
