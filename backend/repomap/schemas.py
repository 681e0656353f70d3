from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class GenerateRequest(BaseModel):
    xml: str  # repomix xml with numbered lines
    feature_request: Optional[str] = None
    mode: Optional[str] = None  # decomposed | direct


class GenerateResponse(BaseModel):
    status: str
    diagram: str
    changes: Optional[Dict[str, Any]] = None
    updated_diagram: Optional[str] = None
    warnings: List[str] = []
