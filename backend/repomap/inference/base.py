from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union


class LLMClient(ABC):
    @abstractmethod
    def generate(
        self,
        messages: List[Dict],
        response_format: Optional[Dict[str, Any]] = None,
    ) -> Union[str, dict]:
        """Generate assistant text (or an already-structured payload) from chat messages"""
        pass
