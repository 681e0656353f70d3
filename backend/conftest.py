import json

import pytest

from repomap.inference.base import LLMClient


class ScriptedClient(LLMClient):
    """Returns canned responses in order; exceptions in the script are raised."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def generate(self, messages, response_format=None):
        self.calls.append({"messages": messages, "response_format": response_format})
        if not self.responses:
            raise AssertionError("no scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    def prompt(self, index: int) -> str:
        return self.calls[index]["messages"][-1]["content"]


def diagram_response(diagram: str) -> str:
    return json.dumps({"diagram": diagram})


STRUCTURE = {
    "files": [
        {
            "path": "src/pages/Home.tsx",
            "imports": ["react", "../components/Header"],
            "exports": ["Home"],
            "relationships": [{"type": "renders", "target": "src/components/Header.tsx"}],
        },
        {
            "path": "src/components/Header.tsx",
            "imports": ["react"],
            "exports": ["Header"],
            "relationships": [],
        },
    ],
    "directories": ["src/pages", "src/components"],
}

BASE_DIAGRAM = "\n".join([
    "flowchart TB",
    "    classDef page fill:#d0ebff,stroke:#333,stroke-width:1px,color:#000;",
    "    subgraph pages",
    '        home(["Home.tsx"]):::page',
    "    end",
    "    subgraph components",
    '        header(["Header.tsx"]):::component',
    "    end",
    "    home -- renders --> header",
])

PROPOSAL = {
    "newNodes": [{"id": "search", "label": "Search.tsx", "role": "component"}],
    "newEdges": [
        {"from": "home", "to": "search", "relationship": "renders", "proposed": True},
    ],
    "explanation": "to add search, we introduce a search component rendered by the home page.",
}

UPDATED_DIAGRAM = BASE_DIAGRAM + "\n".join([
    "",
    "    subgraph feature",
    '        search(["Search.tsx"]):::component',
    "        style search stroke-dasharray: 5 5",
    "    end",
    '    home-. "renders" .->search',
])

REPOMIX_XML = """<files>
<file path="src/pages/Home.tsx">
1: import React from "react";
2: import Header from "../components/Header";
...
50: export default Home;
</file>
<file path="src/components/Header.tsx">
  1: import React from "react";
300: export default Header;
</file>
</files>
"""


@pytest.fixture
def scripted_client():
    return ScriptedClient
