import copy
from typing import Any, Callable, Dict

import pytest

MODELS: Dict[str, Any] = {
    "gpt": {
        "baseUrl": "https://api.openai.com/v1",
        "apiKey": "sk-test-123",
        "implementation": "chatgpt",
        "model": "gpt-4o",
    },
    "whisper": {
        "baseUrl": "https://api.openai.com/v1/",
        "apiKey": "sk-test-456",
        "implementation": "whisper",
        "model": "whisper-1",
    },
}

PIPELINE: Dict[str, Any] = {
    "transcribe": {
        "modelConfig": "whisper",
        "input": "inbox/audio/",
        "output": "inbox/transcripts/",
        "archive": "archive/audio/",
        "prompts": ["prompts/transcribe.md"],
        "next": {"summarize": "Transcripts ready for summarizing"},
    },
    "summarize": {
        "modelConfig": "gpt",
        "output": {
            "tasks": "notes/tasks/",
            "shopping": "notes/shopping/",
            "default": "notes/other/",
        },
        "archive": "archive/transcripts/",
        "prompts": ["prompts/summarize.md"],
        "context": ["context/people.md"],
        "next": {"tasks": "Action items", "shopping": "Things to buy"},
    },
    "tasks": {
        "modelConfig": "gpt",
        "output": "out/tasks/",
        "archive": "archive/tasks/",
        "prompts": ["prompts/tasks.md"],
        "description": "Turn notes into tasks",
    },
    "shopping": {
        "modelConfig": "gpt",
        "output": "out/shopping/",
        "archive": "archive/shopping/",
        "prompts": ["prompts/shopping.md"],
    },
}


@pytest.fixture
def models_doc() -> Dict[str, Any]:
    """A valid models document (fresh copy per test)."""
    return copy.deepcopy(MODELS)


@pytest.fixture
def pipeline_doc() -> Dict[str, Any]:
    """A valid four-step pipeline document (fresh copy per test)."""
    return copy.deepcopy(PIPELINE)


@pytest.fixture
def make_reader() -> Callable[[Dict[str, str]], Callable[[str], str]]:
    """Build an in-memory file reader that raises FileNotFoundError for unknown paths."""

    def factory(files: Dict[str, str]) -> Callable[[str], str]:
        def reader(path: str) -> str:
            try:
                return files[path]
            except KeyError:
                raise FileNotFoundError(path) from None

        return reader

    return factory
