"""Shared sample documents for configuration tests."""

import json
from pathlib import Path

import pytest


def sample_models() -> dict:
    return {
        "openai-whisper": {
            "baseUrl": "https://api.openai.com/v1",
            "apiKey": "sk-test-whisper",
            "implementation": "whisper",
            "model": "whisper-1",
        },
        "openai-gpt": {
            "baseUrl": "https://api.openai.com/v1",
            "apiKey": "sk-test-gpt",
            "implementation": "chatgpt",
            "model": "gpt-4",
            "organization": "org-123",
        },
    }


def sample_pipeline() -> dict:
    return {
        "transcribe": {
            "modelConfig": "openai-whisper",
            "input": "inbox/audio/{category}/",
            "output": "inbox/transcripts/{category}/{filename}-transcript.md",
            "archive": "archive/audio/{category}/",
            "routingAwareOutput": {
                "process": "Every transcript goes on to processing",
                "default": "process",
            },
            "description": "Speech to text",
        },
        "process": {
            "modelConfig": "openai-gpt",
            "input": "inbox/transcripts/{category}/",
            "output": "resources/notes/{category}/{filename}.md",
            "template": "templates/note.md",
            "routingAwareOutput": {
                "summarize": "Long notes that need a summary",
                "default": "summarize",
            },
        },
        "summarize": {
            "modelConfig": "openai-gpt",
            "input": "resources/notes/{category}/",
            "output": "resources/summaries/{filename}-summary.md",
            "include": ["templates/*.md", "glossary.md"],
        },
    }


@pytest.fixture
def models_data() -> dict:
    return sample_models()


@pytest.fixture
def pipeline_data() -> dict:
    return sample_pipeline()


@pytest.fixture
def models_text() -> str:
    return json.dumps(sample_models())


@pytest.fixture
def pipeline_text() -> str:
    return json.dumps(sample_pipeline())


@pytest.fixture
def config_files(tmp_path: Path) -> tuple[Path, Path]:
    """Write the sample documents to tmp_path/config."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    models_path = config_dir / "models.json"
    pipeline_path = config_dir / "pipeline.json"
    models_path.write_text(json.dumps(sample_models(), indent=2), encoding="utf-8")
    pipeline_path.write_text(
        json.dumps(sample_pipeline(), indent=2), encoding="utf-8"
    )
    return models_path, pipeline_path
