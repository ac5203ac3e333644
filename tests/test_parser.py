"""Tests for parsing the models and pipeline documents."""

import json

import pytest

from content_pipeline.pipeline.models import ModelConfig, PipelineStep
from content_pipeline.pipeline.parser import (
    decode_document,
    parse_models,
    parse_models_data,
    parse_pipeline,
    parse_pipeline_data,
)


class TestDecodeDocument:
    """Tests for decode_document."""

    def test_valid_object(self) -> None:
        data, errors, duplicates = decode_document('{"a": 1}', "Models")
        assert data == {"a": 1}
        assert errors == []
        assert duplicates == []

    def test_syntax_error_reports_position(self) -> None:
        data, errors, _ = decode_document('{\n  "a": }', "Models")
        assert data is None
        assert len(errors) == 1
        assert errors[0].startswith("Models configuration is not valid JSON")
        assert "line 2" in errors[0]

    def test_non_text_input(self) -> None:
        data, errors, _ = decode_document(None, "Pipeline")  # type: ignore[arg-type]
        assert data is None
        assert errors == ["Pipeline configuration must be JSON text"]

    def test_duplicate_top_level_keys_recorded(self) -> None:
        text = '{"a": {"x": 1, "x": 2}, "b": 1, "a": 2}'
        _, _, duplicates = decode_document(text, "Models")
        assert duplicates == ["a"]


class TestParseModels:
    """Tests for parse_models."""

    def test_valid_document(self, models_text: str) -> None:
        models, errors = parse_models(models_text)
        assert errors == []
        assert list(models) == ["openai-whisper", "openai-gpt"]
        whisper = models["openai-whisper"]
        assert isinstance(whisper, ModelConfig)
        assert whisper.id == "openai-whisper"
        assert whisper.base_url == "https://api.openai.com/v1"
        assert whisper.api_key == "sk-test-whisper"
        assert whisper.implementation == "whisper"
        assert whisper.model == "whisper-1"
        assert whisper.organization is None
        assert models["openai-gpt"].organization == "org-123"

    @pytest.mark.parametrize("text", ["", "{not json", '{"a": 1,}', "   "])
    def test_syntax_error_yields_single_error(self, text: str) -> None:
        models, errors = parse_models(text)
        assert models is None
        assert len(errors) == 1
        assert "not valid JSON" in errors[0]

    @pytest.mark.parametrize("text", ["[]", "42", '"text"', "null"])
    def test_non_object_top_level(self, text: str) -> None:
        models, errors = parse_models(text)
        assert models is None
        assert len(errors) == 1
        assert "must be a JSON object" in errors[0]

    def test_empty_object_is_valid(self) -> None:
        models, errors = parse_models("{}")
        assert models == {}
        assert errors == []

    def test_empty_api_key_is_allowed(self) -> None:
        text = json.dumps(
            {
                "draft": {
                    "baseUrl": "https://api.anthropic.com",
                    "apiKey": "",
                    "implementation": "claude",
                    "model": "claude-sonnet",
                }
            }
        )
        models, errors = parse_models(text)
        assert errors == []
        assert models["draft"].api_key == ""

    def test_missing_api_key_defaults_to_empty(self) -> None:
        text = json.dumps(
            {
                "m": {
                    "baseUrl": "http://localhost:8080",
                    "implementation": "chatgpt",
                    "model": "local",
                }
            }
        )
        models, errors = parse_models(text)
        assert errors == []
        assert models["m"].api_key == ""

    def test_missing_required_fields(self) -> None:
        models, errors = parse_models('{"m": {"apiKey": "k"}}')
        assert models == {}
        assert errors == [
            'Model config "m": missing required field: baseUrl',
            'Model config "m": missing required field: implementation',
            'Model config "m": missing required field: model',
        ]

    @pytest.mark.parametrize(
        "url",
        [
            "ftp://example.com",
            "api.openai.com/v1",
            "https://",
            "https://a b.com",
            "https://api.example.com\n",
            "http://:::",
            "https://user@host.com",
            " https://api.example.com",
        ],
    )
    def test_invalid_base_url(self, url: str) -> None:
        text = json.dumps(
            {"m": {"baseUrl": url, "implementation": "chatgpt", "model": "gpt-4"}}
        )
        _, errors = parse_models(text)
        assert errors == ['Model config "m": baseUrl must be a valid HTTP(S) URL']

    @pytest.mark.parametrize(
        "url",
        [
            "https://api.openai.com/v1",
            "http://localhost:11434",
            "HTTPS://EXAMPLE.COM/path?q=1",
            "https://10.0.0.2:8443/",
        ],
    )
    def test_valid_base_urls(self, url: str) -> None:
        text = json.dumps(
            {"m": {"baseUrl": url, "implementation": "chatgpt", "model": "gpt-4"}}
        )
        _, errors = parse_models(text)
        assert errors == []

    def test_wrong_field_types(self) -> None:
        text = json.dumps(
            {
                "m": {
                    "baseUrl": "https://x.com",
                    "apiKey": 123,
                    "implementation": "chatgpt",
                    "model": "",
                }
            }
        )
        _, errors = parse_models(text)
        assert 'Model config "m": apiKey must be a string' in errors
        assert 'Model config "m": model must be a non-empty string' in errors
        assert len(errors) == 2

    def test_entry_not_an_object(self) -> None:
        _, errors = parse_models('{"m": "https://x.com"}')
        assert errors == ['Model config "m": entry must be a JSON object']

    def test_collects_errors_across_entries(self, models_data: dict) -> None:
        models_data["broken-one"] = {"baseUrl": "nope"}
        models_data["broken-two"] = []
        models, errors = parse_models(json.dumps(models_data))
        assert list(models) == ["openai-whisper", "openai-gpt"]
        assert any(e.startswith('Model config "broken-one"') for e in errors)
        assert any(e.startswith('Model config "broken-two"') for e in errors)

    def test_blank_identifier(self) -> None:
        text = json.dumps(
            {"  ": {"baseUrl": "https://x.com", "implementation": "a", "model": "b"}}
        )
        models, errors = parse_models(text)
        assert models == {}
        assert errors == ["Model config identifiers must be non-empty strings"]

    def test_duplicate_identifier_keeps_last_definition(self) -> None:
        first = '{"baseUrl": "https://x.com", "implementation": "a", "model": "b"}'
        last = '{"baseUrl": "https://y.com", "implementation": "a", "model": "b"}'
        text = f'{{"m": {first}, "m": {last}}}'
        models, errors = parse_models(text)
        assert errors == []
        assert models["m"].base_url == "https://y.com"

    def test_parse_models_data_accepts_decoded_value(self, models_data: dict) -> None:
        models, errors = parse_models_data(models_data)
        assert errors == []
        assert set(models) == {"openai-whisper", "openai-gpt"}


class TestParsePipeline:
    """Tests for parse_pipeline."""

    def test_valid_document(self, pipeline_text: str) -> None:
        pipeline, errors = parse_pipeline(pipeline_text)
        assert errors == []
        assert list(pipeline) == ["transcribe", "process", "summarize"]
        step = pipeline["transcribe"]
        assert isinstance(step, PipelineStep)
        assert step.id == "transcribe"
        assert step.model_config == "openai-whisper"
        assert step.archive == "archive/audio/{category}/"
        assert step.template is None
        assert step.description == "Speech to text"
        assert list(step.routing_aware_output) == ["process", "default"]
        assert pipeline["summarize"].include == ("templates/*.md", "glossary.md")
        assert pipeline["summarize"].routing_aware_output is None

    def test_syntax_error_yields_single_error(self) -> None:
        pipeline, errors = parse_pipeline('{"a": ')
        assert pipeline is None
        assert len(errors) == 1
        assert errors[0].startswith("Pipeline configuration is not valid JSON")

    def test_non_object_top_level(self) -> None:
        pipeline, errors = parse_pipeline("[1, 2]")
        assert pipeline is None
        assert errors == [
            "Pipeline configuration must be a JSON object mapping step ids "
            "to step settings"
        ]

    def test_missing_required_fields(self) -> None:
        _, errors = parse_pipeline('{"s": {"modelConfig": "m"}}')
        assert errors == [
            'Step "s": missing required field: input',
            'Step "s": missing required field: output',
        ]

    def test_empty_paths_rejected(self) -> None:
        text = json.dumps({"s": {"modelConfig": "m", "input": " ", "output": ""}})
        _, errors = parse_pipeline(text)
        assert 'Step "s": input must be a non-empty string' in errors
        assert 'Step "s": output must be a non-empty string' in errors

    def test_include_must_be_list_of_strings(self) -> None:
        text = json.dumps(
            {"s": {"modelConfig": "m", "input": "a", "output": "b", "include": "x"}}
        )
        _, errors = parse_pipeline(text)
        assert errors == ['Step "s": include must be a list of strings']

    def test_include_entry_type_names_position(self) -> None:
        text = json.dumps(
            {
                "s": {
                    "modelConfig": "m",
                    "input": "a",
                    "output": "b",
                    "include": ["ok.md", 3],
                }
            }
        )
        _, errors = parse_pipeline(text)
        assert errors == ['Step "s": include entries must be strings (at include[1])']

    def test_routing_values_must_be_strings(self) -> None:
        text = json.dumps(
            {
                "s": {
                    "modelConfig": "m",
                    "input": "a",
                    "output": "b",
                    "routingAwareOutput": {"next": 5},
                }
            }
        )
        _, errors = parse_pipeline(text)
        assert errors == [
            'Step "s": routingAwareOutput values must be strings '
            "(at routingAwareOutput.next)"
        ]

    def test_routing_keys_must_be_non_empty(self) -> None:
        text = json.dumps(
            {
                "s": {
                    "modelConfig": "m",
                    "input": "a",
                    "output": "b",
                    "routingAwareOutput": {" ": "prompt"},
                }
            }
        )
        _, errors = parse_pipeline(text)
        assert len(errors) == 1
        assert "routingAwareOutput keys must be non-empty step ids" in errors[0]

    def test_routing_must_be_object(self) -> None:
        text = json.dumps(
            {
                "s": {
                    "modelConfig": "m",
                    "input": "a",
                    "output": "b",
                    "routingAwareOutput": ["next"],
                }
            }
        )
        _, errors = parse_pipeline(text)
        assert errors == [
            'Step "s": routingAwareOutput must be a mapping of step id to prompt'
        ]

    def test_keeps_valid_steps_next_to_invalid_ones(
        self, pipeline_data: dict
    ) -> None:
        pipeline_data["process"]["output"] = 7
        pipeline, errors = parse_pipeline(json.dumps(pipeline_data))
        assert list(pipeline) == ["transcribe", "summarize"]
        assert errors == ['Step "process": output must be a string']

    def test_parse_pipeline_data_rejects_non_object(self) -> None:
        pipeline, errors = parse_pipeline_data(["transcribe"])
        assert pipeline is None
        assert len(errors) == 1


def _step_entry(**paths: object) -> dict:
    entry: dict = {"modelConfig": "m", "input": "inbox/", "output": "out/"}
    entry.update(paths)
    return entry


class TestStepPathChecks:
    """Tests for path template checks on pipeline steps."""

    @pytest.mark.parametrize(
        ("field", "value", "problem"),
        [
            ("input", "../escaped/{category}/", "parent directory references"),
            ("output", "notes/../../out/", "parent directory references"),
            ("archive", "archive\\..\\x", "parent directory references"),
            ("input", ".{category}./audio/", "parent directory references"),
            ("input", "/var/inbox/", "must be relative to the vault root"),
            ("output", "\\server\\share", "must be relative to the vault root"),
            ("archive", "C:\\archive\\", "must be relative to the vault root"),
            ("template", "d:/templates/note.md", "must be relative to the vault root"),
            ("input", "inbox/{}/", "empty variable {}"),
            ("input", "inbox/{category/", "unmatched or nested braces"),
            ("output", "out/category}/", "unmatched or nested braces"),
            ("output", "out/{a{b}}/", "unmatched or nested braces"),
            ("input", "inbox/\0/", "null character"),
        ],
    )
    def test_unsafe_paths_rejected(self, field: str, value: str, problem: str) -> None:
        text = json.dumps({"s": _step_entry(**{field: value})})
        pipeline, errors = parse_pipeline(text)
        assert pipeline == {}
        assert len(errors) == 1
        assert errors[0].startswith(f'Step "s": {field} path ')
        assert problem in errors[0]

    def test_include_entries_checked_with_position(self) -> None:
        text = json.dumps({"s": _step_entry(include=["ok/*.md", "../secrets.md"])})
        _, errors = parse_pipeline(text)
        assert errors == [
            'Step "s": include[1] path cannot contain parent directory '
            "references (..)"
        ]

    @pytest.mark.parametrize(
        "value",
        [
            "{category}/audio/",
            "inbox/..notes/",
            "inbox/{stepId}/{filename}.md",
            "templates/*.md",
            "a:b/notes.md",
        ],
    )
    def test_relative_paths_accepted(self, value: str) -> None:
        text = json.dumps({"s": _step_entry(input=value, include=[value])})
        pipeline, errors = parse_pipeline(text)
        assert errors == []
        assert pipeline["s"].input == value

    def test_schema_errors_reported_before_path_checks(self) -> None:
        text = json.dumps({"s": _step_entry(input=3, output="../out/")})
        _, errors = parse_pipeline(text)
        assert errors == ['Step "s": input must be a string']
