import json

import pytest

from siren_api.design.parsing import (
    ChatAnalysisResponse, Degraded, Parsed, extract_mermaid, load_json_object,
    parse_chat_analysis, parse_requirements_analysis, strip_code_fences, validate_mermaid
)
from siren_api.errors import ValidationError

VALID_CHAT = {
    "reply": "X",
    "useCases": [{"id": "1", "title": "T", "narrative": "0123456789", "actors": ["A"]}],
}


class TestJsonExtraction:

    def test_strip_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strip_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_text_is_trimmed(self):
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'

    def test_load_falls_back_to_outermost_object(self):
        text = 'Sure, here you go: {"reply": "hi", "nested": {"x": 1}} Hope this helps!'

        assert load_json_object(text) == {"reply": "hi", "nested": {"x": 1}}

    def test_load_raises_without_object(self):
        with pytest.raises(json.JSONDecodeError):
            load_json_object("no json here")

    def test_fence_inside_string_value_is_kept(self):
        body = json.dumps({"reply": "Example:\n```mermaid\nclassDiagram\n```\nok?", "useCases": []})

        assert load_json_object(f"```json\n{body}\n```")["reply"].startswith("Example:\n```mermaid")

    def test_unfenced_object_with_quoted_fence(self):
        body = json.dumps({"reply": "Try ```code``` here"})

        assert load_json_object(body) == {"reply": "Try ```code``` here"}


class TestParseChatAnalysis:

    def test_valid_reply(self):
        outcome = parse_chat_analysis(json.dumps(VALID_CHAT))

        assert isinstance(outcome, Parsed)
        assert outcome.value.reply == "X"
        assert len(outcome.value.use_cases) == 1
        assert outcome.value.use_cases[0].title == "T"

    def test_use_cases_default_to_empty(self):
        outcome = parse_chat_analysis('{"reply": "Tell me more"}')

        assert isinstance(outcome, Parsed)
        assert outcome.value.use_cases == []

    def test_short_narrative_fails_schema(self):
        data = dict(VALID_CHAT, useCases=[{"id": "1", "title": "T", "narrative": "012345678", "actors": ["A"]}])

        outcome = parse_chat_analysis(json.dumps(data))

        assert isinstance(outcome, Degraded)
        assert outcome.reason == "invalid_schema"

    def test_empty_actors_fail_schema(self):
        data = dict(VALID_CHAT, useCases=[{"id": "1", "title": "T", "narrative": "0123456789", "actors": []}])

        assert isinstance(parse_chat_analysis(json.dumps(data)), Degraded)

    def test_empty_reply_fails_schema(self):
        outcome = parse_chat_analysis('{"reply": ""}')

        assert isinstance(outcome, Degraded)
        assert outcome.reason == "invalid_schema"

    def test_non_object_json(self):
        outcome = parse_chat_analysis("[1, 2, 3]")

        assert isinstance(outcome, Degraded)
        assert outcome.reason == "invalid_schema"

    def test_invalid_json(self):
        outcome = parse_chat_analysis("{reply: oops")

        assert isinstance(outcome, Degraded)
        assert outcome.reason == "invalid_json"

    def test_deeply_nested_json_degrades(self):
        outcome = parse_chat_analysis("[" * 200000)

        assert isinstance(outcome, Degraded)
        assert outcome.reason == "invalid_json"

    def test_fenced_reply_quoting_a_diagram(self):
        data = dict(VALID_CHAT, reply="Like this:\n```mermaid\ngraph TD\n A-->B\n```\nRight?")

        outcome = parse_chat_analysis(f"```json\n{json.dumps(data)}\n```")

        assert isinstance(outcome, Parsed)
        assert outcome.value.reply.endswith("```\nRight?")
        assert len(outcome.value.use_cases) == 1

    def test_accepts_field_names(self):
        model = ChatAnalysisResponse.model_validate({"reply": "ok", "use_cases": VALID_CHAT["useCases"]})

        assert len(model.use_cases) == 1


class TestParseRequirementsAnalysis:

    def test_missing_fields_are_none(self):
        outcome = parse_requirements_analysis('{"reply": "ok", "projectPurpose": "Sell books"}')

        assert isinstance(outcome, Parsed)
        assert outcome.value.project_purpose == "Sell books"
        assert outcome.value.stakeholders is None
        assert outcome.value.functional_requirements is None

    def test_invalid_priority(self):
        raw = json.dumps({
            "reply": "ok",
            "functionalRequirements": [{"id": "f", "title": "t", "description": "d", "priority": "urgent"}],
        })

        assert isinstance(parse_requirements_analysis(raw), Degraded)


class TestMermaid:

    def test_extract_fenced(self):
        assert extract_mermaid("```mermaid\nclassDiagram\n    class Test\n```") == "classDiagram\n    class Test"

    def test_extract_raw(self):
        assert extract_mermaid("  graph TD\n A-->B  \n") == "graph TD\n A-->B"

    @pytest.mark.parametrize("code", [
        "graph TD\n A-->B",
        "classDiagram\n class A",
        "sequenceDiagram\n A->>B: hi",
        "flowchart LR\n A-->B",
        "stateDiagram-v2\n [*] --> A",
        "erDiagram\n A ||--o{ B : has",
    ])
    def test_recognized_types(self, code):
        assert validate_mermaid(code) == code

    def test_unrecognized_raises_with_metadata(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_mermaid("pie title Pets", {"document_id": "d1"})

        error = exc_info.value
        assert error.code == "VALIDATION_ERROR"
        assert error.metadata["document_id"] == "d1"
        assert error.metadata["generated_code"] == "pie title Pets"
        assert "classDiagram" in error.metadata["expected_types"]

    def test_empty_raises(self):
        with pytest.raises(ValidationError):
            validate_mermaid("")
