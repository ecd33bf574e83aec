"""
Unit tests for JSON/JSONL prompt reading and recovery.
"""

import json

import pytest

from parsers.json_reader import (
    parse_json_document,
    parse_json_lines,
    read_json_objects,
    record_from_json,
    recover_objects,
    strip_trailing_commas,
)
from models.prompt_import import PromptStatus, SegmentDefaults


class TestStripTrailingCommas:
    """Tests for trailing comma cleanup."""

    def test_before_closing_brace(self):
        """Removes commas before } and ]."""
        assert strip_trailing_commas('{"a": 1,}') == '{"a": 1}'
        assert strip_trailing_commas('[1, 2, ]') == '[1, 2]'

    def test_at_end(self):
        """Removes a separator comma after the object."""
        assert strip_trailing_commas('{"a": 1},') == '{"a": 1}'


class TestParseJsonDocument:
    """Tests for well-formed documents."""

    def test_array(self):
        """Arrays yield their objects."""
        assert parse_json_document('[{"a": 1}, 2, {"b": 2}]') == [{"a": 1}, {"b": 2}]

    def test_object_with_array(self):
        """An array-valued property is used."""
        assert parse_json_document('{"meta": 1, "prompts": [{"a": 1}]}') == [{"a": 1}]

    def test_single_object(self):
        """A lone object is wrapped."""
        assert parse_json_document('{"name": "x"}') == [{"name": "x"}]

    def test_invalid_raises(self):
        """Invalid JSON raises JSONDecodeError."""
        with pytest.raises(json.JSONDecodeError):
            parse_json_document("{not json")


class TestParseJsonLines:
    """Tests for JSONL parsing."""

    def test_skips_bad_lines(self):
        """Unparseable lines are skipped."""
        content = '{"name": "a"}\nnot json\n\n{"name": "b"},'
        assert parse_json_lines(content) == [{"name": "a"}, {"name": "b"}]


class TestRecoverObjects:
    """Tests for brace-balance recovery."""

    def test_multiline_objects_with_trailing_commas(self):
        """Rebuilds pretty-printed objects separated by commas."""
        content = (
            '[\n'
            '  {\n'
            '    "name": "One",\n'
            '    "content": "First prompt",\n'
            '  },\n'
            '  {\n'
            '    "name": "Two",\n'
            '    "content": "Second prompt"\n'
            '  }\n'
            ']'
        )
        objects = recover_objects(content)
        assert [o["name"] for o in objects] == ["One", "Two"]

    def test_requires_name_and_content(self):
        """Objects missing name or content are dropped."""
        content = '{\n"name": "x"\n}\n{\n"name": "y",\n"content": "c"\n}'
        assert recover_objects(content) == [{"name": "y", "content": "c"}]


class TestReadJsonObjects:
    """Tests for the JSON reading cascade."""

    def test_valid_document(self, sample_json):
        """Well-formed JSON is parsed directly."""
        assert len(read_json_objects(sample_json)) == 3

    def test_jsonl(self):
        """JSONL is parsed line by line."""
        content = '{"name": "a", "prompt": "p1"}\n{"name": "b", "prompt": "p2"}'
        assert len(read_json_objects(content, jsonl=True)) == 2

    def test_malformed_uses_recovery(self):
        """Malformed multi-line JSON is recovered."""
        content = '{\n"name": "a",\n"content": "c",\n},\n{\n"name": "b",\n"content": "d",\n}'
        assert [o["name"] for o in read_json_objects(content)] == ["a", "b"]

    def test_garbage_returns_empty(self):
        """Nothing recoverable → empty list."""
        assert read_json_objects("just some words") == []


class TestRecordFromJson:
    """Tests for JSON object conversion."""

    def test_maps_known_keys(self):
        """Name, content, tags, status and flags are mapped."""
        item = {
            "name": "Alpha",
            "prompt": "Do alpha",
            "tags": "a, b",
            "status": "published",
            "isNsfw": True,
            "difficultyLevel": "hard",
        }
        record = record_from_json(item, 1)

        assert record.name == "Alpha"
        assert record.prompt_content == "Do alpha"
        assert record.tags == ["a", "b"]
        assert record.status == PromptStatus.PUBLISHED
        assert record.is_nsfw is True
        assert record.difficulty_level == "hard"
        assert record.extra == {}

    def test_title_and_numbered_name(self):
        """Falls back to title, then "Prompt N"."""
        assert record_from_json({"title": "T", "content": "c"}, 1).name == "T"
        assert record_from_json({"content": "c"}, 7).name == "Prompt 7"

    def test_content_key_order(self):
        """prompt is preferred over content."""
        record = record_from_json({"prompt": "p", "content": "c"}, 1)
        assert record.prompt_content == "p"
        assert record.extra == {"content": "c"}

    def test_defaults_applied(self):
        """Missing category and visibility come from the defaults."""
        defaults = SegmentDefaults(category="Art", is_public=True)
        record = record_from_json({"name": "n", "content": "c"}, 1, defaults)

        assert record.category == "Art"
        assert record.is_public is True

    def test_draft_only(self):
        """Free-text JSON never publishes."""
        record = record_from_json({"name": "n", "content": "c", "status": "published"}, 1, draft_only=True)
        assert record.status == PromptStatus.DRAFT

    def test_unknown_keys_kept(self):
        """Unknown keys are kept in extra."""
        record = record_from_json({"name": "n", "content": "c", "model": "x1"}, 1)
        assert record.extra == {"model": "x1"}
