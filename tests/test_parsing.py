"""Tests for response parsing helpers."""

import pytest

from questgen.utils.parsing import message_text, parse_json_object, strip_fences


class TestStripFences:
    def test_plain_text_trimmed(self):
        assert strip_fences("  # Exam  \n") == "# Exam"

    @pytest.mark.parametrize("text", [
        '```json\n{"a": 1}\n```',
        '```\n{"a": 1}\n```',
        '  ```JSON\n{"a": 1}\n```  \n',
    ])
    def test_wrapping_fence_removed(self, text):
        assert strip_fences(text) == '{"a": 1}'

    def test_embedded_fence_left_alone(self):
        text = "Intro\n```python\nx = 1\n```\nOutro"
        assert strip_fences(text) == text

    def test_unclosed_opening_fence_removed(self):
        assert strip_fences('```json\n{"title": "Physics Exam", "questions": [1') == '{"title": "Physics Exam", "questions": [1'

    def test_lone_closing_fence_removed(self):
        assert strip_fences('{"a": 1}\n```') == '{"a": 1}'

    def test_prose_ending_in_code_block_left_alone(self):
        text = "# Exam\n\n```python\nprint(1)\n```"
        assert strip_fences(text) == text

    def test_prose_starting_with_code_block_left_alone(self):
        text = "```python\nprint(1)\n```\nWhat does it print?"
        assert strip_fences(text) == text

    def test_empty(self):
        assert strip_fences("") == ""
        assert strip_fences(None) == ""


class TestParseJsonObject:
    def test_bare_object(self):
        assert parse_json_object('{"exam_type": "quiz"}') == {"exam_type": "quiz"}

    def test_fenced_object(self):
        assert parse_json_object('```json\n{"total_marks": 50}\n```') == {"total_marks": 50}

    def test_object_in_fence_after_prose(self):
        reply = 'Here are the fields:\n```json\n{"topics": ["optics"]}\n```\nLet me know.'
        assert parse_json_object(reply) == {"topics": ["optics"]}

    def test_array_is_not_an_object(self):
        assert parse_json_object("[1, 2]") is None

    def test_prose(self):
        assert parse_json_object("The exam is a quiz.") is None


class TestMessageText:
    def test_string(self):
        assert message_text("hi") == "hi"

    def test_parts(self):
        parts = [{"type": "text", "text": "a"}, {"type": "image_url", "image_url": "x"}, "b"]
        assert message_text(parts) == "ab"

    def test_none(self):
        assert message_text(None) == ""
