"""Tests for the paper writer."""

from pathlib import Path

from questgen.utils.output import write_paper


class TestWritePaper:
    def test_named_after_header(self, mock_config):
        path = write_paper("# Quiz", header="Biology Quiz: Week 3")
        assert path.name == "biology-quiz-week-3.md"
        assert path.read_text(encoding="utf-8") == "# Quiz\n"

    def test_falls_back_to_configured_name(self, mock_config):
        path = write_paper("# Paper\n")
        assert path.name == "exam.md"
        assert path.parent == Path(mock_config["output_path"]).parent

    def test_never_overwrites(self, mock_config):
        first = write_paper("one", header="Quiz")
        second = write_paper("two", header="Quiz")
        third = write_paper("three", header="Quiz")
        assert first.read_text(encoding="utf-8") == "one\n"
        assert second.name == "quiz (2).md"
        assert third.name == "quiz (3).md"
