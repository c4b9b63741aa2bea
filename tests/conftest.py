"""Shared fixtures for the QuestGen test suite."""

import asyncio
from unittest.mock import patch

import pytest

from questgen.agents import decider, extractor, formatter, question_analysis, question_creator
from questgen.llm import Completer
from questgen.state import Step, new_state
from questgen.utils.request import assemble_request

_PROMPT_STEPS = {
    extractor.SYSTEM_PROMPT: Step.EXTRACTOR,
    question_creator.SYSTEM_PROMPT: Step.QUESTION_CREATOR,
    question_analysis.SYSTEM_PROMPT: Step.QUESTION_ANALYSIS,
    decider.SYSTEM_PROMPT: Step.DECIDER,
    formatter.SYSTEM_PROMPT: Step.FORMATTER,
}

DEFAULT_REPLIES = {
    Step.EXTRACTOR: '{"exam_type": "quiz", "total_marks": 20, "topics": ["photosynthesis"]}',
    Step.QUESTION_CREATOR: "1. What does chlorophyll absorb?\nAnswer: light energy",
    Step.QUESTION_ANALYSIS: "Question 1 is clear and matches the easy difficulty.",
    Step.DECIDER: "PERFECT: all good",
    Step.FORMATTER: "# Biology Quiz\n\n## Section A\n\n1. What does chlorophyll absorb? (2 marks)",
}


class ScriptedCompleter(Completer):
    """Completer fake: replies per step from a script, falling back to defaults.

    A scripted reply that is an exception instance is raised instead.
    """

    def __init__(self, replies: dict | None = None):
        self.replies = {step: list(items) for step, items in (replies or {}).items()}
        self.calls = []

    @property
    def steps(self) -> list[Step]:
        return [step for step, _ in self.calls]

    async def complete(self, system_prompt, conversation):
        step = _PROMPT_STEPS[system_prompt]
        self.calls.append((step, list(conversation)))
        queue = self.replies.get(step)
        reply = queue.pop(0) if queue else DEFAULT_REPLIES[step]
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture
def scripted():
    """Factory for ScriptedCompleter instances."""
    return ScriptedCompleter


@pytest.fixture
def collect():
    """Drain an async iterator from synchronous test code."""

    def _collect(aiterator):
        async def _drain():
            return [item async for item in aiterator]

        return asyncio.run(_drain())

    return _collect


@pytest.fixture
def request_text():
    return assemble_request(
        "Biology Quiz",
        "10 easy MCQs on photosynthesis, 20 marks",
        "Photosynthesis converts light energy into chemical energy. Chlorophyll absorbs light.",
    )


@pytest.fixture
def base_state(request_text):
    """Fresh ExamState seeded with a realistic request."""
    return new_state(request_text)


@pytest.fixture
def mock_config(tmp_path):
    """Patch the config singleton with test-friendly values."""
    test_config = {
        "provider": "openrouter",
        "default_model": "test/model",
        "temperature": 0.2,
        "max_iterations": 1,
        "step_timeout_seconds": 5,
        "openrouter_api_base": "https://openrouter.example/api/v1",
        "site_url": "http://localhost:3000",
        "site_name": "QuestGen",
        "busy_message": "server is busy currently try again later",
        "output_path": str(tmp_path / "output" / "exam.md"),
        "log_level": "INFO",
    }
    with patch("questgen.config._config", test_config):
        yield test_config
