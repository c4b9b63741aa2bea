"""QuestGen State: single source of truth passed through the graph."""

from enum import Enum
from typing import Annotated, Any, TypedDict

from langchain_core.messages import BaseMessage, HumanMessage

START_SENDER = "user"


class Step(str, Enum):
    """The five Agent Step identities. Values double as graph node names."""

    EXTRACTOR = "Extractor"
    QUESTION_CREATOR = "QuestionCreator"
    QUESTION_ANALYSIS = "QuestionAnalysis"
    DECIDER = "Decider"
    FORMATTER = "Formatter"

    @classmethod
    def from_sender(cls, name: str | None) -> "Step | None":
        """Map a ``last_sender`` value to its step, or None for the start sentinel."""
        try:
            return cls(name)
        except ValueError:
            return None


def append_history(current: list[BaseMessage], new: list[BaseMessage]) -> list[BaseMessage]:
    """Append-only: never truncated or reordered."""
    return list(current or []) + list(new or [])


def merge_fields(current: dict, new: dict) -> dict:
    """Key-wise overwrite: new keys added, existing keys replaced."""
    return {**(current or {}), **(new or {})}


def monotonic_count(current: int, new: int) -> int:
    """Counter that never decreases."""
    return max(current or 0, new or 0)


def latch(current: bool, new: bool) -> bool:
    """False until set, then stays True."""
    return bool(current) or bool(new)


class ExamState(TypedDict):
    history: Annotated[list[BaseMessage], append_history]  # Seed request + one entry per step.
    last_sender: str  # Step that produced the latest history entry ("user" at start).
    extracted_fields: Annotated[dict[str, Any], merge_fields]  # Extractor requirements.
    draft_questions: str  # Latest QuestionCreator output.
    analysis: str  # Latest QuestionAnalysis output.
    iteration_count: Annotated[int, monotonic_count]  # Feedback-loop passes taken.
    completed: Annotated[bool, latch]  # Set once by the Formatter.


_REDUCERS = {
    "history": append_history,
    "extracted_fields": merge_fields,
    "iteration_count": monotonic_count,
    "completed": latch,
}


def new_state(request_text: str) -> ExamState:
    """Fresh state for one run, seeded with the caller's request text."""
    return {
        "history": [HumanMessage(content=request_text)],
        "last_sender": START_SENDER,
        "extracted_fields": {},
        "draft_questions": "",
        "analysis": "",
        "iteration_count": 0,
        "completed": False,
    }


def apply_update(state: ExamState, update: dict) -> ExamState:
    """Return a new state with ``update`` merged using each field's reducer.

    Mirrors what the compiled graph does internally, so the executor can hand
    out consistent snapshots without reaching into the graph's checkpoints.
    """
    merged = dict(state)
    for key, value in update.items():
        reducer = _REDUCERS.get(key)
        merged[key] = reducer(merged.get(key), value) if reducer else value
    return merged
