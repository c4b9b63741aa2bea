"""Shared Agent Step plumbing: lookups over history and the invoke-and-wrap step."""

import logging

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from questgen.errors import GenerationFailure
from questgen.llm import Completer, describe_failure
from questgen.state import ExamState, Step

logger = logging.getLogger(__name__)


def seed_message(state: ExamState) -> HumanMessage | None:
    """The original user request that seeded the run."""
    for message in state["history"]:
        if isinstance(message, HumanMessage):
            return message
    return None


def latest_from(state: ExamState, step: Step) -> BaseMessage | None:
    """Most recent contribution attributed to ``step``, if any."""
    for message in reversed(state["history"]):
        if getattr(message, "name", None) == step.value:
            return message
    return None


def with_instruction(state: ExamState, instruction: str | None) -> list[BaseMessage]:
    """Conversation for a step: the run history plus an optional instruction turn."""
    conversation = list(state["history"])
    if instruction:
        conversation.append(HumanMessage(content=instruction))
    return conversation


async def run_step(
    step: Step,
    completer: Completer,
    system_prompt: str,
    conversation: list[BaseMessage],
) -> dict:
    """Invoke the completer and wrap the reply as this step's contribution.

    Returns the state update every step shares: exactly one history entry
    attributed to ``step`` and ``last_sender`` set to the step's name.
    """
    logger.info("Agent running: %s", step.value)
    try:
        text = await completer.complete(system_prompt, conversation)
    except GenerationFailure as exc:
        if exc.step is None:
            exc.step = step.value
        logger.error("Agent failed: %s (%s)", step.value, exc.message)
        raise
    except Exception as exc:
        logger.error("Agent failed: %s (%r)", step.value, exc)
        raise GenerationFailure(describe_failure(exc), step=step.value) from exc

    message = AIMessage(content=text, name=step.value)
    logger.info("Agent completed: %s (%d chars)", step.value, len(text))
    return {"history": [message], "last_sender": step.value}
