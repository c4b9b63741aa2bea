"""Stream Filter/Emitter: turns graph events into consumer-facing output.

Only the Formatter's events reach the consumer. Every stream ends with exactly
one completion marker, and the per-run cleanup hook fires exactly once however
the run ends (success, structured-payload abort, failure, disconnect).
"""

import inspect
import json
import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable

from questgen.config import get_config
from questgen.errors import SinkUnavailable, UnexpectedPayloadShape
from questgen.graph import GraphFailure, StepCompletionEvent
from questgen.state import Step
from questgen.utils.parsing import message_text, strip_fences

logger = logging.getLogger(__name__)

TERMINAL_STEP = Step.FORMATTER
DEFAULT_BUSY_MESSAGE = "server is busy currently try again later"
COMPLETE_FRAME = "event: complete\ndata: done\n\n"


@dataclass(frozen=True)
class ChunkEvent:
    text: str
    is_structured_payload: bool = False
    kind: str = "chunk"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "text": self.text, "isStructuredPayload": self.is_structured_payload}


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    kind: str = "error"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


@dataclass(frozen=True)
class CompleteEvent:
    kind: str = "complete"

    def to_dict(self) -> dict:
        return {"kind": self.kind}


OutputEvent = ChunkEvent | ErrorEvent | CompleteEvent


def busy_message() -> str:
    return get_config().get("busy_message", DEFAULT_BUSY_MESSAGE)


def extract_payload(event: StepCompletionEvent) -> str:
    """Text to report for a terminal-step event.

    A dedicated ``analysis`` result in the step's update wins over the raw
    message body.
    """
    result = event.update.get("analysis")
    if result:
        return message_text(result)
    return message_text(event.message.content)


def check_payload_shape(payload: str) -> str:
    """Return the fence-stripped prose, or raise if it looks like JSON."""
    text = strip_fences(payload)
    if text[:1] in ("{", "["):
        raise UnexpectedPayloadShape(f"terminal step produced structured data ({text[:40]!r}...)")
    return text


def classify_payload(payload: str) -> ChunkEvent | ErrorEvent:
    """Pure classification: prose chunk, or the busy error for structured data."""
    try:
        return ChunkEvent(text=check_payload_shape(payload))
    except UnexpectedPayloadShape:
        return ErrorEvent(message=busy_message())


async def emit_output(
    events: AsyncIterator[StepCompletionEvent | GraphFailure],
) -> AsyncIterator[OutputEvent]:
    """Filter and normalize graph events; always finish with one CompleteEvent."""
    async with aclosing(events):
        async for event in events:
            if isinstance(event, GraphFailure):
                yield ErrorEvent(message=event.error.user_message())
                break

            if event.step is not TERMINAL_STEP:
                logger.debug("Skipping event from agent: %s", event.step.value)
                continue

            output = classify_payload(extract_payload(event))
            if isinstance(output, ErrorEvent):
                logger.warning("Structured content detected from %s, sending busy message", event.step.value)
                yield output
                break
            logger.info("Sending %s chunk (%d chars)", event.step.value, len(output.text))
            yield output

    yield CompleteEvent()


def format_sse(event: OutputEvent) -> str:
    """Serialize one output event as a text/event-stream frame."""
    if isinstance(event, CompleteEvent):
        return COMPLETE_FRAME
    return f"data: {json.dumps(event.to_dict())}\n\n"


class CleanupHook:
    """Wraps an optional sync or async callback so it runs at most once."""

    def __init__(self, callback: Callable[[], Awaitable[None] | None] | None = None):
        self.callback = callback
        self.fired = False

    async def __call__(self) -> None:
        if self.fired:
            return
        self.fired = True
        if self.callback is None:
            return
        logger.info("Running cleanup hook")
        try:
            result = self.callback()
            if inspect.isawaitable(result):
                await result
        except Exception:
            # Cleanup is best effort and must not mask the run's own outcome.
            logger.exception("Cleanup hook failed")


async def sse_frames(
    events: AsyncIterator[OutputEvent],
    cleanup: Callable[[], Awaitable[None] | None] | None = None,
) -> AsyncIterator[str]:
    """Pull-style delivery: yield SSE frames, running cleanup when the stream ends.

    If the consumer goes away the frame iterator is closed, which closes the
    event chain and the graph with it before cleanup runs.
    """
    hook = CleanupHook(cleanup)
    try:
        async with aclosing(events):
            async for event in events:
                yield format_sse(event)
    finally:
        await hook()


async def deliver(
    events: AsyncIterator[OutputEvent],
    sink: Callable[[str], Awaitable[None]],
    cleanup: Callable[[], Awaitable[None] | None] | None = None,
) -> bool:
    """Push-style delivery: write each frame to ``sink``.

    Returns True when the whole stream was written. A rejected write stops
    consumption (no further frames, no completion marker), runs cleanup and
    returns False instead of raising.
    """
    hook = CleanupHook(cleanup)
    try:
        async with aclosing(events):
            async for event in events:
                frame = format_sse(event)
                try:
                    await sink(frame)
                except Exception as exc:
                    raise SinkUnavailable(f"sink rejected {event.kind} frame") from exc
        return True
    except SinkUnavailable as exc:
        logger.warning("Stopping stream: %s (%r)", exc, exc.__cause__)
        return False
    finally:
        await hook()
