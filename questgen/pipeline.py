"""Run invocation: the entry points a host application calls."""

import logging
from contextlib import aclosing
from typing import AsyncIterator, Awaitable, Callable

from questgen.graph import run_graph
from questgen.llm import Completer, make_completer
from questgen.stream import CleanupHook, OutputEvent, deliver, emit_output, sse_frames

logger = logging.getLogger(__name__)


def start_run(
    request_text: str,
    model_id: str | None,
    credential: str,
    *,
    provider: str | None = None,
    max_iterations: int | None = None,
    timeout: float | None = None,
    completer: Completer | None = None,
) -> AsyncIterator[OutputEvent]:
    """Start a run and return its consumer-facing event stream.

    Nothing executes until the stream is iterated. ``completer`` replaces the
    model built from ``model_id``/``credential`` when given; ``timeout``
    bounds every step either way.
    """
    if completer is None:
        completer = make_completer(model_id, credential, provider=provider)
    logger.info("Starting question generation run (%d chars of request text)", len(request_text))
    return emit_output(
        run_graph(request_text, completer, max_iterations=max_iterations, timeout=timeout)
    )


async def stream_run(
    request_text: str,
    model_id: str | None,
    credential: str,
    cleanup: Callable[[], Awaitable[None] | None] | None = None,
    **options,
) -> AsyncIterator[str]:
    """Like start_run, framed as text/event-stream lines, with a once-only cleanup hook."""
    hook = CleanupHook(cleanup)
    try:
        events = start_run(request_text, model_id, credential, **options)
        async with aclosing(sse_frames(events)) as frames:
            async for frame in frames:
                yield frame
    finally:
        await hook()


async def run_to_sink(
    request_text: str,
    model_id: str | None,
    credential: str,
    sink: Callable[[str], Awaitable[None]],
    cleanup: Callable[[], Awaitable[None] | None] | None = None,
    **options,
) -> bool:
    """Run to completion, pushing frames into ``sink``. False if the sink failed."""
    hook = CleanupHook(cleanup)
    try:
        events = start_run(request_text, model_id, credential, **options)
    except Exception:
        await hook()
        raise
    return await deliver(events, sink, cleanup=hook)
