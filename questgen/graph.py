"""LangGraph StateGraph for the question-generation pipeline.

Extractor -> QuestionCreator -> QuestionAnalysis -> Decider -> Formatter, with
one bounded feedback edge Decider -> QuestionCreator that passes through an
``increment`` node so the loop counter is bumped exactly once per pass.
"""

import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import AsyncIterator

from langchain_core.messages import BaseMessage
from langgraph.errors import GraphRecursionError
from langgraph.graph import END, START, StateGraph

from questgen.agents.decider import Verdict, decider_node, parse_verdict
from questgen.agents.extractor import extractor_node
from questgen.agents.formatter import formatter_node
from questgen.agents.question_analysis import question_analysis_node
from questgen.agents.question_creator import question_creator_node
from questgen.config import get_config
from questgen.errors import GenerationFailure, RoutingExhaustion
from questgen.llm import BoundedCompleter, Completer, step_timeout
from questgen.state import ExamState, Step, apply_update, new_state

logger = logging.getLogger(__name__)

INCREMENT_NODE = "increment"

# Unconditional edges, as data. The Decider is the only branching step.
_NEXT_STEP = {
    None: Step.EXTRACTOR,
    Step.EXTRACTOR: Step.QUESTION_CREATOR,
    Step.QUESTION_CREATOR: Step.QUESTION_ANALYSIS,
    Step.QUESTION_ANALYSIS: Step.DECIDER,
    Step.FORMATTER: None,
}

_AGENT_NODES = {
    Step.EXTRACTOR: extractor_node,
    Step.QUESTION_CREATOR: question_creator_node,
    Step.QUESTION_ANALYSIS: question_analysis_node,
    Step.DECIDER: decider_node,
    Step.FORMATTER: formatter_node,
}


def _max_iterations(max_iterations: int | None) -> int:
    if max_iterations is None:
        return get_config().get("max_iterations", 1)
    return max_iterations


def route(state: ExamState, max_iterations: int | None = None) -> Step | None:
    """Select the step after the latest contribution; None means terminate.

    Priority order for the Decider:
    1. verdict starts with NOT PERFECT + iterations left -> QuestionCreator
    2. anything else (PERFECT, unclear verdict, loop bound hit) -> Formatter
    """
    sender = Step.from_sender(state["last_sender"])

    if sender is not Step.DECIDER:
        return _NEXT_STEP[sender]

    limit = _max_iterations(max_iterations)
    verdict = parse_verdict(state["history"][-1].content)
    if verdict is Verdict.NOT_PERFECT and state["iteration_count"] < limit:
        return Step.QUESTION_CREATOR
    return Step.FORMATTER


def _describe_route(state: ExamState, target: Step | None) -> str:
    sender = state["last_sender"]
    destination = target.value if target else "end"
    if sender != Step.DECIDER.value or target is Step.QUESTION_CREATOR:
        return f"{sender} -> {destination}"
    verdict = parse_verdict(state["history"][-1].content)
    reason = "PERFECT" if verdict is Verdict.PERFECT else (
        "MAX ITERATIONS REACHED" if verdict is Verdict.NOT_PERFECT else "NO VERDICT"
    )
    return f"{sender} -> {destination} ({reason})"


def _make_increment(max_iterations: int):
    def _increment_iteration(state: ExamState) -> dict:
        """Passthrough node that bumps the loop counter before re-entering the Creator."""
        if state["iteration_count"] >= max_iterations:
            raise RoutingExhaustion(
                f"feedback loop already taken {state['iteration_count']} of "
                f"{max_iterations} time(s)"
            )
        return {"iteration_count": state["iteration_count"] + 1}

    return _increment_iteration


def _bind(node_fn, completer: Completer):
    async def _node(state: ExamState) -> dict:
        return await node_fn(state, completer)

    return _node


def build_graph(
    completer: Completer,
    max_iterations: int | None = None,
    timeout: float | None = None,
):
    """Compile a fresh graph for one run, with every step bound to ``completer``.

    Each step's model call is cut off after ``timeout`` seconds (default
    ``step_timeout_seconds``).
    """
    limit = _max_iterations(max_iterations)
    completer = BoundedCompleter(completer, step_timeout(timeout))

    def _next_node(state: ExamState) -> str:
        target = route(state, limit)
        logger.info("Router: %s", _describe_route(state, target))
        if target is None:
            return END
        if target is Step.QUESTION_CREATOR and state["last_sender"] == Step.DECIDER.value:
            return INCREMENT_NODE
        return target.value

    workflow = StateGraph(ExamState)

    for step, node_fn in _AGENT_NODES.items():
        workflow.add_node(step.value, _bind(node_fn, completer))
    workflow.add_node(INCREMENT_NODE, _make_increment(limit))

    workflow.add_conditional_edges(START, _next_node, {Step.EXTRACTOR.value: Step.EXTRACTOR.value})
    for step in (Step.EXTRACTOR, Step.QUESTION_CREATOR, Step.QUESTION_ANALYSIS):
        target = _NEXT_STEP[step].value
        workflow.add_conditional_edges(step.value, _next_node, {target: target})
    workflow.add_conditional_edges(
        Step.DECIDER.value,
        _next_node,
        {
            INCREMENT_NODE: INCREMENT_NODE,
            Step.FORMATTER.value: Step.FORMATTER.value,
        },
    )
    workflow.add_conditional_edges(Step.FORMATTER.value, _next_node, {END: END})
    workflow.add_edge(INCREMENT_NODE, Step.QUESTION_CREATOR.value)

    return workflow.compile()


def max_agent_steps(max_iterations: int) -> int:
    """Upper bound on Agent Step executions for one run."""
    return 5 + 3 * max_iterations


# --- Graph Executor ---


@dataclass
class StepCompletionEvent:
    """One Agent Step finished; ``state`` is the merged snapshot after it."""

    step: Step
    message: BaseMessage
    update: dict
    state: ExamState = field(repr=False)


@dataclass
class GraphFailure:
    """Terminal event: the run stopped because a step could not complete."""

    error: GenerationFailure
    state: ExamState = field(repr=False)


async def run_graph(
    request_text: str,
    completer: Completer,
    max_iterations: int | None = None,
    timeout: float | None = None,
) -> AsyncIterator[StepCompletionEvent | GraphFailure]:
    """Drive one run and yield an event per Agent Step, in execution order.

    The sequence is finite and consumed once. A ``GenerationFailure`` ends it
    with a single ``GraphFailure`` event instead of raising. Closing the
    iterator early stops the graph before it schedules another step.
    """
    limit = _max_iterations(max_iterations)
    graph = build_graph(completer, limit, timeout)
    snapshot = new_state(request_text)
    # Agent steps plus increment passes, with one step of headroom.
    recursion_limit = max_agent_steps(limit) + limit + 1

    try:
        async with aclosing(
            graph.astream(
                snapshot,
                config={"recursion_limit": recursion_limit},
                stream_mode="updates",
            )
        ) as updates:
            async for chunk in updates:
                for node_name, update in chunk.items():
                    update = update or {}
                    snapshot = apply_update(snapshot, update)
                    if node_name == INCREMENT_NODE:
                        logger.info("Feedback loop pass %d", snapshot["iteration_count"])
                        continue
                    yield StepCompletionEvent(
                        step=Step(node_name),
                        message=update["history"][-1],
                        update=update,
                        state=snapshot,
                    )
    except GraphRecursionError as exc:
        failure = RoutingExhaustion(f"graph exceeded {recursion_limit} steps")
        failure.__cause__ = exc
        logger.error("Routing exhausted: %s", failure.message)
        yield GraphFailure(error=failure, state=snapshot)
    except GenerationFailure as exc:
        logger.error("Run failed: %s", exc.user_message())
        yield GraphFailure(error=exc, state=snapshot)
