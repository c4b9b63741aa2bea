"""Decider Agent: binary verdict on whether the draft is ready for formatting.

The verdict message must begin with ``PERFECT`` or ``NOT PERFECT``. Anything
else is ``Verdict.UNCLEAR``, which the router treats like ``PERFECT``.
"""

import logging
from enum import Enum

from questgen.agents.base import latest_from, run_step, with_instruction
from questgen.llm import Completer
from questgen.state import ExamState, Step

logger = logging.getLogger(__name__)

PERFECT = "PERFECT"
NOT_PERFECT = "NOT PERFECT"

SYSTEM_PROMPT = """\
You are the Decider agent in an exam question generation system.

Decide whether the question set meets every requirement or needs another revision.
The decision is binary:
- If the questions are ready for formatting, respond ONLY with: "PERFECT: <brief reason>"
- If the questions need ANY improvement, respond ONLY with: "NOT PERFECT: <specific issues>"

Your reply must start with one of those two tokens.
"""


class Verdict(str, Enum):
    PERFECT = "perfect"
    NOT_PERFECT = "not_perfect"
    UNCLEAR = "unclear"


def parse_verdict(content: str) -> Verdict:
    """Classify a Decider reply by its leading token.

    Models often wrap the verdict in quotes or markdown emphasis
    (``**PERFECT**``, ``"NOT PERFECT: ..."``), so leading whitespace, quotes,
    ``*``, backticks and ``_`` are skipped before the check, which makes this
    looser than a strict prefix match. The token itself is matched
    case-sensitively, and anything else is ``UNCLEAR``.
    """
    text = (content or "").lstrip(" \t\r\n\"'*`_")
    if text.startswith(NOT_PERFECT):
        return Verdict.NOT_PERFECT
    if text.startswith(PERFECT):
        return Verdict.PERFECT
    return Verdict.UNCLEAR


def _build_instruction(state: ExamState) -> str | None:
    created = latest_from(state, Step.QUESTION_CREATOR)
    analysed = latest_from(state, Step.QUESTION_ANALYSIS)
    if created is None or analysed is None:
        return None
    return (
        "Make a binary decision:\n"
        f"1. Original questions: {created.content}\n"
        f"2. Analysis and modifications: {analysed.content}\n\n"
        f'If the questions meet ALL requirements, respond ONLY with: "{PERFECT}"\n'
        f'If the questions need ANY improvement, respond ONLY with: "{NOT_PERFECT}"\n'
        "Be clear and concise in your decision."
    )


async def decider_node(state: ExamState, completer: Completer) -> dict:
    """Decider node: emits the verdict message; routing reads it."""
    instruction = _build_instruction(state)
    if instruction is None:
        logger.warning("Decider missing Creator or Analysis output.")

    conversation = with_instruction(state, instruction)
    update = await run_step(Step.DECIDER, completer, SYSTEM_PROMPT, conversation)

    verdict = parse_verdict(update["history"][0].content)
    if verdict is Verdict.UNCLEAR:
        logger.warning("Decider reply has no verdict token; it will be treated as final.")
    return update
