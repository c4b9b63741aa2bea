"""QuestionAnalysis Agent: critiques and refines the current draft."""

import logging

from questgen.agents.base import latest_from, run_step, with_instruction
from questgen.llm import Completer
from questgen.state import ExamState, Step

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are the Question Analysis agent in an exam question generation system.

Evaluate the questions for:
1. Clarity: are they clear and unambiguous?
2. Relevance: do they align with the provided content?
3. Difficulty: do they match the requested difficulty levels?
4. Coverage: do they cover the required topics?
5. Correctness: are the provided answers correct?

Give specific feedback on each question and propose improved versions where needed.
"""


def _build_instruction(state: ExamState) -> str | None:
    created = latest_from(state, Step.QUESTION_CREATOR)
    extracted = latest_from(state, Step.EXTRACTOR)
    if created is None or extracted is None:
        return None
    return (
        "Analyze and improve these questions:\n"
        f"1. Questions to analyze: {created.content}\n"
        f"2. Requirements from extraction: {extracted.content}\n"
        "3. Focus on checking and modifying questions based on difficulty levels "
        "(hard/easy/conceptual)\n"
        "4. Ensure questions meet all requirements and are clear and well-structured"
    )


async def question_analysis_node(state: ExamState, completer: Completer) -> dict:
    """QuestionAnalysis node: writes ``analysis``."""
    instruction = _build_instruction(state)
    if instruction is None:
        logger.warning("QuestionAnalysis missing Creator or Extractor output.")

    conversation = with_instruction(state, instruction)
    update = await run_step(Step.QUESTION_ANALYSIS, completer, SYSTEM_PROMPT, conversation)
    update["analysis"] = update["history"][0].content
    return update
