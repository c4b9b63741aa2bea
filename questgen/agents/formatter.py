"""Formatter Agent: turns the final draft and its analysis into the exam paper."""

import logging

from questgen.agents.base import latest_from, run_step, with_instruction
from questgen.llm import Completer
from questgen.state import ExamState, Step

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are the Question Formatter agent in an exam question generation system.

Format the finalized questions as a professional, well-organized exam paper with:
1. A clear title and header with the exam details
2. Sections organized by question type
3. Clear numbering and marks allocation
4. Instructions for each section
5. Consistent layout and spacing

Order the questions from easier to more difficult. If answers are included, put them \
in a separate section at the end. Write the paper in Markdown prose, NOT as JSON. \
Your output must be a complete, ready-to-use exam paper.
"""


def _build_instruction(state: ExamState) -> str | None:
    created = latest_from(state, Step.QUESTION_CREATOR)
    analysed = latest_from(state, Step.QUESTION_ANALYSIS)
    if created is None or analysed is None:
        return None
    return (
        "Format these questions into a professional exam paper:\n"
        f"1. Original questions: {created.content}\n"
        f"2. Analysis and modifications: {analysed.content}\n\n"
        "Create a well-structured, professional exam paper that incorporates all "
        "the feedback and improvements."
    )


async def formatter_node(state: ExamState, completer: Completer) -> dict:
    """Formatter node: the terminal step. Sets ``completed``."""
    instruction = _build_instruction(state)
    if instruction is None:
        logger.warning("Formatter missing Creator or Analysis output.")

    conversation = with_instruction(state, instruction)
    update = await run_step(Step.FORMATTER, completer, SYSTEM_PROMPT, conversation)
    update["completed"] = True
    logger.info("Question paper generation completed.")
    return update
