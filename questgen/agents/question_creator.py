"""QuestionCreator Agent: drafts the question set from the requirements and source text."""

import logging

from questgen.agents.base import latest_from, run_step, seed_message, with_instruction
from questgen.llm import Completer
from questgen.state import ExamState, Step

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are the Question Creator agent in an exam question generation system.

Write clear, specific questions that are relevant to the supplied content:
- MCQ: four options with exactly one correct answer.
- True/False: unambiguous statements.
- Short theory: questions answerable in one to three paragraphs.
- Long theory: questions that demand in-depth analysis and explanation.

Match the requested difficulty. When several question types are requested, create a \
balanced mix. Base every question ONLY on the provided content so it is answerable \
from the material, and include the correct answers where applicable.
"""


def _build_instruction(state: ExamState) -> str | None:
    extracted = latest_from(state, Step.EXTRACTOR)
    original = seed_message(state)
    if extracted is None or original is None:
        return None

    parts = [
        "Create questions based on these requirements:",
        f"1. Use the extracted keywords and requirements: {extracted.content}",
        f"2. Original request: {original.content}",
    ]
    # On a corrective pass, point the creator at the critique it must address.
    verdict = latest_from(state, Step.DECIDER)
    if verdict is not None and state.get("analysis"):
        parts.append(f"3. Address this analysis of the previous draft: {state['analysis']}")
        parts.append(f"4. Reviewer verdict: {verdict.content}")
    parts.append("Create appropriate questions using the provided document content.")
    return "\n".join(parts)


async def question_creator_node(state: ExamState, completer: Completer) -> dict:
    """QuestionCreator node: writes ``draft_questions``."""
    instruction = _build_instruction(state)
    if instruction is None:
        logger.warning("QuestionCreator running without Extractor output.")

    conversation = with_instruction(state, instruction)
    update = await run_step(Step.QUESTION_CREATOR, completer, SYSTEM_PROMPT, conversation)
    update["draft_questions"] = update["history"][0].content
    return update
