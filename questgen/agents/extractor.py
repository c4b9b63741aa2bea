"""Extractor Agent: pulls the paper requirements out of the request header.

Only the header/description part of the request reaches this step; the bulk
document text is cut off before the prompt is built.

Expected output (best effort, parsed into ``extracted_fields``):
{
  "exam_type": "mid-term | quiz | final | ...",
  "total_marks": "integer or string",
  "difficulty_levels": ["easy", "hard", "conceptual", ...],
  "question_types": ["MCQ", "true-false", "short theory", "long theory"],
  "topics": ["string"]
}
"""

import logging

from langchain_core.messages import HumanMessage

from questgen.agents.base import run_step, seed_message
from questgen.llm import Completer
from questgen.state import ExamState, Step
from questgen.utils.parsing import parse_json_object
from questgen.utils.request import header_portion

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are the Extractor agent in an exam question generation system.

Read the request and extract what the teacher wants from the question paper:
1. Exam type (mid-term, quiz, final, ...)
2. Total marks
3. Question difficulty levels (easy, hard, conceptual, ...)
4. Question types (MCQ, true-false, short theory, long theory)
5. Subject areas or topics

Respond with a JSON object using the keys exam_type, total_marks, difficulty_levels, \
question_types and topics. Be specific. Do not invent information the request does \
not contain; where something is missing, choose a sensible default from the context.
"""


def _build_user_prompt(state: ExamState) -> str:
    seed = seed_message(state)
    request = header_portion(seed.content) if seed else ""
    return f"Extract key information from this request:\n{request}"


async def extractor_node(state: ExamState, completer: Completer) -> dict:
    """Extractor node for the LangGraph StateGraph.

    Sends only the request header to the model and merges any JSON fields
    it returns into ``extracted_fields``.
    """
    conversation = [HumanMessage(content=_build_user_prompt(state))]
    update = await run_step(Step.EXTRACTOR, completer, SYSTEM_PROMPT, conversation)

    fields = parse_json_object(update["history"][0].content)
    if fields is None:
        logger.warning("Extractor reply was not a JSON object; extracted_fields unchanged.")
    else:
        update["extracted_fields"] = fields
    return update
