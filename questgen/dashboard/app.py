"""QuestGen: Streamlit UI for generating exam question papers."""

import sys
from pathlib import Path

# Add project root to path so 'questgen' package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

import asyncio

import streamlit as st

from questgen.config import get_config
from questgen.pipeline import start_run
from questgen.stream import ChunkEvent, ErrorEvent
from questgen.utils.logging import setup_logging
from questgen.utils.request import assemble_request, join_documents
from questgen.utils.validator import validate_input

st.set_page_config(page_title="QuestGen: Exam Paper Generator", layout="wide")
st.title("QuestGen: Exam Paper Generator")
st.markdown(
    "Generates an exam question paper from your course material through a pipeline "
    "of agents: an **Extractor** reads your requirements, a **Question Creator** "
    "drafts questions, an **Analyst** critiques them, a **Decider** asks for one "
    "revision if needed, and a **Formatter** lays out the final paper."
)

st.divider()

config = get_config()
setup_logging(config.get("log_level", "INFO"))

question_header = st.text_input("Question header", placeholder="e.g. Physics Mid-Term, 50 marks")
question_description = st.text_area(
    "Question description",
    height=120,
    placeholder="Question types, difficulty, topics to cover...",
)
uploads = st.file_uploader(
    "Source material (text or markdown)",
    type=["txt", "md"],
    accept_multiple_files=True,
)
pasted_text = st.text_area("Or paste the source content", height=200)

col_model, col_key = st.columns(2)
with col_model:
    model_name = st.text_input("Model", value=config["default_model"])
with col_key:
    api_key = st.text_input("API key", type="password")


async def _collect(events) -> tuple[list[str], str | None]:
    chunks = []
    error = None
    async for event in events:
        if isinstance(event, ChunkEvent):
            chunks.append(event.text)
        elif isinstance(event, ErrorEvent):
            error = event.message
    return chunks, error


def _document_text() -> str:
    texts = [f.getvalue().decode("utf-8", errors="replace") for f in uploads or []]
    texts.append(pasted_text or "")
    return join_documents(texts)


if st.button("Generate Paper", type="primary"):
    try:
        header = validate_input(question_header, "Question header")
        description = validate_input(question_description, "Question description")
        key = validate_input(api_key, "API key")
    except ValueError as exc:
        st.error(str(exc))
        st.stop()

    request_text = assemble_request(header, description, _document_text())

    with st.status("Generating question paper...", expanded=True) as status_widget:
        st.write("Extracting requirements, drafting and reviewing questions...")
        chunks, error = asyncio.run(_collect(start_run(request_text, model_name or None, key)))
        if error:
            status_widget.update(label="Generation failed", state="error", expanded=False)
        else:
            status_widget.update(label="Question paper ready", state="complete", expanded=False)

    st.session_state["qg_result"] = {"header": header, "paper": "\n\n".join(chunks), "error": error}

result = st.session_state.get("qg_result")
if result:
    if result["error"]:
        st.error(result["error"])
    elif result["paper"]:
        st.markdown(result["paper"])
        st.download_button(
            label="Download paper (.md)",
            data=result["paper"],
            file_name=f"{result['header'] or 'exam'}.md",
            mime="text/markdown",
        )
