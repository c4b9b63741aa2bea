"""HTTP surface: streams a run to the caller as text/event-stream."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from questgen.config import get_config
from questgen.llm import make_completer
from questgen.pipeline import stream_run
from questgen.utils.logging import setup_logging
from questgen.utils.request import assemble_request
from questgen.utils.validator import validate_input, validate_optional

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(get_config().get("log_level", "INFO"))
    yield


app = FastAPI(title="QuestGen", lifespan=lifespan)

# The browser front-end is served from a different origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class GenerateRequest(BaseModel):
    question_header: str
    question_description: str
    document_text: str = ""
    api_key: str
    model_name: str | None = None


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/generate-questions")
async def generate_questions(body: GenerateRequest):
    """Run the agent pipeline and stream the formatted paper back as SSE."""
    try:
        header = validate_input(body.question_header, "question_header")
        description = validate_input(body.question_description, "question_description")
        api_key = validate_input(body.api_key, "api_key")
        document_text = validate_optional(body.document_text, "document_text")
        completer = make_completer(body.model_name, api_key)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if not document_text:
        logger.warning("No document content supplied; questions rely on the header only.")

    request_text = assemble_request(header, description, document_text)
    frames = stream_run(request_text, body.model_name, api_key, completer=completer)
    return StreamingResponse(
        frames,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
