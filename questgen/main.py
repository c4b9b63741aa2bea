"""Entry point: validates input, runs the pipeline, writes the exam paper."""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from questgen.config import get_config
from questgen.pipeline import start_run
from questgen.stream import ChunkEvent, ErrorEvent
from questgen.utils.logging import setup_logging
from questgen.utils.output import write_paper
from questgen.utils.request import assemble_request, join_documents
from questgen.utils.validator import validate_input


async def _consume(events) -> tuple[list[str], str | None]:
    """Print prose chunks as they arrive; return them plus any error message."""
    chunks = []
    error = None
    async for event in events:
        if isinstance(event, ChunkEvent):
            print(event.text)
            chunks.append(event.text)
        elif isinstance(event, ErrorEvent):
            error = event.message
    return chunks, error


def run(
    header: str,
    description: str,
    document_text: str,
    api_key: str,
    model: str | None = None,
    save: bool = True,
) -> int:
    """Run the full pipeline for one paper. Returns a process exit code."""
    header = validate_input(header, "Question header")
    description = validate_input(description, "Question description")
    api_key = validate_input(api_key, "API key")

    request_text = assemble_request(header, description, document_text)
    events = start_run(request_text, model, api_key)
    chunks, error = asyncio.run(_consume(events))

    if error:
        print(f"[QuestGen] Error: {error}", file=sys.stderr)
        return 1

    if save and chunks:
        output_path = write_paper("\n\n".join(chunks), header=header)
        print(f"[QuestGen] Output written to: {output_path}", file=sys.stderr)
    return 0


def _read_documents(paths: list[str]) -> str:
    texts = [Path(p).read_text(encoding="utf-8") for p in paths]
    return join_documents(texts)


def main() -> None:
    """CLI entry point. Document text comes from --document files or stdin."""
    config = get_config()
    parser = argparse.ArgumentParser(prog="questgen", description="Generate an exam question paper.")
    parser.add_argument("--header", required=True, help="Question paper header, e.g. 'Physics Mid-Term'")
    parser.add_argument("--description", required=True, help="What the paper should contain")
    parser.add_argument("--document", action="append", default=[], help="Source text file (repeatable)")
    parser.add_argument("--model", default=None, help=f"Model id (default: {config['default_model']})")
    parser.add_argument("--api-key", default=os.getenv("QUESTGEN_API_KEY", ""), help="Provider API key")
    parser.add_argument("--no-save", action="store_true", help="Print the paper without writing a file")
    args = parser.parse_args()

    setup_logging(config.get("log_level", "INFO"))

    if args.document:
        document_text = _read_documents(args.document)
    else:
        print("Paste the source content (Ctrl+D / Ctrl+Z to submit):", file=sys.stderr)
        document_text = sys.stdin.read()

    try:
        code = run(
            args.header,
            args.description,
            document_text,
            args.api_key,
            model=args.model,
            save=not args.no_save,
        )
    except ValueError as exc:
        print(f"[QuestGen] {exc}", file=sys.stderr)
        code = 2
    sys.exit(code)


if __name__ == "__main__":
    main()
