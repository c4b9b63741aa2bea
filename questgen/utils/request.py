"""Request-text assembly: the single text blob a run is seeded with."""

CONTENT_MARKER = "Content to generate questions from:"


def join_documents(texts: list[str]) -> str:
    """Join extracted document texts with blank lines, dropping empty ones."""
    return "\n\n".join(t.strip() for t in texts if t and t.strip())


def assemble_request(header: str, description: str, document_text: str = "") -> str:
    """Build the seed request from the paper header, description and source text."""
    return (
        f"Question Header: {header}\n"
        f"Question Description: {description}\n"
        "\n"
        f"{CONTENT_MARKER}\n"
        f"{document_text}\n"
    )


def header_portion(request_text: str) -> str:
    """Return the header/description part of a request, without the document text."""
    return request_text.split(CONTENT_MARKER, 1)[0].strip()
