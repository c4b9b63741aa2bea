"""Output writer: saves the final exam paper as a Markdown file."""

import re
from pathlib import Path

from questgen.config import get_config


def _slugify(text: str) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", text).strip("-").lower()
    return slug[:60]


def write_paper(paper: str, header: str = "") -> Path:
    """Write the paper under the configured output directory.

    The file is named after the paper header (falling back to the configured
    file name) and never overwrites an existing file.
    Returns the path written.
    """
    config = get_config()
    base_path = Path(config.get("output_path", "./output/exam.md"))
    output_dir = base_path.parent
    output_dir.mkdir(parents=True, exist_ok=True)

    stem = _slugify(header) or base_path.stem

    # Find a non-conflicting filename
    output_path = output_dir / f"{stem}.md"
    counter = 1
    while output_path.exists():
        counter += 1
        output_path = output_dir / f"{stem} ({counter}).md"

    content = paper if paper.endswith("\n") else paper + "\n"
    output_path.write_text(content, encoding="utf-8")
    return output_path
