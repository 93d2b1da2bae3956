"""ZIP bundle of compiled design reports."""

import io
import re
import zipfile
from datetime import UTC, datetime
from typing import Iterable, Optional

from .models import DesignDocument
from .report import ReportCompiler

_UNSAFE_CHARS_RE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def safe_filename(document: DesignDocument) -> str:
    """File name for a document's report: project name with non-alphanumerics replaced."""
    stem = _UNSAFE_CHARS_RE.sub("_", document.project_name).lower()
    return f"{stem or document.id}.md"


def build_readme(documents: Iterable[DesignDocument], generated_at: datetime) -> str:
    documents = list(documents)
    listing = "\n".join(
        f"{index}. {doc.project_name} (ID: {doc.id})"
        for index, doc in enumerate(documents, start=1)
    )
    return (
        "# SirenOOP Design Documents\n"
        f"Generated: {generated_at.isoformat()}\n"
        f"Total Projects: {len(documents)}\n\n"
        "## Projects Included:\n"
        f"{listing}\n\n"
        "---\n"
        "Generated with SirenOOP - Object-Oriented Design Documentation Tool\n"
    )


def build_projects_zip(
    documents: Iterable[DesignDocument],
    compiler: ReportCompiler,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """
    Build a ZIP archive with one Markdown report per document plus a README.

    A stored report is reused when present; otherwise the report is compiled.
    Projects whose names collide get the document id appended.
    """
    documents = list(documents)
    buffer = io.BytesIO()
    used = set()

    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for doc in documents:
            stored = doc.validation.generated_report if doc.validation else None
            report = stored or compiler.compile(doc)

            filename = safe_filename(doc)
            if filename in used:
                filename = f"{filename[:-3]}_{doc.id}.md"
            used.add(filename)

            archive.writestr(filename, report)

        archive.writestr("README.md", build_readme(documents, generated_at or datetime.now(UTC)))

    return buffer.getvalue()
