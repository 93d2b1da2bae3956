"""
Deterministic Markdown report for a design document.

The compiler never calls the text-generation backend and never mutates the
document; compiling the same document twice yields identical text.
"""

import base64
from typing import List

from .models import DesignDocument

DEFAULT_IMAGE_SERVICE_BASE = "https://mermaid.ink/img"


def mermaid_image_url(mermaid_code: str, base_url: str = DEFAULT_IMAGE_SERVICE_BASE) -> str:
    """Image-service URL for a diagram: ``<base>/<base64(markup)>``."""
    encoded = base64.b64encode(mermaid_code.encode("utf-8")).decode("ascii")
    return f"{base_url.rstrip('/')}/{encoded}"


class ReportCompiler:
    """Assemble the final design report from a document."""

    def __init__(self, image_service_base: str = DEFAULT_IMAGE_SERVICE_BASE):
        self.image_service_base = image_service_base

    def _diagram_section(self, heading: str, label: str, code: str) -> str:
        return (
            f"### {heading}\n\n"
            f"**Diagram:**\n![{label}]({mermaid_image_url(code, self.image_service_base)})\n\n"
            f"**Mermaid Code:**\n```mermaid\n{code}\n```\n\n"
        )

    def compile(self, document: DesignDocument) -> str:
        parts: List[str] = [f"# Design Document: {document.project_name}\n\n"]

        if document.description.strip():
            parts.append(f"**Description:** {document.description}\n\n")

        use_cases = document.use_cases
        if use_cases or document.domain_model:
            parts.append("## Phase 1: Analysis\n\n")
            if use_cases:
                parts.append("### Use Cases\n")
                parts.extend(f"- **{uc.title}**: {uc.narrative}\n" for uc in use_cases)
                parts.append("\n")
            if document.domain_model:
                parts.append(self._diagram_section("Domain Model", "Domain Model", document.domain_model))

        if document.architecture_diagram:
            parts.append("## Phase 2: System Design\n\n")
            parts.append(self._diagram_section("Architecture", "Architecture", document.architecture_diagram))

        if document.class_diagram:
            parts.append("## Phase 3: Object Design\n\n")
            parts.append(self._diagram_section("Class Diagram", "Class Diagram", document.class_diagram))

        review = document.latest_review()
        if review is not None:
            parts.append("## Phase 4: Validation\n\n")
            parts.append(f"### AI Traceability Report\n{review.content}\n\n")

        return "".join(parts)
