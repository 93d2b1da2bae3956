import base64
from datetime import UTC, datetime

from conftest import ARCHITECTURE, CLASS_DIAGRAM, DOMAIN_MODEL
from siren_api.design.models import AI_VALIDATOR_AUTHOR, ReviewComment, ValidationPhase
from siren_api.design.report import ReportCompiler, mermaid_image_url


def with_reviews(document, *reviews):
    return document.model_copy(update={"validation": ValidationPhase(reviews=list(reviews))})


def review(content, author=AI_VALIDATOR_AUTHOR, minute=0):
    return ReviewComment(
        author=author,
        content=content,
        timestamp=datetime(2026, 1, 1, 12, minute, tzinfo=UTC),
    )


def test_image_url_is_base64_of_markup():
    url = mermaid_image_url("graph TD\n A-->B")

    encoded = url.rsplit("/", 1)[1]
    assert url.startswith("https://mermaid.ink/img/")
    assert base64.b64decode(encoded).decode("utf-8") == "graph TD\n A-->B"


def test_custom_image_base():
    assert mermaid_image_url("graph TD", "https://render.example/img/").startswith("https://render.example/img/Z3")


def test_full_report(designed_document):
    document = with_reviews(designed_document, review("| UC | Classes |"))

    report = ReportCompiler().compile(document)

    assert report.startswith("# Design Document: Shop\n\n**Description:** An online shop\n\n")
    assert "## Phase 1: Analysis" in report
    assert "### Use Cases\n- **Place order**: The customer selects products and places an order.\n" in report
    assert f"![Domain Model]({mermaid_image_url(DOMAIN_MODEL)})" in report
    assert f"**Mermaid Code:**\n```mermaid\n{DOMAIN_MODEL}\n```" in report
    assert "## Phase 2: System Design\n\n### Architecture" in report
    assert f"```mermaid\n{ARCHITECTURE}\n```" in report
    assert "## Phase 3: Object Design\n\n### Class Diagram" in report
    assert f"```mermaid\n{CLASS_DIAGRAM}\n```" in report
    assert "## Phase 4: Validation\n\n### AI Traceability Report\n| UC | Classes |" in report


def test_missing_sections_are_omitted(analyzed_document):
    report = ReportCompiler().compile(analyzed_document)

    assert "### Use Cases" in report
    assert "### Domain Model" not in report
    assert "Phase 2" not in report
    assert "Phase 3" not in report
    assert "Phase 4" not in report
    assert "not provided" not in report


def test_uses_latest_validator_review(designed_document):
    document = with_reviews(
        designed_document,
        review("first review", minute=1),
        review("human note", author="Alice", minute=2),
        review("second review", minute=3),
    )

    report = ReportCompiler().compile(document)

    assert "second review" in report
    assert "first review" not in report
    assert "human note" not in report


def test_ignores_reviews_by_other_authors(designed_document):
    document = with_reviews(designed_document, review("human note", author="Alice"))

    assert "Phase 4" not in ReportCompiler().compile(document)


def test_compile_is_idempotent(designed_document):
    compiler = ReportCompiler()

    assert compiler.compile(designed_document) == compiler.compile(designed_document)
