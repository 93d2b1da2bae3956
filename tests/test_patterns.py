from conftest import sample_use_case
from siren_api.design.patterns import DesignPatternAdvisor


def document_with(analyzed_document, *narratives):
    use_cases = [
        sample_use_case(f"uc-{i}").model_copy(update={"narrative": narrative})
        for i, narrative in enumerate(narratives)
    ]
    analysis = analyzed_document.analysis.model_copy(update={"use_cases": use_cases})
    return analyzed_document.model_copy(update={"analysis": analysis})


def test_no_use_cases_no_suggestions(new_document):
    assert DesignPatternAdvisor().suggest_patterns(new_document) == []


def test_observer_and_strategy(analyzed_document):
    document = document_with(
        analyzed_document,
        "The system will notify subscribers when stock arrives.",
        "The customer picks a payment method at checkout.",
    )

    suggestions = DesignPatternAdvisor().suggest_patterns(document)

    by_id = {s.id: s for s in suggestions}
    assert by_id["observer"].usage_probability == "High"
    assert by_id["observer"].category == "Behavioral"
    assert by_id["strategy"].usage_probability == "High"


def test_suggestion_order_follows_catalog(analyzed_document):
    document = document_with(
        analyzed_document,
        "A global configuration is loaded; an order status changes through its lifecycle.",
        "Admins create various kinds of products and get an alert.",
    )

    ids = [s.id for s in DesignPatternAdvisor().suggest_patterns(document)]

    assert ids == ["observer", "state", "factory-method", "singleton"]


def test_matching_is_case_insensitive(analyzed_document):
    document = document_with(analyzed_document, "A SINGLE INSTANCE of the printer spooler exists.")

    suggestions = DesignPatternAdvisor().suggest_patterns(document)

    assert [s.name for s in suggestions] == ["Singleton"]
    assert suggestions[0].usage_probability == "Low"
