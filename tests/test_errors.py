import logging

import pytest

from siren_api.errors import (
    AIGenerationError, ApplicationError, AuthenticationError, ConfigurationError,
    ErrorCategory, ErrorClassification, NotFoundError, PersistenceError,
    ValidationError, log_error, normalize_error
)


@pytest.mark.parametrize("error, code, status", [
    (ValidationError("bad"), "VALIDATION_ERROR", 400),
    (AuthenticationError("who"), "AUTHENTICATION_ERROR", 401),
    (NotFoundError("gone"), "NOT_FOUND", 404),
    (AIGenerationError("empty"), "AI_GENERATION_ERROR", 500),
    (PersistenceError("disk"), "PERSISTENCE_ERROR", 500),
    (ConfigurationError("env"), "CONFIGURATION_ERROR", 500),
])
def test_error_codes(error, code, status):
    assert isinstance(error, ApplicationError)
    assert error.code == code
    assert error.status_code == status
    assert error.to_dict()["code"] == code


def test_normalize_application_error():
    report = normalize_error(ValidationError("No use cases", {"document_id": "d1"}))

    assert report.kind == "ValidationError"
    assert report.classification == ErrorClassification.CLIENT
    assert report.category == ErrorCategory.VALIDATION
    assert report.metadata == {"document_id": "d1"}
    assert report.details is None


def test_normalize_foreign_error():
    try:
        try:
            raise KeyError("missing")
        except KeyError as inner:
            raise RuntimeError("boom") from inner
    except RuntimeError as e:
        report = normalize_error(e)

    assert report.code == "UNKNOWN_ERROR"
    assert report.status_code == 500
    assert report.classification == ErrorClassification.SERVER
    assert report.category == ErrorCategory.UNKNOWN
    assert report.metadata["original_error"] == "RuntimeError"
    assert "Caused by" in report.details


def test_normalize_error_without_message():
    assert normalize_error(RuntimeError()).message == "An unknown error occurred"


def test_log_error_levels(caplog):
    logger = logging.getLogger("tests.errors")

    with caplog.at_level(logging.DEBUG, logger="tests.errors"):
        log_error(logger, ValidationError("client side"))
        log_error(logger, AIGenerationError("server side"), document_id="d1")

    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.WARNING, logging.ERROR]
    assert caplog.records[1].error["context"] == {"document_id": "d1"}
    assert caplog.records[1].error["code"] == "AI_GENERATION_ERROR"
