"""
FastAPI router for the design workflow.

Every endpoint is authenticated with a bearer token. Operations that change a
document hold that document's lock for the whole load/generate/save cycle, and
each text-generation call is bounded by ``generation.timeout_seconds``.
"""

import asyncio
import logging
from datetime import UTC, datetime
from functools import lru_cache
from typing import Annotated, Awaitable, Callable, Optional, TypeVar
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Response, status

from ..config import Settings, get_settings
from ..errors import AIGenerationError, NotFoundError
from ..generation import TextGenerator, build_text_generator
from ..schemas import (
    ChatRequest, ChatResponse, CreateDesignRequest, DesignListResponse, ErrorResponse,
    PatternListResponse, PhaseTransitionRequest, ReportResponse
)
from ..security.tokens import TokenVerifier, UserContext, parse_bearer
from .architect import DesignArchitect, outcome_payload
from .automation import TOTAL_STEPS, PhaseAutomation, transition_phase
from .export import build_projects_zip
from .locks import DocumentLockRegistry
from .models import DesignDocument, DocumentSummary, ProjectPhase
from .patterns import DesignPatternAdvisor
from .report import ReportCompiler
from .repository import DocumentRepository, FileDocumentRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

router = APIRouter(
    prefix="/designs",
    tags=["designs"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)

_document_locks = DocumentLockRegistry()

# Dependencies
SettingsDep = Annotated[Settings, Depends(get_settings)]


@lru_cache(maxsize=4)
def _verifier_for(secret: str) -> TokenVerifier:
    # scrypt runs once per secret, not per request
    return TokenVerifier(secret)


def get_token_verifier(settings: SettingsDep) -> TokenVerifier:
    return _verifier_for(settings.auth_secret)


def get_user_context(
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> UserContext:
    """Resolve the caller from the ``Authorization: Bearer`` header."""
    return verifier.verify(parse_bearer(authorization))


def get_repository(settings: SettingsDep) -> DocumentRepository:
    return FileDocumentRepository(settings.documents_dir)


def get_text_generator(settings: SettingsDep) -> TextGenerator:
    return build_text_generator(settings)


def get_report_compiler(settings: SettingsDep) -> ReportCompiler:
    return ReportCompiler(image_service_base=settings.report.image_service_base)


def get_design_architect(
    generator: Annotated[TextGenerator, Depends(get_text_generator)],
    compiler: Annotated[ReportCompiler, Depends(get_report_compiler)],
) -> DesignArchitect:
    return DesignArchitect(generator, report_compiler=compiler)


def get_lock_registry() -> DocumentLockRegistry:
    return _document_locks


UserContextDep = Annotated[UserContext, Depends(get_user_context)]
RepositoryDep = Annotated[DocumentRepository, Depends(get_repository)]
ArchitectDep = Annotated[DesignArchitect, Depends(get_design_architect)]
CompilerDep = Annotated[ReportCompiler, Depends(get_report_compiler)]
LocksDep = Annotated[DocumentLockRegistry, Depends(get_lock_registry)]


def get_document_id(document_id: str) -> str:
    """Canonical document id from the path; anything but a uuid cannot exist."""
    try:
        return str(UUID(document_id))
    except ValueError as e:
        raise NotFoundError("Design document not found", {"document_id": document_id}) from e


DocumentIdDep = Annotated[str, Depends(get_document_id)]


def _load_owned(repository: DocumentRepository, document_id: str, user: UserContext) -> DesignDocument:
    """Load a document the caller owns. Someone else's document is reported as missing."""
    document = repository.get(document_id)
    if document is None or document.user_id != user.user_id:
        raise NotFoundError("Design document not found", {"document_id": document_id})
    return document


async def _bounded(awaitable: Awaitable[T], timeout: float, document: DesignDocument, operation: str) -> T:
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise AIGenerationError("Text generation timed out", {
            "document_id": document.id,
            "current_phase": document.current_phase.value,
            "operation": operation,
            "timeout_seconds": timeout,
        }) from e


async def _run_generation(
    document_id: str,
    operation: str,
    step: Callable[[DesignDocument], Awaitable[DesignDocument]],
    user: UserContext,
    repository: DocumentRepository,
    locks: DocumentLockRegistry,
    settings: Settings,
) -> DesignDocument:
    async with locks.lock_for(document_id):
        document = _load_owned(repository, document_id, user)
        updated = await _bounded(step(document), settings.generation.timeout_seconds, document, operation)
        repository.save(updated)
        return updated


@router.post("", response_model=DesignDocument, status_code=status.HTTP_201_CREATED)
def create_design(
    request: CreateDesignRequest,
    user: UserContextDep,
    repository: RepositoryDep,
    architect: ArchitectDep,
) -> DesignDocument:
    """Start a new design session owned by the caller."""
    document = architect.start_session(
        project_name=request.project_name,
        description=request.description,
        user_id=user.user_id,
        include_requirements=request.include_requirements,
    )
    repository.save(document)
    logger.info(f"Created design {document.id} for user {user.user_id}")
    return document


@router.get("", response_model=DesignListResponse)
def list_designs(user: UserContextDep, repository: RepositoryDep) -> DesignListResponse:
    documents = repository.list_for_user(user.user_id)
    return DesignListResponse(designs=[DocumentSummary.from_document(doc) for doc in documents])


@router.get("/export")
def export_designs(user: UserContextDep, repository: RepositoryDep, compiler: CompilerDep) -> Response:
    """Download every design of the caller as a ZIP of Markdown reports."""
    archive = build_projects_zip(repository.list_for_user(user.user_id), compiler)
    filename = f"siren-designs-{datetime.now(UTC).strftime('%Y%m%d')}.zip"
    return Response(
        content=archive,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{document_id}", response_model=DesignDocument)
def get_design(document_id: DocumentIdDep, user: UserContextDep, repository: RepositoryDep) -> DesignDocument:
    return _load_owned(repository, document_id, user)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_design(
    document_id: DocumentIdDep,
    user: UserContextDep,
    repository: RepositoryDep,
    locks: LocksDep,
) -> Response:
    async with locks.lock_for(document_id):
        _load_owned(repository, document_id, user)
        repository.delete(document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{document_id}/requirements/chat", response_model=ChatResponse)
async def requirements_chat(
    document_id: DocumentIdDep,
    request: ChatRequest,
    user: UserContextDep,
    repository: RepositoryDep,
    architect: ArchitectDep,
    locks: LocksDep,
    settings: SettingsDep,
) -> ChatResponse:
    async with locks.lock_for(document_id):
        document = _load_owned(repository, document_id, user)
        outcome = await _bounded(
            architect.analyze_requirements_chat(document, request.message),
            settings.generation.timeout_seconds, document, "requirements_chat",
        )
        if not outcome.degraded:
            repository.save(outcome.document)
    return ChatResponse(**outcome_payload(outcome))


@router.post("/{document_id}/analysis/chat", response_model=ChatResponse)
async def analysis_chat(
    document_id: DocumentIdDep,
    request: ChatRequest,
    user: UserContextDep,
    repository: RepositoryDep,
    architect: ArchitectDep,
    locks: LocksDep,
    settings: SettingsDep,
) -> ChatResponse:
    async with locks.lock_for(document_id):
        document = _load_owned(repository, document_id, user)
        outcome = await _bounded(
            architect.analyze_chat(document, request.message),
            settings.generation.timeout_seconds, document, "analysis_chat",
        )
        if not outcome.degraded:
            repository.save(outcome.document)
    return ChatResponse(**outcome_payload(outcome))


@router.post("/{document_id}/domain-model", response_model=DesignDocument)
async def generate_domain_model(
    document_id: DocumentIdDep,
    user: UserContextDep,
    repository: RepositoryDep,
    architect: ArchitectDep,
    locks: LocksDep,
    settings: SettingsDep,
) -> DesignDocument:
    return await _run_generation(
        document_id, "generate_domain_model", architect.generate_domain_model,
        user, repository, locks, settings,
    )


@router.post("/{document_id}/architecture", response_model=DesignDocument)
async def generate_architecture(
    document_id: DocumentIdDep,
    user: UserContextDep,
    repository: RepositoryDep,
    architect: ArchitectDep,
    locks: LocksDep,
    settings: SettingsDep,
) -> DesignDocument:
    return await _run_generation(
        document_id, "generate_system_architecture", architect.generate_system_architecture,
        user, repository, locks, settings,
    )


@router.post("/{document_id}/object-design", response_model=DesignDocument)
async def generate_object_design(
    document_id: DocumentIdDep,
    user: UserContextDep,
    repository: RepositoryDep,
    architect: ArchitectDep,
    locks: LocksDep,
    settings: SettingsDep,
) -> DesignDocument:
    return await _run_generation(
        document_id, "generate_object_design", architect.generate_object_design,
        user, repository, locks, settings,
    )


@router.post("/{document_id}/validation", response_model=DesignDocument)
async def validate_design(
    document_id: DocumentIdDep,
    user: UserContextDep,
    repository: RepositoryDep,
    architect: ArchitectDep,
    locks: LocksDep,
    settings: SettingsDep,
) -> DesignDocument:
    return await _run_generation(
        document_id, "validate_design", architect.validate_design,
        user, repository, locks, settings,
    )


@router.post("/{document_id}/phase", response_model=DesignDocument)
async def change_phase(
    document_id: DocumentIdDep,
    request: PhaseTransitionRequest,
    user: UserContextDep,
    repository: RepositoryDep,
    architect: ArchitectDep,
    locks: LocksDep,
) -> DesignDocument:
    """Move the document forward to ``target_phase``."""
    async with locks.lock_for(document_id):
        document = _load_owned(repository, document_id, user)
        updated = transition_phase(document, request.target_phase)
        if updated.current_phase == ProjectPhase.SYSTEM_DESIGN and updated.system_design is None:
            updated = architect.start_system_design(updated)
        repository.save(updated)
    logger.info(f"Design {document_id} moved to {updated.current_phase.value}")
    return updated


@router.post("/{document_id}/automation", response_model=DesignDocument)
async def run_automation(
    document_id: DocumentIdDep,
    user: UserContextDep,
    repository: RepositoryDep,
    architect: ArchitectDep,
    locks: LocksDep,
    settings: SettingsDep,
) -> DesignDocument:
    """Generate every remaining artifact and the final report in one call."""
    automation = PhaseAutomation(architect)

    async def run(document: DesignDocument) -> DesignDocument:
        # Intermediate documents are saved so a failure keeps finished steps
        return await automation.run(document, on_update=repository.save)

    async with locks.lock_for(document_id):
        document = _load_owned(repository, document_id, user)
        return await _bounded(
            run(document),
            settings.generation.timeout_seconds * TOTAL_STEPS,
            document,
            "automation",
        )


@router.get("/{document_id}/report", response_model=ReportResponse)
def get_report(
    document_id: DocumentIdDep,
    user: UserContextDep,
    repository: RepositoryDep,
    compiler: CompilerDep,
) -> ReportResponse:
    document = _load_owned(repository, document_id, user)
    return ReportResponse(document_id=document.id, markdown=compiler.compile(document))


@router.get("/{document_id}/patterns", response_model=PatternListResponse)
def get_patterns(document_id: DocumentIdDep, user: UserContextDep, repository: RepositoryDep) -> PatternListResponse:
    document = _load_owned(repository, document_id, user)
    return PatternListResponse(
        document_id=document.id,
        patterns=DesignPatternAdvisor().suggest_patterns(document),
    )
