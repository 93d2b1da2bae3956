"""
Persistence of design documents.

The workflow core only needs load/save by id and listing by owner; this
module provides that contract and a JSON-file implementation.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from ..errors import PersistenceError
from .models import DesignDocument

logger = logging.getLogger(__name__)


class DocumentRepository(ABC):
    """Storage hooks for design documents."""

    @abstractmethod
    def save(self, document: DesignDocument) -> None:
        """Create or replace a document."""

    @abstractmethod
    def get(self, document_id: str) -> Optional[DesignDocument]:
        """Load a document, or None when it does not exist."""

    @abstractmethod
    def delete(self, document_id: str) -> bool:
        """Delete a document. Returns False when it did not exist."""

    @abstractmethod
    def list_for_user(self, user_id: str) -> List[DesignDocument]:
        """Documents owned by ``user_id``, most recently updated first. Unreadable entries are skipped."""


class FileDocumentRepository(DocumentRepository):
    """One JSON file per document under ``<root>/<id>.json``."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path_for(self, document_id: str) -> Path:
        # Ids are uuids; anything else could escape the storage directory
        try:
            canonical = str(UUID(document_id))
        except (ValueError, TypeError, AttributeError) as e:
            raise PersistenceError("Invalid document id", {"document_id": str(document_id)}) from e
        return self.root / f"{canonical}.json"

    def save(self, document: DesignDocument) -> None:
        path = self._path_for(document.id)
        temp_path = path.with_suffix(".json.tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with open(temp_path, 'w', encoding='utf-8') as f:
                f.write(document.model_dump_json(indent=2))
            os.replace(temp_path, path)
        except OSError as e:
            logger.error(f"Failed to save document {document.id}: {e}")
            raise PersistenceError(
                f"Failed to save document: {e}", {"document_id": document.id}
            ) from e

        logger.debug(f"Saved document {document.id} to {path}")

    def _load(self, path: Path) -> DesignDocument:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return DesignDocument.model_validate(data)
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            logger.error(f"Failed to load document from {path}: {e}")
            raise PersistenceError(
                f"Failed to load document: {e}", {"path": str(path)}
            ) from e

    def get(self, document_id: str) -> Optional[DesignDocument]:
        path = self._path_for(document_id)
        if not path.exists():
            return None
        return self._load(path)

    def delete(self, document_id: str) -> bool:
        path = self._path_for(document_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(
                f"Failed to delete document: {e}", {"document_id": document_id}
            ) from e
        logger.info(f"Deleted document {document_id}")
        return True

    def list_for_user(self, user_id: str) -> List[DesignDocument]:
        if not self.root.exists():
            return []

        documents = []
        for path in sorted(self.root.glob("*.json")):
            try:
                document = self._load(path)
            except PersistenceError:
                logger.warning(f"Skipping unreadable document file {path}")
                continue
            if document.user_id == user_id:
                documents.append(document)

        documents.sort(key=lambda doc: doc.updated_at, reverse=True)
        return documents
