"""Persistence of per-repository dependency documents.

Each repository keeps its own document at `<repo>/.specstack/branches.json`.
Documents are migrated to the current schema on load, validated, and checked
for invariant violations. A document that fails any of these raises; state is
never reset silently.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from specstack.core.branches.errors import CorruptDocumentError, StorageError
from specstack.core.branches.migration import migrate, needs_migration
from specstack.core.branches.models import CURRENT_SCHEMA_VERSION, DependencyDocument
from specstack.core.branches.schema import (
    DependencyDocumentRecord,
    document_from_record,
    document_to_dict,
)
from specstack.core.branches.stack import detect_cycle, rebuild_spec_index

logger = logging.getLogger(__name__)

STATE_DIR_NAME = ".specstack"
DOCUMENT_FILE_NAME = "branches.json"


def document_path(repo_root: Path) -> Path:
    return repo_root / STATE_DIR_NAME / DOCUMENT_FILE_NAME


def check_consistency(doc: DependencyDocument) -> list[str]:
    """List invariant violations in a document (empty when consistent)."""
    problems: list[str] = []

    seen: set[str] = set()
    for entry in doc.branches:
        if entry.name in seen:
            problems.append(f"duplicate branch name '{entry.name}'")
        seen.add(entry.name)
        if entry.updated_at < entry.created_at:
            problems.append(f"branch '{entry.name}' has updatedAt before createdAt")

    expected = rebuild_spec_index(doc.branches)
    for spec_id, names in doc.spec_index.items():
        if len(set(names)) != len(names):
            problems.append(f"specIndex['{spec_id}'] lists a branch more than once")
        if set(names) != set(expected.get(spec_id, [])):
            problems.append(f"specIndex['{spec_id}'] does not match branches with that spec")
    for spec_id in expected:
        if spec_id not in doc.spec_index:
            problems.append(f"specIndex is missing spec '{spec_id}'")

    cycle = detect_cycle(doc)
    if cycle is not None:
        problems.append("circular base branches: " + " -> ".join(cycle))

    return problems


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def document_from_raw(raw: Any, source: Path | None = None) -> DependencyDocument:
    """Migrate, validate and consistency-check a raw JSON value.

    Raises:
        CorruptDocumentError: If raw cannot be turned into a consistent document
    """
    migrated = migrate(raw, source=source)
    try:
        record = DependencyDocumentRecord.model_validate(migrated)
    except ValidationError as e:
        raise CorruptDocumentError(source, _format_validation_error(e)) from e

    doc = document_from_record(record)
    problems = check_consistency(doc)
    if problems:
        raise CorruptDocumentError(source, "; ".join(problems))
    return doc


class DependencyStore(ABC):
    """Abstract interface for dependency document persistence.

    Provides dependency injection for storage access, enabling in-memory
    implementations for tests without touching the filesystem.
    """

    def create_empty(self) -> DependencyDocument:
        """Create an empty document at the current schema version."""
        return DependencyDocument(schema_version=CURRENT_SCHEMA_VERSION, branches=[], spec_index={})

    @abstractmethod
    def exists(self, repo_root: Path) -> bool:
        """Check if a document has been written for this repository."""
        ...

    @abstractmethod
    def load(self, repo_root: Path) -> DependencyDocument:
        """Load the repository's document.

        A missing document yields an empty one without writing anything.
        Older schemas are migrated and the migrated form is written back.

        Raises:
            CorruptDocumentError: If the document is unreadable or inconsistent
        """
        ...

    @abstractmethod
    def save(self, repo_root: Path, doc: DependencyDocument) -> None:
        """Persist the repository's document, replacing any previous one."""
        ...

    @abstractmethod
    def path(self, repo_root: Path) -> Path:
        """Get the location of the repository's document (for messages and debugging)."""
        ...


# ============================================================================
# Production Implementation
# ============================================================================


class FilesystemDependencyStore(DependencyStore):
    """Production implementation reading and writing `.specstack/branches.json`."""

    def exists(self, repo_root: Path) -> bool:
        return self.path(repo_root).exists()

    def load(self, repo_root: Path) -> DependencyDocument:
        doc_path = self.path(repo_root)
        if not doc_path.exists():
            logger.debug("No dependency document at %s, starting empty", doc_path)
            return self.create_empty()

        try:
            content = doc_path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot read {doc_path}: {e}") from e

        try:
            raw = json.loads(content)
        except json.JSONDecodeError as e:
            raise CorruptDocumentError(doc_path, f"invalid JSON ({e})") from e

        migrating = isinstance(raw, dict) and needs_migration(raw)
        doc = document_from_raw(raw, source=doc_path)
        if migrating:
            logger.debug("Writing migrated dependency document to %s", doc_path)
            self.save(repo_root, doc)
        return doc

    def save(self, repo_root: Path, doc: DependencyDocument) -> None:
        doc_path = self.path(repo_root)
        try:
            doc_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create directory {doc_path.parent}: {e}") from e

        fd, tmp_name = tempfile.mkstemp(
            suffix=".json",
            prefix=f"{DOCUMENT_FILE_NAME}.",
            dir=doc_path.parent,
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document_to_dict(doc), f, indent=2)
                f.write("\n")
            os.replace(tmp_path, doc_path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.debug("Wrote %d branches to %s", len(doc.branches), doc_path)

    def path(self, repo_root: Path) -> Path:
        return document_path(repo_root)


# ============================================================================
# Test Implementation
# ============================================================================


class InMemoryDependencyStore(DependencyStore):
    """Test implementation holding raw documents in memory.

    Raw JSON-shaped mappings are stored so loading goes through the same
    migration and validation path as the filesystem store.
    """

    def __init__(self, documents: dict[Path, dict[str, Any]] | None = None) -> None:
        """Initialize in-memory store.

        Args:
            documents: Mapping of repo_root -> raw persisted document
        """
        self._documents = dict(documents or {})
        self._saved_roots: list[Path] = []

    @property
    def saved_roots(self) -> list[Path]:
        """Repository roots passed to save(), in call order.

        This property is for test assertions only.
        """
        return self._saved_roots

    def raw_document(self, repo_root: Path) -> dict[str, Any] | None:
        """Get the raw mapping currently stored for repo_root (test inspection)."""
        return self._documents.get(repo_root)

    def exists(self, repo_root: Path) -> bool:
        return repo_root in self._documents

    def load(self, repo_root: Path) -> DependencyDocument:
        if repo_root not in self._documents:
            return self.create_empty()
        raw = self._documents[repo_root]
        migrating = needs_migration(raw)
        doc = document_from_raw(raw, source=self.path(repo_root))
        if migrating:
            self.save(repo_root, doc)
        return doc

    def save(self, repo_root: Path, doc: DependencyDocument) -> None:
        self._documents[repo_root] = document_to_dict(doc)
        self._saved_roots.append(repo_root)

    def path(self, repo_root: Path) -> Path:
        return document_path(repo_root)
