"""Tests for forward-only migration of persisted dependency documents."""

import copy

import pytest

from specstack.core.branches.errors import CorruptDocumentError, UnsupportedSchemaVersionError
from specstack.core.branches.migration import (
    MIGRATIONS,
    migrate,
    needs_migration,
    parse_version,
)
from specstack.core.branches.models import CURRENT_SCHEMA_VERSION
from specstack.core.branches.store import document_from_raw
from tests.test_utils.builders import raw_document, raw_entry


def test_migrations_chain_ends_at_current_version() -> None:
    """Each step starts where the previous one ended and the last reaches current."""
    for previous, step in zip(MIGRATIONS, MIGRATIONS[1:], strict=False):
        assert step.from_version == previous.to_version
    assert MIGRATIONS[-1].to_version == CURRENT_SCHEMA_VERSION


def test_parse_version_rejects_non_semver() -> None:
    assert parse_version("1.10.2") == (1, 10, 2)
    with pytest.raises(ValueError):
        parse_version("1.1")


def test_unversioned_document_with_name_keyed_branches_is_upgraded() -> None:
    raw = {
        "branches": {
            "feature/db": {
                "specId": "007-multi-repo",
                "base": "main",
                "createdAt": "2024-01-10T09:30:00.000Z",
            },
        },
    }

    migrated = migrate(raw)

    assert migrated["schemaVersion"] == CURRENT_SCHEMA_VERSION
    assert migrated["branches"] == [
        {
            "name": "feature/db",
            "specId": "007-multi-repo",
            "baseBranch": "main",
            "status": "active",
            "pr": None,
            "createdAt": "2024-01-10T09:30:00.000Z",
            "updatedAt": "2024-01-10T09:30:00.000Z",
        }
    ]
    assert migrated["specIndex"] == {"007-multi-repo": ["feature/db"]}


def test_1_0_0_document_drops_null_parent_and_unknown_fields() -> None:
    raw = {
        "schemaVersion": "1.0.0",
        "branches": [
            {
                "name": "feature/db",
                "specId": "007-multi-repo",
                "baseBranch": "main",
                "createdAt": "2024-01-10T09:30:00.000Z",
                "parentSpecId": None,
                "color": "blue",
            },
        ],
        "specIndex": {},
    }

    migrated = migrate(raw)

    entry = migrated["branches"][0]
    assert "parentSpecId" not in entry
    assert "color" not in entry
    assert entry["status"] == "active"
    assert migrated["specIndex"] == {"007-multi-repo": ["feature/db"]}


def test_intermediate_patch_version_is_migrated() -> None:
    raw = {
        "schemaVersion": "1.0.5",
        "branches": [{"name": "a", "specId": "001-x", "baseBranch": "main", "createdAt": "2024"}],
        "specIndex": {},
    }

    migrated = migrate(raw)

    assert migrated["schemaVersion"] == CURRENT_SCHEMA_VERSION
    assert migrated["branches"][0]["updatedAt"] == "2024"


def test_legacy_version_key_is_rewritten() -> None:
    raw = raw_document(raw_entry("feature/db"))
    del raw["schemaVersion"]
    raw["version"] = CURRENT_SCHEMA_VERSION

    assert needs_migration(raw)
    migrated = migrate(raw)

    assert "version" not in migrated
    assert migrated["schemaVersion"] == CURRENT_SCHEMA_VERSION


def test_current_document_is_returned_unchanged() -> None:
    raw = raw_document(raw_entry("feature/db"))

    assert not needs_migration(raw)
    assert migrate(raw) is raw


def test_newer_minor_version_loads_without_migration() -> None:
    raw = raw_document(raw_entry("feature/db"))
    raw["schemaVersion"] = "1.2.0"

    assert migrate(raw)["schemaVersion"] == "1.2.0"


def test_newer_major_version_is_rejected() -> None:
    raw = {"schemaVersion": "2.0.0", "branches": [], "specIndex": {}}

    with pytest.raises(UnsupportedSchemaVersionError) as exc_info:
        migrate(raw)

    assert exc_info.value.version == "2.0.0"
    assert "upgrade specstack" in str(exc_info.value)


@pytest.mark.parametrize(
    "raw",
    [
        [],
        {"schemaVersion": "1.1.0"},
        {"schemaVersion": "one", "branches": []},
        {"schemaVersion": 1, "branches": []},
    ],
)
def test_malformed_documents_are_corrupt(raw: object) -> None:
    with pytest.raises(CorruptDocumentError):
        migrate(raw)


def test_migration_does_not_modify_input() -> None:
    raw = {
        "schemaVersion": "1.0.0",
        "branches": [
            {"name": "a", "specId": "001-x", "base": "main", "createdAt": "2024-01-10T09:30:00Z"}
        ],
        "specIndex": {},
    }
    snapshot = copy.deepcopy(raw)

    migrate(raw)

    assert raw == snapshot


def test_migrated_document_passes_validation() -> None:
    raw = {
        "version": "1.0.0",
        "branches": [
            {
                "name": "feature/db",
                "specId": "007-multi-repo",
                "base": "main",
                "createdAt": "2024-01-10T09:30:00Z",
            },
            {
                "name": "feature/api",
                "specId": "007-multi-repo",
                "base": "feature/db",
                "status": "submitted",
                "pr": 12,
                "createdAt": "2024-01-11T09:30:00Z",
            },
        ],
    }

    doc = document_from_raw(migrate(raw))

    assert [entry.name for entry in doc.branches] == ["feature/db", "feature/api"]
    assert doc.branches[1].pr == 12
    assert doc.spec_index == {"007-multi-repo": ["feature/db", "feature/api"]}


def _legacy_1_1_0_document(*, parent_spec_id: str | None = None) -> dict:
    """A 1.1.0 file as written before the schemaVersion key existed."""
    entry = {
        "name": "nprbst/no-parent",
        "base": "main",
        "specId": "001-test-feature",
        "createdAt": "2024-01-10T09:30:00.000Z",
    }
    if parent_spec_id is not None:
        entry["name"] = "nprbst/with-parent"
        entry["parentSpecId"] = parent_spec_id
    return {
        "version": "1.1.0",
        "branches": {entry["name"]: entry},
        "specIndex": {"001-test-feature": 1},
    }


def test_legacy_1_1_0_layout_is_normalized() -> None:
    migrated = migrate(_legacy_1_1_0_document())

    assert migrated == {
        "schemaVersion": "1.1.0",
        "branches": [
            {
                "name": "nprbst/no-parent",
                "specId": "001-test-feature",
                "baseBranch": "main",
                "status": "active",
                "pr": None,
                "createdAt": "2024-01-10T09:30:00.000Z",
                "updatedAt": "2024-01-10T09:30:00.000Z",
            }
        ],
        "specIndex": {"001-test-feature": ["nprbst/no-parent"]},
    }


def test_legacy_1_1_0_layout_keeps_parent_spec() -> None:
    doc = document_from_raw(migrate(_legacy_1_1_0_document(parent_spec_id="000-parent-spec")))

    assert [entry.name for entry in doc.branches] == ["nprbst/with-parent"]
    assert doc.branches[0].base_branch == "main"
    assert doc.branches[0].parent_spec_id == "000-parent-spec"


def test_name_keyed_branches_need_migration_even_with_current_version() -> None:
    raw = _legacy_1_1_0_document()
    raw["schemaVersion"] = raw.pop("version")

    assert needs_migration(raw)
    assert isinstance(migrate(raw)["branches"], list)


@pytest.mark.parametrize(
    "raw",
    [
        {
            "branches": {
                "feature/db": {
                    "specId": "007-multi-repo",
                    "base": "main",
                    "createdAt": "2024-01-10T09:30:00.000Z",
                }
            }
        },
        {
            "schemaVersion": "1.0.0",
            "branches": [
                {
                    "name": "feature/db",
                    "specId": "007-multi-repo",
                    "baseBranch": "main",
                    "createdAt": "2024-01-10T09:30:00.000Z",
                    "parentSpecId": None,
                }
            ],
            "specIndex": {},
        },
        {
            "version": "1.0.0",
            "branches": [
                {
                    "name": "feature/db",
                    "specId": "007-multi-repo",
                    "base": "main",
                    "createdAt": "2024-01-10T09:30:00.000Z",
                }
            ],
        },
        _legacy_1_1_0_document(),
        _legacy_1_1_0_document(parent_spec_id="000-parent-spec"),
    ],
    ids=["unversioned", "1.0.0", "legacy-version-key", "legacy-1.1.0", "legacy-1.1.0-parent"],
)
def test_migrating_twice_equals_migrating_once(raw: dict) -> None:
    once = migrate(raw)

    assert migrate(once) == once
