"""Forward-only migration of persisted dependency documents.

Each MigrationStep is a pure function over the raw JSON mapping. Steps are
total: they never raise, and anything they cannot interpret is passed through
untouched for schema validation to reject afterwards.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from specstack.core.branches.errors import CorruptDocumentError, UnsupportedSchemaVersionError
from specstack.core.branches.models import CURRENT_SCHEMA_VERSION

logger = logging.getLogger(__name__)

RawDocument = dict[str, Any]

_VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")

_ENTRY_FIELDS = (
    "name",
    "specId",
    "baseBranch",
    "status",
    "pr",
    "createdAt",
    "updatedAt",
    "parentSpecId",
)


@dataclass(frozen=True)
class MigrationStep:
    """Upgrade a raw document from one schema version to the next."""

    from_version: str
    to_version: str
    apply: Callable[[RawDocument], RawDocument]


def _branches_as_list(branches: Any) -> Any:
    """Convert a name-keyed branch mapping into a list of entries."""
    if not isinstance(branches, dict):
        return branches
    converted = []
    for name, entry in branches.items():
        if isinstance(entry, dict):
            converted.append({"name": name, **entry})
        else:
            converted.append(entry)
    return converted


def _unversioned_to_1_0_0(raw: RawDocument) -> RawDocument:
    return {
        "schemaVersion": "1.0.0",
        "branches": _branches_as_list(raw.get("branches")),
        "specIndex": raw.get("specIndex", {}),
    }


def _upgrade_entry(entry: Any) -> Any:
    if not isinstance(entry, dict):
        return entry

    upgraded = dict(entry)
    if "baseBranch" not in upgraded and "base" in upgraded:
        upgraded["baseBranch"] = upgraded["base"]
    if "status" not in upgraded:
        upgraded["status"] = "active"
    if "pr" not in upgraded:
        upgraded["pr"] = None
    if "updatedAt" not in upgraded and "createdAt" in upgraded:
        upgraded["updatedAt"] = upgraded["createdAt"]
    if upgraded.get("parentSpecId") is None:
        upgraded.pop("parentSpecId", None)

    return {key: upgraded[key] for key in _ENTRY_FIELDS if key in upgraded}


def _1_0_0_to_1_1_0(raw: RawDocument) -> RawDocument:
    branches = _branches_as_list(raw.get("branches"))
    if isinstance(branches, list):
        branches = [_upgrade_entry(entry) for entry in branches]
    return {
        "schemaVersion": "1.1.0",
        "branches": branches,
        "specIndex": raw.get("specIndex", {}),
    }


MIGRATIONS: list[MigrationStep] = [
    MigrationStep(from_version="0.0.0", to_version="1.0.0", apply=_unversioned_to_1_0_0),
    MigrationStep(from_version="1.0.0", to_version="1.1.0", apply=_1_0_0_to_1_1_0),
]


def parse_version(version: str) -> tuple[int, int, int]:
    """Parse a MAJOR.MINOR.PATCH string.

    Raises:
        ValueError: If version is not a three-part numeric version
    """
    match = _VERSION_PATTERN.match(version)
    if match is None:
        raise ValueError(f"Invalid schema version '{version}'")
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def _raw_version(raw: RawDocument, source: Path | None) -> str:
    if "schemaVersion" in raw:
        version = raw["schemaVersion"]
    else:
        version = raw.get("version", "0.0.0")

    if not isinstance(version, str) or _VERSION_PATTERN.match(version) is None:
        raise CorruptDocumentError(source, f"invalid schema version {version!r}")
    return version


def _check_shape(raw: Any, source: Path | None) -> None:
    if not isinstance(raw, dict):
        raise CorruptDocumentError(source, "top-level value must be an object")
    if not isinstance(raw.get("branches"), (list, dict)):
        raise CorruptDocumentError(source, "missing 'branches' collection")


def needs_migration(raw: RawDocument) -> bool:
    """Check whether a raw document predates the current schema.

    Documents using the legacy 'version' key or name-keyed branches always
    need migrating so the layout is rewritten.
    """
    if "schemaVersion" not in raw or isinstance(raw.get("branches"), dict):
        return True
    version = raw["schemaVersion"]
    if not isinstance(version, str) or _VERSION_PATTERN.match(version) is None:
        return False
    return parse_version(version) < parse_version(CURRENT_SCHEMA_VERSION)


def rebuild_raw_spec_index(branches: list[Any]) -> dict[str, list[str]]:
    index: dict[str, list[str]] = {}
    for entry in branches:
        if not isinstance(entry, dict):
            continue
        spec_id = entry.get("specId")
        name = entry.get("name")
        if not isinstance(spec_id, str) or not isinstance(name, str):
            continue
        names = index.setdefault(spec_id, [])
        if name not in names:
            names.append(name)
    return index


def _normalize_layout(raw: RawDocument, version: str) -> RawDocument:
    """Bring the branch layout up to date regardless of the recorded version.

    Files written under the legacy 'version' key can claim 1.1.0 while still
    holding name-keyed branches with 'base' fields and a specIndex of counts.
    """
    branches = _branches_as_list(raw.get("branches"))
    if isinstance(branches, list):
        branches = [_upgrade_entry(entry) for entry in branches]
        spec_index = rebuild_raw_spec_index(branches)
    else:
        spec_index = raw.get("specIndex", {})
    return {"schemaVersion": version, "branches": branches, "specIndex": spec_index}


def migrate(raw: Any, *, source: Path | None = None) -> RawDocument:
    """Bring a raw document up to CURRENT_SCHEMA_VERSION.

    Args:
        raw: Parsed JSON value read from disk
        source: File the value came from, used in error messages

    Returns:
        A new raw document at the current version with a rebuilt specIndex.
        Documents already at (or above, within the same major) the current
        version are returned unchanged.

    Raises:
        CorruptDocumentError: If raw is not an object with a branches collection
        UnsupportedSchemaVersionError: If raw was written by a newer major version
    """
    _check_shape(raw, source)
    version = _raw_version(raw, source)
    current = parse_version(CURRENT_SCHEMA_VERSION)

    if parse_version(version)[0] > current[0]:
        raise UnsupportedSchemaVersionError(source, version, CURRENT_SCHEMA_VERSION)

    if not needs_migration(raw):
        return raw

    migrated = dict(raw)
    migrated.pop("version", None)
    migrated["schemaVersion"] = version

    for step in MIGRATIONS:
        if parse_version(version) >= parse_version(step.to_version):
            continue
        logger.debug("Migrating %s from %s to %s", source, version, step.to_version)
        migrated = step.apply(migrated)
        version = step.to_version

    return _normalize_layout(migrated, version)
