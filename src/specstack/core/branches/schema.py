"""Pydantic records describing the persisted dependency document.

The on-disk document uses camelCase keys. Records validate shape and field
values; conversion helpers translate between records and the frozen domain
models in specstack.core.branches.models.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from specstack.core.branches.models import (
    BranchEntry,
    BranchStatus,
    DependencyDocument,
    format_timestamp,
    is_valid_spec_id,
    parse_timestamp,
)


class BranchRecord(BaseModel):
    """One element of the persisted `branches` array."""

    model_config = ConfigDict(strict=True, extra="forbid", populate_by_name=True)

    name: str = Field(..., min_length=1)
    spec_id: str = Field(..., alias="specId")
    base_branch: str = Field(..., alias="baseBranch", min_length=1)
    status: Literal["active", "submitted", "merged", "abandoned"]
    pr: int | None = Field(default=None, gt=0)
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")
    parent_spec_id: str | None = Field(default=None, alias="parentSpecId")

    @field_validator("spec_id", "parent_spec_id")
    @classmethod
    def _check_spec_id(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_spec_id(value):
            raise ValueError(f"'{value}' does not match NNN-kebab-name")
        return value

    @field_validator("created_at", "updated_at")
    @classmethod
    def _check_timestamp(cls, value: str) -> str:
        parse_timestamp(value)
        return value


class DependencyDocumentRecord(BaseModel):
    """The whole persisted document."""

    model_config = ConfigDict(strict=True, extra="forbid", populate_by_name=True)

    schema_version: str = Field(..., alias="schemaVersion")
    branches: list[BranchRecord]
    spec_index: dict[str, list[str]] = Field(..., alias="specIndex")


def entry_from_record(record: BranchRecord) -> BranchEntry:
    return BranchEntry(
        name=record.name,
        spec_id=record.spec_id,
        base_branch=record.base_branch,
        status=BranchStatus(record.status),
        pr=record.pr,
        created_at=parse_timestamp(record.created_at),
        updated_at=parse_timestamp(record.updated_at),
        parent_spec_id=record.parent_spec_id,
    )


def document_from_record(record: DependencyDocumentRecord) -> DependencyDocument:
    return DependencyDocument(
        schema_version=record.schema_version,
        branches=[entry_from_record(branch) for branch in record.branches],
        spec_index={spec_id: list(names) for spec_id, names in record.spec_index.items()},
    )


def entry_to_dict(entry: BranchEntry) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": entry.name,
        "specId": entry.spec_id,
        "baseBranch": entry.base_branch,
        "status": entry.status.value,
        "pr": entry.pr,
        "createdAt": format_timestamp(entry.created_at),
        "updatedAt": format_timestamp(entry.updated_at),
    }
    # Absent rather than null outside child repositories
    if entry.parent_spec_id is not None:
        data["parentSpecId"] = entry.parent_spec_id
    return data


def document_to_dict(doc: DependencyDocument) -> dict[str, Any]:
    """Convert a document to its JSON-ready persisted form."""
    return {
        "schemaVersion": doc.schema_version,
        "branches": [entry_to_dict(entry) for entry in doc.branches],
        "specIndex": {spec_id: list(names) for spec_id, names in doc.spec_index.items()},
    }
