"""Core types for per-repository branch dependency tracking."""

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

CURRENT_SCHEMA_VERSION = "1.1.0"

SPEC_ID_PATTERN = re.compile(r"^\d{3}-[a-z0-9]+(?:-[a-z0-9]+)*$")


class BranchStatus(Enum):
    """Lifecycle status of a tracked branch."""

    ACTIVE = "active"
    SUBMITTED = "submitted"
    MERGED = "merged"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class BranchEntry:
    """A tracked branch and its position in a stack.

    Fields:
        name: Branch name, unique within the document
        spec_id: Spec this branch implements (NNN-kebab-name)
        base_branch: Branch or trunk this branch stacks on
        status: Lifecycle status
        pr: Pull request number once one exists
        created_at: Creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
        parent_spec_id: Orchestrating spec in the workspace root (child repos only)
    """

    name: str
    spec_id: str
    base_branch: str
    status: BranchStatus
    pr: int | None
    created_at: datetime
    updated_at: datetime
    parent_spec_id: str | None = None


@dataclass(frozen=True)
class DependencyDocument:
    """Everything specstack knows about one repository's branches.

    Branch order is creation order. spec_index maps a spec id to the names
    of its branches in creation order.
    """

    schema_version: str
    branches: list[BranchEntry] = field(default_factory=list)
    spec_index: dict[str, list[str]] = field(default_factory=dict)

    def names(self) -> list[str]:
        return [entry.name for entry in self.branches]


@dataclass(frozen=True)
class OperationWarning:
    """A non-fatal condition reported alongside a successful operation."""

    code: str
    message: str
    hint: str | None = None


NO_REMOTE = "NO_REMOTE"
BASE_NOT_TRACKED = "BASE_NOT_TRACKED"
CHECKOUT_FAILED = "CHECKOUT_FAILED"


def is_valid_spec_id(value: str) -> bool:
    return SPEC_ID_PATTERN.match(value) is not None


def format_timestamp(value: datetime) -> str:
    """Serialize a datetime as UTC ISO 8601 with milliseconds and a Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    utc = value.astimezone(UTC)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC.

    Raises:
        ValueError: If value is not ISO 8601
    """
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision so in-memory values match what is persisted."""
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)
