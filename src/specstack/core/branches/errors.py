"""Exceptions raised by branch tracking operations.

Validation errors carry a remedy: a short, user-facing instruction for
getting unstuck. Storage errors name the offending file.
"""

from pathlib import Path


class SpecstackError(Exception):
    """Base class for all specstack errors."""


# ============================================================================
# Validation
# ============================================================================


class BranchValidationError(SpecstackError):
    """A requested mutation was rejected before any state changed."""

    def __init__(self, message: str, remedy: str | None = None):
        self.message = message
        self.remedy = remedy
        super().__init__(message)

    def format_for_user(self) -> str:
        if self.remedy is None:
            return self.message
        return f"{self.message}\n\n{self.remedy}"


class DuplicateBranchNameError(BranchValidationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Branch '{name}' is already tracked",
            remedy="Choose a different branch name.",
        )


CROSS_REPO_ALTERNATIVES = (
    "Complete and merge the dependency to main first, then branch from main",
    "Extract the shared contract or API into an independent package both repos consume",
    "Open both pull requests and coordinate their merge order manually",
)


class InvalidBaseError(BranchValidationError):
    """Raised when a proposed base branch does not exist in this repository."""

    def __init__(self, base_branch: str, repo_root: Path):
        self.base_branch = base_branch
        self.repo_root = repo_root
        self.alternatives = list(CROSS_REPO_ALTERNATIVES)
        lines = ["Alternatives:"]
        for index, alternative in enumerate(self.alternatives, start=1):
            lines.append(f"  {index}. {alternative}")
        super().__init__(
            f"Base branch '{base_branch}' does not exist in {repo_root}. "
            "Cross-repository branch dependencies are not supported: "
            "a base branch must live in the same repository.",
            remedy="\n".join(lines),
        )


class InvalidSpecIdError(BranchValidationError):
    def __init__(self, spec_id: str):
        self.spec_id = spec_id
        super().__init__(
            f"Invalid spec id '{spec_id}'",
            remedy="Spec ids look like NNN-kebab-name, e.g. 007-multi-repo.",
        )


class InvalidBranchNameError(BranchValidationError):
    def __init__(self, name: str, reason: str, remedy: str | None = None):
        self.name = name
        super().__init__(f"Invalid branch name '{name}': {reason}", remedy=remedy)


class CircularDependencyError(BranchValidationError):
    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(
            "Circular branch dependency: " + " -> ".join(cycle),
            remedy="Inspect the dependency document; base pointers must end at trunk.",
        )


class BranchNotFoundError(BranchValidationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Branch '{name}' is not tracked",
            remedy="Run 'specstack branch list' to see tracked branches, "
            "or 'specstack branch import' to start tracking an existing one.",
        )


class InvalidStatusTransitionError(BranchValidationError):
    def __init__(self, name: str, current: str, requested: str, allowed: list[str]):
        self.name = name
        self.current = current
        self.requested = requested
        self.allowed = allowed
        if allowed:
            remedy = "Allowed from here: " + ", ".join(allowed)
        else:
            remedy = f"'{current}' is a final status."
        super().__init__(
            f"Cannot change status of '{name}' from {current} to {requested}",
            remedy=remedy,
        )


class MissingSpecIdError(BranchValidationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"No spec id for branch '{name}'",
            remedy="Pass --spec NNN-name, or stack on a tracked branch to inherit its spec.",
        )


# ============================================================================
# Storage
# ============================================================================


class StorageError(SpecstackError):
    """The dependency document could not be read or written."""


class CorruptDocumentError(StorageError):
    def __init__(self, path: Path | None, reason: str):
        self.path = path
        self.reason = reason
        location = str(path) if path is not None else "dependency document"
        super().__init__(f"Corrupt dependency document {location}: {reason}")


class UnsupportedSchemaVersionError(CorruptDocumentError):
    def __init__(self, path: Path | None, version: str, supported: str):
        self.version = version
        self.supported = supported
        super().__init__(
            path,
            f"schema version {version} is newer than supported version {supported}; "
            "upgrade specstack to read it",
        )


# ============================================================================
# Environment
# ============================================================================


class EmptyRepositoryError(SpecstackError):
    def __init__(self, repo_root: Path):
        self.repo_root = repo_root
        super().__init__(
            f"Repository {repo_root} has no local branches. Create an initial commit first."
        )


class WorkspaceConfigError(SpecstackError):
    def __init__(self, message: str, remedy: str):
        self.remedy = remedy
        super().__init__(f"{message}\n\n{remedy}")
