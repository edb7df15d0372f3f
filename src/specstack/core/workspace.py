"""Multi-repo workspace detection.

A workspace is one root repository plus child repositories linked by
symlinks:

- a child repository has `.specstack/root` pointing at the root repository
- the root repository has one `.specstack-link-<name>` per child

A repository with neither is a single-repo workspace.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from specstack.core.branches.errors import WorkspaceConfigError
from specstack.core.branches.models import is_valid_spec_id
from specstack.core.branches.store import STATE_DIR_NAME

logger = logging.getLogger(__name__)

ROOT_LINK_NAME = "root"
CHILD_LINK_PREFIX = ".specstack-link-"
SPECS_DIR_NAME = "specs"

_SPEC_DIR_PATTERN = re.compile(r"^\d{3}-")


class WorkspaceMode(Enum):
    SINGLE = "single"
    ROOT = "root"
    CHILD = "child"


@dataclass(frozen=True)
class WorkspaceInfo:
    """Where a repository sits in its workspace.

    Fields:
        mode: single, root or child
        repo_root: The repository that was inspected
        workspace_root: The root repository (repo_root itself unless mode is child)
        child_name: Short name of repo_root when it is a child
        children: Child name -> child repository path (root mode only)
    """

    mode: WorkspaceMode
    repo_root: Path
    workspace_root: Path
    child_name: str | None = None
    children: dict[str, Path] = field(default_factory=dict)

    @property
    def is_child(self) -> bool:
        return self.mode == WorkspaceMode.CHILD


def root_link_path(repo_root: Path) -> Path:
    return repo_root / STATE_DIR_NAME / ROOT_LINK_NAME


def list_child_repos(workspace_root: Path) -> dict[str, Path]:
    """Find child repositories linked from a root repository.

    Links whose target no longer exists are skipped.
    """
    children: dict[str, Path] = {}
    for link in sorted(workspace_root.glob(f"{CHILD_LINK_PREFIX}*")):
        if not link.is_symlink():
            continue
        name = link.name.removeprefix(CHILD_LINK_PREFIX)
        target = link.resolve()
        if not target.is_dir():
            logger.debug("Skipping broken child link %s -> %s", link, target)
            continue
        children[name] = target
    return children


def detect_workspace(repo_root: Path) -> WorkspaceInfo:
    """Determine whether repo_root is a single repo, a workspace root or a child.

    Raises:
        WorkspaceConfigError: If `.specstack/root` exists but is not a symlink
            to an existing directory
    """
    link = root_link_path(repo_root)

    if link.is_symlink():
        target = link.resolve()
        if not target.is_dir():
            raise WorkspaceConfigError(
                f"Workspace root link {link} points to missing directory {target}",
                remedy=f"Remove the link (rm {link}) or point it at the root repository.",
            )
        logger.debug("%s is a child of workspace %s", repo_root, target)
        return WorkspaceInfo(
            mode=WorkspaceMode.CHILD,
            repo_root=repo_root,
            workspace_root=target,
            child_name=repo_root.name,
        )

    if link.exists():
        raise WorkspaceConfigError(
            f"{link} exists but is not a symlink",
            remedy=f"Replace it with a symlink to the root repository (ln -s <root> {link}).",
        )

    children = list_child_repos(repo_root)
    if children:
        return WorkspaceInfo(
            mode=WorkspaceMode.ROOT,
            repo_root=repo_root,
            workspace_root=repo_root,
            children=children,
        )

    return WorkspaceInfo(mode=WorkspaceMode.SINGLE, repo_root=repo_root, workspace_root=repo_root)


def discover_spec_ids(workspace_root: Path) -> list[str]:
    """List spec ids that have a directory under the workspace's specs/ folder."""
    specs_dir = workspace_root / SPECS_DIR_NAME
    if not specs_dir.is_dir():
        return []
    return sorted(
        child.name
        for child in specs_dir.iterdir()
        if child.is_dir() and _SPEC_DIR_PATTERN.match(child.name) and is_valid_spec_id(child.name)
    )
