"""Repository configuration stored in pyproject.toml under [tool.specstack]."""

import tomllib
from dataclasses import dataclass
from pathlib import Path

import tomlkit

from specstack.core.branches.errors import WorkspaceConfigError

TOOL_SECTION = "specstack"


@dataclass(frozen=True)
class RepoConfig:
    """Per-repository settings.

    Fields:
        trunk_branch: Branch new stacks start from (None = detect)
    """

    trunk_branch: str | None = None


def load_repo_config(repo_root: Path) -> RepoConfig:
    """Read [tool.specstack] from the repository's pyproject.toml.

    Returns:
        RepoConfig, with defaults when the file or section is absent

    Raises:
        WorkspaceConfigError: If pyproject.toml is not valid TOML
    """
    pyproject_path = repo_root / "pyproject.toml"

    if not pyproject_path.exists():
        return RepoConfig()

    try:
        with pyproject_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise WorkspaceConfigError(
            f"Cannot parse {pyproject_path}: {e}",
            remedy="Fix the TOML syntax error, then re-run the command.",
        ) from e

    tool_section = data.get("tool")
    if tool_section is None:
        return RepoConfig()

    specstack_section = tool_section.get(TOOL_SECTION)
    if specstack_section is None:
        return RepoConfig()

    return RepoConfig(trunk_branch=specstack_section.get("trunk_branch"))


def write_trunk_to_pyproject(repo_root: Path, trunk: str) -> None:
    """Write trunk branch configuration to pyproject.toml.

    Creates or updates the [tool.specstack] section with trunk_branch setting.
    Preserves existing formatting and comments using tomlkit.
    """
    pyproject_path = repo_root / "pyproject.toml"

    if pyproject_path.exists():
        with pyproject_path.open("r", encoding="utf-8") as f:
            doc = tomlkit.load(f)
    else:
        doc = tomlkit.document()

    if "tool" not in doc:
        doc["tool"] = tomlkit.table()  # type: ignore[index]

    if TOOL_SECTION not in doc["tool"]:  # type: ignore[operator]
        doc["tool"][TOOL_SECTION] = tomlkit.table()  # type: ignore[index]

    doc["tool"][TOOL_SECTION]["trunk_branch"] = trunk  # type: ignore[index]

    with pyproject_path.open("w", encoding="utf-8") as f:
        tomlkit.dump(doc, f)
