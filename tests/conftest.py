import logging
import sys
from pathlib import Path
from typing import Any, Optional

from click.testing import CliRunner
import pytest


def _ensure_repo_on_path() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_ensure_repo_on_path()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setattr(Path, "home", lambda: tmp_path)


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("rule_sync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


def make_rule_text(
    globs: Optional[list[str]] = None,
    always_apply: bool = False,
    description: str = "",
    category: Optional[str] = None,
    version: Optional[str] = None,
    body: str = "Rule body.\n",
) -> str:
    lines = ["---"]
    if description:
        lines.append(f"description: {description}")
    if globs:
        lines.append("globs:")
        lines.extend(f'  - "{glob}"' for glob in globs)
    if always_apply:
        lines.append("always_apply: true")
    if category:
        lines.append(f"category: {category}")
    if version:
        lines.append(f'version: "{version}"')
    lines.append("---")
    return "\n".join(lines) + "\n" + body


@pytest.fixture
def write_rule():
    def _write(directory: Path, name: str, **kwargs: Any) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(make_rule_text(**kwargs), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def remote_dir(tmp_path: Path) -> Path:
    root = tmp_path / "remote"
    root.mkdir()
    return root


@pytest.fixture
def initialized_project(project_root: Path, remote_dir: Path) -> Path:
    from rule_sync.project.repository import ProjectConfig, ProjectRepository

    ProjectRepository(project_root).init(
        ProjectConfig(remote=str(remote_dir), exclusive_categories=["css-framework"])
    )
    return project_root


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()
