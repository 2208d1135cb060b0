"""Tests for remote sources."""

import shutil
import subprocess
from pathlib import Path

import pytest

from rule_sync.errors import SyncUnavailableError
from rule_sync.sync.remotes import (
    DirectoryRemoteSource,
    GitRemoteSource,
    create_remote_source,
    tree_digest,
)

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(cwd: Path, *args: str) -> str:
    completed = subprocess.run(
        [
            "git",
            "-c",
            "user.name=Rule Sync",
            "-c",
            "user.email=rules@example.com",
            "-c",
            "init.defaultBranch=main",
            *args,
        ],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return completed.stdout.strip()


@pytest.fixture
def git_remote(tmp_path: Path, write_rule) -> Path:
    repo = tmp_path / "rules-repo"
    repo.mkdir()
    _git(repo, "init", "--quiet")
    write_rule(repo / "rules", "100-css.mdc", globs=["*.css"], body="v1\n")
    (repo / "README.md").write_text("# Shared rules\n", encoding="utf-8")
    _git(repo, "add", ".")
    _git(repo, "commit", "--quiet", "-m", "Add rules")
    return repo


def test_directory_source_reads_rule_files(remote_dir: Path, write_rule) -> None:
    write_rule(remote_dir, "100-a.mdc", globs=["*.css"])
    (remote_dir / "notes.txt").write_text("not a rule", encoding="utf-8")

    tree = DirectoryRemoteSource(remote_dir).fetch_tree()

    assert list(tree.files) == ["100-a.mdc"]
    assert tree.revision == tree_digest(tree.files)


def test_directory_source_revision_tracks_content(remote_dir: Path, write_rule) -> None:
    write_rule(remote_dir, "100-a.mdc", globs=["*.css"], body="v1\n")
    source = DirectoryRemoteSource(remote_dir)
    first = source.fetch_tree().revision
    assert source.fetch_tree().revision == first

    write_rule(remote_dir, "100-a.mdc", globs=["*.css"], body="v2\n")
    assert source.fetch_tree().revision != first


def test_directory_source_subdir(remote_dir: Path, write_rule) -> None:
    write_rule(remote_dir / "cursor", "100-a.mdc", globs=["*.css"])
    write_rule(remote_dir, "top-level.md", globs=["*"])
    tree = DirectoryRemoteSource(remote_dir, subdir="cursor").fetch_tree()
    assert list(tree.files) == ["100-a.mdc"]


def test_directory_source_missing_is_unavailable(tmp_path: Path) -> None:
    with pytest.raises(SyncUnavailableError) as excinfo:
        DirectoryRemoteSource(tmp_path / "gone").fetch_tree()
    assert excinfo.value.kind == "SyncUnavailable"


def test_create_remote_source_picks_directory(remote_dir: Path) -> None:
    assert isinstance(create_remote_source(str(remote_dir)), DirectoryRemoteSource)


def test_create_remote_source_picks_git_for_urls() -> None:
    source = create_remote_source("https://example.com/team/rules.git")
    assert isinstance(source, GitRemoteSource)
    assert source.location == "https://example.com/team/rules.git"


@requires_git
def test_create_remote_source_picks_git_for_checkouts(git_remote: Path) -> None:
    assert isinstance(create_remote_source(str(git_remote)), GitRemoteSource)


@requires_git
def test_git_source_fetches_head(git_remote: Path) -> None:
    head = _git(git_remote, "rev-parse", "HEAD")
    tree = GitRemoteSource(str(git_remote), subdir="rules").fetch_tree()
    assert tree.revision == head
    assert list(tree.files) == ["100-css.mdc"]
    assert tree.files["100-css.mdc"].endswith("v1\n")


@requires_git
def test_git_source_fetches_tag(git_remote: Path, write_rule) -> None:
    _git(git_remote, "tag", "v1")
    write_rule(git_remote / "rules", "100-css.mdc", globs=["*.css"], body="v2\n")
    _git(git_remote, "commit", "--quiet", "-am", "Bump")

    tagged = GitRemoteSource(str(git_remote), subdir="rules").fetch_tree("v1")
    latest = GitRemoteSource(str(git_remote), subdir="rules").fetch_tree()

    assert tagged.files["100-css.mdc"].endswith("v1\n")
    assert latest.files["100-css.mdc"].endswith("v2\n")
    assert tagged.revision != latest.revision


@requires_git
def test_git_source_unknown_ref_is_unavailable(git_remote: Path) -> None:
    with pytest.raises(SyncUnavailableError):
        GitRemoteSource(str(git_remote)).fetch_tree("no-such-branch")


@requires_git
def test_git_source_missing_subdir_is_unavailable(git_remote: Path) -> None:
    with pytest.raises(SyncUnavailableError) as excinfo:
        GitRemoteSource(str(git_remote), subdir="nope").fetch_tree()
    assert "nope" in excinfo.value.detail


def test_git_source_unreachable(tmp_path: Path) -> None:
    source = GitRemoteSource(str(tmp_path / "no-repo-here"), timeout=30)
    with pytest.raises(SyncUnavailableError):
        source.fetch_tree()
