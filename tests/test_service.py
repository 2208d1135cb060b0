"""End-to-end tests for RuleSyncService and the resolve() consumer API."""

from pathlib import Path

import pytest

from rule_sync.errors import (
    DuplicateIdentifierError,
    MalformedDocumentError,
    RuleConflictError,
    SyncUnavailableError,
)
from rule_sync.models import SyncStatus
from rule_sync.project.repository import ProjectConfig, ProjectRepository
from rule_sync.service import RuleSyncService, resolve


def test_sync_persists_state(initialized_project: Path, remote_dir: Path, write_rule) -> None:
    write_rule(remote_dir, "100-a.mdc", globs=["*.css"])
    service = RuleSyncService.for_project(initialized_project)

    report = service.sync()

    state = ProjectRepository(initialized_project).load_state()
    assert state.status == SyncStatus.SYNCED
    assert state.last_synced_revision == report.revision
    assert list(state.manifest) == ["100-a.mdc"]


def test_failed_sync_persists_unreachable(initialized_project: Path, remote_dir: Path) -> None:
    remote_dir.rmdir()
    with pytest.raises(SyncUnavailableError):
        RuleSyncService.for_project(initialized_project).sync()
    state = ProjectRepository(initialized_project).load_state()
    assert state.status == SyncStatus.UNREACHABLE
    assert state.last_error


def test_resolve_returns_identifier_body_pairs(
    initialized_project: Path, remote_dir: Path, write_rule
) -> None:
    write_rule(remote_dir, "200-components.mdc", globs=["src/**/*.tsx"], body="components\n")
    write_rule(remote_dir, "001-global.mdc", always_apply=True, body="global\n")
    write_rule(remote_dir, "100-css.mdc", globs=["*.css"], body="css\n")
    RuleSyncService.for_project(initialized_project).sync()

    assert resolve("src/ui/Button.tsx", project=initialized_project) == [
        ("001-global.mdc", "global\n"),
        ("200-components.mdc", "components\n"),
    ]


def test_resolve_accepts_absolute_paths_inside_project(
    initialized_project: Path, remote_dir: Path, write_rule
) -> None:
    write_rule(remote_dir, "200-components.mdc", globs=["src/**/*.tsx"])
    service = RuleSyncService.for_project(initialized_project)
    service.sync()

    absolute = initialized_project.resolve() / "src" / "ui" / "Button.tsx"
    assert [rule.identifier for rule in service.resolve(str(absolute))] == [
        "200-components.mdc"
    ]


def test_resolve_reports_configured_conflicts(
    initialized_project: Path, remote_dir: Path, write_rule
) -> None:
    write_rule(remote_dir, "100-bootstrap.mdc", globs=["*.css"], category="css-framework")
    write_rule(remote_dir, "200-tailwind.mdc", globs=["*.css"], category="css-framework")
    service = RuleSyncService.for_project(initialized_project)
    service.sync()

    with pytest.raises(RuleConflictError) as excinfo:
        service.resolve("app.css")
    assert excinfo.value.identifiers == ("100-bootstrap.mdc", "200-tailwind.mdc")


def test_local_override_replaces_synced_rule(
    initialized_project: Path, remote_dir: Path, write_rule
) -> None:
    service = RuleSyncService.for_project(initialized_project)
    state = service.state()
    write_rule(remote_dir, "100-css.mdc", globs=["*.css"], body="remote\n")
    write_rule(state.overrides_dir, "100-css.mdc", globs=["*.css"], body="override\n")

    report = service.sync()

    assert [warning.identifier for warning in report.warnings] == ["100-css.mdc"]
    assert resolve("app.css", project=initialized_project) == [("100-css.mdc", "override\n")]


def test_malformed_synced_rule_surfaces(
    initialized_project: Path, remote_dir: Path
) -> None:
    (remote_dir / "100-broken.mdc").write_text("no header\n", encoding="utf-8")
    service = RuleSyncService.for_project(initialized_project)
    service.sync()

    with pytest.raises(MalformedDocumentError) as excinfo:
        service.resolve("app.css")
    assert excinfo.value.identifiers == ("100-broken.mdc",)


def test_strict_project_store_rejects_duplicate_identifiers(
    project_root: Path, remote_dir: Path, write_rule
) -> None:
    repository = ProjectRepository(project_root)
    repository.init(ProjectConfig(remote=str(remote_dir), strict=True))
    state = repository.load_state()
    write_rule(state.overrides_dir, "100-a.md", globs=["*"])
    service = RuleSyncService(repository)

    store = service.build_store()
    with pytest.raises(DuplicateIdentifierError):
        store.load_directory(state.overrides_dir, store.get("100-a.md").source)
