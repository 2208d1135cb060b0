"""Tests for RuleStore."""

from pathlib import Path

import pytest

from rule_sync.errors import DuplicateIdentifierError, MalformedDocumentError
from rule_sync.models import RuleSource
from rule_sync.rules.models import RuleDocument, RuleMetadata
from rule_sync.rules.store import RuleStore


def _doc(
    identifier: str,
    priority: int = 100,
    globs: list[str] | None = None,
    source: RuleSource = RuleSource.REMOTE,
    body: str = "",
) -> RuleDocument:
    return RuleDocument(
        identifier=identifier,
        priority=priority,
        metadata=RuleMetadata(globs=globs if globs is not None else ["*"]),
        body=body or f"{identifier} body",
        source=source,
    )


def test_list_orders_by_priority_then_identifier() -> None:
    store = RuleStore()
    store.add(_doc("300-c.rule", 300))
    store.add(_doc("100-b.rule", 100))
    store.add(_doc("100-a.rule", 100))
    store.add(_doc("050-z.rule", 50))
    assert store.list().identifiers() == [
        "050-z.rule",
        "100-a.rule",
        "100-b.rule",
        "300-c.rule",
    ]


def test_list_filters_by_path() -> None:
    store = RuleStore()
    store.add(_doc("100-css.rule", 100, ["*.css"]))
    store.add(_doc("200-js.rule", 200, ["*.js"]))
    assert store.list("web/app.css").identifiers() == ["100-css.rule"]
    assert store.list("other.txt").identifiers() == []


def test_list_view_is_restartable_and_lazy() -> None:
    store = RuleStore()
    store.add(_doc("100-a.rule"))
    view = store.list()
    assert [d.identifier for d in view] == ["100-a.rule"]
    assert [d.identifier for d in view] == ["100-a.rule"]

    store.add(_doc("050-b.rule", 50))
    assert [d.identifier for d in view] == ["050-b.rule", "100-a.rule"]


def test_add_replaces_in_default_mode() -> None:
    store = RuleStore()
    store.add(_doc("100-a.rule", body="old"))
    store.add(_doc("100-a.rule", body="new"))
    assert len(store) == 1
    assert store.get("100-a.rule").body == "new"


def test_strict_mode_rejects_duplicates() -> None:
    store = RuleStore(strict=True)
    store.add(_doc("100-a.rule", body="old"))
    with pytest.raises(DuplicateIdentifierError) as excinfo:
        store.add(_doc("100-a.rule", body="new"))
    assert excinfo.value.kind == "DuplicateIdentifier"
    assert excinfo.value.identifiers == ("100-a.rule",)
    assert store.get("100-a.rule").body == "old"


def test_strict_mode_allows_explicit_replace() -> None:
    store = RuleStore(strict=True)
    store.add(_doc("100-a.rule", body="old"))
    store.add(_doc("100-a.rule", body="new"), replace=True)
    assert store.get("100-a.rule").body == "new"


@pytest.mark.parametrize("local_first", [True, False])
def test_local_override_shadows_remote(local_first: bool) -> None:
    store = RuleStore(strict=True)
    local = _doc("100-a.rule", source=RuleSource.LOCAL, body="local")
    remote = _doc("100-a.rule", source=RuleSource.REMOTE, body="remote")
    for document in ([local, remote] if local_first else [remote, local]):
        store.add(document)

    assert len(store) == 1
    assert store.get("100-a.rule").body == "local"
    assert [d.body for d in store.shadowed()] == ["remote"]


def test_strict_mode_rejects_duplicate_of_shadowed_document() -> None:
    store = RuleStore(strict=True)
    store.add(_doc("100-a.rule", source=RuleSource.LOCAL, body="local"))
    store.add(_doc("100-a.rule", source=RuleSource.REMOTE, body="remote"))

    with pytest.raises(DuplicateIdentifierError):
        store.add(_doc("100-a.rule", source=RuleSource.REMOTE, body="other remote"))
    assert [d.body for d in store.shadowed()] == ["remote"]

    store.add(_doc("100-a.rule", source=RuleSource.REMOTE, body="other remote"), replace=True)
    assert [d.body for d in store.shadowed()] == ["other remote"]
    assert store.get("100-a.rule").body == "local"


def test_remove_is_idempotent() -> None:
    store = RuleStore()
    store.add(_doc("100-a.rule"))
    assert store.remove("100-a.rule") is True
    assert store.remove("100-a.rule") is False
    assert store.remove("never-added.rule") is False
    assert "100-a.rule" not in store


def test_load_directory(tmp_path: Path, write_rule) -> None:
    rules_dir = tmp_path / "rules"
    write_rule(rules_dir, "200-b.mdc", globs=["*.css"])
    write_rule(rules_dir, "100-a.md", globs=["*.css"])
    write_rule(rules_dir, ".hidden.md", globs=["*.css"])
    (rules_dir / "notes.txt").write_text("ignored", encoding="utf-8")

    store = RuleStore()
    loaded = store.load_directory(rules_dir, RuleSource.REMOTE)
    assert loaded == 2
    assert store.list().identifiers() == ["100-a.md", "200-b.mdc"]
    assert all(d.source == RuleSource.REMOTE for d in store)


def test_load_directory_missing_is_empty(tmp_path: Path) -> None:
    store = RuleStore()
    assert store.load_directory(tmp_path / "missing", RuleSource.LOCAL) == 0
    assert len(store) == 0


def test_load_directory_propagates_malformed(tmp_path: Path) -> None:
    rules_dir = tmp_path / "rules"
    rules_dir.mkdir()
    (rules_dir / "broken.md").write_text("no header", encoding="utf-8")
    with pytest.raises(MalformedDocumentError):
        RuleStore().load_directory(rules_dir, RuleSource.LOCAL)
