"""Pull-only reconciliation of a project's synced rules with a remote."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from rule_sync.constants import (
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_LOCK_TIMEOUT_SECONDS,
    RULE_SUFFIXES,
)
from rule_sync.errors import (
    MalformedDocumentError,
    SyncConflictError,
    SyncUnavailableError,
)
from rule_sync.models import RuleSource, SyncReport, SyncState, SyncSummary
from rule_sync.rules.store import RuleStore, list_rule_files
from rule_sync.sync.locking import sync_lock
from rule_sync.sync.remotes import IRemoteSource, RemoteTree, create_remote_source
from rule_sync.utils import now_iso, sha256_text, write_text_atomic

logger = logging.getLogger(__name__)

RemoteFactory = Callable[[SyncState], IRemoteSource]


def _read_files(directory: Path, suffixes: Iterable[str]) -> dict[str, str]:
    files: dict[str, str] = {}
    for path in list_rule_files(directory, suffixes):
        try:
            files[path.name] = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedDocumentError(path.name, "not valid UTF-8 text") from exc
        except OSError as exc:
            raise MalformedDocumentError(path.name, f"unreadable: {exc}") from exc
    return files


def diff_trees(local: dict[str, str], remote: dict[str, str]) -> SyncSummary:
    added: list[str] = []
    updated: list[str] = []
    unchanged: list[str] = []
    for identifier in sorted(remote):
        if identifier not in local:
            added.append(identifier)
        elif local[identifier] != remote[identifier]:
            updated.append(identifier)
        else:
            unchanged.append(identifier)
    removed = sorted(identifier for identifier in local if identifier not in remote)
    return SyncSummary(
        added=added, updated=updated, removed=removed, unchanged=unchanged
    )


class SyncCoordinator:
    def __init__(
        self,
        remote_factory: Optional[RemoteFactory] = None,
        suffixes: Iterable[str] = RULE_SUFFIXES,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    ) -> None:
        self._suffixes = tuple(suffixes)
        self._lock_timeout = lock_timeout
        self._fetch_timeout = fetch_timeout
        self._remote_factory = remote_factory or self._default_remote

    def _default_remote(self, state: SyncState) -> IRemoteSource:
        return create_remote_source(
            state.remote,
            subdir=state.remote_subdir,
            suffixes=self._suffixes,
            timeout=self._fetch_timeout,
        )

    def sync(self, state: SyncState) -> SyncReport:
        """Replace the synced copy in ``state.synced_dir`` with the remote tree.

        Files in ``state.overrides_dir`` are never written. The state object
        is updated in place; persisting it is up to the caller.

        Raises:
            SyncUnavailableError: the remote could not be fetched or the sync
                lock could not be acquired. The state is marked unreachable.
            MalformedDocumentError: a file in the synced or override copy is
                not readable UTF-8 text. Nothing is written.
        """
        with sync_lock(state.lock_path, timeout=self._lock_timeout):
            remote = self._remote_factory(state)
            try:
                tree = remote.fetch_tree(state.ref)
            except SyncUnavailableError as exc:
                logger.warning("Sync from %s failed: %s", remote.location, exc.detail)
                state.mark_unreachable(exc.detail)
                raise

            local = _read_files(state.synced_dir, self._suffixes)
            overrides = _read_files(state.overrides_dir, self._suffixes)
            summary = diff_trees(local, tree.files)
            self._apply(state.synced_dir, tree, summary)
            warnings = self._override_conflicts(state, tree, summary, overrides)

            state.mark_synced(
                revision=tree.revision,
                manifest={
                    identifier: sha256_text(content)
                    for identifier, content in tree.files.items()
                },
                at=now_iso(),
            )

        logger.info(
            "Synced %s at %s: %s",
            remote.location,
            tree.revision[:12],
            ", ".join(f"{key}={value}" for key, value in summary.counts().items()),
        )
        return SyncReport(summary=summary, revision=tree.revision, warnings=warnings)

    def _apply(self, synced_dir: Path, tree: RemoteTree, summary: SyncSummary) -> None:
        synced_dir.mkdir(parents=True, exist_ok=True)
        for identifier in [*summary.added, *summary.updated]:
            logger.debug("Writing %s", identifier)
            write_text_atomic(synced_dir / identifier, tree.files[identifier])
        for identifier in summary.removed:
            logger.debug("Removing %s", identifier)
            (synced_dir / identifier).unlink(missing_ok=True)

    def _override_conflicts(
        self,
        state: SyncState,
        tree: RemoteTree,
        summary: SyncSummary,
        overrides: dict[str, str],
    ) -> list[SyncConflictError]:
        changed = set(summary.added) | set(summary.updated)
        warnings: list[SyncConflictError] = []
        for identifier in sorted(changed & set(overrides)):
            if overrides[identifier] == tree.files[identifier]:
                continue
            warning = SyncConflictError(identifier, state.overrides_dir / identifier)
            logger.warning(warning.message)
            warnings.append(warning)
        return warnings

    def populate(self, state: SyncState, store: RuleStore) -> RuleStore:
        store.load_directory(state.synced_dir, RuleSource.REMOTE, self._suffixes)
        store.load_directory(state.overrides_dir, RuleSource.LOCAL, self._suffixes)
        return store
