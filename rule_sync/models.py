from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from rule_sync.constants import LOCK_FILENAME
from rule_sync.errors import SyncConflictError


class RuleSource(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class SyncStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    SYNCED = "synced"
    UNREACHABLE = "unreachable"


@dataclass
class SyncState:
    remote: str
    synced_dir: Path
    overrides_dir: Path
    ref: Optional[str] = None
    remote_subdir: Optional[str] = None
    last_synced_revision: Optional[str] = None
    status: SyncStatus = SyncStatus.UNINITIALIZED
    last_error: Optional[str] = None
    synced_at: Optional[str] = None
    manifest: dict[str, str] = field(default_factory=dict)

    @property
    def lock_path(self) -> Path:
        return self.synced_dir.parent / LOCK_FILENAME

    def mark_synced(self, revision: str, manifest: dict[str, str], at: str) -> None:
        self.last_synced_revision = revision
        self.manifest = dict(manifest)
        self.status = SyncStatus.SYNCED
        self.last_error = None
        self.synced_at = at

    def mark_unreachable(self, detail: str) -> None:
        self.status = SyncStatus.UNREACHABLE
        self.last_error = detail

    def as_dict(self) -> dict[str, Any]:
        return {
            "remote": self.remote,
            "ref": self.ref,
            "remote_subdir": self.remote_subdir,
            "last_synced_revision": self.last_synced_revision,
            "status": self.status.value,
            "last_error": self.last_error,
            "synced_at": self.synced_at,
            "manifest": dict(sorted(self.manifest.items())),
        }


@dataclass(frozen=True)
class SyncSummary:
    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "added": len(self.added),
            "updated": len(self.updated),
            "removed": len(self.removed),
            "unchanged": len(self.unchanged),
        }

    def has_changes(self) -> bool:
        return bool(self.added or self.updated or self.removed)


@dataclass
class SyncReport:
    summary: SyncSummary
    revision: str
    warnings: list[SyncConflictError] = field(default_factory=list)


@dataclass(frozen=True)
class ResolvedRule:
    identifier: str
    body: str
    priority: int
    source: RuleSource
    description: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "priority": self.priority,
            "source": self.source.value,
            "description": self.description,
            "body": self.body,
        }
