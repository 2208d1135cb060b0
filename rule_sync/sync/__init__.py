from rule_sync.sync.coordinator import SyncCoordinator, diff_trees
from rule_sync.sync.locking import sync_lock
from rule_sync.sync.remotes import (
    DirectoryRemoteSource,
    GitRemoteSource,
    IRemoteSource,
    RemoteTree,
    create_remote_source,
)

__all__ = [
    "DirectoryRemoteSource",
    "GitRemoteSource",
    "IRemoteSource",
    "RemoteTree",
    "SyncCoordinator",
    "create_remote_source",
    "diff_trees",
    "sync_lock",
]
