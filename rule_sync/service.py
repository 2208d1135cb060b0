"""Project-level entry points wiring config, sync, store and resolver."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rule_sync.models import ResolvedRule, SyncReport, SyncState
from rule_sync.project.repository import ProjectConfig, ProjectRepository
from rule_sync.rules.matching import normalize_path
from rule_sync.rules.resolver import PriorityResolver
from rule_sync.rules.store import RuleStore
from rule_sync.sync.coordinator import RemoteFactory, SyncCoordinator
from rule_sync.utils import is_under


class RuleSyncService:
    def __init__(
        self,
        repository: ProjectRepository,
        remote_factory: Optional[RemoteFactory] = None,
    ) -> None:
        self._repository = repository
        self._remote_factory = remote_factory
        self._config: Optional[ProjectConfig] = None

    @classmethod
    def for_project(cls, root: Optional[Path] = None) -> "RuleSyncService":
        return cls(ProjectRepository(root))

    @property
    def repository(self) -> ProjectRepository:
        return self._repository

    @property
    def config(self) -> ProjectConfig:
        if self._config is None:
            self._config = self._repository.load_config()
        return self._config

    def coordinator(self) -> SyncCoordinator:
        return SyncCoordinator(
            remote_factory=self._remote_factory,
            suffixes=self.config.suffixes,
            lock_timeout=self.config.lock_timeout_seconds,
            fetch_timeout=self.config.fetch_timeout_seconds,
        )

    def state(self) -> SyncState:
        return self._repository.load_state(self.config)

    def sync(self) -> SyncReport:
        state = self.state()
        try:
            return self.coordinator().sync(state)
        finally:
            # Unreachable is recorded too, so `status` can report it.
            self._repository.save_state(state)

    def build_store(self) -> RuleStore:
        store = RuleStore(strict=self.config.strict)
        return self.coordinator().populate(self.state(), store)

    def resolver(self, store: Optional[RuleStore] = None) -> PriorityResolver:
        return PriorityResolver(
            store if store is not None else self.build_store(),
            exclusive_categories=self.config.exclusive_categories,
        )

    def relative_path(self, path: str) -> str:
        candidate = Path(path).expanduser()
        if candidate.is_absolute() and is_under(candidate, self._repository.root):
            return candidate.resolve().relative_to(self._repository.root).as_posix()
        return normalize_path(path)

    def resolve(self, path: str) -> list[ResolvedRule]:
        return self.resolver().resolve(self.relative_path(path))


def resolve(path: str, project: Optional[Path] = None) -> list[tuple[str, str]]:
    """Return ``(identifier, body)`` pairs that apply to ``path``, in load order."""
    rules = RuleSyncService.for_project(project).resolve(path)
    return [(rule.identifier, rule.body) for rule in rules]
