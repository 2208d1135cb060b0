"""Rule data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rule_sync.constants import DEFAULT_VERSION
from rule_sync.models import RuleSource


@dataclass(frozen=True)
class RuleMetadata:
    description: str = ""
    globs: list[str] = field(default_factory=list)
    always_apply: bool = False
    category: Optional[str] = None
    version: str = DEFAULT_VERSION
    priority: Optional[int] = None


@dataclass(frozen=True)
class RuleDocument:
    identifier: str
    priority: int
    metadata: RuleMetadata
    body: str
    source: RuleSource = RuleSource.LOCAL
    source_path: Optional[Path] = None

    @property
    def sort_key(self) -> tuple[int, str]:
        return self.priority, self.identifier

    @property
    def is_local(self) -> bool:
        return self.source == RuleSource.LOCAL
