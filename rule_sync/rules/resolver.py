"""Compute the effective, ordered rule list for a file path."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable

from rule_sync.errors import RuleConflictError
from rule_sync.models import ResolvedRule
from rule_sync.rules.matching import normalize_path
from rule_sync.rules.models import RuleDocument
from rule_sync.rules.store import RuleStore

logger = logging.getLogger(__name__)


class PriorityResolver:
    """Orders applicable rules by priority prefix, then identifier.

    Documents whose category is listed in ``exclusive_categories`` may not
    both apply to the same path: instead of letting the last loaded rule
    silently win, :meth:`resolve` raises :class:`RuleConflictError`.
    """

    def __init__(
        self, store: RuleStore, exclusive_categories: Iterable[str] = ()
    ) -> None:
        self._store = store
        self._exclusive = frozenset(exclusive_categories)

    @property
    def exclusive_categories(self) -> frozenset[str]:
        return self._exclusive

    def applicable(self, path: str) -> list[RuleDocument]:
        return list(self._store.list(normalize_path(path)))

    def find_conflicts(self, documents: Iterable[RuleDocument]) -> dict[str, list[str]]:
        by_category: dict[str, list[str]] = defaultdict(list)
        for document in documents:
            category = document.metadata.category
            if category and category in self._exclusive:
                by_category[category].append(document.identifier)
        return {
            category: identifiers
            for category, identifiers in by_category.items()
            if len(identifiers) > 1
        }

    def resolve(self, path: str) -> list[ResolvedRule]:
        documents = self.applicable(path)
        conflicts = self.find_conflicts(documents)
        if conflicts:
            raise RuleConflictError(normalize_path(path), conflicts)

        logger.debug(
            "Resolved %d rule(s) for %s: %s",
            len(documents),
            path,
            ", ".join(document.identifier for document in documents),
        )
        return [
            ResolvedRule(
                identifier=document.identifier,
                body=document.body,
                priority=document.priority,
                source=document.source,
                description=document.metadata.description,
            )
            for document in documents
        ]
