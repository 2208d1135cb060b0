"""In-memory store of the rule documents available to a project."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional

from rule_sync.constants import RULE_SUFFIXES
from rule_sync.errors import DuplicateIdentifierError
from rule_sync.models import RuleSource
from rule_sync.rules.matching import document_applies
from rule_sync.rules.models import RuleDocument
from rule_sync.rules.parser import parse_rule

logger = logging.getLogger(__name__)


def list_rule_files(
    directory: Path, suffixes: Iterable[str] = RULE_SUFFIXES
) -> list[Path]:
    if not directory.is_dir():
        return []
    allowed = tuple(suffixes)
    return [
        child
        for child in sorted(directory.iterdir())
        if child.is_file() and child.suffix in allowed and not child.name.startswith(".")
    ]


class RuleView:
    """Restartable, lazily-evaluated view over a store.

    Each iteration re-reads the store, so documents added after the view was
    created are visible on the next pass.
    """

    def __init__(self, store: "RuleStore", path: Optional[str]) -> None:
        self._store = store
        self._path = path

    def __iter__(self) -> Iterator[RuleDocument]:
        for document in sorted(self._store._documents.values(), key=_sort_key):
            if self._path is None or document_applies(document, self._path):
                yield document

    def identifiers(self) -> list[str]:
        return [document.identifier for document in self]


def _sort_key(document: RuleDocument) -> tuple[int, str]:
    return document.sort_key


class RuleStore:
    def __init__(self, strict: bool = False) -> None:
        self._strict = strict
        self._documents: dict[str, RuleDocument] = {}
        self._shadowed: dict[str, RuleDocument] = {}

    @property
    def strict(self) -> bool:
        return self._strict

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._documents

    def __iter__(self) -> Iterator[RuleDocument]:
        return iter(self.list())

    def get(self, identifier: str) -> Optional[RuleDocument]:
        return self._documents.get(identifier)

    def add(self, document: RuleDocument, replace: bool = False) -> None:
        identifier = document.identifier
        existing = self._documents.get(identifier)
        if existing is None:
            self._documents[identifier] = document
            return

        if existing.source != document.source:
            shadowed = self._shadowed.get(identifier)
            if (
                self._strict
                and not replace
                and shadowed is not None
                and shadowed.source == document.source
            ):
                raise DuplicateIdentifierError(identifier)
            self._shadow(existing, document)
            return

        if self._strict and not replace:
            raise DuplicateIdentifierError(identifier)
        self._documents[identifier] = document

    def _shadow(self, existing: RuleDocument, incoming: RuleDocument) -> None:
        # Local overrides win over synced copies regardless of priority.
        if incoming.is_local:
            self._documents[incoming.identifier] = incoming
            self._shadowed[incoming.identifier] = existing
        else:
            self._shadowed[incoming.identifier] = incoming
        logger.debug("Local override shadows remote rule %s", incoming.identifier)

    def remove(self, identifier: str) -> bool:
        removed = self._documents.pop(identifier, None)
        shadowed = self._shadowed.pop(identifier, None)
        return removed is not None or shadowed is not None

    def list(self, path: Optional[str] = None) -> RuleView:
        return RuleView(self, path)

    def shadowed(self) -> list[RuleDocument]:
        return [self._shadowed[key] for key in sorted(self._shadowed)]

    def load_directory(
        self,
        directory: Path,
        source: RuleSource,
        suffixes: Iterable[str] = RULE_SUFFIXES,
    ) -> int:
        loaded = 0
        for path in list_rule_files(directory, suffixes):
            self.add(parse_rule(path, source=source))
            loaded += 1
        logger.debug("Loaded %d %s rule(s) from %s", loaded, source.value, directory)
        return loaded
