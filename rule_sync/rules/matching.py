"""Scope glob matching for rule documents.

Supported syntax:
- ``*`` matches within one path segment, ``?`` one character.
- ``**`` matches any number of segments, including none (``src/**/*.py``
  matches ``src/a.py`` and ``src/x/y/a.py``).
- ``[abc]`` / ``[!abc]`` character classes.
- Brace groups like ``*.{css,scss}``.
- A pattern without ``/`` is matched against the file name at any depth.
"""

from __future__ import annotations

import functools
import re
from typing import Iterable

from rule_sync.rules.models import RuleDocument


def normalize_path(path: str) -> str:
    text = str(path).replace("\\", "/")
    while text.startswith("./"):
        text = text[2:]
    return text.lstrip("/")


def expand_braces(pattern: str) -> list[str]:
    start = pattern.find("{")
    if start == -1:
        return [pattern]
    end = pattern.find("}", start + 1)
    if end == -1:
        return [pattern]

    before = pattern[:start]
    inside = pattern[start + 1 : end]
    after = pattern[end + 1 :]

    parts = [part.strip() for part in inside.split(",")]
    if len(parts) <= 1:
        return [pattern]

    expanded: list[str] = []
    for part in parts:
        expanded.extend(expand_braces(f"{before}{part}{after}"))
    return expanded


def _translate(pattern: str) -> str:
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == "*":
            if pattern.startswith("**", i):
                i += 2
                if i < n and pattern[i] == "/":
                    i += 1
                    out.append("(?:.*/)?")
                else:
                    out.append(".*")
                continue
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            end = pattern.find("]", i + 2)
            if end == -1:
                out.append(re.escape(char))
            else:
                body = pattern[i + 1 : end]
                body = body.replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end
        else:
            out.append(re.escape(char))
        i += 1
    return "".join(out)


@functools.lru_cache(maxsize=512)
def _compile(pattern: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(_translate(item)) for item in expand_braces(pattern))


def matches_glob(path: str, pattern: str) -> bool:
    normalized = normalize_path(path)
    pattern = normalize_path(pattern.strip())
    if not pattern:
        return False
    target = normalized if "/" in pattern else normalized.rsplit("/", 1)[-1]
    return any(regex.fullmatch(target) for regex in _compile(pattern))


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(matches_glob(path, pattern) for pattern in patterns)


def document_applies(document: RuleDocument, path: str) -> bool:
    if document.metadata.always_apply:
        return True
    return matches_any(path, document.metadata.globs)
