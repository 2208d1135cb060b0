"""Parse and serialize rule documents with YAML frontmatter."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Optional

import yaml

from rule_sync.constants import DEFAULT_PRIORITY, DEFAULT_VERSION
from rule_sync.errors import MalformedDocumentError
from rule_sync.models import RuleSource
from rule_sync.rules.models import RuleDocument, RuleMetadata

_FRONTMATTER_RE = re.compile(
    r"^---[ \t]*\r?\n(?:---[ \t]*(?:\r?\n|$)|(.*?)\r?\n---[ \t]*(?:\r?\n|$))",
    re.DOTALL,
)
_PRIORITY_PREFIX_RE = re.compile(r"^(\d+)(?=[-_.])")
_BARE_GLOBS_RE = re.compile(r"^(globs:[ \t]*)([^\s\"'\[\-#].*?)[ \t]*$", re.MULTILINE)
_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
)


def priority_prefix(identifier: str) -> Optional[int]:
    match = _PRIORITY_PREFIX_RE.match(identifier)
    if match is None:
        return None
    return int(match.group(1))


def _split_globs(raw: str) -> list[str]:
    # Commas inside `{a,b}` belong to the brace group.
    items: list[str] = []
    current: list[str] = []
    depth = 0
    for char in raw:
        if char == "{":
            depth += 1
        elif char == "}" and depth:
            depth -= 1
        elif char == "," and depth == 0:
            items.append("".join(current))
            current = []
            continue
        current.append(char)
    items.append("".join(current))
    return [item.strip() for item in items if item.strip()]


def _parse_globs(identifier: str, raw: Any) -> list[str]:
    if raw is None:
        return []
    # Cursor writes `globs: *.css, *.scss` as a single string.
    if isinstance(raw, str):
        return _split_globs(raw)
    if isinstance(raw, list) and all(isinstance(item, str) for item in raw):
        return [item.strip() for item in raw if item.strip()]
    raise MalformedDocumentError(identifier, "'globs' must be a string or a list of strings")


def _parse_always_apply(identifier: str, raw: dict[str, Any]) -> bool:
    value = raw.get("always_apply", raw.get("alwaysApply", False))
    if value is None:
        return False
    if not isinstance(value, bool):
        raise MalformedDocumentError(identifier, "'always_apply' must be a boolean")
    return value


def _quote_bare_globs(header: str) -> str:
    # Cursor writes `globs: *.css, *.scss` unquoted, which YAML reads as an alias.
    def _quote(match: re.Match) -> str:
        value = match.group(2).replace('"', '\\"')
        return f'{match.group(1)}"{value}"'

    return _BARE_GLOBS_RE.sub(_quote, header)


def _parse_header(identifier: str, text: str) -> tuple[dict[str, Any], str]:
    match = _FRONTMATTER_RE.match(text)
    if match is None:
        raise MalformedDocumentError(identifier, "missing header block")
    try:
        raw = yaml.safe_load(_quote_bare_globs(match.group(1) or ""))
    except yaml.YAMLError as exc:
        raise MalformedDocumentError(identifier, f"unparseable header: {exc}") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise MalformedDocumentError(identifier, "header must be a mapping")
    return raw, text[match.end() :]


def parse_rule_text(
    identifier: str,
    text: str,
    source: RuleSource = RuleSource.LOCAL,
    source_path: Optional[Path] = None,
) -> RuleDocument:
    raw, body = _parse_header(identifier, text)

    description = raw.get("description", "")
    if description is None:
        description = ""
    if not isinstance(description, str):
        raise MalformedDocumentError(identifier, "'description' must be a string")

    globs = _parse_globs(identifier, raw.get("globs"))
    always_apply = _parse_always_apply(identifier, raw)
    if not globs and not always_apply:
        raise MalformedDocumentError(
            identifier, "no scope: set 'globs' or 'always_apply: true'"
        )

    category = raw.get("category")
    if category is not None and not isinstance(category, str):
        raise MalformedDocumentError(identifier, "'category' must be a string")

    version = raw.get("version", DEFAULT_VERSION)
    if not isinstance(version, str) or not _SEMVER_RE.match(version):
        raise MalformedDocumentError(
            identifier, f"'version' is not a semantic version: {version!r}"
        )

    header_priority = raw.get("priority")
    if header_priority is not None and (
        isinstance(header_priority, bool) or not isinstance(header_priority, int)
    ):
        raise MalformedDocumentError(identifier, "'priority' must be an integer")

    metadata = RuleMetadata(
        description=description,
        globs=globs,
        always_apply=always_apply,
        category=category or None,
        version=version,
        priority=header_priority,
    )

    priority = priority_prefix(identifier)
    if priority is None:
        priority = header_priority if header_priority is not None else DEFAULT_PRIORITY

    return RuleDocument(
        identifier=identifier,
        priority=priority,
        metadata=metadata,
        body=body,
        source=source,
        source_path=source_path,
    )


def parse_rule(path: Path, source: RuleSource = RuleSource.LOCAL) -> RuleDocument:
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedDocumentError(path.name, "not valid UTF-8 text") from exc
    return parse_rule_text(path.name, text, source=source, source_path=path)


def serialize_rule(document: RuleDocument) -> str:
    metadata = document.metadata
    fm: dict = {}
    if metadata.description:
        fm["description"] = metadata.description
    if metadata.globs:
        fm["globs"] = list(metadata.globs)
    if metadata.always_apply:
        fm["always_apply"] = True
    if metadata.category:
        fm["category"] = metadata.category
    if metadata.version != DEFAULT_VERSION:
        fm["version"] = metadata.version
    if metadata.priority is not None:
        fm["priority"] = metadata.priority

    parts: list[str] = []
    parts.append("---")
    parts.append(yaml.dump(fm, default_flow_style=False, sort_keys=False).rstrip())
    parts.append("---")
    return "\n".join(parts) + "\n" + document.body
