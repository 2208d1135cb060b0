from pathlib import Path
from typing import Iterable


class RuleSyncError(Exception):
    """Base user-facing application error."""

    kind: str = "RuleSync"
    retryable: bool = False

    def __init__(self, message: str, identifiers: Iterable[str] = ()) -> None:
        self.message = message
        self.identifiers = tuple(identifiers)
        super().__init__(message)

    def as_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind,
            "message": self.message,
            "identifiers": list(self.identifiers),
        }


class DuplicateIdentifierError(RuleSyncError):
    kind = "DuplicateIdentifier"

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(
            f"Rule identifier already present: {identifier}", identifiers=[identifier]
        )


class RuleConflictError(RuleSyncError):
    kind = "RuleConflict"

    def __init__(self, path: str, groups: dict[str, list[str]]) -> None:
        self.path = path
        self.groups = {category: sorted(ids) for category, ids in groups.items()}
        identifiers = [
            identifier
            for category in sorted(self.groups)
            for identifier in self.groups[category]
        ]
        detail = "; ".join(
            f"{category}: {', '.join(self.groups[category])}"
            for category in sorted(self.groups)
        )
        super().__init__(
            f"Conflicting rules for {path} ({detail})", identifiers=identifiers
        )


class MalformedDocumentError(RuleSyncError):
    kind = "MalformedDocument"

    def __init__(self, identifier: str, detail: str) -> None:
        self.identifier = identifier
        self.detail = detail
        super().__init__(
            f"Malformed rule document {identifier} ({detail})",
            identifiers=[identifier],
        )


class SyncUnavailableError(RuleSyncError):
    kind = "SyncUnavailable"
    retryable = True

    def __init__(self, remote: str, detail: str) -> None:
        self.remote = remote
        self.detail = detail
        super().__init__(f"Remote unavailable ({detail}): {remote}")


class SyncLockTimeoutError(SyncUnavailableError):
    def __init__(self, path: Path, timeout: float) -> None:
        self.path = path
        self.timeout = timeout
        super().__init__(
            remote=str(path), detail=f"could not acquire sync lock within {timeout}s"
        )


class SyncConflictError(RuleSyncError):
    """Local override shadows a remote rule whose content differs."""

    kind = "SyncConflict"

    def __init__(self, identifier: str, override_path: Path) -> None:
        self.identifier = identifier
        self.override_path = override_path
        super().__init__(
            f"Local override shadows updated remote rule {identifier}: {override_path}",
            identifiers=[identifier],
        )


class RuleSyncFileError(RuleSyncError):
    kind = "InvalidConfig"

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{message}: {path}")


class MissingConfigFileError(RuleSyncFileError):
    def __init__(self, path: Path) -> None:
        super().__init__(
            path=path,
            message="Missing project config (run `rule-sync init` first)",
        )


class InvalidConfigError(RuleSyncFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid config ({detail})")
