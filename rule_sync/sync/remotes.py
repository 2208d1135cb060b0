"""Remote sources a project's rules are pulled from."""

from __future__ import annotations

import hashlib
import logging
import subprocess
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from rule_sync.constants import (
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    GIT_DIRNAME,
    RULE_SUFFIXES,
)
from rule_sync.errors import SyncUnavailableError
from rule_sync.rules.store import list_rule_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteTree:
    revision: str
    files: dict[str, str] = field(default_factory=dict)


class IRemoteSource(ABC):
    @property
    @abstractmethod
    def location(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def fetch_tree(self, ref: Optional[str] = None) -> RemoteTree:
        """Return rule file identifier -> content at ``ref``."""


def _read_tree(root: Path, suffixes: Iterable[str]) -> dict[str, str]:
    return {
        path.name: path.read_text(encoding="utf-8")
        for path in list_rule_files(root, suffixes)
    }


def tree_digest(files: dict[str, str]) -> str:
    digest = hashlib.sha256()
    for name in sorted(files):
        digest.update(name.encode("utf-8"))
        digest.update(b"\0")
        digest.update(files[name].encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()


class DirectoryRemoteSource(IRemoteSource):
    """Plain directory copy; the revision is a digest of its rule files."""

    def __init__(
        self,
        root: Path,
        subdir: Optional[str] = None,
        suffixes: Iterable[str] = RULE_SUFFIXES,
    ) -> None:
        self._root = root
        self._subdir = subdir
        self._suffixes = tuple(suffixes)

    @property
    def location(self) -> str:
        return str(self._root)

    def fetch_tree(self, ref: Optional[str] = None) -> RemoteTree:
        tree_root = self._root / self._subdir if self._subdir else self._root
        if not tree_root.is_dir():
            raise SyncUnavailableError(self.location, f"not a directory: {tree_root}")
        try:
            files = _read_tree(tree_root, self._suffixes)
        except (OSError, UnicodeDecodeError) as exc:
            raise SyncUnavailableError(self.location, str(exc)) from exc
        return RemoteTree(revision=tree_digest(files), files=files)


class GitRemoteSource(IRemoteSource):
    """Shallow-clones ``url`` into a temporary directory on every fetch."""

    def __init__(
        self,
        url: str,
        subdir: Optional[str] = None,
        suffixes: Iterable[str] = RULE_SUFFIXES,
        timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    ) -> None:
        self._url = url
        self._subdir = subdir
        self._suffixes = tuple(suffixes)
        self._timeout = timeout

    @property
    def location(self) -> str:
        return self._url

    def _git(self, args: list[str], cwd: Optional[Path] = None) -> str:
        argv = ["git", *args]
        logger.debug("Running %s", " ".join(argv))
        try:
            completed = subprocess.run(
                argv,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=True,
            )
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or exc.stdout or "").strip().splitlines()
            message = detail[-1] if detail else f"git exited with {exc.returncode}"
            raise SyncUnavailableError(self.location, message) from exc
        except subprocess.TimeoutExpired as exc:
            raise SyncUnavailableError(
                self.location, f"git timed out after {self._timeout}s"
            ) from exc
        except OSError as exc:
            raise SyncUnavailableError(self.location, str(exc)) from exc
        return completed.stdout

    def fetch_tree(self, ref: Optional[str] = None) -> RemoteTree:
        with tempfile.TemporaryDirectory(prefix="rule-sync-") as tmp:
            checkout = Path(tmp) / "remote"
            args = ["clone", "--quiet", "--depth", "1"]
            if ref:
                args += ["--branch", ref]
            args += [self._url, str(checkout)]
            self._git(args)

            revision = self._git(["rev-parse", "HEAD"], cwd=checkout).strip()
            tree_root = checkout / self._subdir if self._subdir else checkout
            if not tree_root.is_dir():
                raise SyncUnavailableError(
                    self.location, f"missing directory in remote: {self._subdir}"
                )
            try:
                files = _read_tree(tree_root, self._suffixes)
            except (OSError, UnicodeDecodeError) as exc:
                raise SyncUnavailableError(self.location, str(exc)) from exc
        return RemoteTree(revision=revision, files=files)


def create_remote_source(
    remote: str,
    subdir: Optional[str] = None,
    suffixes: Iterable[str] = RULE_SUFFIXES,
    timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
) -> IRemoteSource:
    path = Path(remote).expanduser()
    if path.is_dir() and not (path / GIT_DIRNAME).exists():
        return DirectoryRemoteSource(path, subdir=subdir, suffixes=suffixes)
    if path.exists():
        remote = str(path.resolve())
    return GitRemoteSource(remote, subdir=subdir, suffixes=suffixes, timeout=timeout)
