import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from jsonschema import Draft202012Validator

from rule_sync.constants import (
    CONFIG_FILENAME,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_LOCK_TIMEOUT_SECONDS,
    OVERRIDES_DIRNAME,
    PROJECT_DIRNAME,
    RULE_SUFFIXES,
    STATE_FILENAME,
    SYNCED_DIRNAME,
)
from rule_sync.errors import InvalidConfigError, MissingConfigFileError
from rule_sync.models import SyncState, SyncStatus
from rule_sync.utils import read_json, read_json_safe, write_json

logger = logging.getLogger(__name__)

_SCHEMA_PATH = Path(__file__).resolve().parent / "schema.json"


def load_json_schema(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


def format_schema_error(error: Any) -> str:
    path = ".".join([str(part) for part in error.path])
    return f"{error.message} at {path}" if path else str(error.message)


@dataclass(frozen=True)
class ProjectConfig:
    remote: str
    ref: Optional[str] = None
    remote_subdir: Optional[str] = None
    synced_dir: str = f"{PROJECT_DIRNAME}/{SYNCED_DIRNAME}"
    overrides_dir: str = f"{PROJECT_DIRNAME}/{OVERRIDES_DIRNAME}"
    strict: bool = False
    exclusive_categories: list[str] = field(default_factory=list)
    suffixes: list[str] = field(default_factory=lambda: list(RULE_SUFFIXES))
    lock_timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ProjectConfig":
        defaults = cls(remote=payload["remote"])
        return cls(
            remote=payload["remote"],
            ref=payload.get("ref"),
            remote_subdir=payload.get("remote_subdir"),
            synced_dir=payload.get("synced_dir", defaults.synced_dir),
            overrides_dir=payload.get("overrides_dir", defaults.overrides_dir),
            strict=payload.get("strict", False),
            exclusive_categories=list(payload.get("exclusive_categories", [])),
            suffixes=list(payload.get("suffixes", defaults.suffixes)),
            lock_timeout_seconds=float(
                payload.get("lock_timeout_seconds", defaults.lock_timeout_seconds)
            ),
            fetch_timeout_seconds=float(
                payload.get("fetch_timeout_seconds", defaults.fetch_timeout_seconds)
            ),
        )

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"remote": self.remote}
        if self.ref:
            payload["ref"] = self.ref
        if self.remote_subdir:
            payload["remote_subdir"] = self.remote_subdir
        payload["synced_dir"] = self.synced_dir
        payload["overrides_dir"] = self.overrides_dir
        payload["strict"] = self.strict
        payload["exclusive_categories"] = list(self.exclusive_categories)
        payload["suffixes"] = list(self.suffixes)
        payload["lock_timeout_seconds"] = self.lock_timeout_seconds
        payload["fetch_timeout_seconds"] = self.fetch_timeout_seconds
        return payload


class ProjectRepository:
    """Config and sync state of one project, stored under ``.rule-sync/``."""

    def __init__(self, root: Optional[Path] = None) -> None:
        self._root = (root or Path.cwd()).expanduser().resolve()
        self._validator = Draft202012Validator(load_json_schema(_SCHEMA_PATH))

    @property
    def root(self) -> Path:
        return self._root

    @property
    def project_dir(self) -> Path:
        return self.root / PROJECT_DIRNAME

    @property
    def config_path(self) -> Path:
        return self.project_dir / CONFIG_FILENAME

    @property
    def state_path(self) -> Path:
        return self.project_dir / STATE_FILENAME

    def is_initialized(self) -> bool:
        return self.config_path.exists()

    def validate_config(self, payload: Any) -> None:
        error = next(iter(self._validator.iter_errors(payload)), None)
        if error is not None:
            raise InvalidConfigError(self.config_path, format_schema_error(error))

    def load_config(self) -> ProjectConfig:
        if not self.config_path.exists():
            raise MissingConfigFileError(self.config_path)
        try:
            payload = read_json(self.config_path)
        except ValueError as exc:
            raise InvalidConfigError(self.config_path, f"invalid JSON: {exc}") from exc
        self.validate_config(payload)
        return ProjectConfig.from_dict(payload)

    def save_config(self, config: ProjectConfig) -> None:
        payload = config.as_dict()
        self.validate_config(payload)
        write_json(self.config_path, payload)

    def resolve_dir(self, value: str) -> Path:
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.root / path
        return path

    def load_state(self, config: Optional[ProjectConfig] = None) -> SyncState:
        config = config or self.load_config()
        state = SyncState(
            remote=config.remote,
            ref=config.ref,
            remote_subdir=config.remote_subdir,
            synced_dir=self.resolve_dir(config.synced_dir),
            overrides_dir=self.resolve_dir(config.overrides_dir),
        )

        payload, error = read_json_safe(self.state_path)
        if error is not None:
            logger.warning("Ignoring unreadable state file %s: %s", self.state_path, error)
            return state
        if not isinstance(payload, dict):
            return state

        # A changed remote invalidates the recorded revision.
        if payload.get("remote") != config.remote or payload.get("ref") != config.ref:
            return state

        try:
            state.status = SyncStatus(payload.get("status", SyncStatus.UNINITIALIZED.value))
        except ValueError:
            state.status = SyncStatus.UNINITIALIZED
        for key in ("last_synced_revision", "last_error", "synced_at"):
            value = payload.get(key)
            if isinstance(value, str):
                setattr(state, key, value)
        manifest = payload.get("manifest")
        if isinstance(manifest, dict):
            state.manifest = {
                str(name): str(digest)
                for name, digest in manifest.items()
                if isinstance(digest, str)
            }
        return state

    def save_state(self, state: SyncState) -> None:
        write_json(self.state_path, state.as_dict())

    def init(self, config: ProjectConfig) -> SyncState:
        self.save_config(config)
        state = self.load_state(config)
        state.synced_dir.mkdir(parents=True, exist_ok=True)
        state.overrides_dir.mkdir(parents=True, exist_ok=True)
        self.save_state(state)
        return state

    def teardown(self) -> list[Path]:
        """Delete the sync state and synced copy; overrides are kept."""
        config = self.load_config()
        removed: list[Path] = []
        synced_dir = self.resolve_dir(config.synced_dir)
        if synced_dir.is_dir():
            shutil.rmtree(synced_dir)
            removed.append(synced_dir)
        if self.state_path.exists():
            self.state_path.unlink()
            removed.append(self.state_path)
        return removed
