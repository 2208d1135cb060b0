from typing import Final


PROJECT_DIRNAME: Final[str] = ".rule-sync"
CONFIG_FILENAME: Final[str] = "config.json"
STATE_FILENAME: Final[str] = "state.json"
LOCK_FILENAME: Final[str] = ".rule-sync.lock"
GIT_DIRNAME: Final[str] = ".git"

SYNCED_DIRNAME: Final[str] = "synced"
OVERRIDES_DIRNAME: Final[str] = "overrides"

RULE_SUFFIXES: Final[tuple[str, ...]] = (".md", ".mdc", ".rule")

DEFAULT_PRIORITY: Final[int] = 0
DEFAULT_VERSION: Final[str] = "0.0.0"

DEFAULT_LOCK_TIMEOUT_SECONDS: Final[float] = 10.0
DEFAULT_LOCK_POLL_INTERVAL_SECONDS: Final[float] = 0.05
DEFAULT_FETCH_TIMEOUT_SECONDS: Final[float] = 60.0
