from enum import Enum

from rule_sync.models import RuleSource, SyncStatus


class UIStyle(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    CYAN = "cyan"
    MAGENTA = "magenta"
    DIM = "dim"
    WHITE = "white"


SYNC_CHANGE_STYLE = {
    "added": UIStyle.GREEN.value,
    "updated": UIStyle.CYAN.value,
    "removed": UIStyle.MAGENTA.value,
    "unchanged": UIStyle.DIM.value,
}

SYNC_STATUS_STYLE = {
    SyncStatus.UNINITIALIZED: UIStyle.YELLOW.value,
    SyncStatus.SYNCED: UIStyle.GREEN.value,
    SyncStatus.UNREACHABLE: UIStyle.RED.value,
}

RULE_SOURCE_STYLE = {
    RuleSource.LOCAL: UIStyle.MAGENTA.value,
    RuleSource.REMOTE: UIStyle.CYAN.value,
}
