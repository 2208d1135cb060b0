from typing import Optional

from rich.markup import escape
from rich.panel import Panel

from rule_sync.errors import RuleSyncError
from rule_sync.tui.enums import UIStyle
from rule_sync.utils import compact_home_paths_in_text


class UISection:
    @staticmethod
    def wrap(title: str, body, style: str = UIStyle.BLUE.value, subtitle: Optional[str] = None) -> Panel:
        return Panel(body, title=title, subtitle=subtitle, border_style=style, padding=(0, 1))

    @staticmethod
    def note(title: str, body: str, style: str) -> Panel:
        return Panel(body, title=title, border_style=style, padding=(0, 1))

    @staticmethod
    def error(exc: RuleSyncError, style: str = UIStyle.RED.value) -> Panel:
        lines = [f"[bold]{exc.kind}[/bold]: {escape(compact_home_paths_in_text(exc.message))}"]
        lines.extend(f"- {escape(identifier)}" for identifier in exc.identifiers)
        if exc.retryable:
            lines.append("[dim]Transient; re-run the command to retry.[/dim]")
        return Panel("\n".join(lines), title=exc.kind, border_style=style, padding=(0, 1))
