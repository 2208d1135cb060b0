from pathlib import Path

from rich.console import Console
from rich.markup import escape

from rule_sync.errors import RuleSyncError
from rule_sync.models import ResolvedRule, SyncReport, SyncState
from rule_sync.rules.models import RuleDocument
from rule_sync.tui.enums import UIStyle
from rule_sync.tui.sections import UISection
from rule_sync.tui.tables import RulesTable, StatusTable, SyncTable
from rule_sync.utils import compact_home_path, compact_home_paths_in_text


class RuleSyncConsoleUI:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_error(self, exc: RuleSyncError) -> None:
        self.console.print(UISection.error(exc))

    def render_init(self, state: SyncState) -> None:
        self.console.print(
            UISection.note(
                "init",
                f"Project initialized for remote [bold]{escape(compact_home_path(state.remote))}[/bold]\n"
                f"overrides: {escape(compact_home_path(state.overrides_dir))}",
                style=UIStyle.GREEN.value,
            )
        )
        self.console.print(
            UISection.note(
                "next",
                "Pull the remote rules, then inspect them.\n"
                "- rule-sync sync\n"
                "- rule-sync list",
                style=UIStyle.DIM.value,
            )
        )

    def render_sync(self, report: SyncReport) -> None:
        self.console.print(SyncTable.summary_panel(report))
        if report.summary.has_changes():
            self.console.print(
                UISection.wrap(
                    "changes", SyncTable.changes_table(report), style=UIStyle.CYAN.value
                )
            )
        if report.warnings:
            warning_text = "\n".join(
                f"- [bold]{item.kind}[/bold] {escape(item.identifier)}: "
                f"{escape(compact_home_paths_in_text(str(item.override_path)))}"
                for item in report.warnings
            )
            self.console.print(
                UISection.note(
                    "local overrides shadow remote updates",
                    warning_text,
                    style=UIStyle.YELLOW.value,
                )
            )

    def render_documents(
        self, documents: list[RuleDocument], shadowed: list[RuleDocument]
    ) -> None:
        if not documents:
            self.console.print(
                UISection.note("rules", "No rules found.", style=UIStyle.YELLOW.value)
            )
            return
        self.console.print(
            UISection.wrap(
                "rules",
                RulesTable.documents_table(documents),
                style=UIStyle.BLUE.value,
                subtitle=f"{len(documents)} effective",
            )
        )
        if shadowed:
            shadowed_text = "\n".join(f"- {escape(item.identifier)}" for item in shadowed)
            self.console.print(
                UISection.note(
                    "shadowed by local overrides", shadowed_text, style=UIStyle.DIM.value
                )
            )

    def render_resolved(self, path: str, rules: list[ResolvedRule]) -> None:
        if not rules:
            self.console.print(
                UISection.note(
                    "resolve", f"No rules apply to {escape(path)}.", style=UIStyle.YELLOW.value
                )
            )
            return
        self.console.print(
            UISection.wrap(
                f"resolve: {escape(path)}",
                RulesTable.resolved_table(rules),
                style=UIStyle.CYAN.value,
            )
        )

    def render_status(self, state: SyncState) -> None:
        self.console.print(
            UISection.wrap("status", StatusTable.state_table(state), style=UIStyle.BLUE.value)
        )

    def render_teardown(self, removed: list[Path]) -> None:
        if not removed:
            body = "Nothing to remove."
        else:
            body = "\n".join(f"- {escape(compact_home_path(path))}" for path in removed)
        self.console.print(UISection.note("teardown", body, style=UIStyle.YELLOW.value))
