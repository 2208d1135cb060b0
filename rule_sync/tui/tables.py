from rich.markup import escape
from rich.panel import Panel
from rich.table import Column, Table

from rule_sync.models import ResolvedRule, SyncReport, SyncState
from rule_sync.rules.models import RuleDocument
from rule_sync.tui.enums import (
    RULE_SOURCE_STYLE,
    SYNC_CHANGE_STYLE,
    SYNC_STATUS_STYLE,
    UIStyle,
)
from rule_sync.utils import compact_home_path


def _styled(value: str, style: str) -> str:
    return f"[{style}]{escape(value)}[/{style}]"


class RulesTable:
    @staticmethod
    def documents_table(documents: list[RuleDocument]) -> Table:
        table = Table(
            Column(header="Priority", width=8, justify="right"),
            Column(header="Rule", min_width=24, overflow="fold"),
            Column(header="Source", width=8),
            Column(header="Scope", overflow="fold"),
            Column(header="Category", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for document in documents:
            metadata = document.metadata
            scope = "always" if metadata.always_apply else ", ".join(metadata.globs)
            table.add_row(
                str(document.priority),
                escape(document.identifier),
                _styled(
                    document.source.value,
                    RULE_SOURCE_STYLE.get(document.source, UIStyle.WHITE.value),
                ),
                escape(scope),
                escape(metadata.category or ""),
            )
        return table

    @staticmethod
    def resolved_table(rules: list[ResolvedRule]) -> Table:
        table = Table(
            Column(header="#", width=4, justify="right"),
            Column(header="Rule", min_width=24, overflow="fold"),
            Column(header="Priority", width=8, justify="right"),
            Column(header="Source", width=8),
            Column(header="Description", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for index, rule in enumerate(rules, start=1):
            table.add_row(
                str(index),
                escape(rule.identifier),
                str(rule.priority),
                _styled(rule.source.value, RULE_SOURCE_STYLE.get(rule.source, UIStyle.WHITE.value)),
                escape(rule.description),
            )
        return table


class SyncTable:
    @staticmethod
    def summary_panel(report: SyncReport) -> Panel:
        table = Table(show_header=False, box=None)
        for key, value in report.summary.counts().items():
            table.add_row(_styled(key, SYNC_CHANGE_STYLE[key]), str(value))
        table.add_row("[bold]revision[/bold]", report.revision[:12])
        return Panel(
            table,
            title="sync",
            border_style=UIStyle.YELLOW.value if report.warnings else UIStyle.GREEN.value,
        )

    @staticmethod
    def changes_table(report: SyncReport) -> Table:
        table = Table(
            Column(header="Change", width=10),
            Column(header="Rule", overflow="fold"),
            expand=True,
            header_style="bold",
        )
        summary = report.summary
        for key, identifiers in (
            ("added", summary.added),
            ("updated", summary.updated),
            ("removed", summary.removed),
        ):
            for identifier in identifiers:
                table.add_row(_styled(key, SYNC_CHANGE_STYLE[key]), escape(identifier))
        return table


class StatusTable:
    @staticmethod
    def state_table(state: SyncState) -> Table:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column(overflow="fold")
        table.add_row(
            "Status",
            _styled(state.status.value, SYNC_STATUS_STYLE.get(state.status, UIStyle.WHITE.value)),
        )
        table.add_row("Remote", escape(compact_home_path(state.remote)))
        table.add_row("Ref", escape(state.ref or "(default branch)"))
        table.add_row("Revision", escape(state.last_synced_revision or "-"))
        table.add_row("Synced at", escape(state.synced_at or "-"))
        table.add_row("Synced rules", str(len(state.manifest)))
        table.add_row("Synced dir", escape(compact_home_path(state.synced_dir)))
        table.add_row("Overrides dir", escape(compact_home_path(state.overrides_dir)))
        if state.last_error:
            table.add_row("Last error", _styled(state.last_error, UIStyle.RED.value))
        return table
