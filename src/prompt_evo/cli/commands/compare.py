"""compare 命令 / compare command"""

from rich.markup import escape
from rich.table import Table

from prompt_evo.cli.commands.optimize import print_diff
from prompt_evo.cli.session import console, open_session, percent, report_error
from prompt_evo.models import CriterionChange
from prompt_evo.utils.i18n import t


def run_compare(config_path: str):
    """对比原始提示词与当前提示词 / Compare the original prompt with the current one"""
    try:
        session = open_session(config_path)
        data = session.pipeline.build_comparison(session.agent.id)

        console.print(f"\n[bold blue]{t('comparison_title')}[/bold blue]\n")
        print_diff(data.prompt_diff)

        console.print(f"\n[bold]{t('run_history')}[/bold]")
        table = Table()
        table.add_column("#", justify="right")
        table.add_column("ID", style="dim")
        table.add_column(t("pass_rate"), justify="right")
        for i, metric in enumerate(data.test_run_metrics, start=1):
            table.add_row(str(i), metric.test_run_id, percent(metric.pass_rate))
        console.print(table)

        _print_changes(t("improvements"), data.improvements, "green")
        _print_changes(t("regressions"), data.regressions, "red")
        console.print()

    except Exception as e:
        report_error(e)


def _print_changes(title: str, changes: list[CriterionChange], color: str) -> None:
    console.print(f"\n[bold {color}]{title}[/bold {color}]")
    if not changes:
        console.print(f"  [dim]{t('no_changes')}[/dim]")
    for change in changes:
        console.print(f"  - {escape(change.description or change.criterion_id)}")
