"""optimize / apply / reject 命令"""

from rich.markup import escape

from prompt_evo.cli.session import console, open_session, report_error
from prompt_evo.models import DiffChange
from prompt_evo.utils.diff import compute_diff
from prompt_evo.utils.i18n import t


async def run_optimize(config_path: str, run_id: str, apply: bool):
    """针对一次运行的失败生成优化 / Generate an optimization from a run's failures"""
    try:
        session = open_session(config_path)
        outcome = await session.pipeline.optimize_prompt(run_id)
        record = outcome.record

        console.print(f"\n[bold green]{t('optimization_generated').format(id=record.id)}[/bold green]\n")
        if record.changes:
            console.print(f"[bold]{t('changes')}[/bold]")
            for change in record.changes:
                console.print(f"  - {change.description} [dim]{change.rationale}[/dim]")
            console.print()
        print_diff(outcome.diff)

        if apply:
            agent = session.pipeline.apply_optimization(record.id)
            session.write_prompt(agent.current_prompt)
            console.print(f"\n[green]{t('optimization_applied').format(id=record.id)}[/green]")
        session.save()

    except Exception as e:
        report_error(e)


def run_apply(config_path: str, optimization_id: str):
    try:
        session = open_session(config_path)
        agent = session.pipeline.apply_optimization(optimization_id)
        session.write_prompt(agent.current_prompt)
        session.save()

        record = session.pipeline.get_optimization(optimization_id)
        print_diff(compute_diff(record.original_prompt, record.revised_prompt))
        console.print(f"\n[green]{t('optimization_applied').format(id=optimization_id)}[/green]")

    except Exception as e:
        report_error(e)


def run_reject(config_path: str, optimization_id: str):
    try:
        session = open_session(config_path)
        session.pipeline.reject_optimization(optimization_id)
        session.save()
        console.print(f"[yellow]{t('optimization_rejected').format(id=optimization_id)}[/yellow]")

    except Exception as e:
        report_error(e)


def print_diff(changes: list[DiffChange]) -> None:
    console.print(f"[bold]{t('prompt_diff')}[/bold]")
    styles = {"added": ("green", "+"), "removed": ("red", "-"), "context": ("dim", " ")}
    for change in changes:
        style, prefix = styles.get(change.type, ("dim", " "))
        console.print(f"[{style}]{prefix} {escape(change.content)}[/{style}]", highlight=False)
