"""cycle 命令 / cycle command"""

from typing import Optional

from prompt_evo.cli.commands.run import resolve_suite_id
from prompt_evo.cli.session import console, open_session, percent, report_error
from prompt_evo.models import CycleEventType
from prompt_evo.utils.i18n import t


async def run_cycle(
    config_path: str,
    suite_id: Optional[str],
    threshold: Optional[float],
    max_cycles: Optional[int],
):
    """启动自动优化循环并持续输出进度 / Start an auto-optimization cycle and stream its progress"""
    try:
        session = open_session(config_path)
        pipeline = session.pipeline

        cycle_id = pipeline.start_cycle(
            session.agent.id, resolve_suite_id(session, suite_id), threshold, max_cycles,
        )
        console.print(f"\n[bold blue]{t('cycle_started').format(id=cycle_id)}[/bold blue]\n")

        failed = False
        async for event in pipeline.orchestrator.events(cycle_id):
            # 每个事件后落盘，中途退出也不会丢失已完成的运行
            session.save()

            if event.type == CycleEventType.CYCLE_START:
                console.print(f"[bold]{t('cycle_iteration').format(n=event.cycle_number)}[/bold]")
            elif event.type == CycleEventType.TEST_RUN_COMPLETE:
                console.print(t("cycle_test_run").format(rate=percent(event.pass_rate or 0.0)))
            elif event.type == CycleEventType.OPTIMIZATION_COMPLETE:
                console.print(f"[cyan]{t('cycle_optimized')}[/cyan]")
            elif event.type == CycleEventType.ERROR:
                failed = True
                console.print(f"[red]{t('cycle_error').format(msg=event.message)}[/red]")

        record = await pipeline.wait_cycle(cycle_id)
        agent = pipeline.get_agent(session.agent.id)
        session.write_prompt(agent.current_prompt)
        session.save()

        console.print("\n" + "=" * 50)
        if failed:
            raise SystemExit(1)

        summary = t("cycle_finished").format(
            status=record.status.value,
            n=record.cycle_count,
            start=percent(record.starting_pass_rate),
            end=percent(record.ending_pass_rate),
        )
        console.print(f"[bold green]{summary}[/bold green]\n")

    except Exception as e:
        report_error(e)
