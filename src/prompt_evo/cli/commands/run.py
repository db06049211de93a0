"""run / retry / report 命令"""

from typing import Optional

from rich.markup import escape
from rich.table import Table

from prompt_evo.cli.session import Session, console, open_session, percent, report_error
from prompt_evo.errors import ValidationError
from prompt_evo.models import DashboardData, TestCaseStatus
from prompt_evo.utils.i18n import t


def resolve_suite_id(session: Session, suite_id: Optional[str]) -> str:
    """未指定时使用该 Agent 最新的套件"""
    if suite_id:
        return suite_id
    suite = session.pipeline.latest_test_suite(session.agent.id)
    if suite is None:
        raise ValidationError(t("no_suite"))
    return suite.id


async def run_test_run(config_path: str, suite_id: Optional[str]):
    """执行整个测试套件 / Execute the whole test suite"""
    try:
        session = open_session(config_path)
        run = await session.pipeline.execute_test_run(session.agent.id, resolve_suite_id(session, suite_id))
        session.save()

        console.print(f"\n[bold green]{t('run_done').format(id=run.id)}[/bold green]")
        print_dashboard(session.pipeline.build_dashboard(run.id))

    except Exception as e:
        report_error(e)


async def run_retry(config_path: str, run_id: str, case_id: str):
    """重试单个用例 / Retry a single test case"""
    try:
        session = open_session(config_path)
        run = await session.pipeline.retry_test_case(run_id, case_id)
        session.save()

        console.print(f"\n[green]{t('retry_done').format(case=case_id, rate=percent(run.overall_pass_rate))}[/green]")

    except Exception as e:
        report_error(e)


def run_report(config_path: str, run_id: str):
    """查看一次测试运行 / Show a test run"""
    try:
        session = open_session(config_path)
        print_dashboard(session.pipeline.build_dashboard(run_id))

    except Exception as e:
        report_error(e)


def print_dashboard(data: DashboardData) -> None:
    rate = data.overall_pass_rate
    color = "green" if rate >= 0.9 else "yellow" if rate >= 0.7 else "red"
    console.print(f"{t('pass_rate')}: [bold {color}]{percent(rate)}[/bold {color}]  {t('status')}: {data.status.value}\n")

    table = Table(show_lines=True)
    table.add_column("ID", style="dim", overflow="fold")
    table.add_column(t("scenario"))
    table.add_column(t("criterion"))
    table.add_column(t("explanation"))

    for case in data.test_case_results:
        if case.status == TestCaseStatus.ERROR:
            table.add_row(
                case.test_case_id, escape(case.scenario_description),
                f"[red]{t('error')}[/red]", escape(t("case_error").format(msg=case.error_message)),
            )
            continue
        for cr in case.criterion_results:
            mark = f"[green]{t('pass')}[/green]" if cr.passed else f"[red]{t('fail')}[/red]"
            table.add_row(
                case.test_case_id, escape(case.scenario_description),
                f"{mark} {escape(cr.description)}", escape(cr.explanation),
            )

    console.print(table)
