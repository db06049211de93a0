"""analyze / generate / import-suite 命令"""

from typing import Optional

from rich.table import Table

from prompt_evo.cli.session import console, open_session, report_error
from prompt_evo.core.serializer import load_test_suite_from_yaml, save_test_suite
from prompt_evo.errors import ValidationError
from prompt_evo.models import TestSuite
from prompt_evo.utils.i18n import t


async def run_analyze(config_path: str):
    """分析当前提示词 / Analyze the current prompt"""
    try:
        session = open_session(config_path)
        analysis = await session.pipeline.analyze_prompt(session.agent.id)
        session.save()

        console.print(f"\n[bold green]{t('analysis_done')}[/bold green] [dim]{analysis.id}[/dim]\n")
        console.print(f"[bold]{t('goals')}[/bold]")
        for goal in analysis.goals:
            console.print(f"  - {goal}")
        console.print(f"\n[bold]{t('flows')}[/bold]")
        for flow in analysis.conversation_flows:
            console.print(f"  - {flow.name}: {' → '.join(flow.steps)}")
        console.print(f"\n[bold]{t('behaviors')}[/bold]")
        for behavior in analysis.expected_behaviors:
            console.print(f"  - [{behavior.category.value}] {behavior.description}")
        console.print()

    except Exception as e:
        report_error(e)


async def run_generate(config_path: str, output: Optional[str]):
    """根据最新分析生成测试套件 / Generate a test suite from the latest analysis"""
    try:
        session = open_session(config_path)
        analysis = session.pipeline.latest_analysis(session.agent.id)
        if analysis is None:
            raise ValidationError(t("no_analysis"))

        suite = await session.pipeline.generate_test_suite(session.agent.id, analysis.id)
        session.save()

        console.print(f"\n[bold green]{t('suite_generated').format(id=suite.id, n=len(suite.test_cases))}[/bold green]")
        print_suite(suite)
        if output:
            path = save_test_suite(suite, output)
            console.print(t("suite_exported").format(path=path))

    except Exception as e:
        report_error(e)


def run_import_suite(config_path: str, file: str):
    """从 YAML 导入测试套件 / Import a test suite from YAML"""
    try:
        session = open_session(config_path)
        cases = load_test_suite_from_yaml(file)
        analysis = session.pipeline.latest_analysis(session.agent.id)
        suite = session.pipeline.import_test_suite(
            session.agent.id, cases, analysis_id=analysis.id if analysis else "",
        )
        session.save()

        console.print(f"\n[bold green]{t('suite_imported').format(id=suite.id, n=len(suite.test_cases))}[/bold green]")
        print_suite(suite)

    except Exception as e:
        report_error(e)


def print_suite(suite: TestSuite) -> None:
    table = Table(show_lines=False)
    table.add_column("ID", style="dim")
    table.add_column(t("type"))
    table.add_column(t("scenario"))
    table.add_column(t("criterion"), justify="right")
    for case in suite.test_cases:
        table.add_row(case.id, case.scenario_type.value, case.scenario_description, str(len(case.success_criteria)))
    console.print(table)
