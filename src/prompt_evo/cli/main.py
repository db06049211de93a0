"""PromptEvo CLI 主入口"""

import asyncio
from typing import Optional

import typer
from rich.console import Console

from prompt_evo import __version__

app = typer.Typer(
    name="prompt-evo",
    help="PromptEvo - 提示词自动测试与迭代优化框架",
    add_completion=False,
)
console = Console()

CONFIG_OPTION = typer.Option("prompt-evo.yaml", "-c", "--config", help="配置文件路径")


def version_callback(value: bool):
    if value:
        console.print(f"PromptEvo version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", "-v", callback=version_callback, is_eager=True, help="显示版本号"),
):
    """PromptEvo - 提示词自动测试与迭代优化框架"""
    pass


@app.command()
def init(
    path: str = typer.Argument(".", help="项目路径"),
):
    """初始化 PromptEvo 配置"""
    from prompt_evo.cli.commands.init import run_init
    run_init(path)


@app.command()
def analyze(config: str = CONFIG_OPTION):
    """分析当前提示词"""
    from prompt_evo.cli.commands.suite import run_analyze
    asyncio.run(run_analyze(config))


@app.command()
def generate(
    config: str = CONFIG_OPTION,
    output: Optional[str] = typer.Option(None, "-o", "--output", help="同时导出为 YAML 文件"),
):
    """根据最新的分析生成测试套件"""
    from prompt_evo.cli.commands.suite import run_generate
    asyncio.run(run_generate(config, output))


@app.command(name="import-suite")
def import_suite(
    file: str = typer.Argument(..., help="测试套件 YAML 文件"),
    config: str = CONFIG_OPTION,
):
    """从 YAML 导入测试套件"""
    from prompt_evo.cli.commands.suite import run_import_suite
    run_import_suite(config, file)


@app.command()
def run(
    config: str = CONFIG_OPTION,
    suite: Optional[str] = typer.Option(None, "--suite", help="测试套件 ID，默认使用最新的套件"),
):
    """执行一次测试运行"""
    from prompt_evo.cli.commands.run import run_test_run
    asyncio.run(run_test_run(config, suite))


@app.command()
def retry(
    run_id: str = typer.Argument(..., help="测试运行 ID"),
    case_id: str = typer.Argument(..., help="测试用例 ID"),
    config: str = CONFIG_OPTION,
):
    """重试单个测试用例"""
    from prompt_evo.cli.commands.run import run_retry
    asyncio.run(run_retry(config, run_id, case_id))


@app.command()
def report(
    run_id: str = typer.Argument(..., help="测试运行 ID"),
    config: str = CONFIG_OPTION,
):
    """查看测试运行结果"""
    from prompt_evo.cli.commands.run import run_report
    run_report(config, run_id)


@app.command()
def optimize(
    run_id: str = typer.Argument(..., help="测试运行 ID"),
    apply: bool = typer.Option(False, "--apply", help="生成后立即采纳"),
    config: str = CONFIG_OPTION,
):
    """根据测试运行的失败项优化提示词"""
    from prompt_evo.cli.commands.optimize import run_optimize
    asyncio.run(run_optimize(config, run_id, apply))


@app.command()
def apply(
    optimization_id: str = typer.Argument(..., help="优化记录 ID"),
    config: str = CONFIG_OPTION,
):
    """采纳优化记录"""
    from prompt_evo.cli.commands.optimize import run_apply
    run_apply(config, optimization_id)


@app.command()
def reject(
    optimization_id: str = typer.Argument(..., help="优化记录 ID"),
    config: str = CONFIG_OPTION,
):
    """拒绝优化记录"""
    from prompt_evo.cli.commands.optimize import run_reject
    run_reject(config, optimization_id)


@app.command()
def cycle(
    config: str = CONFIG_OPTION,
    suite: Optional[str] = typer.Option(None, "--suite", help="测试套件 ID，默认使用最新的套件"),
    threshold: Optional[float] = typer.Option(None, "--threshold", help="目标通过率 (0-1)"),
    max_cycles: Optional[int] = typer.Option(None, "--max-cycles", help="最大循环次数"),
):
    """启动自动优化循环"""
    from prompt_evo.cli.commands.cycle import run_cycle
    asyncio.run(run_cycle(config, suite, threshold, max_cycles))


@app.command()
def compare(config: str = CONFIG_OPTION):
    """对比优化前后的提示词与通过率"""
    from prompt_evo.cli.commands.compare import run_compare
    run_compare(config)


if __name__ == "__main__":
    app()
