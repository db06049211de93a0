"""CLI 会话 / CLI session

每条命令都通过 open_session 取得配置、状态快照与 Pipeline，
结束前调用 session.save() 把状态写回本地 YAML。
"""

import logging
from pathlib import Path
from typing import NoReturn

from rich.console import Console
from rich.logging import RichHandler

from prompt_evo.core.config import load_config
from prompt_evo.core.pipeline import Pipeline
from prompt_evo.errors import as_error_payload
from prompt_evo.models import Agent, Config
from prompt_evo.storage import FileStore
from prompt_evo.utils.i18n import t

console = Console()


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )
    # HTTP 客户端的请求日志太多
    logging.getLogger("httpx").setLevel(logging.WARNING)


class Session:
    def __init__(self, config: Config, project_dir: Path, store: FileStore, pipeline: Pipeline, agent: Agent):
        self.config = config
        self.project_dir = project_dir
        self.store = store
        self.pipeline = pipeline
        self.agent = agent

    @property
    def prompt_path(self) -> Path:
        return self.project_dir / self.config.agent.prompt_file

    def write_prompt(self, prompt: str) -> None:
        """把采纳后的提示词写回提示词文件"""
        self.prompt_path.write_text(prompt, encoding="utf-8")

    def save(self) -> None:
        self.store.flush()


def open_session(config_path: str, verbose: bool = False) -> Session:
    setup_logging(verbose)
    config = load_config(config_path)
    project_dir = Path(config_path).resolve().parent

    prompt_path = project_dir / config.agent.prompt_file
    if not prompt_path.exists():
        raise FileNotFoundError(t("prompt_file_missing").format(path=prompt_path))

    store = FileStore(str(project_dir / config.state_file))
    pipeline = Pipeline(config, store=store, project_dir=str(project_dir))
    agent = pipeline.ensure_agent(config.agent.name, prompt_path.read_text(encoding="utf-8"))
    return Session(config, project_dir, store, pipeline, agent)


def report_error(exc: BaseException) -> NoReturn:
    """打印错误并以状态码 1 退出"""
    if isinstance(exc, FileNotFoundError):
        console.print(f"[red]{exc}[/red]")
    else:
        error = as_error_payload(exc)["error"]
        retry_hint = " (retryable)" if error["retryable"] else ""
        console.print(f"[red]{t('exec_failed').format(msg=error['message'])}[/red] [dim]{error['code']}{retry_hint}[/dim]")
    raise SystemExit(1)


def percent(rate: float) -> str:
    return f"{rate:.1%}"
