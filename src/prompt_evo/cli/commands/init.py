"""init 命令 / Init command"""

from pathlib import Path

from rich.console import Console

from prompt_evo.utils.i18n import t

console = Console()

# 默认配置模板 / Default config template
DEFAULT_CONFIG = """# PromptEvo 配置文件 / PromptEvo Configuration
version: "1"

# 被测 Agent 配置 / Agent under test configuration
agent:
  name: "voice-agent"
  # module: "agent"         # Agent 入口模块，不配置时使用内置模拟 Agent / Agent entry module, simulated when omitted
  function: "run"           # Agent 入口函数 / Agent entry function
  prompt_file: "./system_prompt.md"  # 被优化的提示词文件 / Prompt file being optimized

# LLM 配置 / LLM configuration
llm:
  provider: "openai"        # openai / mock
  model: "gpt-4o"
  api_key: "${OPENAI_API_KEY}"
  timeout_seconds: 30
  max_retries: 3
  initial_retry_delay: 1.0

# 自动优化循环 / Auto-optimization cycle
cycle:
  target_threshold: 0.9
  max_cycles: 5

# 执行器 / Executor
executor:
  turn_delay: 0.1

# 本地状态快照 / Local state snapshot
state_file: ".prompt-evo/state.yaml"

# CLI 语言 / CLI language: zh (中文) or en (English)
language: "zh"
"""

# 默认 Agent 模板 / Default Agent template
DEFAULT_AGENT = '''"""示例 Agent / Example Agent"""


def run(utterance: str, prompt: str = None, context: str = None) -> str:
    """
    Agent 入口函数 / Agent entry function

    Args:
        utterance: 用户话语 / User utterance
        prompt: 当前被测试的系统提示词 / System prompt under test
        context: 可选上下文 / Optional context

    Returns:
        Agent 回复 / Agent reply
    """
    # 替换为实际的 LLM 调用 / Replace with a real LLM call
    return f"收到: {utterance}"
'''

# 默认提示词模板 / Default prompt template
DEFAULT_PROMPT = """You are a friendly receptionist for a dental clinic answering phone calls.

Goals:
- Greet the caller politely and ask how you can help.
- Book appointments: collect the caller's name, email and preferred time, then confirm the details.
- Answer questions about the clinic's services and prices.

Rules:
- Keep a polite and professional tone at all times.
- If the caller goes off-topic, gently steer the conversation back.
"""


def run_init(path: str):
    """初始化 PromptEvo 项目 / Initialize PromptEvo project"""
    project_dir = Path(path).resolve()
    project_dir.mkdir(parents=True, exist_ok=True)

    console.print(f"\n[bold blue]{t('init_project')}: {project_dir}[/bold blue]\n")

    files = {
        "prompt-evo.yaml": DEFAULT_CONFIG,
        "agent.py": DEFAULT_AGENT,
        "system_prompt.md": DEFAULT_PROMPT,
    }
    for name, content in files.items():
        target = project_dir / name
        if target.exists():
            console.print(f"  [dim]{t('init_exists')}: {name}[/dim]")
        else:
            target.write_text(content, encoding="utf-8")
            console.print(f"  [green]{t('init_created')}: {name}[/green]")

    console.print(f"\n[bold green]{t('init_done')}[/bold green]")
    console.print(f"\n{t('init_next_steps')}:")
    console.print(f"  1. {t('init_step_prompt')}")
    console.print(f"  2. {t('init_step_config')}")
    console.print(f"  3. {t('init_step_analyze')}")
    console.print(f"  4. {t('init_step_cycle')}\n")
