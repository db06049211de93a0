"""配置模型"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class AgentConfig(BaseModel):
    """被测 Agent 配置

    未配置 module 时使用内置的模拟 Agent。
    """
    name: str = Field(default="default", description="Agent 名称")
    module: Optional[str] = Field(default=None, description="Agent 入口模块")
    function: str = Field(default="run", description="Agent 入口函数")
    prompt_file: str = Field(default="./system_prompt.md", description="系统提示词文件路径")


class LLMConfig(BaseModel):
    """LLM 配置"""
    provider: Literal["openai", "mock"] = Field(default="openai", description="LLM 提供商")
    model: str = Field(default="gpt-4o", description="模型名称")
    api_key: Optional[str] = Field(default=None, description="API Key，支持 ${ENV_VAR} 格式")
    base_url: Optional[str] = Field(default=None, description="API Base URL")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    timeout_seconds: float = Field(default=30.0, gt=0, description="单次调用超时")
    max_retries: int = Field(default=3, ge=0, description="失败后的最大重试次数")
    initial_retry_delay: float = Field(default=1.0, ge=0.0, description="首次重试等待秒数，之后指数翻倍")


class CycleConfig(BaseModel):
    """自动优化循环配置"""
    target_threshold: float = Field(default=0.9, ge=0.0, le=1.0, description="目标通过率")
    max_cycles: int = Field(default=5, ge=1, description="最大循环次数")


class ExecutorConfig(BaseModel):
    """执行器配置"""
    turn_delay: float = Field(default=0.1, ge=0.0, description="模拟 Agent 每轮的人工延迟")


class Config(BaseModel):
    """PromptEvo 完整配置"""
    version: str = "1"
    agent: AgentConfig = Field(default_factory=AgentConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    cycle: CycleConfig = Field(default_factory=CycleConfig)
    executor: ExecutorConfig = Field(default_factory=ExecutorConfig)
    state_file: str = Field(default=".prompt-evo/state.yaml", description="本地状态快照文件")
    language: Literal["zh", "en"] = "zh"
