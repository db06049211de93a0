"""提示词分析模型 / Prompt analysis models"""

from datetime import datetime

from pydantic import BaseModel, Field

from prompt_evo.models.test_case import CriterionCategory


class ConversationFlow(BaseModel):
    """对话流程"""
    name: str
    description: str = ""
    steps: list[str] = Field(default_factory=list)


class ExpectedBehavior(BaseModel):
    """期望行为"""
    description: str
    category: CriterionCategory


class PromptAnalysis(BaseModel):
    """提示词结构化分析结果"""
    id: str = Field(default="")
    agent_id: str = Field(default="")
    goals: list[str] = Field(default_factory=list, description="Agent 的目标")
    conversation_flows: list[ConversationFlow] = Field(default_factory=list)
    expected_behaviors: list[ExpectedBehavior] = Field(default_factory=list)
    raw_prompt: str = Field(..., description="被分析的原始提示词")
    created_at: datetime = Field(default_factory=datetime.now)
