"""优化记录模型"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class OptimizationStatus(str, Enum):
    """优化记录状态"""
    GENERATED = "generated"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class PromptChange(BaseModel):
    """一处提示词修改"""
    description: str
    rationale: str = ""


class OptimizationProposal(BaseModel):
    """LLM 给出的修订方案（尚未持久化）"""
    original_prompt: str
    revised_prompt: str
    changes: list[PromptChange] = Field(default_factory=list)
    targeted_failures: list[str] = Field(default_factory=list, description="修订针对的 criterion_id")


class OptimizationRecord(BaseModel):
    """已持久化的优化记录，除 status 外不可变"""
    id: str = Field(default="")
    test_run_id: str
    agent_id: str
    original_prompt: str
    revised_prompt: str
    changes: list[PromptChange] = Field(default_factory=list)
    targeted_failures: list[str] = Field(default_factory=list)
    status: OptimizationStatus = OptimizationStatus.GENERATED
    created_at: datetime = Field(default_factory=datetime.now)
