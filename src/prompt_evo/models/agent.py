"""被测 Agent 记录 / Agent under test"""

from datetime import datetime

from pydantic import BaseModel, Field


class Agent(BaseModel):
    """被优化的 Agent

    original_prompt 在注册时固定，current_prompt 随优化被替换。
    """
    id: str = Field(default="")
    name: str
    original_prompt: str
    current_prompt: str
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
