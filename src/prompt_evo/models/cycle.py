"""自动优化循环模型 / Auto-optimization cycle models"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CycleStatus(str, Enum):
    """循环状态"""
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CycleEventType(str, Enum):
    """进度事件类型"""
    CYCLE_START = "cycle_start"
    TEST_RUN_COMPLETE = "test_run_complete"
    OPTIMIZATION_COMPLETE = "optimization_complete"
    FINISHED = "finished"
    ERROR = "error"


class CycleRecord(BaseModel):
    """循环记录

    test_run_ids 与 optimization_ids 按产生顺序追加；
    starting_pass_rate 只在第一次测试运行后写入一次。
    """
    id: str = Field(default="")
    agent_id: str
    test_suite_id: str
    cycle_count: int = Field(default=0, ge=0)
    starting_pass_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    ending_pass_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    target_threshold: float = Field(..., ge=0.0, le=1.0)
    max_cycles: int = Field(..., ge=1)
    status: CycleStatus = CycleStatus.RUNNING
    test_run_ids: list[str] = Field(default_factory=list)
    optimization_ids: list[str] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (CycleStatus.COMPLETED, CycleStatus.CANCELLED)


class CycleEvent(BaseModel):
    """推送给监听者的进度事件"""
    type: CycleEventType
    cycle_id: str
    cycle_number: Optional[int] = None
    pass_rate: Optional[float] = None
    status: Optional[CycleStatus] = None
    message: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.type in (CycleEventType.FINISHED, CycleEventType.ERROR)
