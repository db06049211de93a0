"""执行与评测结果模型"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class TestCaseStatus(str, Enum):
    """用例执行状态"""
    __test__ = False

    COMPLETED = "completed"
    ERROR = "error"


class TestRunStatus(str, Enum):
    """测试运行状态"""
    __test__ = False

    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


# ─── 单轮回复与标准判定 ──────────────────────────────────

class AgentResponse(BaseModel):
    """Agent 对单轮输入的回复"""
    turn: int
    utterance: str


class CriterionResult(BaseModel):
    """单条标准的评判结果"""
    criterion_id: str
    passed: bool
    explanation: str = ""


# ─── 用例结果 ────────────────────────────────────────────

class TestCaseResult(BaseModel):
    """单个用例结果

    completed：每轮一条回复 + 每条标准一个判定；
    error：只有错误信息，没有回复和判定。
    """
    __test__ = False

    test_case_id: str
    status: TestCaseStatus
    agent_responses: list[AgentResponse] = Field(default_factory=list)
    criterion_results: list[CriterionResult] = Field(default_factory=list)
    error_message: Optional[str] = None
    executed_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def error_result_is_pure(self) -> "TestCaseResult":
        """error 结果不能混入部分回复或判定"""
        if self.status == TestCaseStatus.ERROR and (self.agent_responses or self.criterion_results):
            raise ValueError("error results carry no agent responses and no criterion results")
        return self


# ─── 测试运行 ────────────────────────────────────────────

class TestRun(BaseModel):
    """一次测试运行：某个提示词快照对整个套件的执行"""
    __test__ = False

    id: str = Field(default="")
    test_suite_id: str
    agent_id: str
    prompt_snapshot: str = Field(..., description="运行开始时捕获的提示词")
    status: TestRunStatus = TestRunStatus.RUNNING
    overall_pass_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    results: list[TestCaseResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (TestRunStatus.COMPLETED, TestRunStatus.ERROR)

    def criterion_results(self) -> list[CriterionResult]:
        """只包含 completed 用例的判定"""
        return [
            cr
            for r in self.results if r.status == TestCaseStatus.COMPLETED
            for cr in r.criterion_results
        ]

    def partition_results(self) -> tuple[list[CriterionResult], list[CriterionResult]]:
        """拆分为 (failures, passes)"""
        failures: list[CriterionResult] = []
        passes: list[CriterionResult] = []
        for cr in self.criterion_results():
            (passes if cr.passed else failures).append(cr)
        return failures, passes
