"""对比与看板视图模型"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from prompt_evo.models.eval_result import AgentResponse, TestCaseStatus, TestRunStatus


class DiffChange(BaseModel):
    """提示词逐行差异中的一行"""
    type: str = Field(..., description="added / removed / context")
    line_number: int
    content: str


# ─── 对比 ────────────────────────────────────────────────

class CriterionChange(BaseModel):
    """某条标准在首末两次运行间的变化"""
    criterion_id: str
    description: str
    previous_passed: bool
    current_passed: bool


class TestRunMetric(BaseModel):
    __test__ = False

    test_run_id: str
    pass_rate: float
    completed_at: Optional[datetime] = None


class ComparisonData(BaseModel):
    """优化前后对比"""
    agent_id: str
    original_prompt: str
    current_prompt: str
    prompt_diff: list[DiffChange] = Field(default_factory=list)
    improvements: list[CriterionChange] = Field(default_factory=list)
    regressions: list[CriterionChange] = Field(default_factory=list)
    test_run_metrics: list[TestRunMetric] = Field(default_factory=list)


# ─── 看板 ────────────────────────────────────────────────

class DashboardCriterionResult(BaseModel):
    criterion_id: str
    description: str
    category: str
    passed: bool
    explanation: str


class DashboardTestCaseResult(BaseModel):
    test_case_id: str
    scenario_description: str
    scenario_type: str
    status: TestCaseStatus
    error_message: Optional[str] = None
    agent_responses: list[AgentResponse] = Field(default_factory=list)
    criterion_results: list[DashboardCriterionResult] = Field(default_factory=list)


class DashboardData(BaseModel):
    """单次测试运行的聚合视图"""
    test_run_id: str
    agent_id: str
    overall_pass_rate: float
    status: TestRunStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    test_case_results: list[DashboardTestCaseResult] = Field(default_factory=list)
