"""数据模型 / Data models"""

from prompt_evo.models.config import (
    Config, AgentConfig, LLMConfig, CycleConfig, ExecutorConfig,
)
from prompt_evo.models.agent import Agent
from prompt_evo.models.analysis import PromptAnalysis, ConversationFlow, ExpectedBehavior
from prompt_evo.models.test_case import (
    TestCase, TestSuite, UserInput, SuccessCriterion,
    ScenarioType, CriterionCategory, SuiteEditOperation,
)
from prompt_evo.models.eval_result import (
    AgentResponse, CriterionResult, TestCaseResult, TestRun,
    TestCaseStatus, TestRunStatus,
)
from prompt_evo.models.optimization import (
    OptimizationRecord, OptimizationProposal, OptimizationStatus, PromptChange,
)
from prompt_evo.models.cycle import CycleRecord, CycleEvent, CycleEventType, CycleStatus
from prompt_evo.models.report import (
    DiffChange, CriterionChange, TestRunMetric, ComparisonData,
    DashboardData, DashboardTestCaseResult, DashboardCriterionResult,
)

__all__ = [
    # 配置 / Configuration
    "Config", "AgentConfig", "LLMConfig", "CycleConfig", "ExecutorConfig",
    # Agent 与分析 / Agent and analysis
    "Agent", "PromptAnalysis", "ConversationFlow", "ExpectedBehavior",
    # 测试用例 / Test cases
    "TestCase", "TestSuite", "UserInput", "SuccessCriterion",
    "ScenarioType", "CriterionCategory", "SuiteEditOperation",
    # 执行结果 / Execution results
    "AgentResponse", "CriterionResult", "TestCaseResult", "TestRun",
    "TestCaseStatus", "TestRunStatus",
    # 优化 / Optimization
    "OptimizationRecord", "OptimizationProposal", "OptimizationStatus", "PromptChange",
    # 循环 / Cycles
    "CycleRecord", "CycleEvent", "CycleEventType", "CycleStatus",
    # 视图 / Views
    "DiffChange", "CriterionChange", "TestRunMetric", "ComparisonData",
    "DashboardData", "DashboardTestCaseResult", "DashboardCriterionResult",
]
