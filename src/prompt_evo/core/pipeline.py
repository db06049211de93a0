"""Pipeline 门面：注册 → 分析 → 生成 → 运行 → 优化 → 循环"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from prompt_evo.adapters.base import AgentAdapter
from prompt_evo.core.analyzer import PromptAnalyzer
from prompt_evo.core.comparison import ComparisonBuilder
from prompt_evo.core.dashboard import DashboardBuilder
from prompt_evo.core.evaluator import ResultEvaluator
from prompt_evo.core.executor import TestExecutor, create_adapter
from prompt_evo.core.generator import TestSuiteGenerator, with_fresh_ids, validate_test_cases
from prompt_evo.core.llm_service import LLMService, create_llm_service
from prompt_evo.core.optimizer import PromptOptimizer
from prompt_evo.core.orchestrator import CycleOrchestrator, EventListener
from prompt_evo.core.test_runner import TestRunService
from prompt_evo.errors import NoFailuresError, ValidationError
from prompt_evo.models import (
    Agent, ComparisonData, Config, CycleRecord, DashboardData, DiffChange,
    OptimizationRecord, OptimizationStatus, PromptAnalysis, SuiteEditOperation,
    TestCase, TestRun, TestSuite,
)
from prompt_evo.storage import Store
from prompt_evo.utils.diff import compute_diff

logger = logging.getLogger(__name__)


class OptimizationOutcome:
    """手动优化的结果：优化记录 + 展示用差异"""

    def __init__(self, record: OptimizationRecord, diff: list[DiffChange]):
        self.record = record
        self.diff = diff


class Pipeline:
    """PromptEvo 核心 Pipeline，组装各服务并暴露统一的操作入口"""

    def __init__(
        self,
        config: Config,
        store: Optional[Store] = None,
        llm: Optional[LLMService] = None,
        adapter: Optional[AgentAdapter] = None,
        project_dir: Optional[str] = None,
    ):
        self.config = config
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.store = store if store is not None else Store()
        self.llm = llm or create_llm_service(config)
        self.adapter = adapter or create_adapter(config, self.project_dir)

        self.analyzer = PromptAnalyzer(self.llm, self.store)
        self.generator = TestSuiteGenerator(self.llm, self.store)
        self.executor = TestExecutor(self.adapter)
        self.evaluator = ResultEvaluator(self.llm)
        self.test_runs = TestRunService(self.executor, self.evaluator, self.store)
        self.optimizer = PromptOptimizer(self.llm, self.store)
        self.orchestrator = CycleOrchestrator(self.store, self.test_runs, self.optimizer)
        self.comparison = ComparisonBuilder(self.store)
        self.dashboard = DashboardBuilder(self.store)

    # ── Agent ────────────────────────────────────────────

    def register_agent(self, name: str, prompt: str) -> Agent:
        if not name.strip():
            raise ValidationError("agent name must not be empty")
        if not prompt.strip():
            raise ValidationError("prompt must not be empty")
        return self.store.create_agent(name, prompt)

    def ensure_agent(self, name: str, prompt: str) -> Agent:
        """按名称取得 Agent，不存在则注册；提示词被手动修改过时同步为当前提示词"""
        agent = self.store.find_agent_by_name(name)
        if agent is None:
            return self.register_agent(name, prompt)
        if agent.current_prompt != prompt:
            logger.info("prompt of agent %s changed outside PromptEvo, syncing current prompt", name)
            agent = self.update_prompt(agent.id, prompt)
        return agent

    def update_prompt(self, agent_id: str, prompt: str) -> Agent:
        if not prompt.strip():
            raise ValidationError("prompt must not be empty")
        return self.store.update_agent_prompt(agent_id, prompt)

    def get_agent(self, agent_id: str) -> Agent:
        return self.store.get_agent(agent_id)

    # ── 分析与套件 ───────────────────────────────────────

    async def analyze_prompt(self, agent_id: str) -> PromptAnalysis:
        """分析 Agent 的当前提示词"""
        agent = self.store.get_agent(agent_id)
        return await self.analyzer.analyze_prompt(agent_id, agent.current_prompt)

    def latest_analysis(self, agent_id: str) -> Optional[PromptAnalysis]:
        analyses = self.analyzer.list_analyses(agent_id)
        return analyses[0] if analyses else None

    async def generate_test_suite(self, agent_id: str, analysis_id: str) -> TestSuite:
        return await self.generator.generate_test_suite(agent_id, analysis_id)

    def edit_test_suite(
        self, suite_id: str, operations: Iterable[Union[SuiteEditOperation, dict]]
    ) -> TestSuite:
        return self.generator.edit_test_suite(suite_id, operations)

    def import_test_suite(self, agent_id: str, cases: list[TestCase], analysis_id: str = "") -> TestSuite:
        """保存外部提供的用例（如从 YAML 导入），同样要满足套件不变量"""
        self.store.get_agent(agent_id)
        validate_test_cases(cases)
        with self.store.transaction():
            return self.store.save_test_suite(TestSuite(
                agent_id=agent_id,
                analysis_id=analysis_id,
                test_cases=[with_fresh_ids(case) for case in cases],
            ))

    def latest_test_suite(self, agent_id: str) -> Optional[TestSuite]:
        suites = self.store.list_test_suites(agent_id)
        return suites[0] if suites else None

    # ── 运行 ─────────────────────────────────────────────

    async def execute_test_run(self, agent_id: str, test_suite_id: str) -> TestRun:
        return await self.test_runs.execute_test_run(agent_id, test_suite_id)

    async def retry_test_case(self, test_run_id: str, test_case_id: str) -> TestRun:
        return await self.test_runs.retry_test_case(test_run_id, test_case_id)

    # ── 手动优化 ─────────────────────────────────────────

    async def optimize_prompt(self, test_run_id: str) -> OptimizationOutcome:
        """
        针对一次运行的失败判定生成优化记录（不自动采纳）

        Raises:
            NoFailuresError: 运行中没有失败的判定
        """
        run = self.store.get_test_run(test_run_id)
        failures, passes = run.partition_results()
        if not failures:
            raise NoFailuresError(f"test run '{test_run_id}' has no failed criteria to optimize")

        agent = self.store.get_agent(run.agent_id)
        record = await self.optimizer.optimize(run.id, agent.id, agent.current_prompt, failures, passes)
        return OptimizationOutcome(record, compute_diff(record.original_prompt, record.revised_prompt))

    def apply_optimization(self, optimization_id: str) -> Agent:
        """generated → accepted，并把修订稿设为 Agent 的当前提示词"""
        with self.store.transaction():
            record = self.store.update_optimization_status(optimization_id, OptimizationStatus.ACCEPTED)
            return self.store.update_agent_prompt(record.agent_id, record.revised_prompt)

    def reject_optimization(self, optimization_id: str) -> OptimizationRecord:
        return self.store.update_optimization_status(optimization_id, OptimizationStatus.REJECTED)

    def get_optimization(self, optimization_id: str) -> OptimizationRecord:
        return self.store.get_optimization(optimization_id)

    # ── 自动循环 ─────────────────────────────────────────

    def start_cycle(
        self,
        agent_id: str,
        test_suite_id: str,
        target_threshold: Optional[float] = None,
        max_cycles: Optional[int] = None,
    ) -> str:
        """启动自动循环；未指定的参数取配置中的默认值"""
        return self.orchestrator.start(
            agent_id,
            test_suite_id,
            self.config.cycle.target_threshold if target_threshold is None else target_threshold,
            self.config.cycle.max_cycles if max_cycles is None else max_cycles,
        )

    def cancel_cycle(self, cycle_id: str) -> None:
        self.orchestrator.cancel(cycle_id)

    def pause_cycle(self, cycle_id: str) -> None:
        self.orchestrator.pause(cycle_id)

    def resume_cycle(self, cycle_id: str) -> None:
        self.orchestrator.resume(cycle_id)

    def get_cycle_record(self, cycle_id: str) -> CycleRecord:
        return self.orchestrator.get_record(cycle_id)

    def subscribe(self, cycle_id: str, listener: EventListener) -> None:
        self.orchestrator.add_event_listener(cycle_id, listener)

    async def wait_cycle(self, cycle_id: str) -> CycleRecord:
        return await self.orchestrator.wait(cycle_id)

    # ── 视图 ─────────────────────────────────────────────

    def build_comparison(self, agent_id: str) -> ComparisonData:
        return self.comparison.build_comparison(agent_id)

    def build_dashboard(self, test_run_id: str) -> DashboardData:
        return self.dashboard.build_dashboard(test_run_id)
