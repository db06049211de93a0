"""进程内存储 / In-process store

所有读操作返回深拷贝，调用方拿到的快照是只读的；
写操作由同一把可重入锁串行化；transaction() 内任何异常都会整体回滚。
"""

import copy
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional, TypeVar

from pydantic import BaseModel

from prompt_evo.errors import NotFoundError, ValidationError
from prompt_evo.utils.state_machine import transition_cycle_status, transition_optimization_status
from prompt_evo.models import (
    Agent, CycleRecord, OptimizationRecord, OptimizationStatus, PromptAnalysis,
    TestCaseResult, TestRun, TestSuite,
)

M = TypeVar("M", bound=BaseModel)


def new_id() -> str:
    return uuid.uuid4().hex


class Store:
    """按 ID 存取各实体的仓库"""

    COLLECTIONS = ("agents", "analyses", "suites", "runs", "optimizations", "cycles")

    def __init__(self):
        self._lock = threading.RLock()
        self._agents: dict[str, Agent] = {}
        self._analyses: dict[str, PromptAnalysis] = {}
        self._suites: dict[str, TestSuite] = {}
        self._runs: dict[str, TestRun] = {}
        self._optimizations: dict[str, OptimizationRecord] = {}
        self._cycles: dict[str, CycleRecord] = {}

    # ── 事务 ─────────────────────────────────────────────

    @contextmanager
    def transaction(self) -> Iterator["Store"]:
        """一组写操作要么全部生效，要么全部回滚"""
        with self._lock:
            snapshot = {name: copy.deepcopy(self._collection(name)) for name in self.COLLECTIONS}
            try:
                yield self
            except BaseException:
                for name, data in snapshot.items():
                    setattr(self, f"_{name}", data)
                raise

    def _collection(self, name: str) -> dict:
        return getattr(self, f"_{name}")

    def _get(self, name: str, record_id: str, kind: str):
        with self._lock:
            record = self._collection(name).get(record_id)
            if record is None:
                raise NotFoundError(f"{kind} '{record_id}' not found", code=f"{kind.upper().replace(' ', '_')}_NOT_FOUND")
            return record.model_copy(deep=True)

    def _put(self, name: str, record: M) -> M:
        with self._lock:
            if not record.id:
                record.id = new_id()
            self._collection(name)[record.id] = record.model_copy(deep=True)
            return record.model_copy(deep=True)

    # ── Agent ────────────────────────────────────────────

    def create_agent(self, name: str, prompt: str) -> Agent:
        return self._put("agents", Agent(name=name, original_prompt=prompt, current_prompt=prompt))

    def get_agent(self, agent_id: str) -> Agent:
        return self._get("agents", agent_id, "agent")

    def find_agent_by_name(self, name: str) -> Optional[Agent]:
        with self._lock:
            for agent in self._agents.values():
                if agent.name == name:
                    return agent.model_copy(deep=True)
        return None

    def list_agents(self) -> list[Agent]:
        with self._lock:
            return sorted(
                (a.model_copy(deep=True) for a in self._agents.values()),
                key=lambda a: a.created_at,
            )

    def update_agent_prompt(self, agent_id: str, prompt: str) -> Agent:
        with self._lock:
            agent = self.get_agent(agent_id)
            agent.current_prompt = prompt
            agent.updated_at = datetime.now()
            return self._put("agents", agent)

    # ── 分析 ─────────────────────────────────────────────

    def save_analysis(self, analysis: PromptAnalysis) -> PromptAnalysis:
        return self._put("analyses", analysis)

    def get_analysis(self, analysis_id: str) -> PromptAnalysis:
        return self._get("analyses", analysis_id, "analysis")

    def list_analyses(self, agent_id: str) -> list[PromptAnalysis]:
        """最新的在前"""
        with self._lock:
            found = [a.model_copy(deep=True) for a in self._analyses.values() if a.agent_id == agent_id]
        return sorted(found, key=lambda a: a.created_at, reverse=True)

    # ── 测试套件 ─────────────────────────────────────────

    def save_test_suite(self, suite: TestSuite) -> TestSuite:
        return self._put("suites", suite)

    def get_test_suite(self, suite_id: str) -> TestSuite:
        return self._get("suites", suite_id, "test suite")

    def list_test_suites(self, agent_id: str) -> list[TestSuite]:
        """最新的在前"""
        with self._lock:
            found = [s.model_copy(deep=True) for s in self._suites.values() if s.agent_id == agent_id]
        return sorted(found, key=lambda s: s.created_at, reverse=True)

    # ── 测试运行 ─────────────────────────────────────────

    def save_test_run(self, run: TestRun) -> TestRun:
        """写入测试运行；已到终态的运行不可再覆盖"""
        with self._lock:
            existing = self._runs.get(run.id) if run.id else None
            if existing is not None and existing.is_terminal:
                raise ValidationError(
                    f"test run '{run.id}' is {existing.status.value} and can no longer be modified",
                    code="TEST_RUN_IMMUTABLE",
                )
            return self._put("runs", run)

    def replace_test_case_result(self, run_id: str, result: TestCaseResult, pass_rate: float) -> TestRun:
        """重试单个用例时替换其结果并更新通过率，这是终态运行唯一允许的修改"""
        with self._lock:
            run = self.get_test_run(run_id)
            ids = [r.test_case_id for r in run.results]
            if result.test_case_id in ids:
                run.results[ids.index(result.test_case_id)] = result
            else:
                run.results.append(result)
            run.overall_pass_rate = pass_rate
            return self._put("runs", run)

    def get_test_run(self, run_id: str) -> TestRun:
        return self._get("runs", run_id, "test run")

    def list_test_runs(self, agent_id: str) -> list[TestRun]:
        """最早的在前"""
        with self._lock:
            found = [r.model_copy(deep=True) for r in self._runs.values() if r.agent_id == agent_id]
        return sorted(found, key=lambda r: r.started_at)

    # ── 优化记录 ─────────────────────────────────────────

    def save_optimization(self, record: OptimizationRecord) -> OptimizationRecord:
        return self._put("optimizations", record)

    def get_optimization(self, optimization_id: str) -> OptimizationRecord:
        return self._get("optimizations", optimization_id, "optimization")

    def update_optimization_status(self, optimization_id: str, status: OptimizationStatus) -> OptimizationRecord:
        with self._lock:
            record = self.get_optimization(optimization_id)
            record.status = transition_optimization_status(record.status, status)
            return self._put("optimizations", record)

    # ── 循环记录 ─────────────────────────────────────────

    def create_cycle(self, record: CycleRecord) -> CycleRecord:
        return self._put("cycles", record)

    def get_cycle(self, cycle_id: str) -> CycleRecord:
        return self._get("cycles", cycle_id, "cycle")

    def update_cycle(self, record: CycleRecord) -> CycleRecord:
        """写入循环记录；状态变化必须是合法迁移"""
        with self._lock:
            stored = self.get_cycle(record.id)
            if stored.status != record.status:
                transition_cycle_status(stored.status, record.status)
            return self._put("cycles", record)

    # ── 快照 ─────────────────────────────────────────────

    def dump(self) -> dict[str, list[dict]]:
        with self._lock:
            return {
                name: [record.model_dump(mode="json") for record in self._collection(name).values()]
                for name in self.COLLECTIONS
            }

    def restore(self, data: dict[str, list[dict]]) -> None:
        models = {
            "agents": Agent, "analyses": PromptAnalysis, "suites": TestSuite,
            "runs": TestRun, "optimizations": OptimizationRecord, "cycles": CycleRecord,
        }
        with self._lock:
            for name, model in models.items():
                records = [model.model_validate(item) for item in data.get(name) or []]
                setattr(self, f"_{name}", {r.id: r for r in records})
