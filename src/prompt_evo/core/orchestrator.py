"""自动优化循环编排 / Auto-optimization cycle orchestration

一个循环反复执行：运行整个套件 → 检查阈值 → 优化提示词并自动采纳，
直到通过率达到目标或循环次数用尽。

暂停与取消是协作式的：控制操作只设置标记，循环在每次迭代开始时检查标记，
正在进行的测试运行和优化总会完整结束并被保存。
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Optional

from prompt_evo.core.optimizer import PromptOptimizer
from prompt_evo.core.test_runner import TestRunService
from prompt_evo.errors import ValidationError
from prompt_evo.models import (
    CycleEvent, CycleEventType, CycleRecord, CycleStatus, OptimizationStatus,
)
from prompt_evo.storage import Store
from prompt_evo.utils.state_machine import transition_cycle_status

logger = logging.getLogger(__name__)

EventListener = Callable[[CycleEvent], Any]


@dataclass
class CycleContext:
    """单个循环的运行期状态，不持久化"""
    cycle_id: str
    flag: CycleStatus = CycleStatus.RUNNING
    listeners: list[EventListener] = field(default_factory=list)
    task: Optional[asyncio.Task] = None
    finished: bool = False

    @property
    def active(self) -> bool:
        return self.task is not None and not self.task.done()


class CycleOrchestrator:
    """测试 → 评判 → 优化 的自动循环"""

    def __init__(self, store: Store, test_runs: TestRunService, optimizer: PromptOptimizer):
        self.store = store
        self.test_runs = test_runs
        self.optimizer = optimizer
        self._contexts: dict[str, CycleContext] = {}

    # ── 控制 ─────────────────────────────────────────────

    def start(self, agent_id: str, test_suite_id: str, target_threshold: float, max_cycles: int) -> str:
        """
        创建循环记录并在后台启动循环，立即返回 cycle_id

        必须在运行中的事件循环里调用。

        Raises:
            NotFoundError: Agent 或套件不存在
            ValidationError: 阈值不在 [0, 1] 或 max_cycles < 1
        """
        self.store.get_agent(agent_id)
        self.store.get_test_suite(test_suite_id)
        if not 0.0 <= target_threshold <= 1.0:
            raise ValidationError(f"target_threshold must be between 0 and 1, got {target_threshold}")
        if max_cycles < 1:
            raise ValidationError(f"max_cycles must be at least 1, got {max_cycles}")

        record = self.store.create_cycle(CycleRecord(
            agent_id=agent_id,
            test_suite_id=test_suite_id,
            target_threshold=target_threshold,
            max_cycles=max_cycles,
        ))
        ctx = self._contexts.setdefault(record.id, CycleContext(cycle_id=record.id))
        self._schedule(ctx)
        logger.info("cycle %s started (threshold=%.2f, max_cycles=%d)", record.id, target_threshold, max_cycles)
        return record.id

    def cancel(self, cycle_id: str) -> None:
        ctx = self._context(cycle_id)
        record = self.store.get_cycle(cycle_id)
        transition_cycle_status(self._effective_status(ctx, record), CycleStatus.CANCELLED)

        if ctx.active:
            ctx.flag = CycleStatus.CANCELLED
            return

        # 没有正在运行的循环（例如已暂停），直接落盘
        ctx.flag = CycleStatus.CANCELLED
        self._finish(ctx, record, CycleStatus.CANCELLED)

    def pause(self, cycle_id: str) -> None:
        ctx = self._context(cycle_id)
        record = self.store.get_cycle(cycle_id)
        transition_cycle_status(self._effective_status(ctx, record), CycleStatus.PAUSED)

        ctx.flag = CycleStatus.PAUSED
        if not ctx.active:
            self._finish(ctx, record, CycleStatus.PAUSED)

    def resume(self, cycle_id: str) -> None:
        """从已保存的计数与 ID 列表继续；旧循环尚未停下时只清除暂停标记"""
        ctx = self._context(cycle_id)
        record = self.store.get_cycle(cycle_id)
        transition_cycle_status(self._effective_status(ctx, record), CycleStatus.RUNNING)

        ctx.flag = CycleStatus.RUNNING
        if ctx.active:
            return

        record.status = CycleStatus.RUNNING
        self.store.update_cycle(record)
        self._schedule(ctx)
        logger.info("cycle %s resumed at iteration %d", cycle_id, record.cycle_count)

    def get_record(self, cycle_id: str) -> CycleRecord:
        return self.store.get_cycle(cycle_id)

    async def wait(self, cycle_id: str) -> CycleRecord:
        """等待当前循环任务结束，返回最新记录"""
        ctx = self._context(cycle_id)
        while ctx.active:
            await ctx.task
        return self.store.get_cycle(cycle_id)

    # ── 事件 ─────────────────────────────────────────────

    def add_event_listener(self, cycle_id: str, listener: EventListener) -> None:
        self._context(cycle_id).listeners.append(listener)

    def remove_event_listener(self, cycle_id: str, listener: EventListener) -> None:
        ctx = self._context(cycle_id)
        if listener in ctx.listeners:
            ctx.listeners.remove(listener)
        self._release(ctx)

    async def events(self, cycle_id: str) -> AsyncIterator[CycleEvent]:
        """逐个产出事件，收到 finished 或 error 后结束"""
        ctx = self._context(cycle_id)
        queue: asyncio.Queue[CycleEvent] = asyncio.Queue()
        listener = queue.put_nowait
        self.add_event_listener(cycle_id, listener)
        try:
            if not ctx.active:
                return
            while True:
                event = await queue.get()
                yield event
                if event.is_terminal:
                    return
        finally:
            self.remove_event_listener(cycle_id, listener)

    def _emit(self, ctx: CycleContext, event: CycleEvent) -> None:
        for listener in list(ctx.listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("cycle %s event listener failed", ctx.cycle_id)

    # ── 循环 ─────────────────────────────────────────────

    def _context(self, cycle_id: str) -> CycleContext:
        ctx = self._contexts.get(cycle_id)
        if ctx is None:
            record = self.store.get_cycle(cycle_id)
            ctx = self._contexts.setdefault(cycle_id, CycleContext(
                cycle_id=cycle_id, flag=record.status, finished=record.is_terminal,
            ))
        return ctx

    @staticmethod
    def _effective_status(ctx: CycleContext, record: CycleRecord) -> CycleStatus:
        """循环仍在运行时以标记为准，否则以已保存的状态为准"""
        return ctx.flag if ctx.active else record.status

    def _schedule(self, ctx: CycleContext) -> None:
        ctx.task = asyncio.get_running_loop().create_task(self._run(ctx))

    async def _run(self, ctx: CycleContext) -> None:
        try:
            await self._loop(ctx)
        except Exception as e:
            # 记录保持最后一次保存的状态
            logger.exception("cycle %s failed", ctx.cycle_id)
            self._emit(ctx, CycleEvent(
                type=CycleEventType.ERROR,
                cycle_id=ctx.cycle_id,
                message=str(e) or type(e).__name__,
            ))

    async def _loop(self, ctx: CycleContext) -> None:
        record = self.store.get_cycle(ctx.cycle_id)

        while True:
            if ctx.flag in (CycleStatus.CANCELLED, CycleStatus.PAUSED):
                self._finish(ctx, record, ctx.flag)
                return
            if record.cycle_count >= record.max_cycles:
                self._finish(ctx, record, CycleStatus.COMPLETED)
                return

            record.cycle_count += 1
            self._emit(ctx, CycleEvent(
                type=CycleEventType.CYCLE_START, cycle_id=record.id, cycle_number=record.cycle_count,
            ))

            try:
                run = await self.test_runs.execute_test_run(
                    record.agent_id, record.test_suite_id,
                    on_started=lambda started: record.test_run_ids.append(started.id),
                )
            except Exception:
                # 中断的运行同样记入循环
                self.store.update_cycle(record)
                raise
            record.ending_pass_rate = run.overall_pass_rate
            if len(record.test_run_ids) == 1:
                record.starting_pass_rate = run.overall_pass_rate
            record = self.store.update_cycle(record)
            self._emit(ctx, CycleEvent(
                type=CycleEventType.TEST_RUN_COMPLETE, cycle_id=record.id,
                cycle_number=record.cycle_count, pass_rate=run.overall_pass_rate,
            ))
            logger.info(
                "cycle %s iteration %d/%d: pass rate %.1f%%",
                record.id, record.cycle_count, record.max_cycles, run.overall_pass_rate * 100,
            )

            if run.overall_pass_rate >= record.target_threshold:
                self._finish(ctx, record, CycleStatus.COMPLETED)
                return

            if record.cycle_count >= record.max_cycles:
                self._finish(ctx, record, CycleStatus.COMPLETED)
                return

            failures, passes = run.partition_results()
            if not failures:
                # 全部是 error 用例时没有可优化的判定，直接进入下一轮
                continue

            agent = self.store.get_agent(record.agent_id)
            optimization = await self.optimizer.optimize(
                run.id, record.agent_id, agent.current_prompt, failures, passes,
            )
            self.store.update_optimization_status(optimization.id, OptimizationStatus.ACCEPTED)
            self.store.update_agent_prompt(record.agent_id, optimization.revised_prompt)

            record.optimization_ids.append(optimization.id)
            record = self.store.update_cycle(record)
            self._emit(ctx, CycleEvent(
                type=CycleEventType.OPTIMIZATION_COMPLETE, cycle_id=record.id, cycle_number=record.cycle_count,
            ))

    def _finish(self, ctx: CycleContext, record: CycleRecord, status: CycleStatus) -> None:
        record.status = status
        if status != CycleStatus.PAUSED:
            record.completed_at = datetime.now()
        self.store.update_cycle(record)
        logger.info("cycle %s %s after %d iteration(s)", record.id, status.value, record.cycle_count)
        self._emit(ctx, CycleEvent(
            type=CycleEventType.FINISHED,
            cycle_id=record.id,
            cycle_number=record.cycle_count,
            pass_rate=record.ending_pass_rate,
            status=status,
        ))
        ctx.finished = status in (CycleStatus.COMPLETED, CycleStatus.CANCELLED)
        self._release(ctx)

    def _release(self, ctx: CycleContext) -> None:
        """终态循环在最后一个监听者离开后释放运行期状态"""
        if ctx.finished and not ctx.listeners and self._contexts.get(ctx.cycle_id) is ctx:
            del self._contexts[ctx.cycle_id]
