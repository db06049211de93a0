import asyncio

import pytest

from prompt_evo.errors import InvalidTransitionError, NotFoundError, ProviderError, ValidationError
from prompt_evo.models import CycleEventType, CycleStatus, OptimizationStatus, TestRunStatus

from conftest import BASE_PROMPT, GatedAdapter

TIMEOUT = 5


async def finish(pipeline, cycle_id):
    return await asyncio.wait_for(pipeline.wait_cycle(cycle_id), timeout=TIMEOUT)


async def test_stops_after_max_cycles_without_reaching_threshold(pipeline, llm, agent_and_suite):
    agent, suite = agent_and_suite
    llm.always_fail()

    cycle_id = pipeline.start_cycle(agent.id, suite.id, target_threshold=0.9, max_cycles=3)
    record = await finish(pipeline, cycle_id)

    assert record.status == CycleStatus.COMPLETED
    assert record.cycle_count == 3
    assert len(record.test_run_ids) == 3
    # 最后一轮之后不再优化
    assert len(record.optimization_ids) == 2
    assert llm.optimize_calls == 2
    assert record.starting_pass_rate == record.ending_pass_rate == 0.0
    assert record.completed_at is not None


async def test_stops_as_soon_as_threshold_is_reached(pipeline, llm, agent_and_suite):
    agent, suite = agent_and_suite
    llm.fail_until_optimized(2)

    cycle_id = pipeline.start_cycle(agent.id, suite.id, target_threshold=0.9, max_cycles=5)
    record = await finish(pipeline, cycle_id)

    assert record.status == CycleStatus.COMPLETED
    assert record.cycle_count == 3
    assert record.starting_pass_rate == 0.0
    assert record.ending_pass_rate == 1.0
    assert pipeline.get_agent(agent.id).current_prompt == f"{BASE_PROMPT}\nRevision 1.\nRevision 2."
    for optimization_id in record.optimization_ids:
        assert pipeline.get_optimization(optimization_id).status == OptimizationStatus.ACCEPTED


async def test_each_run_uses_the_prompt_accepted_before_it(pipeline, store, llm, agent_and_suite):
    agent, suite = agent_and_suite
    llm.always_fail()

    record = await finish(pipeline, pipeline.start_cycle(agent.id, suite.id, 0.9, 3))

    snapshots = [store.get_test_run(run_id).prompt_snapshot for run_id in record.test_run_ids]
    revised = [pipeline.get_optimization(oid).revised_prompt for oid in record.optimization_ids]
    assert snapshots == [BASE_PROMPT] + revised


async def test_zero_threshold_completes_after_one_run(pipeline, llm, agent_and_suite):
    agent, suite = agent_and_suite
    llm.always_fail()

    record = await finish(pipeline, pipeline.start_cycle(agent.id, suite.id, 0.0, 5))

    assert record.cycle_count == 1
    assert record.optimization_ids == []


async def test_runs_with_only_errors_skip_optimization(pipeline, llm, agent_and_suite):
    agent, suite = agent_and_suite
    pipeline.executor.adapter.failing_utterances.update(
        case.user_input_sequence[0].utterance for case in suite.test_cases
    )

    record = await finish(pipeline, pipeline.start_cycle(agent.id, suite.id, 0.9, 2))

    assert record.status == CycleStatus.COMPLETED
    assert record.cycle_count == 2
    assert record.optimization_ids == []
    assert llm.optimize_calls == 0


async def test_events_are_streamed_in_order(pipeline, llm, agent_and_suite):
    agent, suite = agent_and_suite
    llm.always_fail()
    cycle_id = pipeline.start_cycle(agent.id, suite.id, 0.9, 2)

    events = [event async for event in pipeline.orchestrator.events(cycle_id)]

    assert [(e.type, e.cycle_number) for e in events] == [
        (CycleEventType.CYCLE_START, 1),
        (CycleEventType.TEST_RUN_COMPLETE, 1),
        (CycleEventType.OPTIMIZATION_COMPLETE, 1),
        (CycleEventType.CYCLE_START, 2),
        (CycleEventType.TEST_RUN_COMPLETE, 2),
        (CycleEventType.FINISHED, 2),
    ]
    assert events[1].pass_rate == 0.0
    assert events[-1].status == CycleStatus.COMPLETED


async def test_failing_listener_does_not_stop_the_cycle(pipeline, agent_and_suite):
    agent, suite = agent_and_suite
    received = []

    def broken(event):
        raise RuntimeError("listener bug")

    cycle_id = pipeline.start_cycle(agent.id, suite.id, 0.9, 2)
    pipeline.subscribe(cycle_id, broken)
    pipeline.subscribe(cycle_id, received.append)
    record = await finish(pipeline, cycle_id)

    assert record.status == CycleStatus.COMPLETED
    assert received[-1].type == CycleEventType.FINISHED


async def test_fatal_error_is_reported_as_event(pipeline, llm, agent_and_suite):
    agent, suite = agent_and_suite
    llm.always_fail()
    llm.identical_revision = True
    cycle_id = pipeline.start_cycle(agent.id, suite.id, 0.9, 3)

    events = [event async for event in pipeline.orchestrator.events(cycle_id)]

    assert events[-1].type == CycleEventType.ERROR
    assert "identical" in events[-1].message
    record = pipeline.get_cycle_record(cycle_id)
    assert record.status == CycleStatus.RUNNING
    assert len(record.test_run_ids) == 1


async def test_events_on_finished_cycle_end_immediately(pipeline, agent_and_suite):
    agent, suite = agent_and_suite
    cycle_id = pipeline.start_cycle(agent.id, suite.id, 0.9, 1)
    await finish(pipeline, cycle_id)

    assert [event async for event in pipeline.orchestrator.events(cycle_id)] == []


class TestStartValidation:
    async def test_threshold_out_of_range(self, pipeline, agent_and_suite):
        agent, suite = agent_and_suite
        with pytest.raises(ValidationError):
            pipeline.start_cycle(agent.id, suite.id, target_threshold=1.5, max_cycles=3)

    async def test_max_cycles_below_one(self, pipeline, agent_and_suite):
        agent, suite = agent_and_suite
        with pytest.raises(ValidationError):
            pipeline.start_cycle(agent.id, suite.id, target_threshold=0.9, max_cycles=0)

    async def test_unknown_agent_or_suite(self, pipeline, agent_and_suite):
        agent, suite = agent_and_suite
        with pytest.raises(NotFoundError):
            pipeline.start_cycle("missing", suite.id)
        with pytest.raises(NotFoundError):
            pipeline.start_cycle(agent.id, "missing")

    async def test_defaults_come_from_config(self, pipeline, config, agent_and_suite):
        agent, suite = agent_and_suite
        cycle_id = pipeline.start_cycle(agent.id, suite.id)
        record = await finish(pipeline, cycle_id)

        assert record.target_threshold == config.cycle.target_threshold
        assert record.max_cycles == config.cycle.max_cycles


class TestCooperativeControl:
    """控制操作只设置标记，正在进行的迭代完整结束"""

    @pytest.fixture
    def adapter(self):
        return GatedAdapter()

    async def start_and_block(self, pipeline, agent_and_suite, max_cycles=3):
        agent, suite = agent_and_suite
        cycle_id = pipeline.start_cycle(agent.id, suite.id, 0.9, max_cycles)
        await asyncio.wait_for(pipeline.executor.adapter.entered.wait(), timeout=TIMEOUT)
        return cycle_id

    async def test_cancel_mid_iteration_keeps_the_run(self, pipeline, store, llm, agent_and_suite):
        llm.always_fail()
        cycle_id = await self.start_and_block(pipeline, agent_and_suite)

        pipeline.cancel_cycle(cycle_id)
        assert pipeline.get_cycle_record(cycle_id).status == CycleStatus.RUNNING
        pipeline.executor.adapter.gate.set()
        record = await finish(pipeline, cycle_id)

        assert record.status == CycleStatus.CANCELLED
        assert record.cycle_count == 1
        assert len(record.test_run_ids) == 1
        assert store.get_test_run(record.test_run_ids[0]).is_terminal
        assert record.completed_at is not None

    async def test_pause_then_resume_continues_counters(self, pipeline, llm, agent_and_suite):
        llm.fail_until_optimized(1)
        cycle_id = await self.start_and_block(pipeline, agent_and_suite)

        pipeline.pause_cycle(cycle_id)
        pipeline.executor.adapter.gate.set()
        paused = await finish(pipeline, cycle_id)

        assert paused.status == CycleStatus.PAUSED
        assert paused.cycle_count == 1
        assert paused.completed_at is None
        assert len(paused.optimization_ids) == 1

        pipeline.resume_cycle(cycle_id)
        record = await finish(pipeline, cycle_id)

        assert record.status == CycleStatus.COMPLETED
        assert record.cycle_count == 2
        assert record.test_run_ids[0] == paused.test_run_ids[0]
        assert record.starting_pass_rate == 0.0
        assert record.ending_pass_rate == 1.0

    async def test_resume_before_loop_notices_pause(self, pipeline, llm, agent_and_suite):
        llm.fail_until_optimized(1)
        cycle_id = await self.start_and_block(pipeline, agent_and_suite)
        statuses = []
        pipeline.subscribe(cycle_id, lambda event: statuses.append(event.status))

        pipeline.pause_cycle(cycle_id)
        pipeline.resume_cycle(cycle_id)
        pipeline.executor.adapter.gate.set()
        record = await finish(pipeline, cycle_id)

        assert record.status == CycleStatus.COMPLETED
        assert record.cycle_count == 2
        assert CycleStatus.PAUSED not in statuses

    async def test_cancel_paused_cycle(self, pipeline, llm, agent_and_suite):
        llm.always_fail()
        cycle_id = await self.start_and_block(pipeline, agent_and_suite)
        pipeline.pause_cycle(cycle_id)
        pipeline.executor.adapter.gate.set()
        await finish(pipeline, cycle_id)

        pipeline.cancel_cycle(cycle_id)

        record = pipeline.get_cycle_record(cycle_id)
        assert record.status == CycleStatus.CANCELLED
        assert record.completed_at is not None
        with pytest.raises(InvalidTransitionError):
            pipeline.resume_cycle(cycle_id)

    async def test_controls_on_terminal_cycle_are_rejected(self, pipeline, agent_and_suite):
        cycle_id = await self.start_and_block(pipeline, agent_and_suite, max_cycles=1)
        pipeline.executor.adapter.gate.set()
        await finish(pipeline, cycle_id)

        for control in (pipeline.pause_cycle, pipeline.resume_cycle, pipeline.cancel_cycle):
            with pytest.raises(InvalidTransitionError):
                control(cycle_id)


async def test_aborted_run_is_recorded_in_error_state(pipeline, store, llm, agent_and_suite):
    agent, suite = agent_and_suite

    async def unavailable(response, criterion):
        raise ProviderError("evaluate_criterion failed after 4 attempts: timed out")

    llm.evaluate_criterion = unavailable
    cycle_id = pipeline.start_cycle(agent.id, suite.id, 0.9, 3)

    events = [event async for event in pipeline.orchestrator.events(cycle_id)]

    assert [e.type for e in events] == [CycleEventType.CYCLE_START, CycleEventType.ERROR]
    record = pipeline.get_cycle_record(cycle_id)
    assert len(record.test_run_ids) == 1
    assert store.get_test_run(record.test_run_ids[0]).status == TestRunStatus.ERROR
    assert all(run.is_terminal for run in store.list_test_runs(agent.id))


async def test_late_listener_only_sees_later_events(pipeline, llm, agent_and_suite):
    agent, suite = agent_and_suite
    llm.always_fail()
    early, late = [], []
    cycle_id = pipeline.start_cycle(agent.id, suite.id, 0.9, 2)

    def on_event(event):
        early.append(event)
        if event.type == CycleEventType.OPTIMIZATION_COMPLETE:
            pipeline.subscribe(cycle_id, late.append)

    pipeline.subscribe(cycle_id, on_event)
    await finish(pipeline, cycle_id)

    assert len(early) == 6
    assert [(e.type, e.cycle_number) for e in late] == [
        (CycleEventType.CYCLE_START, 2),
        (CycleEventType.TEST_RUN_COMPLETE, 2),
        (CycleEventType.FINISHED, 2),
    ]


async def test_removing_last_listener_does_not_stop_the_cycle(pipeline, llm, agent_and_suite):
    agent, suite = agent_and_suite
    llm.always_fail()
    received = []
    cycle_id = pipeline.start_cycle(agent.id, suite.id, 0.9, 3)

    def until_first_run(event):
        received.append(event.type)
        if event.type == CycleEventType.TEST_RUN_COMPLETE:
            pipeline.orchestrator.remove_event_listener(cycle_id, until_first_run)

    pipeline.subscribe(cycle_id, until_first_run)
    record = await finish(pipeline, cycle_id)

    assert received == [CycleEventType.CYCLE_START, CycleEventType.TEST_RUN_COMPLETE]
    assert record.status == CycleStatus.COMPLETED
    assert record.cycle_count == 3


async def test_finished_cycle_releases_runtime_state(pipeline, agent_and_suite):
    agent, suite = agent_and_suite
    quiet = pipeline.start_cycle(agent.id, suite.id, 0.9, 1)
    await finish(pipeline, quiet)

    streamed = pipeline.start_cycle(agent.id, suite.id, 0.9, 1)
    events = [event async for event in pipeline.orchestrator.events(streamed)]

    assert events[-1].type == CycleEventType.FINISHED
    assert quiet not in pipeline.orchestrator._contexts
    assert streamed not in pipeline.orchestrator._contexts
    with pytest.raises(InvalidTransitionError):
        pipeline.pause_cycle(quiet)
