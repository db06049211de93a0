from datetime import datetime, timedelta

import pytest

from prompt_evo.errors import InvalidTransitionError, NotFoundError, ValidationError
from prompt_evo.models import (
    CriterionResult, CycleRecord, CycleStatus, OptimizationRecord, OptimizationStatus,
    PromptAnalysis, TestCaseResult, TestCaseStatus, TestRun, TestRunStatus,
)
from prompt_evo.storage import FileStore, Store


def completed_run(store, agent_id, passed=True):
    run = store.save_test_run(TestRun(test_suite_id="suite", agent_id=agent_id, prompt_snapshot="p"))
    run.results = [TestCaseResult(
        test_case_id="tc",
        status=TestCaseStatus.COMPLETED,
        criterion_results=[CriterionResult(criterion_id="c", passed=passed)],
    )]
    run.status = TestRunStatus.COMPLETED
    run.overall_pass_rate = 1.0 if passed else 0.0
    return store.save_test_run(run)


class TestStore:
    def test_reads_are_isolated_copies(self, store):
        agent = store.create_agent("a", "prompt")
        fetched = store.get_agent(agent.id)
        fetched.current_prompt = "tampered"

        assert store.get_agent(agent.id).current_prompt == "prompt"

    def test_missing_records_raise_not_found(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            store.get_agent("nope")
        assert exc_info.value.code == "AGENT_NOT_FOUND"

        with pytest.raises(NotFoundError) as exc_info:
            store.get_test_suite("nope")
        assert exc_info.value.code == "TEST_SUITE_NOT_FOUND"

    def test_update_prompt_keeps_original(self, store):
        agent = store.create_agent("a", "v1")
        updated = store.update_agent_prompt(agent.id, "v2")

        assert updated.original_prompt == "v1"
        assert updated.current_prompt == "v2"

    def test_transaction_rolls_back_every_write(self, store):
        kept = store.create_agent("kept", "p")

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.create_agent("dropped", "p")
                store.update_agent_prompt(kept.id, "changed")
                raise RuntimeError("boom")

        assert [a.name for a in store.list_agents()] == ["kept"]
        assert store.get_agent(kept.id).current_prompt == "p"

    def test_analyses_are_listed_newest_first(self, store):
        now = datetime.now()
        old = store.save_analysis(PromptAnalysis(agent_id="a", raw_prompt="p", created_at=now - timedelta(hours=1)))
        new = store.save_analysis(PromptAnalysis(agent_id="a", raw_prompt="p", created_at=now))
        store.save_analysis(PromptAnalysis(agent_id="other", raw_prompt="p"))

        assert [a.id for a in store.list_analyses("a")] == [new.id, old.id]

    def test_terminal_run_cannot_be_overwritten(self, store):
        run = completed_run(store, "agent")
        run.overall_pass_rate = 0.5

        with pytest.raises(ValidationError) as exc_info:
            store.save_test_run(run)
        assert exc_info.value.code == "TEST_RUN_IMMUTABLE"

    def test_replacing_a_result_is_allowed_on_terminal_run(self, store):
        run = completed_run(store, "agent", passed=False)
        retried = TestCaseResult(
            test_case_id="tc",
            status=TestCaseStatus.COMPLETED,
            criterion_results=[CriterionResult(criterion_id="c", passed=True)],
        )

        updated = store.replace_test_case_result(run.id, retried, 1.0)

        assert len(updated.results) == 1
        assert updated.results[0].criterion_results[0].passed
        assert updated.overall_pass_rate == 1.0
        assert updated.status == TestRunStatus.COMPLETED

    def test_optimization_status_follows_state_machine(self, store):
        record = store.save_optimization(OptimizationRecord(
            test_run_id="r", agent_id="a", original_prompt="p", revised_prompt="p2",
        ))
        assert store.update_optimization_status(record.id, OptimizationStatus.REJECTED).status == OptimizationStatus.REJECTED

        with pytest.raises(InvalidTransitionError):
            store.update_optimization_status(record.id, OptimizationStatus.ACCEPTED)

    def test_cycle_status_follows_state_machine(self, store):
        record = store.create_cycle(CycleRecord(agent_id="a", test_suite_id="s", target_threshold=0.9, max_cycles=3))
        record.status = CycleStatus.COMPLETED
        record = store.update_cycle(record)

        record.status = CycleStatus.RUNNING
        with pytest.raises(InvalidTransitionError):
            store.update_cycle(record)
        assert store.get_cycle(record.id).status == CycleStatus.COMPLETED


class TestFileStore:
    def test_snapshot_round_trip(self, tmp_path):
        path = tmp_path / "state" / "state.yaml"
        store = FileStore(str(path))
        agent = store.create_agent("receptionist", "你好，这里是诊所前台")
        run = completed_run(store, agent.id)
        store.flush()

        reopened = FileStore(str(path))

        assert reopened.get_agent(agent.id).current_prompt == "你好，这里是诊所前台"
        loaded = reopened.get_test_run(run.id)
        assert loaded.status == TestRunStatus.COMPLETED
        assert loaded.results[0].criterion_results[0].criterion_id == "c"
        assert not path.with_suffix(".yaml.tmp").exists()

    def test_missing_file_starts_empty(self, tmp_path):
        store = FileStore(str(tmp_path / "absent.yaml"))
        assert store.list_agents() == []
