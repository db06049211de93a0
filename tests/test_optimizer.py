import pytest

from prompt_evo.errors import InvalidTransitionError, NoFailuresError, ProviderContractError
from prompt_evo.models import CriterionResult, OptimizationStatus

from conftest import BASE_PROMPT


async def test_optimize_saves_generated_record(pipeline, llm, agent_and_suite):
    agent, suite = agent_and_suite
    llm.always_fail()
    run = await pipeline.execute_test_run(agent.id, suite.id)

    outcome = await pipeline.optimize_prompt(run.id)

    record = outcome.record
    assert record.status == OptimizationStatus.GENERATED
    assert record.test_run_id == run.id
    assert record.original_prompt == BASE_PROMPT
    assert record.revised_prompt == f"{BASE_PROMPT}\nRevision 1."
    assert set(record.targeted_failures) == set(suite.criteria_index())
    assert [c.type for c in outcome.diff][-1] == "added"
    # 生成后不会自动采纳
    assert pipeline.get_agent(agent.id).current_prompt == BASE_PROMPT


async def test_optimizer_requires_failures(pipeline, agent_and_suite):
    agent, suite = agent_and_suite
    run = await pipeline.execute_test_run(agent.id, suite.id)

    with pytest.raises(NoFailuresError):
        await pipeline.optimize_prompt(run.id)
    with pytest.raises(NoFailuresError):
        await pipeline.optimizer.optimize(run.id, agent.id, BASE_PROMPT, [], [])


async def test_identical_revision_is_a_contract_violation(pipeline, llm):
    llm.identical_revision = True
    failures = [CriterionResult(criterion_id="c", passed=False, explanation="missed")]

    with pytest.raises(ProviderContractError) as exc_info:
        await pipeline.optimizer.optimize("run", "agent", BASE_PROMPT, failures, [])

    assert exc_info.value.code == "PROVIDER_CONTRACT_VIOLATION"
    assert exc_info.value.retryable is True


async def test_apply_and_reject(pipeline, llm, agent_and_suite):
    agent, suite = agent_and_suite
    llm.always_fail()
    run = await pipeline.execute_test_run(agent.id, suite.id)
    first = (await pipeline.optimize_prompt(run.id)).record
    second = (await pipeline.optimize_prompt(run.id)).record

    updated = pipeline.apply_optimization(first.id)
    rejected = pipeline.reject_optimization(second.id)

    assert updated.current_prompt == first.revised_prompt
    assert updated.original_prompt == BASE_PROMPT
    assert pipeline.get_optimization(first.id).status == OptimizationStatus.ACCEPTED
    assert rejected.status == OptimizationStatus.REJECTED

    with pytest.raises(InvalidTransitionError):
        pipeline.apply_optimization(second.id)
    assert pipeline.get_agent(agent.id).current_prompt == first.revised_prompt
