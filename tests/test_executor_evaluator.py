import pytest

from prompt_evo.adapters import CallableAdapter, SimulatedAgentAdapter
from prompt_evo.core.evaluator import ResultEvaluator, format_responses
from prompt_evo.core.executor import UNKNOWN_EXECUTION_ERROR, TestExecutor
from prompt_evo.models import (
    AgentResponse, CriterionCategory, SuccessCriterion, TestCase, TestCaseStatus,
)

from conftest import EchoAdapter


def make_case(*utterances):
    return TestCase(
        id="case-1",
        scenario_description="Caller books a cleaning",
        scenario_type="happy-path",
        user_input_sequence=[{"turn": i, "utterance": u} for i, u in enumerate(utterances, start=1)],
        success_criteria=[{
            "id": "crit-1",
            "description": "Agent greets the caller",
            "category": "behavioral",
            "evaluation_prompt": "Does the agent greet the caller?",
        }],
    )


class BlankErrorAdapter(EchoAdapter):
    async def send(self, utterance, prompt, context=None):
        raise RuntimeError("   ")


class TestExecuteTestCase:
    async def test_collects_one_response_per_turn(self):
        adapter = EchoAdapter()
        result = await TestExecutor(adapter).execute_test_case(make_case("hi", "book please"), "PROMPT")

        assert result.status == TestCaseStatus.COMPLETED
        assert [(r.turn, r.utterance) for r in result.agent_responses] == [(1, "echo: hi"), (2, "echo: book please")]
        assert result.criterion_results == []
        assert all(call[1] == "PROMPT" for call in adapter.calls)

    async def test_failing_turn_turns_case_into_error(self):
        adapter = EchoAdapter(failing_utterances={"book please"})
        result = await TestExecutor(adapter).execute_test_case(make_case("hi", "book please", "bye"), "p")

        assert result.status == TestCaseStatus.ERROR
        assert "agent unreachable" in result.error_message
        assert result.agent_responses == []
        assert len(adapter.calls) == 2

    async def test_blank_error_message_falls_back(self):
        result = await TestExecutor(BlankErrorAdapter()).execute_test_case(make_case("hi"), "p")
        assert result.error_message == UNKNOWN_EXECUTION_ERROR == "Unknown execution error"


class TestAdapters:
    async def test_simulated_agent_references_utterance(self):
        reply = await SimulatedAgentAdapter(turn_delay=0).send("hello", "prompt")
        assert reply == '[Mock agent response to "hello" based on prompt]'

    async def test_callable_adapter_passes_what_the_function_accepts(self):
        seen = []

        def one_arg(utterance):
            return f"1:{utterance}"

        async def three_args(utterance, prompt, context):
            seen.append(context)
            return f"3:{utterance}:{prompt}"

        assert await CallableAdapter(one_arg).send("hi", "p", "ctx") == "1:hi"
        assert await CallableAdapter(three_args).send("hi", "p", "ctx") == "3:hi:p"
        assert seen == ["ctx"]


class TestEvaluator:
    CRITERION = SuccessCriterion(
        id="crit-1",
        description="Agent greets the caller",
        category=CriterionCategory.BEHAVIORAL,
        evaluation_prompt="Does the agent greet the caller?",
    )

    def test_format_responses(self):
        responses = [AgentResponse(turn=1, utterance="Hello!"), AgentResponse(turn=2, utterance="Bye.")]
        assert format_responses(responses) == "Turn 1: Hello!\nTurn 2: Bye."

    async def test_failed_verdict_gets_explanation(self, llm):
        llm.always_fail()
        result = await ResultEvaluator(llm).evaluate_criterion([AgentResponse(turn=1, utterance="...")], self.CRITERION)

        assert not result.passed
        assert result.explanation == 'Criterion "Agent greets the caller" was not met by the agent response.'

    async def test_passing_verdict_left_untouched(self, llm):
        result = await ResultEvaluator(llm).evaluate_criterion([], self.CRITERION)
        assert result.passed
        assert result.explanation == ""

    async def test_evaluate_all_preserves_order(self, llm):
        second = self.CRITERION.model_copy(update={"id": "crit-2"})
        results = await ResultEvaluator(llm).evaluate_all_criteria([], [self.CRITERION, second])

        assert [r.criterion_id for r in results] == ["crit-1", "crit-2"]
        assert llm.evaluated == ["crit-1", "crit-2"]
