import asyncio
from typing import Callable, Optional

import pytest

from prompt_evo.adapters.base import AgentAdapter
from prompt_evo.core.llm_service import LLMService
from prompt_evo.core.mock_llm import MockLLMService
from prompt_evo.core.pipeline import Pipeline
from prompt_evo.models import (
    Config, CriterionResult, ExecutorConfig, LLMConfig, OptimizationProposal,
    PromptChange, SuccessCriterion,
)
from prompt_evo.storage import Store

BASE_PROMPT = "You are a dental clinic receptionist.\nGreet the caller.\nCollect their name."


class FakeLLMService(LLMService):
    """分析与生成沿用模拟数据，评判结果与修订稿可由测试控制"""

    def __init__(self):
        self._mock = MockLLMService()
        self.verdict: Callable[[SuccessCriterion, str], bool] = lambda criterion, response: True
        self.optimize_calls = 0
        self.evaluated: list[str] = []
        self.identical_revision = False

    async def analyze_prompt(self, prompt):
        return await self._mock.analyze_prompt(prompt)

    async def generate_test_cases(self, analysis):
        return await self._mock.generate_test_cases(analysis)

    async def evaluate_criterion(self, response, criterion):
        self.evaluated.append(criterion.id)
        passed = self.verdict(criterion, response)
        return CriterionResult(criterion_id=criterion.id, passed=passed, explanation="")

    async def optimize_prompt(self, original, failures, passes):
        self.optimize_calls += 1
        revised = original if self.identical_revision else f"{original}\nRevision {self.optimize_calls}."
        return OptimizationProposal(
            original_prompt=original,
            revised_prompt=revised,
            changes=[PromptChange(description=f"revision {self.optimize_calls}")],
            targeted_failures=[f.criterion_id for f in failures],
        )

    def fail_until_optimized(self, times: int) -> None:
        """前 times 次优化之前所有判定失败，之后全部通过"""
        self.verdict = lambda criterion, response: self.optimize_calls >= times

    def always_fail(self, criterion_ids: Optional[set[str]] = None) -> None:
        self.verdict = lambda criterion, response: criterion_ids is not None and criterion.id not in criterion_ids


class EchoAdapter(AgentAdapter):
    """回显话语，并记录每轮收到的提示词"""

    def __init__(self, failing_utterances: Optional[set[str]] = None):
        self.failing_utterances = failing_utterances or set()
        self.calls: list[tuple[str, str, Optional[str]]] = []

    async def send(self, utterance, prompt, context=None):
        self.calls.append((utterance, prompt, context))
        if utterance in self.failing_utterances:
            raise ConnectionError(f"agent unreachable while handling {utterance!r}")
        return f"echo: {utterance}"


class GatedAdapter(EchoAdapter):
    """第一次 send 时阻塞，直到测试放行"""

    def __init__(self):
        super().__init__()
        self.entered = asyncio.Event()
        self.gate = asyncio.Event()

    async def send(self, utterance, prompt, context=None):
        self.entered.set()
        await self.gate.wait()
        return await super().send(utterance, prompt, context)


@pytest.fixture
def store():
    return Store()


@pytest.fixture
def llm():
    return FakeLLMService()


@pytest.fixture
def adapter():
    return EchoAdapter()


@pytest.fixture
def config():
    return Config(llm=LLMConfig(provider="mock"), executor=ExecutorConfig(turn_delay=0))


@pytest.fixture
def pipeline(config, store, llm, adapter):
    return Pipeline(config, store=store, llm=llm, adapter=adapter)


@pytest.fixture
async def agent_and_suite(pipeline):
    agent = pipeline.register_agent("receptionist", BASE_PROMPT)
    analysis = await pipeline.analyze_prompt(agent.id)
    suite = await pipeline.generate_test_suite(agent.id, analysis.id)
    return agent, suite
