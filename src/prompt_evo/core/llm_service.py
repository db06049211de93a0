"""LLM 服务 / Generative-model service

四个操作共用同一条链路：渲染模板 → 单次调用 → 容错解析 → pydantic 校验，
任何一步失败都算一次失败尝试，交给 retry_with_backoff 重试。
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from prompt_evo.models import (
    Config, CriterionResult, LLMConfig, OptimizationProposal, PromptAnalysis,
    SuccessCriterion, TestCase,
)
from prompt_evo.utils.llm import LLMClient
from prompt_evo.utils.parsing import ParseResult, parse_json_response
from prompt_evo.utils.retry import SleepFn, retry_with_backoff

logger = logging.getLogger(__name__)

PROMPT_DIR = Path(__file__).parent.parent / "prompts"

MIN_TEST_CASES = 5


def load_prompt_template(name: str) -> str:
    """读取 prompts/<name>.md"""
    return (PROMPT_DIR / f"{name}.md").read_text(encoding="utf-8")


class LLMService(ABC):
    """LLM 服务接口，调用方只依赖这四个操作"""

    @abstractmethod
    async def analyze_prompt(self, prompt: str) -> PromptAnalysis:
        """把提示词拆解为目标、对话流程与期望行为"""

    @abstractmethod
    async def generate_test_cases(self, analysis: PromptAnalysis) -> list[TestCase]:
        """根据分析结果生成测试用例"""

    @abstractmethod
    async def evaluate_criterion(self, response: str, criterion: SuccessCriterion) -> CriterionResult:
        """判断 Agent 回复是否满足某条标准"""

    @abstractmethod
    async def optimize_prompt(
        self,
        original: str,
        failures: list[CriterionResult],
        passes: list[CriterionResult],
    ) -> OptimizationProposal:
        """针对失败的判定给出修订后的提示词"""


# ─── 结构化输出转换 ──────────────────────────────────────

def _validate(model: type[BaseModel], data: Any) -> ParseResult:
    if not isinstance(data, dict):
        return ParseResult.failure(f"expected a JSON object, got {type(data).__name__}")
    try:
        return ParseResult.success(model.model_validate(data))
    except PydanticValidationError as e:
        return ParseResult.failure(f"invalid {model.__name__} payload: {e.error_count()} error(s): {e.errors()[0]['msg']}")


def _to_test_cases(data: Any) -> ParseResult:
    """接受 {"test_cases": [...]} 或顶层数组；为用例与标准分配临时 ID"""
    items = data.get("test_cases", data.get("testCases")) if isinstance(data, dict) else data
    if not isinstance(items, list):
        return ParseResult.failure("response does not contain a test_cases array")

    cases: list[TestCase] = []
    for i, item in enumerate(items, start=1):
        parsed = _validate(TestCase, item)
        if not parsed.ok:
            return ParseResult.failure(f"test case #{i}: {parsed.error}")
        case: TestCase = parsed.value
        case.id = case.id or f"tc-{i}"
        for j, criterion in enumerate(case.success_criteria, start=1):
            criterion.id = criterion.id or f"sc-{i}-{j}"
        cases.append(case)
    return ParseResult.success(cases)


class _Verdict(BaseModel):
    passed: bool
    explanation: str = ""


class OpenAILLMService(LLMService):
    """基于 OpenAI Chat Completions 的实现"""

    def __init__(self, config: LLMConfig, client: Optional[LLMClient] = None, sleep: Optional[SleepFn] = None):
        self.config = config
        self.client = client or LLMClient(config)
        self._sleep = sleep
        self._templates = {
            name: load_prompt_template(name)
            for name in ("analyze", "generate", "evaluate", "optimize")
        }

    async def _call(self, prompt: str, convert: Callable[[Any], ParseResult], operation: str) -> Any:
        async def attempt() -> ParseResult:
            raw = await self.client.complete_json(prompt)
            return parse_json_response(raw).then(convert)

        kwargs = {"sleep": self._sleep} if self._sleep else {}
        return await retry_with_backoff(
            attempt,
            max_retries=self.config.max_retries,
            initial_delay=self.config.initial_retry_delay,
            operation=operation,
            **kwargs,
        )

    async def analyze_prompt(self, prompt: str) -> PromptAnalysis:
        rendered = self._templates["analyze"].format(prompt=prompt)

        def convert(data: Any) -> ParseResult:
            if isinstance(data, dict):
                data = {**data, "raw_prompt": prompt}
            return _validate(PromptAnalysis, data)

        return await self._call(rendered, convert, "analyze_prompt")

    async def generate_test_cases(self, analysis: PromptAnalysis) -> list[TestCase]:
        summary = analysis.model_dump(mode="json", include={"goals", "conversation_flows", "expected_behaviors"})
        rendered = self._templates["generate"].format(
            analysis=json.dumps(summary, ensure_ascii=False, indent=2),
            min_cases=MIN_TEST_CASES,
        )
        return await self._call(rendered, _to_test_cases, "generate_test_cases")

    async def evaluate_criterion(self, response: str, criterion: SuccessCriterion) -> CriterionResult:
        rendered = self._templates["evaluate"].format(
            response=response,
            criterion_description=criterion.description,
            evaluation_prompt=criterion.evaluation_prompt,
        )

        def convert(data: Any) -> ParseResult:
            return _validate(_Verdict, data).then(
                lambda v: ParseResult.success(
                    CriterionResult(criterion_id=criterion.id, passed=v.passed, explanation=v.explanation)
                )
            )

        return await self._call(rendered, convert, "evaluate_criterion")

    async def optimize_prompt(
        self,
        original: str,
        failures: list[CriterionResult],
        passes: list[CriterionResult],
    ) -> OptimizationProposal:
        rendered = self._templates["optimize"].format(
            original_prompt=original,
            failures=json.dumps([f.model_dump() for f in failures], ensure_ascii=False, indent=2),
            passes=json.dumps([p.model_dump() for p in passes], ensure_ascii=False, indent=2),
        )

        def convert(data: Any) -> ParseResult:
            if isinstance(data, dict):
                data = {**data, "original_prompt": original}
            return _validate(OptimizationProposal, data)

        return await self._call(rendered, convert, "optimize_prompt")


def create_llm_service(config: Config) -> LLMService:
    """provider 为 mock 或没有可用的 API Key 时返回确定性的模拟服务"""
    from prompt_evo.core.mock_llm import MockLLMService

    llm = config.llm
    if llm.provider == "mock":
        return MockLLMService()

    # 未解析的 ${VAR} 占位符视为未配置
    api_key = llm.api_key if llm.api_key and not llm.api_key.startswith("${") else None
    if api_key or os.environ.get("OPENAI_API_KEY"):
        return OpenAILLMService(llm)

    logger.info("no OpenAI API key configured, using the mock LLM service")
    return MockLLMService()
