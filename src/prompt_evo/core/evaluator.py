"""结果评判器 / Result evaluator"""

from prompt_evo.core.llm_service import LLMService
from prompt_evo.models import AgentResponse, CriterionResult, SuccessCriterion


def format_responses(responses: list[AgentResponse]) -> str:
    return "\n".join(f"Turn {r.turn}: {r.utterance}" for r in responses)


class ResultEvaluator:
    """逐条标准调用 LLM 评判 Agent 回复"""

    def __init__(self, llm: LLMService):
        self.llm = llm

    async def evaluate_criterion(
        self, responses: list[AgentResponse], criterion: SuccessCriterion
    ) -> CriterionResult:
        result = await self.llm.evaluate_criterion(format_responses(responses), criterion)

        # 失败的判定必须带说明
        if not result.passed and not result.explanation.strip():
            result = result.model_copy(update={
                "explanation": f'Criterion "{criterion.description}" was not met by the agent response.',
            })
        return result

    async def evaluate_all_criteria(
        self, responses: list[AgentResponse], criteria: list[SuccessCriterion]
    ) -> list[CriterionResult]:
        """顺序评判，结果与 criteria 一一对应"""
        results = []
        for criterion in criteria:
            results.append(await self.evaluate_criterion(responses, criterion))
        return results
