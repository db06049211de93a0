"""提示词优化器"""

import logging

from prompt_evo.core.llm_service import LLMService
from prompt_evo.errors import NoFailuresError, ProviderContractError
from prompt_evo.models import CriterionResult, OptimizationRecord, OptimizationStatus
from prompt_evo.storage import Store

logger = logging.getLogger(__name__)


class PromptOptimizer:
    """根据一次测试运行的失败判定生成修订稿，并保存为 generated 状态的优化记录"""

    def __init__(self, llm: LLMService, store: Store):
        self.llm = llm
        self.store = store

    async def optimize(
        self,
        test_run_id: str,
        agent_id: str,
        original_prompt: str,
        failures: list[CriterionResult],
        passes: list[CriterionResult],
    ) -> OptimizationRecord:
        """
        生成并保存优化记录

        Raises:
            NoFailuresError: failures 为空，调用方不应发起优化
            ProviderContractError: LLM 给出的修订稿与原文完全相同
        """
        if not failures:
            raise NoFailuresError("No failed criteria to optimize against")

        proposal = await self.llm.optimize_prompt(original_prompt, failures, passes)

        if proposal.revised_prompt == original_prompt:
            raise ProviderContractError("LLM returned a revised prompt identical to the original")

        record = self.store.save_optimization(OptimizationRecord(
            test_run_id=test_run_id,
            agent_id=agent_id,
            original_prompt=original_prompt,
            revised_prompt=proposal.revised_prompt,
            changes=proposal.changes,
            targeted_failures=proposal.targeted_failures,
            status=OptimizationStatus.GENERATED,
        ))
        logger.info(
            "optimization %s generated for run %s (%d failures targeted)",
            record.id, test_run_id, len(failures),
        )
        return record
