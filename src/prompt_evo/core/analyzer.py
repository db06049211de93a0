"""提示词分析 / Prompt analysis"""

from prompt_evo.core.llm_service import LLMService
from prompt_evo.errors import ValidationError
from prompt_evo.models import PromptAnalysis
from prompt_evo.storage import Store


class PromptAnalyzer:
    def __init__(self, llm: LLMService, store: Store):
        self.llm = llm
        self.store = store

    async def analyze_prompt(self, agent_id: str, raw_prompt: str) -> PromptAnalysis:
        """分析提示词并保存结果"""
        if not raw_prompt.strip():
            raise ValidationError("prompt must not be empty")
        self.store.get_agent(agent_id)

        analysis = await self.llm.analyze_prompt(raw_prompt)
        analysis.id = ""
        analysis.agent_id = agent_id
        analysis.raw_prompt = raw_prompt
        return self.store.save_analysis(analysis)

    def get_analysis(self, analysis_id: str) -> PromptAnalysis:
        return self.store.get_analysis(analysis_id)

    def list_analyses(self, agent_id: str) -> list[PromptAnalysis]:
        return self.store.list_analyses(agent_id)
