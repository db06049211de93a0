"""模拟 Agent 适配器"""

import asyncio
from typing import Optional

from prompt_evo.adapters.base import AgentAdapter


class SimulatedAgentAdapter(AgentAdapter):
    """未接入真实 Agent 时使用：每轮等待 turn_delay 秒后回显用户话语"""

    def __init__(self, turn_delay: float = 0.1):
        self.turn_delay = turn_delay

    async def send(self, utterance: str, prompt: str, context: Optional[str] = None) -> str:
        if self.turn_delay > 0:
            await asyncio.sleep(self.turn_delay)
        return f'[Mock agent response to "{utterance}" based on prompt]'
