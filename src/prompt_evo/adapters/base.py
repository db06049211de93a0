"""适配器基类"""

from abc import ABC, abstractmethod
from typing import Optional


class AgentAdapter(ABC):
    """Agent 适配器基类

    执行器每轮调用一次 send，提示词由调用方传入，
    这样同一个 Agent 可以在不同提示词快照下被测试。
    """

    @abstractmethod
    async def send(self, utterance: str, prompt: str, context: Optional[str] = None) -> str:
        """
        发送一轮用户输入

        Args:
            utterance: 用户话语
            prompt: 本次运行使用的系统提示词
            context: 可选上下文

        Returns:
            Agent 回复
        """
        pass
