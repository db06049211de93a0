"""Callable 适配器"""

import asyncio
import inspect
from typing import Callable, Optional

from prompt_evo.adapters.base import AgentAdapter


class CallableAdapter(AgentAdapter):
    """
    通用 Callable 适配器

    支持同步和异步函数
    """

    def __init__(self, func: Callable):
        """
        Args:
            func: Agent 入口函数，签名为 (utterance, prompt=None, context=None) -> str，
                  后两个参数可以省略
        """
        self.func = func
        self._is_async = asyncio.iscoroutinefunction(func)
        self._params = list(inspect.signature(func).parameters.keys())

    async def send(self, utterance: str, prompt: str, context: Optional[str] = None) -> str:
        """调用 Agent"""
        # 按函数声明的参数个数决定传参
        args = [utterance, prompt, context][: max(1, min(len(self._params), 3))]

        if self._is_async:
            result = await self.func(*args)
        else:
            # 在线程池中运行同步函数
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(None, lambda: self.func(*args))

        return str(result) if result is not None else ""
