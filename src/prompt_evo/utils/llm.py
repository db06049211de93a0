"""LLM 调用封装 / LLM call wrapper"""

import asyncio
import os
from typing import Any, Optional

from prompt_evo.models.config import LLMConfig

SYSTEM_MESSAGE = "You are a helpful assistant that always responds with valid JSON."


class LLMClient:
    """LLM 客户端 / LLM client

    只负责单次远程调用与超时；重试与解析由上层 LLMService 处理。
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._client = None

    def _get_client(self):
        """延迟初始化客户端 / Lazy-initialize the client"""
        if self._client is None:
            if self.config.provider == "openai":
                from openai import AsyncOpenAI

                api_key = self.config.api_key
                if not api_key or api_key.startswith("${"):
                    api_key = os.environ.get("OPENAI_API_KEY")

                # 重试策略统一由 retry_with_backoff 控制
                self._client = AsyncOpenAI(
                    api_key=api_key,
                    base_url=self.config.base_url,
                    max_retries=0,
                )
            else:
                raise ValueError(f"不支持的 LLM 提供商 / Unsupported LLM provider: {self.config.provider}")

        return self._client

    async def chat(
        self,
        messages: list[dict[str, str]],
        response_format: Optional[dict[str, Any]] = None,
        temperature: Optional[float] = None,
        max_tokens: int = 4096,
    ) -> str:
        """
        发送聊天请求 / Send chat request

        Args:
            messages: 消息列表 / Message list
            response_format: 响应格式（如 {"type": "json_object"}）/ Response format
            temperature: 温度，默认取配置 / Temperature, defaults to config
            max_tokens: 最大 token 数 / Maximum token count

        Returns:
            响应内容 / Response content

        Raises:
            TimeoutError: 超过 timeout_seconds / Call exceeded timeout_seconds
        """
        client = self._get_client()

        kwargs = {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": max_tokens,
        }

        if response_format:
            kwargs["response_format"] = response_format

        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(**kwargs),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise TimeoutError(f"LLM call timed out after {self.config.timeout_seconds}s")

        return response.choices[0].message.content or ""

    async def complete_json(self, prompt: str) -> str:
        """以 JSON 模式发送单条用户消息 / Send one user message in JSON mode"""
        return await self.chat(
            messages=[
                {"role": "system", "content": SYSTEM_MESSAGE},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )
