"""结构化输出解析 / Tolerant structured-output parsing

两段式解析：先直接解码 JSON，失败后再提取文本中的 ```json 代码块。
解析结果以 ParseResult 标记返回，不通过异常控制流程。
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


@dataclass(frozen=True)
class ParseResult:
    """解析结果：ok=True 时 value 有效，否则 error 给出原因"""
    ok: bool
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Any) -> "ParseResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "ParseResult":
        return cls(ok=False, error=error)

    def then(self, fn: Callable[[Any], "ParseResult"]) -> "ParseResult":
        """在成功结果上继续转换"""
        return fn(self.value) if self.ok else self


def parse_json_response(raw: Optional[str]) -> ParseResult:
    """解析 LLM 返回的 JSON / Parse JSON from an LLM response"""
    if not raw or not raw.strip():
        return ParseResult.failure("LLM returned empty response")

    try:
        return ParseResult.success(json.loads(raw))
    except json.JSONDecodeError:
        pass

    match = _FENCE_PATTERN.search(raw)
    if match:
        try:
            return ParseResult.success(json.loads(match.group(1).strip()))
        except json.JSONDecodeError:
            pass

    return ParseResult.failure(f"Failed to parse LLM response as JSON: {raw[:200]}")
