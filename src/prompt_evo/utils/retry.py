"""指数退避重试 / Exponential backoff retry"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from prompt_evo.errors import ProviderError
from prompt_evo.utils.parsing import ParseResult

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]


async def retry_with_backoff(
    fn: Callable[[], Awaitable[Any]],
    max_retries: int,
    initial_delay: float,
    sleep: SleepFn = asyncio.sleep,
    operation: str = "llm call",
) -> Any:
    """
    执行 fn，失败时按 initial_delay × 2^attempt 等待后重试

    fn 抛出异常或返回 ok=False 的 ParseResult 都视为一次失败。
    返回 ParseResult 时，成功后解包为其 value。

    Args:
        fn: 单次尝试
        max_retries: 首次尝试之外的最大重试次数
        initial_delay: 首次重试前的等待秒数
        sleep: 等待函数（测试中可替换）
        operation: 日志中的操作名

    Returns:
        成功尝试的结果

    Raises:
        ProviderError: 重试耗尽，携带最后一次失败原因
    """
    last_error: Optional[str] = None
    last_exc: Optional[BaseException] = None

    for attempt in range(max_retries + 1):
        try:
            result = await fn()
        except Exception as e:
            last_exc = e
            last_error = str(e) or type(e).__name__
        else:
            if not isinstance(result, ParseResult):
                return result
            if result.ok:
                return result.value
            last_exc = None
            last_error = result.error

        if attempt < max_retries:
            delay = initial_delay * (2 ** attempt)
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                operation, attempt + 1, max_retries + 1, delay, last_error,
            )
            await sleep(delay)

    raise ProviderError(
        f"{operation} failed after {max_retries + 1} attempts: {last_error}"
    ) from last_exc
