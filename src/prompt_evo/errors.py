"""错误类型 / Error taxonomy

每个对外暴露的错误都带有 code 与 retryable 标记，调用方据此决定是否重试。
"""

from typing import Any, Optional


class PromptEvoError(Exception):
    """所有领域错误的基类"""

    code = "INTERNAL_ERROR"
    retryable = False

    def __init__(self, message: str, code: Optional[str] = None, retryable: Optional[bool] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if retryable is not None:
            self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        return {"error": {"code": self.code, "message": self.message, "retryable": self.retryable}}


class ValidationError(PromptEvoError):
    """输入结构不合法，直接返回调用方，不自动重试"""
    code = "INVALID_INPUT"


class NotFoundError(PromptEvoError):
    """记录不存在"""
    code = "NOT_FOUND"


class InvalidTransitionError(ValidationError):
    """非法的状态迁移"""
    code = "INVALID_TRANSITION"


class NoFailuresError(ValidationError):
    """没有失败的判定，无法优化"""
    code = "NO_FAILURES"


class ProviderError(PromptEvoError):
    """LLM 调用失败（超时、传输、输出无法解析），重试耗尽后抛出"""
    code = "PROVIDER_ERROR"
    retryable = True


class ProviderContractError(ProviderError):
    """LLM 返回的结果违反约定，例如修订后的提示词与原文相同"""
    code = "PROVIDER_CONTRACT_VIOLATION"


def as_error_payload(exc: BaseException) -> dict[str, Any]:
    """把任意异常转换为 {"error": {code, message, retryable}}"""
    if isinstance(exc, PromptEvoError):
        return exc.to_dict()
    return {"error": {"code": "INTERNAL_ERROR", "message": str(exc) or type(exc).__name__, "retryable": True}}
