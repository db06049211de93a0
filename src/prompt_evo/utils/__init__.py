"""工具模块 / Utility modules"""

from prompt_evo.utils.llm import LLMClient
from prompt_evo.utils.i18n import t, set_language, get_language
from prompt_evo.utils.diff import compute_diff, format_diff
from prompt_evo.utils.parsing import ParseResult, parse_json_response
from prompt_evo.utils.pass_rate import calculate_pass_rate
from prompt_evo.utils.retry import retry_with_backoff

__all__ = [
    "LLMClient", "t", "set_language", "get_language",
    "compute_diff", "format_diff", "ParseResult", "parse_json_response",
    "calculate_pass_rate", "retry_with_backoff",
]
