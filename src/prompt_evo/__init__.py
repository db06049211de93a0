"""PromptEvo - 提示词自动测试与迭代优化框架
PromptEvo - automated prompt testing and iterative optimization framework"""

__version__ = "0.1.0"

from prompt_evo.core.pipeline import Pipeline
from prompt_evo.models.config import Config

__all__ = ["Pipeline", "Config", "__version__"]
