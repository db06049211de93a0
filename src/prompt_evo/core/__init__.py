"""核心模块 / Core modules"""

from prompt_evo.core.config import load_config
from prompt_evo.core.llm_service import LLMService, OpenAILLMService, create_llm_service
from prompt_evo.core.mock_llm import MockLLMService
from prompt_evo.core.executor import TestExecutor, create_adapter
from prompt_evo.core.evaluator import ResultEvaluator
from prompt_evo.core.optimizer import PromptOptimizer
from prompt_evo.core.analyzer import PromptAnalyzer
from prompt_evo.core.generator import TestSuiteGenerator, validate_test_cases
from prompt_evo.core.test_runner import TestRunService
from prompt_evo.core.orchestrator import CycleOrchestrator, CycleContext
from prompt_evo.core.comparison import ComparisonBuilder
from prompt_evo.core.dashboard import DashboardBuilder
from prompt_evo.core.pipeline import Pipeline
from prompt_evo.core.serializer import (
    test_suite_to_yaml,
    save_test_suite,
    load_test_suite_from_yaml,
)

__all__ = [
    "load_config",
    "LLMService",
    "OpenAILLMService",
    "MockLLMService",
    "create_llm_service",
    "TestExecutor",
    "create_adapter",
    "ResultEvaluator",
    "PromptOptimizer",
    "PromptAnalyzer",
    "TestSuiteGenerator",
    "validate_test_cases",
    "TestRunService",
    "CycleOrchestrator",
    "CycleContext",
    "ComparisonBuilder",
    "DashboardBuilder",
    "Pipeline",
    "test_suite_to_yaml",
    "save_test_suite",
    "load_test_suite_from_yaml",
]
