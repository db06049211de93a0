"""测试执行器 / Test executor"""

import importlib
import logging
import sys
from pathlib import Path

from prompt_evo.adapters.base import AgentAdapter
from prompt_evo.adapters.callable import CallableAdapter
from prompt_evo.adapters.simulated import SimulatedAgentAdapter
from prompt_evo.models import AgentResponse, Config, TestCase, TestCaseResult, TestCaseStatus
from prompt_evo.utils.i18n import t

logger = logging.getLogger(__name__)

UNKNOWN_EXECUTION_ERROR = "Unknown execution error"


def create_adapter(config: Config, project_dir: Path) -> AgentAdapter:
    """创建 Agent 适配器；未配置 module 时使用模拟 Agent"""
    module_path = config.agent.module
    if not module_path:
        return SimulatedAgentAdapter(turn_delay=config.executor.turn_delay)

    func_name = config.agent.function
    try:
        # 相对于项目目录导入用户模块
        if str(project_dir) not in sys.path:
            sys.path.insert(0, str(project_dir))
        module = importlib.import_module(module_path)
        func = getattr(module, func_name)
    except (ImportError, AttributeError) as e:
        raise RuntimeError(t("agent_load_fail").format(path=f"{module_path}.{func_name}", err=e)) from e

    return CallableAdapter(func)


class TestExecutor:
    """按轮次把用户输入发给 Agent，收集回复"""

    __test__ = False

    def __init__(self, adapter: AgentAdapter):
        self.adapter = adapter

    async def execute_test_case(self, case: TestCase, prompt: str) -> TestCaseResult:
        """
        执行单个用例

        任意一轮抛出异常时整个用例记为 error，不保留已收到的部分回复。
        completed 结果的 criterion_results 为空，由评判器随后填充。
        """
        responses: list[AgentResponse] = []
        try:
            for user_input in case.user_input_sequence:
                reply = await self.adapter.send(user_input.utterance, prompt, user_input.context)
                responses.append(AgentResponse(turn=user_input.turn, utterance=reply))
        except Exception as e:
            message = str(e).strip() or UNKNOWN_EXECUTION_ERROR
            logger.warning("test case %s failed to execute: %s", case.id, message)
            return TestCaseResult(test_case_id=case.id, status=TestCaseStatus.ERROR, error_message=message)

        return TestCaseResult(test_case_id=case.id, status=TestCaseStatus.COMPLETED, agent_responses=responses)
