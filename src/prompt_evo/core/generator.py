"""测试套件生成与编辑 / Test suite generation and editing"""

import logging
from datetime import datetime
from typing import Any, Iterable, Union

from pydantic import ValidationError as PydanticValidationError

from prompt_evo.core.llm_service import MIN_TEST_CASES, LLMService
from prompt_evo.errors import NotFoundError, ValidationError
from prompt_evo.models import (
    ScenarioType, SuccessCriterion, SuiteEditOperation, TestCase, TestSuite,
)
from prompt_evo.storage import Store, new_id

logger = logging.getLogger(__name__)

EDIT_OPERATIONS = (
    "add_test_case", "edit_test_case", "remove_test_case",
    "add_criterion", "edit_criterion", "remove_criterion",
)


def validate_test_cases(cases: list[TestCase]) -> list[TestCase]:
    """
    校验套件不变量

    至少 MIN_TEST_CASES 个用例，同时包含 happy-path 与 adversarial，
    每个用例的描述、输入、标准及每条标准的 evaluation_prompt 都不能为空。

    Raises:
        ValidationError: 任一条件不满足
    """
    if len(cases) < MIN_TEST_CASES:
        raise ValidationError(
            f"Test suite must contain at least {MIN_TEST_CASES} test cases, got {len(cases)}"
        )

    types = {case.scenario_type for case in cases}
    if ScenarioType.HAPPY_PATH not in types or ScenarioType.ADVERSARIAL not in types:
        raise ValidationError("Test cases must include both happy-path and adversarial scenarios")

    for case in cases:
        if not case.scenario_description.strip():
            raise ValidationError("Each test case must have a non-empty scenario_description")
        if not case.user_input_sequence:
            raise ValidationError("Each test case must have a non-empty user_input_sequence")
        if not case.success_criteria:
            raise ValidationError("Each test case must have at least one success criterion")
        for criterion in case.success_criteria:
            if not criterion.evaluation_prompt.strip():
                raise ValidationError("Each success criterion must have a non-empty evaluation_prompt")

    return cases


def _build(model, data: dict[str, Any]):
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {model.__name__}: {e.errors()[0]['msg']}") from e


def with_fresh_ids(case: TestCase) -> TestCase:
    case = case.model_copy(deep=True)
    case.id = new_id()
    for criterion in case.success_criteria:
        criterion.id = new_id()
    return case


class TestSuiteGenerator:
    """生成测试套件，并以批次为单位原子地编辑"""

    __test__ = False

    def __init__(self, llm: LLMService, store: Store):
        self.llm = llm
        self.store = store

    async def generate_test_suite(self, agent_id: str, analysis_id: str) -> TestSuite:
        """根据分析结果生成套件；套件、用例与标准在同一事务中写入并分配新 ID"""
        self.store.get_agent(agent_id)
        analysis = self.store.get_analysis(analysis_id)

        cases = validate_test_cases(await self.llm.generate_test_cases(analysis))

        with self.store.transaction():
            suite = self.store.save_test_suite(TestSuite(
                agent_id=agent_id,
                analysis_id=analysis_id,
                test_cases=[with_fresh_ids(case) for case in cases],
            ))

        logger.info("generated test suite %s with %d test cases", suite.id, len(suite.test_cases))
        return suite

    def get_test_suite(self, suite_id: str) -> TestSuite:
        return self.store.get_test_suite(suite_id)

    def edit_test_suite(
        self,
        suite_id: str,
        operations: Iterable[Union[SuiteEditOperation, dict]],
    ) -> TestSuite:
        """
        原子地执行一批编辑操作

        任一操作失败或编辑后的套件违反不变量时，整批回滚。

        Raises:
            NotFoundError: 套件、用例或标准不存在
            ValidationError: 操作为空、未知操作类型或违反套件不变量
        """
        ops = [op if isinstance(op, SuiteEditOperation) else _build(SuiteEditOperation, op) for op in operations]
        if not ops:
            raise ValidationError("operations must be a non-empty list", code="INVALID_OPERATIONS")

        with self.store.transaction():
            suite = self.store.get_test_suite(suite_id)
            for op in ops:
                self._apply(suite, op)

            # 重新构造每个用例以触发模型级校验
            suite.test_cases = [_build(TestCase, case.model_dump()) for case in suite.test_cases]
            validate_test_cases(suite.test_cases)

            suite.updated_at = datetime.now()
            return self.store.save_test_suite(suite)

    # ── 单个操作 ─────────────────────────────────────────

    def _apply(self, suite: TestSuite, op: SuiteEditOperation) -> None:
        if op.type not in EDIT_OPERATIONS:
            raise ValidationError(f"Unknown operation type: {op.type}", code="INVALID_OPERATIONS")
        getattr(self, f"_{op.type}")(suite, op)

    def _add_test_case(self, suite: TestSuite, op: SuiteEditOperation) -> None:
        suite.test_cases.append(with_fresh_ids(_build(TestCase, op.data)))

    def _edit_test_case(self, suite: TestSuite, op: SuiteEditOperation) -> None:
        case = self._find_case(suite, op.test_case_id)
        editable = {"scenario_description", "scenario_type", "user_input_sequence"}
        updated = _build(TestCase, {**case.model_dump(), **{k: v for k, v in op.data.items() if k in editable}})
        suite.test_cases[suite.test_cases.index(case)] = updated

    def _remove_test_case(self, suite: TestSuite, op: SuiteEditOperation) -> None:
        suite.test_cases.remove(self._find_case(suite, op.test_case_id))

    def _add_criterion(self, suite: TestSuite, op: SuiteEditOperation) -> None:
        case = self._find_case(suite, op.test_case_id)
        criterion = _build(SuccessCriterion, op.data)
        criterion.id = new_id()
        case.success_criteria.append(criterion)

    def _edit_criterion(self, suite: TestSuite, op: SuiteEditOperation) -> None:
        case, criterion = self._find_criterion(suite, op.criterion_id)
        editable = {"description", "category", "evaluation_prompt"}
        updated = _build(SuccessCriterion, {**criterion.model_dump(), **{k: v for k, v in op.data.items() if k in editable}})
        case.success_criteria[case.success_criteria.index(criterion)] = updated

    def _remove_criterion(self, suite: TestSuite, op: SuiteEditOperation) -> None:
        case, criterion = self._find_criterion(suite, op.criterion_id)
        case.success_criteria.remove(criterion)

    @staticmethod
    def _find_case(suite: TestSuite, test_case_id: str) -> TestCase:
        case = suite.get_test_case(test_case_id) if test_case_id else None
        if case is None:
            raise NotFoundError(f"test case '{test_case_id}' not found", code="TEST_CASE_NOT_FOUND")
        return case

    @staticmethod
    def _find_criterion(suite: TestSuite, criterion_id: str) -> tuple[TestCase, SuccessCriterion]:
        for case in suite.test_cases:
            criterion = case.get_criterion(criterion_id) if criterion_id else None
            if criterion is not None:
                return case, criterion
        raise NotFoundError(f"criterion '{criterion_id}' not found", code="CRITERION_NOT_FOUND")
