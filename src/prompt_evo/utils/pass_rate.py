"""通过率计算 / Pass-rate calculation"""

from prompt_evo.models.eval_result import TestCaseResult, TestCaseStatus


def calculate_pass_rate(results: list[TestCaseResult]) -> float:
    """通过的判定数 / 判定总数，只统计 completed 用例

    error 用例既不进分子也不进分母；没有可统计的判定时返回 0。
    """
    criteria = [
        cr
        for r in results if r.status == TestCaseStatus.COMPLETED
        for cr in r.criterion_results
    ]
    if not criteria:
        return 0.0

    passed = sum(1 for cr in criteria if cr.passed)
    return passed / len(criteria)
