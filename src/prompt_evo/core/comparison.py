"""优化前后对比 / Before-and-after comparison"""

from prompt_evo.models import (
    ComparisonData, CriterionChange, TestRun, TestRunMetric, TestRunStatus,
)
from prompt_evo.storage import Store
from prompt_evo.utils.diff import compute_diff


class ComparisonBuilder:
    def __init__(self, store: Store):
        self.store = store

    def build_comparison(self, agent_id: str) -> ComparisonData:
        """
        对比 Agent 的原始提示词与当前提示词

        指标取该 Agent 所有 completed 运行（最早的在前）；
        improvements / regressions 只比较第一次与最后一次运行，按 criterion_id 匹配。
        """
        agent = self.store.get_agent(agent_id)
        runs = [r for r in self.store.list_test_runs(agent_id) if r.status == TestRunStatus.COMPLETED]

        comparison = ComparisonData(
            agent_id=agent.id,
            original_prompt=agent.original_prompt,
            current_prompt=agent.current_prompt,
            prompt_diff=compute_diff(agent.original_prompt, agent.current_prompt),
            test_run_metrics=[
                TestRunMetric(test_run_id=r.id, pass_rate=r.overall_pass_rate, completed_at=r.completed_at)
                for r in runs
            ],
        )

        if len(runs) >= 2:
            comparison.improvements, comparison.regressions = self._compute_changes(runs[0], runs[-1])
        return comparison

    def _compute_changes(self, first: TestRun, last: TestRun) -> tuple[list[CriterionChange], list[CriterionChange]]:
        descriptions = self._descriptions(first, last)
        before = {cr.criterion_id: cr.passed for cr in first.criterion_results()}

        improvements: list[CriterionChange] = []
        regressions: list[CriterionChange] = []
        for cr in last.criterion_results():
            previous = before.get(cr.criterion_id)
            if previous is None or previous == cr.passed:
                continue
            change = CriterionChange(
                criterion_id=cr.criterion_id,
                description=descriptions.get(cr.criterion_id, ""),
                previous_passed=previous,
                current_passed=cr.passed,
            )
            (improvements if cr.passed else regressions).append(change)
        return improvements, regressions

    def _descriptions(self, *runs: TestRun) -> dict[str, str]:
        descriptions: dict[str, str] = {}
        for suite_id in {r.test_suite_id for r in runs}:
            suite = self.store.get_test_suite(suite_id)
            descriptions.update({cid: c.description for cid, c in suite.criteria_index().items()})
        return descriptions
