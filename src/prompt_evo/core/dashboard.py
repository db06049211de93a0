"""看板数据 / Dashboard data"""

from prompt_evo.models import (
    DashboardCriterionResult, DashboardData, DashboardTestCaseResult,
)
from prompt_evo.storage import Store


class DashboardBuilder:
    def __init__(self, store: Store):
        self.store = store

    def build_dashboard(self, test_run_id: str) -> DashboardData:
        """把一次运行的结果与用例、标准的描述信息合并"""
        run = self.store.get_test_run(test_run_id)
        suite = self.store.get_test_suite(run.test_suite_id)
        criteria = suite.criteria_index()

        case_results = []
        for result in run.results:
            case = suite.get_test_case(result.test_case_id)
            case_results.append(DashboardTestCaseResult(
                test_case_id=result.test_case_id,
                scenario_description=case.scenario_description if case else "",
                scenario_type=case.scenario_type.value if case else "",
                status=result.status,
                error_message=result.error_message,
                agent_responses=result.agent_responses,
                criterion_results=[
                    DashboardCriterionResult(
                        criterion_id=cr.criterion_id,
                        description=criteria[cr.criterion_id].description if cr.criterion_id in criteria else "",
                        category=criteria[cr.criterion_id].category.value if cr.criterion_id in criteria else "",
                        passed=cr.passed,
                        explanation=cr.explanation,
                    )
                    for cr in result.criterion_results
                ],
            ))

        return DashboardData(
            test_run_id=run.id,
            agent_id=run.agent_id,
            overall_pass_rate=run.overall_pass_rate,
            status=run.status,
            started_at=run.started_at,
            completed_at=run.completed_at,
            test_case_results=case_results,
        )
