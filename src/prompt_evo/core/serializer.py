"""测试套件序列化：Model → YAML 写入
Test suite serialization: Model → YAML writing"""

from pathlib import Path

import yaml

from prompt_evo.models.test_case import TestCase, TestSuite


def test_suite_to_yaml(suite: TestSuite) -> str:
    """将测试套件序列化为 YAML 字符串 / Serialize a test suite to a YAML string"""
    suite_dict = {
        "id": suite.id,
        "agent_id": suite.agent_id,
        "analysis_id": suite.analysis_id,
        "cases": [_case_to_dict(case) for case in suite.test_cases],
    }
    return yaml.dump(suite_dict, allow_unicode=True, default_flow_style=False, sort_keys=False)


def save_test_suite(suite: TestSuite, output_path: str) -> Path:
    """将测试套件写入 YAML 文件 / Write a test suite to a YAML file"""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(test_suite_to_yaml(suite), encoding="utf-8")
    return path


def load_test_suite_from_yaml(file_path: str) -> list[TestCase]:
    """从 YAML 文件加载测试用例 / Load test cases from a YAML file"""
    with open(file_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data or "cases" not in data:
        return []

    return [TestCase(**c) for c in data["cases"]]


def _case_to_dict(case: TestCase) -> dict:
    """将 TestCase 转为简洁的字典（省略空的 context）
    Convert TestCase to a concise dict (omit empty context)"""
    return {
        "id": case.id,
        "scenario_description": case.scenario_description,
        "scenario_type": case.scenario_type.value,
        "user_input_sequence": [
            user_input.model_dump(exclude_none=True) for user_input in case.user_input_sequence
        ],
        "success_criteria": [
            criterion.model_dump(mode="json") for criterion in case.success_criteria
        ],
    }
