"""国际化支持 / Internationalization support

提供中英文 CLI 文案切换能力。
Provides Chinese/English CLI text switching.
"""

from typing import Literal

# 当前语言（默认中文）/ Current language (default Chinese)
_current_lang: Literal["zh", "en"] = "zh"


def set_language(lang: Literal["zh", "en"]) -> None:
    """设置当前语言 / Set current language"""
    global _current_lang
    _current_lang = lang


def get_language() -> Literal["zh", "en"]:
    """获取当前语言 / Get current language"""
    return _current_lang


def t(key: str) -> str:
    """根据 key 返回当前语言的文案 / Return text for current language by key"""
    entry = _TEXTS.get(key)
    if entry is None:
        return key
    return entry.get(_current_lang, entry.get("zh", key))


# ── 文案映射表 / Text mapping table ──────────────────────────

_TEXTS: dict[str, dict[str, str]] = {
    # ── 通用 / General ──
    "pass": {"zh": "通过", "en": "PASS"},
    "fail": {"zh": "失败", "en": "FAIL"},
    "error": {"zh": "错误", "en": "ERROR"},
    "pass_rate": {"zh": "通过率", "en": "Pass Rate"},
    "status": {"zh": "状态", "en": "Status"},
    "scenario": {"zh": "场景", "en": "Scenario"},
    "type": {"zh": "类型", "en": "Type"},
    "criterion": {"zh": "判定标准", "en": "Criterion"},
    "explanation": {"zh": "说明", "en": "Explanation"},
    "exec_failed": {"zh": "执行失败: {msg}", "en": "Execution failed: {msg}"},

    # ── 配置 / Config ──
    "config_not_found": {
        "zh": "未找到配置文件 prompt-evo.yaml，请先运行 prompt-evo init",
        "en": "Config file prompt-evo.yaml not found, run prompt-evo init first",
    },
    "config_file_missing": {"zh": "配置文件不存在: {path}", "en": "Config file does not exist: {path}"},
    "prompt_file_missing": {"zh": "提示词文件不存在: {path}", "en": "Prompt file does not exist: {path}"},
    "agent_load_fail": {"zh": "无法加载 Agent {path}: {err}", "en": "Failed to load Agent {path}: {err}"},

    # ── init ──
    "init_project": {"zh": "初始化 PromptEvo 项目", "en": "Initializing PromptEvo project"},
    "init_created": {"zh": "已创建", "en": "Created"},
    "init_exists": {"zh": "已存在，跳过", "en": "Already exists, skipped"},
    "init_done": {"zh": "初始化完成", "en": "Initialization complete"},
    "init_next_steps": {"zh": "下一步", "en": "Next steps"},
    "init_step_prompt": {"zh": "编辑 system_prompt.md 写入你的 Agent 提示词", "en": "Edit system_prompt.md with your Agent prompt"},
    "init_step_config": {"zh": "在 prompt-evo.yaml 中配置 LLM 与 Agent 入口", "en": "Configure the LLM and Agent entry in prompt-evo.yaml"},
    "init_step_analyze": {"zh": "运行 prompt-evo analyze && prompt-evo generate", "en": "Run prompt-evo analyze && prompt-evo generate"},
    "init_step_cycle": {"zh": "运行 prompt-evo cycle 启动自动优化", "en": "Run prompt-evo cycle to start auto-optimization"},

    # ── 分析与生成 / Analysis and generation ──
    "analysis_done": {"zh": "提示词分析完成", "en": "Prompt analysis complete"},
    "goals": {"zh": "目标", "en": "Goals"},
    "flows": {"zh": "对话流程", "en": "Conversation flows"},
    "behaviors": {"zh": "期望行为", "en": "Expected behaviors"},
    "no_analysis": {
        "zh": "尚未分析提示词，请先运行 prompt-evo analyze",
        "en": "Prompt has not been analyzed yet, run prompt-evo analyze first",
    },
    "suite_generated": {"zh": "已生成测试套件 {id}，共 {n} 个用例", "en": "Generated test suite {id} with {n} test cases"},
    "suite_exported": {"zh": "测试套件已导出到 {path}", "en": "Test suite exported to {path}"},
    "suite_imported": {"zh": "已导入测试套件 {id}，共 {n} 个用例", "en": "Imported test suite {id} with {n} test cases"},
    "no_suite": {
        "zh": "没有可用的测试套件，请先运行 prompt-evo generate",
        "en": "No test suite available, run prompt-evo generate first",
    },

    # ── 运行 / Runs ──
    "run_done": {"zh": "测试运行 {id} 完成", "en": "Test run {id} completed"},
    "retry_done": {"zh": "用例 {case} 已重试，运行通过率更新为 {rate}", "en": "Test case {case} retried, run pass rate is now {rate}"},
    "case_error": {"zh": "执行出错: {msg}", "en": "Execution error: {msg}"},

    # ── 优化 / Optimization ──
    "optimization_generated": {"zh": "已生成优化记录 {id}", "en": "Optimization {id} generated"},
    "optimization_applied": {"zh": "已采纳优化 {id}，提示词已更新", "en": "Optimization {id} accepted, prompt updated"},
    "optimization_rejected": {"zh": "已拒绝优化 {id}", "en": "Optimization {id} rejected"},
    "prompt_diff": {"zh": "提示词差异", "en": "Prompt diff"},
    "changes": {"zh": "修改点", "en": "Changes"},

    # ── 循环 / Cycles ──
    "cycle_started": {"zh": "自动优化循环 {id} 已启动", "en": "Auto-optimization cycle {id} started"},
    "cycle_iteration": {"zh": "第 {n} 轮", "en": "Iteration {n}"},
    "cycle_test_run": {"zh": "  测试运行完成，通过率 {rate}", "en": "  Test run complete, pass rate {rate}"},
    "cycle_optimized": {"zh": "  提示词已优化并采纳", "en": "  Prompt optimized and accepted"},
    "cycle_finished": {
        "zh": "循环结束（{status}），共 {n} 轮，通过率 {start} → {end}",
        "en": "Cycle finished ({status}) after {n} iteration(s), pass rate {start} → {end}",
    },
    "cycle_error": {"zh": "循环出错: {msg}", "en": "Cycle failed: {msg}"},

    # ── 对比 / Comparison ──
    "comparison_title": {"zh": "优化前后对比", "en": "Before / After Comparison"},
    "run_history": {"zh": "运行历史", "en": "Run history"},
    "improvements": {"zh": "改进", "en": "Improvements"},
    "regressions": {"zh": "退化", "en": "Regressions"},
    "no_changes": {"zh": "无", "en": "None"},
}
