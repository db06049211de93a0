"""提示词逐行差异 / Line-level prompt diff

基于最长公共子序列（LCS）的展示用 diff，不是补丁格式。
"""

from prompt_evo.models.report import DiffChange


def compute_diff(original: str, revised: str) -> list[DiffChange]:
    """计算两段提示词的逐行差异

    added / context 使用修订稿的行号，removed 使用原稿的行号（均从 1 开始）。
    """
    if original == revised:
        return []

    original_lines = original.split("\n")
    revised_lines = revised.split("\n")
    lcs = _build_lcs(original_lines, revised_lines)

    changes: list[DiffChange] = []
    oi = ri = li = 0
    while oi < len(original_lines) or ri < len(revised_lines):
        common = lcs[li] if li < len(lcs) else None

        if (
            common is not None
            and oi < len(original_lines) and original_lines[oi] == common
            and ri < len(revised_lines) and revised_lines[ri] == common
        ):
            changes.append(DiffChange(type="context", line_number=ri + 1, content=common))
            oi += 1
            ri += 1
            li += 1
        elif oi < len(original_lines) and (common is None or original_lines[oi] != common):
            changes.append(DiffChange(type="removed", line_number=oi + 1, content=original_lines[oi]))
            oi += 1
        else:
            changes.append(DiffChange(type="added", line_number=ri + 1, content=revised_lines[ri]))
            ri += 1

    return changes


def _build_lcs(a: list[str], b: list[str]) -> list[str]:
    """经典 O(n·m) 动态规划，回溯得到公共行序列"""
    m, n = len(a), len(b)
    dp = [[0] * (n + 1) for _ in range(m + 1)]

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if a[i - 1] == b[j - 1]:
                dp[i][j] = dp[i - 1][j - 1] + 1
            else:
                dp[i][j] = max(dp[i - 1][j], dp[i][j - 1])

    result: list[str] = []
    i, j = m, n
    while i > 0 and j > 0:
        if a[i - 1] == b[j - 1]:
            result.append(a[i - 1])
            i -= 1
            j -= 1
        elif dp[i - 1][j] > dp[i][j - 1]:
            i -= 1
        else:
            j -= 1

    result.reverse()
    return result


def format_diff(changes: list[DiffChange]) -> str:
    """渲染为 +/- 前缀的纯文本"""
    prefix = {"added": "+", "removed": "-", "context": " "}
    return "\n".join(f"{prefix.get(c.type, ' ')} {c.content}" for c in changes)
