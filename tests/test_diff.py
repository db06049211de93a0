from prompt_evo.utils.diff import compute_diff, format_diff


def test_identical_prompts_have_no_diff():
    assert compute_diff("a\nb\nc", "a\nb\nc") == []


def test_appended_line():
    changes = compute_diff("a\nb", "a\nb\nc")
    assert [(c.type, c.line_number, c.content) for c in changes] == [
        ("context", 1, "a"),
        ("context", 2, "b"),
        ("added", 3, "c"),
    ]


def test_replaced_line_uses_original_and_revised_numbers():
    changes = compute_diff("a\nold\nc", "a\nnew\nc")
    assert [(c.type, c.line_number, c.content) for c in changes] == [
        ("context", 1, "a"),
        ("removed", 2, "old"),
        ("added", 2, "new"),
        ("context", 3, "c"),
    ]


def test_removed_first_line():
    changes = compute_diff("x\na\nb", "a\nb")
    assert changes[0].type == "removed"
    assert changes[0].line_number == 1
    assert [c.type for c in changes[1:]] == ["context", "context"]
    assert [c.line_number for c in changes[1:]] == [1, 2]


def test_distinct_strings_report_a_change():
    changes = compute_diff("hello", "goodbye")
    assert changes
    assert {c.type for c in changes} & {"added", "removed"}


def test_format_diff_prefixes():
    text = format_diff(compute_diff("a\nb", "a\nc"))
    assert text.splitlines() == ["  a", "- b", "+ c"]
