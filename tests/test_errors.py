from pathlib import Path

import pytest

from spwnkit.compiler_info import CodeArea, CompilerInfo
from spwnkit.errors import (
    BreakKind,
    BreakNeverUsedError,
    BuiltinError,
    ContextChangeError,
    ContextChangeMutateError,
    CustomError,
    CustomSyntaxError,
    ErrorReport,
    ExpectedError,
    GeneralSyntaxError,
    MutabilityError,
    PackageError,
    PackageSyntaxError,
    PatternMismatchError,
    RainbowColorGenerator,
    TypeMismatchError,
    UndefinedError,
    UnexpectedError,
    build_report,
    create_error,
)


def area(start, end, file="<src>"):
    return CodeArea(file, (start, end))


def info_at(start, end):
    return CompilerInfo.from_area(area(start, end))


def test_rainbow_components_in_range_and_periodic():
    gen = RainbowColorGenerator(0.0, 1.5, 0.8)
    first_cycle = [gen.next() for _ in range(18)]
    second_cycle = [gen.next() for _ in range(18)]
    assert first_cycle == second_cycle
    for color in first_cycle:
        assert all(0 <= c <= 255 for c in color)


def test_rainbow_generators_with_same_state_agree():
    a = RainbowColorGenerator(120.0, 1.5, 0.8)
    b = RainbowColorGenerator(120.0, 1.5, 0.8)
    assert [a.next() for _ in range(5)] == [b.next() for _ in range(5)]
    assert a.h == b.h


def test_create_error_replaces_missing_file_labels():
    info = info_at(3, 7)
    missing = CodeArea(Path("definitely_missing_dir/none.spwn"), (10, 20))
    rep = create_error(info, "msg", [(missing, "here")], None)
    assert rep.labels == [(CodeArea("<src>", (0, 0)), "here")]


def test_create_error_keeps_existing_file_labels(tmp_path):
    script = tmp_path / "x.spwn"
    script.write_text("a = 1")
    info = info_at(0, 1)
    real = CodeArea(script, (2, 4))
    rep = create_error(info, "msg", [(real, "there")], "a note")
    assert rep.labels == [(real, "there")]
    assert rep.note == "a note"
    assert rep.message == "msg"


def test_undefined_error_report():
    info = info_at(1, 2)
    rep = UndefinedError("foo", "variable", info).to_report()
    assert rep.message == "Use of undefined variable"
    assert len(rep.labels) == 1
    label_area, text = rep.labels[0]
    assert label_area == info.position
    assert "foo" in text and text.endswith("is undefined")


def test_type_mismatch_report():
    info = info_at(5, 6)
    rep = TypeMismatchError("@number", "@string", area(0, 1), info).to_report()
    assert rep.message == "Type mismatch"
    assert [a for a, _ in rep.labels] == [area(0, 1), info.position]
    assert "@string" in rep.labels[0][1]


def test_pattern_mismatch_report_has_three_labels():
    info = info_at(9, 10)
    rep = PatternMismatchError("@group", "5", area(1, 2), area(3, 4), info).to_report()
    assert rep.message == "Pattern mismatch"
    assert [a for a, _ in rep.labels] == [area(3, 4), area(1, 2), info.position]


def test_builtin_and_mutability_reports():
    info = info_at(0, 3)
    rep = BuiltinError("print", "bad arg", info).to_report()
    assert rep.message == "Error when using built-in function: print"
    assert rep.labels == [(info.position, "bad arg")]
    mut = MutabilityError(area(7, 8), info).to_report()
    assert mut.labels == [
        (area(7, 8), "Value was defined as immutable here"),
        (info.position, "This tries to change the value"),
    ]


def test_context_change_mutate_label_order():
    info = info_at(50, 51)
    changes = [area(1, 2), area(3, 4), area(5, 6), area(7, 8)]
    rep = ContextChangeMutateError(area(0, 1), info, changes).to_report()
    assert rep.note == "Consider using a counter"
    assert [a for a, _ in rep.labels] == [
        area(0, 1),
        area(7, 8),
        area(5, 6),
        area(3, 4),
        area(1, 2),
        info.position,
    ]
    assert rep.labels[1][1] == "Context was changed here"
    assert rep.labels[4][1] == "New trigger function context was defined here"


def test_context_change_single_change():
    info = info_at(0, 1)
    rep = ContextChangeError("oops", info, [area(2, 3)]).to_report()
    assert rep.message == "oops"
    assert rep.labels == [(area(2, 3), "New trigger function context was defined here")]


def test_break_never_used():
    info = info_at(0, 1)
    rep = BreakNeverUsedError(BreakKind.LOOP, info, area(1, 2), area(3, 4), "x").to_report()
    assert rep.message == "Break statement never used"
    assert rep.labels[1] == (area(3, 4), "Can't reach past here because x")
    ret = BreakNeverUsedError(BreakKind.MACRO, info, area(1, 2), area(3, 4), "x")
    assert ret.to_report().message == "Return statement never used"


def test_break_switch_is_rejected():
    err = BreakNeverUsedError(BreakKind.SWITCH, info_at(0, 1), area(0, 1), area(0, 1), "r")
    with pytest.raises(ValueError):
        err.to_report()


def test_package_error_wraps_inner_report():
    inner_info = info_at(4, 5)
    inner = BuiltinError("print", "bad", inner_info)
    outer_info = info_at(0, 1)
    rep = PackageError(inner, outer_info).to_report()
    assert rep.message == "Error when using built-in function: print"
    assert rep.labels[0] == (outer_info.position, "Error when running this library/module")
    assert rep.labels[1] == (inner_info.position, "bad")


def test_package_syntax_error_wraps_syntax_report():
    syn = UnexpectedError("'}'", (8, 9), "<lib>")
    outer_info = info_at(0, 1)
    rep = PackageSyntaxError(syn, outer_info).to_report()
    assert rep.message == "Syntax error"
    assert rep.labels[0][1] == "Error when parsing this library/module"
    assert rep.labels[1] == (CodeArea("<lib>", (8, 9)), "Unexpected '}'")


def test_syntax_errors_position_info():
    rep = ExpectedError("')'", "'+'", (2, 3), "<s>").to_report()
    assert rep.message == "Syntax error"
    assert rep.info.position == CodeArea("<s>", (2, 3))
    assert "')'" in rep.labels[0][1] and "'+'" in rep.labels[0][1]
    general = GeneralSyntaxError("broken", (1, 1), "<s>").to_report()
    assert general.labels == [(CodeArea("<s>", (1, 1)), "broken")]


def test_custom_errors_return_same_report():
    report = ErrorReport(info_at(0, 1), "custom")
    assert CustomError(report).to_report() is report
    assert CustomSyntaxError(report).to_report() is report
    assert str(CustomError(report)) == "custom"


def test_build_report_adds_call_stack_and_position_labels():
    info = info_at(10, 12)
    info.add_to_call_stack(area(20, 22))
    rep = ErrorReport(info, "boom", [(area(30, 31), "label")])
    report = build_report(rep)
    assert report.message == "boom"
    assert report.source == "<src>"
    assert report.offset == 20
    orders = [lab.order for lab in report.labels]
    assert orders == [1, 2, 2]
    assert report.labels[0].priority == 1
    assert "Error comes from this macro call" in report.labels[0].message
    assert report.labels[1].area == area(20, 22)
    assert report.labels[2].message.endswith(": label")


def test_build_report_single_label_at_position():
    info = info_at(3, 4)
    rep = ErrorReport(info, "boom", [(info.position, "only")], note="hint")
    report = build_report(rep)
    assert len(report.labels) == 1
    assert report.labels[0].message == "only"
    text = report.render()
    assert text.startswith("Error: boom")
    assert "hint" in text and "only" in text