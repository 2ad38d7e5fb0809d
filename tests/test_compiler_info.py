from pathlib import Path

from spwnkit.compiler_info import CodeArea, CompilerInfo


def test_code_area_defaults():
    area = CodeArea()
    assert area.file == Path()
    assert area.pos == (0, 0)
    assert (area.start(), area.end()) == (0, 0)


def test_code_area_start_end():
    area = CodeArea("main.spwn", (4, 9))
    assert area.start() == 4
    assert area.end() == 9


def test_compiler_info_defaults():
    info = CompilerInfo()
    assert info.depth == 0
    assert info.call_stack == []
    assert info.current_module == ""
    assert info.position == CodeArea()


def test_from_area_sets_position_only():
    area = CodeArea("lib.spwn", (1, 2))
    info = CompilerInfo.from_area(area)
    assert info.position == area
    assert info.call_stack == []
    assert info.depth == 0


def test_with_area_leaves_original_unchanged():
    first = CodeArea("a.spwn", (0, 1))
    second = CodeArea("b.spwn", (3, 5))
    info = CompilerInfo(depth=2, position=first)
    moved = info.with_area(second)
    assert moved.position == second
    assert moved.depth == 2
    assert info.position == first


def test_add_to_call_stack_pushes_previous_position():
    first = CodeArea("a.spwn", (0, 1))
    second = CodeArea("a.spwn", (5, 8))
    third = CodeArea("a.spwn", (10, 12))
    info = CompilerInfo.from_area(first)
    info.add_to_call_stack(second)
    info.add_to_call_stack(third)
    assert info.call_stack == [first, second]
    assert info.position == third