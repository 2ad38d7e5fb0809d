"""Compiler errors and the reports built from them."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from .compiler_info import CodeArea, CompilerInfo

Rgb = tuple[int, int, int]


def _to_u8(value: float) -> int:
    if math.isnan(value):
        return 0
    return max(0, min(255, int(value)))


def _paint(text: object, color: Rgb) -> str:
    r, g, b = color
    return f"\x1b[38;2;{r};{g};{b}m{text}\x1b[0m"


@dataclass
class RainbowColorGenerator:
    """Yields colours stepping 20 degrees around the hue circle."""

    h: float
    s: float
    b: float

    def next(self) -> Rgb:
        self.h = math.fmod(self.h + 20.0, 360.0)

        c = (1.0 - abs(self.b * 2.0 - 1.0)) * self.s
        h = self.h / 60.0
        x = c * (1.0 - abs(math.fmod(h, 2.0) - 1.0))
        m = self.b - c * 0.5

        if 1.0 <= h < 2.0:
            red, green, blue = x, c, 0.0
        elif 2.0 <= h < 3.0:
            red, green, blue = 0.0, c, x
        elif 3.0 <= h < 4.0:
            red, green, blue = 0.0, x, c
        elif 4.0 <= h < 5.0:
            red, green, blue = x, 0.0, c
        else:
            red, green, blue = c, 0.0, x

        return (
            _to_u8((red + m) * 255.0),
            _to_u8((green + m) * 255.0),
            _to_u8((blue + m) * 255.0),
        )


@dataclass
class ErrorReport:
    info: CompilerInfo
    message: str
    labels: list[tuple[CodeArea, str]] = field(default_factory=list)
    note: Optional[str] = None


@dataclass
class ReportLabel:
    area: CodeArea
    message: str
    order: int
    color: Rgb
    priority: int


@dataclass
class Report:
    """A diagnostic ready to be shown to the user."""

    source: Path | str
    offset: int
    message: str
    labels: list[ReportLabel] = field(default_factory=list)
    note: Optional[str] = None
    kind: str = "Error"

    def render(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        for label in sorted(self.labels, key=lambda lab: lab.order):
            area = label.area
            lines.append(
                f"  --> {area.file}:{area.start()}..{area.end()}: {label.message}"
            )
        if self.note is not None:
            lines.append(f"  = Note: {self.note}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()


def build_report(rep: ErrorReport) -> Report:
    """Lay out an error report with coloured, ordered labels."""
    info = rep.info
    position = info.position
    labels = rep.labels
    colors = RainbowColorGenerator(0.0, 1.5, 0.8)

    report = Report(source=position.file, offset=position.pos[0], message=rep.message)

    i = 1
    for area in info.call_stack:
        color = colors.next()
        report.labels.append(
            ReportLabel(
                area,
                f"{_paint(i, color)}: Error comes from this macro call",
                i,
                color,
                1,
            )
        )
        i += 1

    if not labels or not any(area == position for area, _ in labels):
        color = colors.next()
        report.labels.append(ReportLabel(position, rep.message, i, color, 2))

    if i == 1 and len(labels) == 1:
        color = colors.next()
        area, text = labels[0]
        report.labels.append(ReportLabel(area, text, i, color, 2))
    elif labels:
        for area, text in labels:
            color = colors.next()
            report.labels.append(
                ReportLabel(area, f"{_paint(i, color)}: {text}", i, color, 2)
            )
            i += 1

    report.note = rep.note
    return report


def _file_exists(path: Path) -> bool:
    return path != Path() and path.exists()


def create_error(
    info: CompilerInfo,
    message: str,
    labels: Sequence[tuple[CodeArea, str]],
    note: Optional[str],
) -> ErrorReport:
    """Make a report; labels pointing at missing files move to the info's file."""
    fixed: list[tuple[CodeArea, str]] = []
    for area, text in labels:
        if isinstance(area.file, Path) and not _file_exists(area.file):
            fixed.append((CodeArea(info.position.file, (0, 0)), str(text)))
        else:
            fixed.append((area, str(text)))
    return ErrorReport(
        info=info.with_area(info.position),
        message=message,
        labels=fixed,
        note=note,
    )


class BreakKind(enum.Enum):
    CONTINUE_LOOP = "continue_loop"
    LOOP = "loop"
    MACRO = "macro"
    SWITCH = "switch"


def _runtime_colors() -> tuple[Rgb, Rgb]:
    colors = RainbowColorGenerator(120.0, 1.5, 0.8)
    return colors.next(), colors.next()


def _syntax_colors() -> tuple[Rgb, Rgb]:
    colors = RainbowColorGenerator(60.0, 1.0, 0.8)
    return colors.next(), colors.next()


def _context_change_labels(changes: Sequence[CodeArea]) -> list[tuple[CodeArea, str]]:
    labels: list[tuple[CodeArea, str]] = []
    if len(changes) == 1:
        labels.append((changes[0], "New trigger function context was defined here"))
    elif len(changes) > 1:
        labels.append((changes[-1], "Context was changed here"))
        for change in reversed(changes[1:-1]):
            labels.append((change, "This changes the context inside the macro"))
        labels.append((changes[0], "New trigger function context was defined here"))
    return labels


class SpwnError(Exception):
    """An error raised while running a program."""

    def to_report(self) -> ErrorReport:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.to_report().message


class SpwnSyntaxError(Exception):
    """An error raised while parsing a program."""

    def to_report(self) -> ErrorReport:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.to_report().message


class UndefinedError(SpwnError):
    def __init__(self, undefined: str, desc: str, info: CompilerInfo) -> None:
        super().__init__(undefined, desc)
        self.undefined = undefined
        self.desc = desc
        self.info = info

    def to_report(self) -> ErrorReport:
        _, b = _runtime_colors()
        return create_error(
            self.info,
            f"Use of undefined {self.desc}",
            [(self.info.position, f"'{_paint(self.undefined, b)}' is undefined")],
            None,
        )


class PackageSyntaxError(SpwnError):
    def __init__(self, err: SpwnSyntaxError, info: CompilerInfo) -> None:
        super().__init__(err)
        self.err = err
        self.info = info

    def to_report(self) -> ErrorReport:
        inner = self.err.to_report()
        labels = [(self.info.position, "Error when parsing this library/module")]
        labels.extend(inner.labels)
        return create_error(self.info, inner.message, labels, None)


class PackageError(SpwnError):
    def __init__(self, err: SpwnError, info: CompilerInfo) -> None:
        super().__init__(err)
        self.err = err
        self.info = info

    def to_report(self) -> ErrorReport:
        inner = self.err.to_report()
        labels = [(self.info.position, "Error when running this library/module")]
        labels.extend(inner.labels)
        return create_error(self.info, inner.message, labels, None)


class TypeMismatchError(SpwnError):
    def __init__(
        self, expected: str, found: str, val_def: CodeArea, info: CompilerInfo
    ) -> None:
        super().__init__(expected, found)
        self.expected = expected
        self.found = found
        self.val_def = val_def
        self.info = info

    def to_report(self) -> ErrorReport:
        a, b = _runtime_colors()
        return create_error(
            self.info,
            "Type mismatch",
            [
                (self.val_def, f"Value defined as {_paint(self.found, b)} here"),
                (
                    self.info.position,
                    f"Expected {_paint(self.expected, a)}, found {_paint(self.found, b)}",
                ),
            ],
            None,
        )


class PatternMismatchError(SpwnError):
    def __init__(
        self,
        pattern: str,
        val: str,
        pat_def: CodeArea,
        val_def: CodeArea,
        info: CompilerInfo,
    ) -> None:
        super().__init__(pattern, val)
        self.pattern = pattern
        self.val = val
        self.pat_def = pat_def
        self.val_def = val_def
        self.info = info

    def to_report(self) -> ErrorReport:
        a, b = _runtime_colors()
        return create_error(
            self.info,
            "Pattern mismatch",
            [
                (self.val_def, f"Value defined as {_paint(self.val, b)} here"),
                (self.pat_def, f"Pattern defined as {_paint(self.pattern, b)} here"),
                (
                    self.info.position,
                    f"This {_paint(self.val, a)} is not {_paint(self.pattern, b)}",
                ),
            ],
            None,
        )


class CustomError(SpwnError):
    def __init__(self, report: ErrorReport) -> None:
        super().__init__(report.message)
        self.report = report

    def to_report(self) -> ErrorReport:
        return self.report


class BuiltinError(SpwnError):
    def __init__(self, builtin: str, message: str, info: CompilerInfo) -> None:
        super().__init__(builtin, message)
        self.builtin = builtin
        self.message = message
        self.info = info

    def to_report(self) -> ErrorReport:
        return create_error(
            self.info,
            f"Error when using built-in function: {self.builtin}",
            [(self.info.position, self.message)],
            None,
        )


class MutabilityError(SpwnError):
    def __init__(self, val_def: CodeArea, info: CompilerInfo) -> None:
        super().__init__(val_def)
        self.val_def = val_def
        self.info = info

    def to_report(self) -> ErrorReport:
        return create_error(
            self.info,
            "Attempted to change immutable variable",
            [
                (self.val_def, "Value was defined as immutable here"),
                (self.info.position, "This tries to change the value"),
            ],
            None,
        )


class ContextChangeMutateError(SpwnError):
    def __init__(
        self, val_def: CodeArea, info: CompilerInfo, context_changes: Sequence[CodeArea]
    ) -> None:
        super().__init__(val_def)
        self.val_def = val_def
        self.info = info
        self.context_changes = list(context_changes)

    def to_report(self) -> ErrorReport:
        labels = [(self.val_def, "Value was defined here")]
        labels.extend(_context_change_labels(self.context_changes))
        labels.append((self.info.position, "Attempted to change value here"))
        return create_error(
            self.info,
            "Attempted to change a variable defined in a different trigger function context",
            labels,
            "Consider using a counter",
        )


class ContextChangeError(SpwnError):
    def __init__(
        self, message: str, info: CompilerInfo, context_changes: Sequence[CodeArea]
    ) -> None:
        super().__init__(message)
        self.message = message
        self.info = info
        self.context_changes = list(context_changes)

    def to_report(self) -> ErrorReport:
        return create_error(
            self.info,
            self.message,
            _context_change_labels(self.context_changes),
            None,
        )


class BreakNeverUsedError(SpwnError):
    def __init__(
        self,
        breaktype: BreakKind,
        info: CompilerInfo,
        broke: CodeArea,
        dropped: CodeArea,
        reason: str,
    ) -> None:
        super().__init__(breaktype, reason)
        self.breaktype = breaktype
        self.info = info
        self.broke = broke
        self.dropped = dropped
        self.reason = reason

    def to_report(self) -> ErrorReport:
        names = {
            BreakKind.CONTINUE_LOOP: "Continue",
            BreakKind.LOOP: "Break",
            BreakKind.MACRO: "Return",
        }
        if self.breaktype not in names:
            raise ValueError("Switch break in the wild")
        return create_error(
            self.info,
            f"{names[self.breaktype]} statement never used",
            [
                (self.broke, "Declared here"),
                (self.dropped, f"Can't reach past here because {self.reason}"),
            ],
            None,
        )


class _PositionedSyntaxError(SpwnSyntaxError):
    def _area(self) -> CodeArea:
        return CodeArea(self.file, self.pos)

    def _report(self, label: str) -> ErrorReport:
        area = self._area()
        return create_error(
            CompilerInfo.from_area(area), "Syntax error", [(area, label)], None
        )


class ExpectedError(_PositionedSyntaxError):
    def __init__(
        self, expected: str, found: str, pos: tuple[int, int], file: Path | str
    ) -> None:
        super().__init__(expected, found)
        self.expected = expected
        self.found = found
        self.pos = pos
        self.file = file

    def to_report(self) -> ErrorReport:
        a, b = _syntax_colors()
        return self._report(
            f"{_paint('Expected', b)} {self.expected}, {_paint('found', a)} {self.found}"
        )


class UnexpectedError(_PositionedSyntaxError):
    def __init__(self, found: str, pos: tuple[int, int], file: Path | str) -> None:
        super().__init__(found)
        self.found = found
        self.pos = pos
        self.file = file

    def to_report(self) -> ErrorReport:
        return self._report(f"Unexpected {self.found}")


class GeneralSyntaxError(_PositionedSyntaxError):
    def __init__(self, message: str, pos: tuple[int, int], file: Path | str) -> None:
        super().__init__(message)
        self.message = message
        self.pos = pos
        self.file = file

    def to_report(self) -> ErrorReport:
        return self._report(self.message)


class CustomSyntaxError(SpwnSyntaxError):
    def __init__(self, report: ErrorReport) -> None:
        super().__init__(report.message)
        self.report = report

    def to_report(self) -> ErrorReport:
        return self.report