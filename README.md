# spwnkit

Building blocks for the back end of a SPWN compiler. The package has three parts.

- **Error reporting** (`spwnkit.errors`, `spwnkit.compiler_info`) covers
  structured compiler errors. Runtime errors derive from `SpwnError`, for
  example `UndefinedError`, `TypeMismatchError`, `PatternMismatchError`,
  `MutabilityError` and `BreakNeverUsedError`. Parse errors derive from
  `SpwnSyntaxError`, for example `ExpectedError`, `UnexpectedError` and
  `GeneralSyntaxError`.
  - Every error turns into an `ErrorReport` through `to_report()`.
  - `create_error` builds an `ErrorReport` by hand. Any label that points at a
    file path which does not exist is moved to the start of the current file.
  - `build_report` lays an `ErrorReport` out as a `Report` with ordered labels.
    The labels are coloured by `RainbowColorGenerator` using ANSI escape
    sequences. `Report.render()` (and `str(report)`) gives plain lines of text.
- **Level save files** (`spwnkit.levelstring`) decrypt and encrypt Geometry
  Dash save files.
  - Two formats are handled:
    - the XOR/base64/gzip format;
    - the AES format used on Apple platforms.
  - Every function takes an `ios` argument. `None` picks the AES format on
    macOS and the other format elsewhere.
  - `get_level_string` returns the decoded level string of a named level, or of
    the first level when no name is given.
  - `replace_level_string` returns new save-file bytes whose level holds
    `old_ls + ls`. `encrypt_level_string` does the same to a file on disk.
  - Problems raise `LevelStringError`.
- **Trigger optimisation** (`spwnkit.optimize` and the modules it uses)
  rewrites a list of compiled trigger functions (`spwnkit.model.FunctionId`).
  Each round does three things:
  - removes triggers that cannot be reached or lead to no output
    (`spwnkit.dead_code`);
  - merges chains of spawn triggers and removes zero-delay spawn triggers by
    renaming groups (`spwnkit.spawn_optimisation`);
  - refreshes the reserved trigger groups.

  After the rounds:
  - groups whose triggers behave the same are merged
    (`spwnkit.trigger_dedup`);
  - instant count triggers fired in the same frame are grouped behind toggle
    triggers (`spwnkit.group_toggling`).

## Installation

```
pip install spwnkit
```

## Reading a level

```python
from spwnkit.levelstring import get_level_string, LevelStringError

with open("CCLocalLevels.dat", "rb") as fh:
    data = fh.read()

try:
    level = get_level_string(data, "My Level", ios=False)
except LevelStringError as err:
    print(err)
```

## Writing a level

```python
from spwnkit.levelstring import encrypt_level_string

# writes old level string + new objects into "My Level"
encrypt_level_string(new_objects, level, "CCLocalLevels.dat", "My Level", ios=False)
```

## Optimising triggers

```python
from spwnkit.model import FunctionId, GdObj, Group, Id
from spwnkit.network import ReservedIds
from spwnkit.optimize import optimize

reserved = ReservedIds.from_objects(level_objects, func_ids)
optimized = optimize(func_ids, closed_group, reserved)
```

- `func_ids` is a list of `FunctionId`. Each one holds `(GdObj, order)` pairs.
- A `GdObj` maps property numbers to values. The values can be:
  - `Group`, `Color`, `Block` or `Item`, each built from an `Id`;
  - numbers, booleans or strings;
  - lists of groups;
  - `Epsilon`.
- `closed_group` is the highest arbitrary group id already in use.
- The inputs are not modified. The result has one `FunctionId` for each input
  and holds only the triggers that remain.

The lower-level pieces can also be used on their own, for example
`get_role`, `clean_network`, `replace_groups` and `create_spawn_trigger` in
`spwnkit.network`, or `param_identifier` in `spwnkit.trigger_dedup`.

## Errors

```python
from spwnkit.compiler_info import CompilerInfo
from spwnkit.errors import UndefinedError, build_report

err = UndefinedError(undefined="foo", desc="variable", info=CompilerInfo())
report = build_report(err.to_report())
print(report.render())
```

The error classes are exceptions, so they can be raised and caught directly.
`str(err)` is the report's message.

## What this package does not do

spwnkit does not parse, compile or run SPWN programs. It has no command-line
tool. It works only on trigger functions and errors that something else has
already produced. It does not send objects to a running game, and it does not
generate documentation for libraries.

## Running the tests

```
pip install "spwnkit[test]"
pytest
```