"""Merging groups whose triggers behave identically."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Optional

from .model import Block, Color, Epsilon, Group, Id, Item
from .network import (
    ObjId,
    ObjProp,
    ReservedIds,
    Trigger,
    TriggerGang,
    TriggerNetwork,
    Triggerlist,
    clean_network,
    is_start_group,
    replace_groups,
)

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1
_STACKABLE = frozenset({ObjId.MOVE, ObjId.PICKUP})


def _id_text(ident: Id) -> str:
    return f"?{ident.value}" if ident.is_arbitrary else str(ident.value)


def _to_i32(value: float) -> int:
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return _I32_MAX if value > 0 else _I32_MIN
    return max(_I32_MIN, min(_I32_MAX, int(value)))


def _number_text(n: float) -> str:
    if math.isfinite(n) and abs(round(n) - n) < 0.001:
        return str(_to_i32(n))
    return f"{n:.3f}"


def param_identifier(param: object) -> str:
    """A text form of a parameter value used to compare triggers."""
    if isinstance(param, bool):
        return "1" if param else "0"
    if isinstance(param, Epsilon):
        return "0.050"
    if isinstance(param, (Group, Color, Block, Item)):
        return _id_text(param.id)
    if isinstance(param, (int, float)):
        return _number_text(float(param))
    if isinstance(param, str):
        return param
    if isinstance(param, (list, tuple)):
        return ".".join(_id_text(g.id) for g in param)
    raise TypeError(f"unsupported object parameter: {param!r}")


@dataclass(frozen=True)
class _TriggerBehavior:
    """What a trigger does, ignoring the group it is in.

    Two behaviours are equal when their parameters are; the trigger order
    only decides where a behaviour sorts.
    """

    params: tuple[tuple[int, str], ...]
    order: int = field(compare=False)

    def sort_key(self) -> tuple[int, tuple[tuple[int, str], ...]]:
        return self.order, self.params


def trigger_behavior(trigger: Trigger, objects: Triggerlist) -> _TriggerBehavior:
    obj, order = objects[trigger.obj]
    params = sorted(
        {
            (int(prop), param_identifier(value))
            for prop, value in obj.params.items()
            if prop != ObjProp.GROUPS
        }
    )
    return _TriggerBehavior(tuple(params), int(order * 100000.0))


def gang_behavior(
    gang: TriggerGang, objects: Triggerlist
) -> tuple[_TriggerBehavior, ...]:
    """The behaviours of all triggers of a gang, in trigger order."""
    behaviors = [trigger_behavior(t, objects) for t in gang.triggers]
    return tuple(sorted(behaviors, key=_TriggerBehavior.sort_key))


def _object_code(params: dict) -> Optional[int]:
    value = params.get(1)
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return None
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return 0xFFFF if value > 0 else 0
    return max(0, min(0xFFFF, int(value)))


def _has_stackable_trigger(gang: TriggerGang, objects: Triggerlist) -> bool:
    return any(
        _object_code(objects[t.obj][0].params) in _STACKABLE for t in gang.triggers
    )


def dedup_triggers(
    network: TriggerNetwork, objects: Triggerlist, reserved: ReservedIds
) -> None:
    """Point groups that behave alike at one of them until nothing changes."""
    while True:
        swaps: dict[Group, tuple[Group, float]] = {}
        representatives: list[tuple[tuple[_TriggerBehavior, ...], Group, float]] = []

        for group, gang in network.map.items():
            if is_start_group(group, reserved):
                continue
            if _has_stackable_trigger(gang, objects):
                continue
            behavior = gang_behavior(gang, objects)

            match = next(
                ((repr_group, order) for b, repr_group, order in representatives
                 if b == behavior),
                None,
            )
            if match is not None:
                gang.triggers[:] = [replace(t, deleted=True) for t in gang.triggers]
                swaps[group] = match
            else:
                order = max([0.0, *(objects[t.obj][1] for t in gang.triggers)])
                representatives.append((behavior, group, order))

        if not swaps:
            break
        replace_groups(swaps, objects)
        clean_network(network, objects, False)