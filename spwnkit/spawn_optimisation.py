"""Merging chains of spawn triggers into single spawn triggers.

Chains of spawn triggers are collapsed into one trigger carrying their
summed delay. A spawn trigger with no delay is removed entirely by
renaming the groups it connects.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import NamedTuple, Optional

from .model import Epsilon, Group
from .network import (
    NO_GROUP,
    ObjProp,
    ReservedIds,
    ToggleGroups,
    Trigger,
    TriggerNetwork,
    TriggerRole,
    Triggerlist,
    create_spawn_trigger,
    is_start_group,
    replace_groups,
)

_DELAY_PROP = 63
_U32_MAX = 2**32 - 1
_EPSILON_MS = 50


@dataclass(frozen=True)
class SpawnDelay:
    """A spawn delay in whole milliseconds, possibly raised to the minimum."""

    delay: int = 0
    epsiloned: bool = False

    def __add__(self, other: SpawnDelay) -> SpawnDelay:
        return SpawnDelay(self.delay + other.delay, self.epsiloned or other.epsiloned)

    def milliseconds(self) -> int:
        """The delay that a rebuilt spawn trigger should wait."""
        if self.epsiloned and self.delay < _EPSILON_MS:
            return _EPSILON_MS
        return self.delay


_NO_DELAY = SpawnDelay()


class _SpawnTrigger(NamedTuple):
    target: Group
    delay: SpawnDelay
    trigger: Trigger


class _Connection(NamedTuple):
    start_group: Group
    end_group: Group
    delay: SpawnDelay
    trigger: Trigger


def _to_milliseconds(seconds: float) -> int:
    value = seconds * 1000.0
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return _U32_MAX if value > 0 else 0
    return max(0, min(_U32_MAX, int(value)))


def _read_delay(param: object) -> SpawnDelay:
    if isinstance(param, Epsilon):
        return SpawnDelay(0, True)
    if isinstance(param, (int, float)) and not isinstance(param, bool):
        return SpawnDelay(_to_milliseconds(float(param)), False)
    return SpawnDelay(0, False)


def _look_for_cycle(
    current: Group,
    connections: dict[Group, list[_SpawnTrigger]],
    visited: list[Group],
    inputs: set[Group],
    outputs: set[Group],
    cycle_points: set[Group],
    found: list[_Connection],
) -> None:
    """Turn the groups where a spawn cycle closes into inputs and outputs."""
    for link in connections.get(current, ()):
        if link.target in visited:
            outputs.add(current)
            inputs.add(link.target)
            found.append(_Connection(current, link.target, link.delay, link.trigger))
            cycle_points.add(current)
            return
        visited.append(current)
        _look_for_cycle(
            link.target, connections, visited, inputs, outputs, cycle_points, found
        )
        visited.pop()


def _traverse(
    current: Group,
    origin: Group,
    total: SpawnDelay,
    trigger: Optional[Trigger],
    outputs: set[Group],
    cycle_points: set[Group],
    connections: dict[Group, list[_SpawnTrigger]],
    visited: list[Group],
    found: list[_Connection],
) -> None:
    """Record every path of spawn triggers from ``origin`` to an output group."""
    if current in visited:
        raise RuntimeError(f"undetected spawn cycle through {current}")

    if current in connections:
        for link in connections[current]:
            new_delay = total + link.delay
            visited.append(current)
            if link.target in outputs:
                found.append(
                    _Connection(
                        origin,
                        link.target,
                        new_delay,
                        trigger if trigger is not None else link.trigger,
                    )
                )
                if link.target not in cycle_points:
                    _traverse(
                        link.target,
                        link.target,
                        _NO_DELAY,
                        None,
                        outputs,
                        cycle_points,
                        connections,
                        visited,
                        found,
                    )
            else:
                _traverse(
                    link.target,
                    origin,
                    new_delay,
                    trigger,
                    outputs,
                    cycle_points,
                    connections,
                    visited,
                    found,
                )
            visited.pop()
    elif trigger is not None:
        found.append(_Connection(origin, current, total, trigger))
    elif current not in outputs:
        raise RuntimeError(f"spawn path ends in {current}, which is not an output")


def _collect_spawn_triggers(
    network: TriggerNetwork,
    objects: Triggerlist,
    inputs: set[Group],
    outputs: set[Group],
) -> dict[Group, list[_SpawnTrigger]]:
    connections: dict[Group, list[_SpawnTrigger]] = {}
    for group, gang in network.map.items():
        if any(t.role != TriggerRole.SPAWN for t in gang.triggers):
            outputs.add(group)
        for index, trigger in enumerate(gang.triggers):
            if trigger.role != TriggerRole.SPAWN:
                continue
            params = objects[trigger.obj][0].params
            target = params.get(ObjProp.TARGET)
            if not isinstance(target, Group):
                continue
            if gang.non_spawn_triggers_in or group == NO_GROUP:
                inputs.add(group)
            delay = _read_delay(params.get(_DELAY_PROP, 0.0))

            # the trigger is rebuilt later, if it is still needed
            removed = replace(trigger, deleted=True)
            gang.triggers[index] = removed
            connections.setdefault(group, []).append(
                _SpawnTrigger(target, delay, removed)
            )
    return connections


def spawn_optimisation(
    network: TriggerNetwork,
    objects: Triggerlist,
    reserved: ReservedIds,
    toggle_groups: ToggleGroups,
) -> None:
    """Replace chains of spawn triggers by single triggers or group renames."""
    inputs: set[Group] = set()
    outputs: set[Group] = set()
    cycle_points: set[Group] = set()
    found: list[_Connection] = []

    connections = _collect_spawn_triggers(network, objects, inputs, outputs)

    for start in sorted(inputs):
        _look_for_cycle(
            start, connections, [], inputs, outputs, cycle_points, found
        )

    for start in sorted(inputs):
        _traverse(
            start,
            start,
            _NO_DELAY,
            None,
            outputs,
            cycle_points,
            connections,
            [],
            found,
        )

    deduped: dict[tuple[Group, Group, SpawnDelay], Trigger] = {}
    for conn in found:
        deduped[(conn.start_group, conn.end_group, conn.delay)] = conn.trigger

    swaps: dict[Group, tuple[Group, float]] = {}

    def insert_swap(old: Group, new: Group, trigger: Trigger) -> None:
        order = objects[trigger.obj][1]
        for key, (target, _) in list(swaps.items()):
            if target == old:
                swaps[key] = (new, order)
        if old in swaps:
            raise RuntimeError(f"group {old} was already swapped")
        swaps[old] = (new, order)

    for (start, end, delay), trigger in deduped.items():
        d = delay.milliseconds()
        targeters = network.connectors.get(start, set())

        togglers = toggle_groups.toggles_off.get(start)
        # safe only when every toggler of the start group is one of its targeters
        start_can_toggle_off = togglers is not None and not all(
            t in targeters for t in togglers
        )

        if (
            start_can_toggle_off
            or (start in toggle_groups.toggles_on and end in toggle_groups.toggles_off)
            or end in toggle_groups.stops
        ):
            plain = True
        elif (
            d == 0
            and not is_start_group(end, reserved)
            and network.map[end].connections_in == 1
        ):
            insert_swap(end, start, trigger)
            plain = False
        elif (
            d == 0
            and not is_start_group(start, reserved)
            and network.map[start].connections_in == 1
            and all(t.deleted for t in network.map[start].triggers)
        ):
            insert_swap(start, end, trigger)
            plain = False
        else:
            plain = True

        if plain:
            create_spawn_trigger(
                trigger,
                end,
                start,
                d / 1000.0,
                objects,
                network,
                TriggerRole.SPAWN,
                False,
            )

    replace_groups(swaps, objects)