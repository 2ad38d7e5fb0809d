"""Removal of triggers that lead nowhere or cannot be reached."""

from __future__ import annotations

from dataclasses import replace

from .model import Group
from .network import (
    ObjProp,
    ReservedIds,
    TriggerNetwork,
    TriggerRole,
    Triggerlist,
    is_start_group,
)

_Slot = tuple[Group, int]


def _revive(network: TriggerNetwork, slot: _Slot) -> None:
    group, index = slot
    triggers = network.map[group].triggers
    triggers[index] = replace(triggers[index], deleted=False)


def _leads_to_output(
    network: TriggerNetwork,
    objects: Triggerlist,
    slot: _Slot,
    reserved: ReservedIds,
    visited: list[_Slot],
) -> bool:
    group, index = slot
    trigger = network.map[group].triggers[index]
    if not trigger.deleted:
        return True

    target = objects[trigger.obj][0].params.get(ObjProp.TARGET)

    if trigger.role == TriggerRole.OUTPUT:
        if (
            isinstance(target, Group)
            and target.id.is_arbitrary
            and target.id not in reserved.object_groups
            and target.id not in reserved.trigger_groups
        ):
            return False
        _revive(network, slot)
        return True

    if slot in visited:
        return True  # keep every loop

    if not isinstance(target, Group):
        return False
    if is_start_group(target, reserved):
        return True
    gang = network.map.get(target)
    if gang is None or not gang.triggers:
        return False

    count = len(gang.triggers)
    alive = False
    visited.append(slot)
    for i in range(count):
        child = (target, i)
        if _leads_to_output(network, objects, child, reserved, visited):
            _revive(network, child)
            alive = True
    visited.pop()
    return alive


def dead_code_optimization(
    network: TriggerNetwork, objects: Triggerlist, reserved: ReservedIds
) -> None:
    """Keep only triggers reachable from a start group that lead to an output.

    Triggers must come in marked deleted; the ones worth keeping are unmarked.
    """
    for group, gang in list(network.map.items()):
        if not is_start_group(group, reserved):
            continue
        for index, _ in enumerate(list(gang.triggers)):
            if _leads_to_output(network, objects, (group, index), reserved, []):
                _revive(network, (group, index))