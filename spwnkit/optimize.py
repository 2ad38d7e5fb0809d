"""The full optimisation pass over a compiled level's trigger functions."""

from __future__ import annotations

import copy
from dataclasses import replace

from .dead_code import dead_code_optimization
from .group_toggling import group_toggling
from .model import FunctionId, Group, Id
from .network import (
    NO_GROUP,
    ObjProp,
    ObjPtr,
    ReservedIds,
    Trigger,
    TriggerNetwork,
    TriggerRole,
    Triggerlist,
    clean_network,
    create_spawn_trigger,
    get_role,
    get_toggle_groups,
    replace_groups,
)
from .spawn_optimisation import spawn_optimisation
from .trigger_dedup import dedup_triggers

_ROUNDS = 10


def _copy_reserved(reserved: ReservedIds) -> ReservedIds:
    return ReservedIds(
        object_groups=set(reserved.object_groups),
        trigger_groups=set(reserved.trigger_groups),
        object_colors=set(reserved.object_colors),
        object_blocks=set(reserved.object_blocks),
        object_items=set(reserved.object_items),
    )


def _build_network(functions: list[FunctionId]) -> TriggerNetwork:
    network = TriggerNetwork()
    for fi, function in enumerate(functions):
        for oi, (obj, _) in enumerate(function.obj_list):
            trigger = Trigger(obj=ObjPtr(fi, oi), role=get_role(obj), deleted=False)
            group = obj.params.get(ObjProp.GROUPS)
            network.add_trigger(group if isinstance(group, Group) else NO_GROUP, trigger)
    return network


def optimize(
    obj_in: list[FunctionId], closed_group: int, reserved: ReservedIds
) -> list[FunctionId]:
    """Optimise the triggers of ``obj_in`` and return the new trigger functions.

    The arguments are left untouched; ``closed_group`` is the highest
    arbitrary group id already in use.
    """
    functions = copy.deepcopy(obj_in)
    reserved = _copy_reserved(reserved)

    network = _build_network(functions)
    toggle_groups = get_toggle_groups(functions)
    objects = Triggerlist(functions)

    for _ in range(_ROUNDS):
        clean_network(network, objects, True)
        dead_code_optimization(network, objects, reserved)
        clean_network(network, objects, False)
        spawn_optimisation(network, objects, reserved, toggle_groups)
        clean_network(network, objects, False)
        reserved.update(network, objects)

    clean_network(network, objects, False)
    dedup_triggers(network, objects, reserved)
    clean_network(network, objects, False)

    closed_group = group_toggling(network, objects, reserved, closed_group)

    zero_group = Group(Id.specific(0))
    gang = network.map.get(zero_group)
    if gang is not None and len(gang.triggers) > 1:
        closed_group += 1
        new_start_group = Group(Id.arbitrary(closed_group))
        replace_groups({zero_group: (new_start_group, 0.0)}, objects)
        create_spawn_trigger(
            Trigger(obj=ObjPtr(0, 0), role=TriggerRole.SPAWN, deleted=False),
            new_start_group,
            zero_group,
            0.0,
            objects,
            network,
            TriggerRole.SPAWN,
            False,
        )

    return rebuild(network, functions)


def rebuild(
    network: TriggerNetwork, orig_structure: list[FunctionId]
) -> list[FunctionId]:
    """Lay the live triggers of ``network`` back out into trigger functions.

    Each object goes to the function named by its ``func_id``.
    """
    out = [replace(function, obj_list=[]) for function in orig_structure]
    for gang in network.map.values():
        for trigger in gang.triggers:
            if trigger.deleted:
                continue
            obj, order = orig_structure[trigger.obj.func].obj_list[trigger.obj.index]
            out[obj.func_id].obj_list.append((copy.deepcopy(obj), order))
    return out