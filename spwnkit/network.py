"""The trigger network that the optimiser works on."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field, replace
from typing import NamedTuple, Optional

from .model import Block, Color, FunctionId, GdObj, Group, Id, Item, ObjectMode


class ObjId(enum.IntEnum):
    MOVE = 901
    ROTATE = 1346
    ANIMATE = 1585
    PULSE = 1006
    COUNT = 1611
    ALPHA = 1007
    TOGGLE = 1049
    FOLLOW = 1347
    SPAWN = 1268
    STOP = 1616
    TOUCH = 1595
    INSTANT_COUNT = 1811
    ON_DEATH = 1812
    FOLLOW_PLAYER_Y = 1814
    COLLISION = 1815
    PICKUP = 1817
    BG_EFFECT_ON = 1818
    BG_EFFECT_OFF = 1819
    SHAKE = 1520
    COLOR = 899
    ENABLE_TRAIL = 32
    DISABLE_TRAIL = 33
    HIDE = 1612
    SHOW = 1613


class ObjProp(enum.IntEnum):
    TARGET = 51
    GROUPS = 57
    ACTIVATE_GROUP = 56


NO_GROUP = Group(Id.specific(0))

_ORDER_WINDOW = 0.1


class TriggerRole(enum.IntEnum):
    # Spawn triggers can be merged by adding their delays.
    SPAWN = 0
    # Triggers with a visible effect in the level; never optimised away.
    OUTPUT = 1
    # Triggers that only pass a signal on.
    FUNC = 2


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _object_id(obj: GdObj) -> Optional[int]:
    value = obj.params.get(1)
    if not _is_number(value):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return 0 if math.isnan(value) or value < 0 else 0xFFFF
    return max(0, min(0xFFFF, int(value)))


def _group_ids(param: object) -> list[Id]:
    if isinstance(param, Group):
        return [param.id]
    if isinstance(param, (list, tuple)):
        return [g.id for g in param]
    return []


class ObjPtr(NamedTuple):
    func: int
    index: int


@dataclass(frozen=True, order=True)
class Trigger:
    obj: ObjPtr
    role: TriggerRole
    deleted: bool = False


@dataclass
class TriggerGang:
    """The triggers that share one group."""

    triggers: list[Trigger] = field(default_factory=list)
    connections_in: int = 0
    # whether any trigger leading in is something other than a spawn trigger
    non_spawn_triggers_in: bool = False


@dataclass
class TriggerNetwork:
    map: dict[Group, TriggerGang] = field(default_factory=dict)
    connectors: dict[Group, set[ObjPtr]] = field(default_factory=dict)

    def add_trigger(self, group: Group, trigger: Trigger) -> None:
        """Add ``trigger`` to the gang of ``group``, creating the gang if needed."""
        gang = self.map.get(group)
        if gang is None:
            self.map[group] = TriggerGang([trigger])
        else:
            gang.triggers.append(trigger)


@dataclass
class Triggerlist:
    """All trigger functions, addressed by :class:`ObjPtr`."""

    functions: list[FunctionId]

    def __getitem__(self, ptr: ObjPtr) -> tuple[GdObj, float]:
        return self.functions[ptr.func].obj_list[ptr.index]

    def __setitem__(self, ptr: ObjPtr, value: tuple[GdObj, float]) -> None:
        self.functions[ptr.func].obj_list[ptr.index] = value

    def push(self, func_index: int, obj: GdObj, order: float) -> ObjPtr:
        """Append an object to a function and return where it went."""
        obj_list = self.functions[func_index].obj_list
        obj_list.append((obj, order))
        return ObjPtr(func_index, len(obj_list) - 1)


@dataclass
class ReservedIds:
    """Ids used by level objects or trigger groups, which must not be moved."""

    object_groups: set[Id] = field(default_factory=set)
    trigger_groups: set[Id] = field(default_factory=set)  # only the GROUPS property
    object_colors: set[Id] = field(default_factory=set)
    object_blocks: set[Id] = field(default_factory=set)
    object_items: set[Id] = field(default_factory=set)

    @classmethod
    def from_objects(
        cls, objects: list[GdObj], func_ids: list[FunctionId]
    ) -> ReservedIds:
        reserved = cls()
        for obj in objects:
            for param in obj.params.values():
                if isinstance(param, Color):
                    reserved.object_colors.add(param.id)
                elif isinstance(param, Block):
                    reserved.object_blocks.add(param.id)
                elif isinstance(param, Item):
                    reserved.object_items.add(param.id)
                else:
                    reserved.object_groups.update(_group_ids(param))

        for function in func_ids:
            for trigger, _ in function.obj_list:
                reserved.trigger_groups.update(
                    _group_ids(trigger.params.get(ObjProp.GROUPS))
                )
        return reserved

    def update(self, network: TriggerNetwork, objects: Triggerlist) -> None:
        """Recompute the trigger groups from the triggers now in ``network``."""
        self.trigger_groups.clear()
        for gang in network.map.values():
            for trigger in gang.triggers:
                params = objects[trigger.obj][0].params
                self.trigger_groups.update(_group_ids(params.get(ObjProp.GROUPS)))


@dataclass
class ToggleGroups:
    toggles_on: dict[Group, list[ObjPtr]] = field(default_factory=dict)
    toggles_off: dict[Group, list[ObjPtr]] = field(default_factory=dict)
    stops: dict[Group, list[ObjPtr]] = field(default_factory=dict)


_TOGGLING_IDS = frozenset(
    {ObjId.COUNT, ObjId.INSTANT_COUNT, ObjId.COLLISION, ObjId.ON_DEATH, ObjId.TOGGLE}
)
_COUNTING_IDS = frozenset(
    {ObjId.COUNT, ObjId.COLLISION, ObjId.INSTANT_COUNT, ObjId.ON_DEATH}
)


def _disables_group(obj: GdObj) -> bool:
    activate = obj.params.get(ObjProp.ACTIVATE_GROUP)
    return activate is None or activate is False


def get_toggle_groups(objects: list[FunctionId]) -> ToggleGroups:
    """Find every trigger that toggles or stops a group."""
    toggles = ToggleGroups()
    for fi, function in enumerate(objects):
        for oi, (obj, _) in enumerate(function.obj_list):
            code = _object_id(obj)
            if code is None:
                continue
            target = obj.params.get(ObjProp.TARGET)
            if not isinstance(target, Group):
                continue
            ptr = ObjPtr(fi, oi)
            if code in _TOGGLING_IDS:
                table = toggles.toggles_off if _disables_group(obj) else toggles.toggles_on
                table.setdefault(target, []).append(ptr)
            elif code == ObjId.TOUCH:
                toggles.toggles_off.setdefault(target, []).append(ptr)
                toggles.toggles_on.setdefault(target, []).append(ptr)
            elif code == ObjId.STOP:
                toggles.stops.setdefault(target, []).append(ptr)
    return toggles


def _role_from_target(obj: GdObj) -> TriggerRole:
    target = obj.params.get(ObjProp.TARGET)
    if isinstance(target, Group):
        # a fixed group might interact with triggers placed in the editor
        return TriggerRole.FUNC if target.id.is_arbitrary else TriggerRole.OUTPUT
    return TriggerRole.OUTPUT


def get_role(obj: GdObj) -> TriggerRole:
    """Classify a trigger by what the optimiser may do with it."""
    code = _object_id(obj)
    if code is None:
        return TriggerRole.OUTPUT
    hd = obj.params.get(103) is True

    if code == ObjId.SPAWN:
        target = obj.params.get(ObjProp.TARGET)
        if isinstance(target, Group) and not target.id.is_arbitrary:
            return TriggerRole.OUTPUT
        return TriggerRole.FUNC if hd else TriggerRole.SPAWN
    if code == ObjId.TOUCH:
        return _role_from_target(obj)
    if code in _COUNTING_IDS:
        if _disables_group(obj):
            return TriggerRole.OUTPUT
        return _role_from_target(obj)
    return TriggerRole.OUTPUT


def is_start_group(group: Group, reserved: ReservedIds) -> bool:
    """A group is a start group if it is fixed or used by level objects."""
    return not group.id.is_arbitrary or group.id in reserved.object_groups


def _group_of(obj: GdObj) -> Group:
    group = obj.params.get(ObjProp.GROUPS)
    return group if isinstance(group, Group) else NO_GROUP


def clean_network(
    network: TriggerNetwork, objects: Triggerlist, delete_objects: bool
) -> None:
    """Drop deleted triggers, regroup the rest and recount the connections."""
    fresh = TriggerNetwork()
    for gang in network.map.values():
        for trigger in gang.triggers:
            if trigger.deleted:
                continue
            kept = replace(trigger, deleted=delete_objects)
            fresh.add_trigger(_group_of(objects[kept.obj][0]), kept)

    for gang in list(fresh.map.values()):
        for trigger in list(gang.triggers):
            if trigger.role not in (TriggerRole.FUNC, TriggerRole.SPAWN):
                continue
            target = objects[trigger.obj][0].params.get(ObjProp.TARGET)
            if not isinstance(target, Group):
                continue
            target_gang = fresh.map.get(target)
            if target_gang is not None:
                target_gang.connections_in += 1
                if trigger.role != TriggerRole.SPAWN:
                    target_gang.non_spawn_triggers_in = True
            fresh.connectors.setdefault(target, set()).add(trigger.obj)

    network.map = fresh.map
    network.connectors = fresh.connectors


def replace_groups(
    table: dict[Group, tuple[Group, float]], objects: Triggerlist
) -> None:
    """Rename groups everywhere and reorder the triggers moved into new groups.

    Triggers whose GROUPS property was renamed get orders spread just after
    the order given for their new group.
    """
    plan = {old: ([], new, order) for old, (new, order) in table.items()}

    for fi, function in enumerate(objects.functions):
        for oi, (obj, _) in enumerate(function.obj_list):
            ptr = ObjPtr(fi, oi)
            for prop, param in list(obj.params.items()):
                if isinstance(param, Group):
                    entry = plan.get(param)
                    if entry is not None:
                        obj.params[prop] = entry[1]
                        if prop == ObjProp.GROUPS:
                            entry[0].append(ptr)
                elif isinstance(param, (list, tuple)):
                    renamed = []
                    for group in param:
                        entry = plan.get(group)
                        if entry is None:
                            renamed.append(group)
                            continue
                        renamed.append(entry[1])
                        if prop == ObjProp.GROUPS:
                            entry[0].append(ptr)
                    obj.params[prop] = type(param)(renamed)

    for moved, _, order in plan.values():
        if not moved:
            continue
        moved.sort(key=lambda p: objects[p][1])
        delta = _ORDER_WINDOW / len(moved)
        for i, ptr in enumerate(moved):
            obj, _ = objects[ptr]
            objects[ptr] = (obj, order + i * delta + delta)


def create_spawn_trigger(
    trigger: Trigger,
    target_group: Group,
    group: Group,
    delay: float,
    objects: Triggerlist,
    network: TriggerNetwork,
    role: TriggerRole,
    deleted: bool,
) -> Trigger:
    """Add a spawn trigger next to ``trigger`` and return it."""
    source, order = objects[trigger.obj]
    new_obj = GdObj(
        params={
            1: float(ObjId.SPAWN),
            ObjProp.TARGET: target_group,
            63: delay,
            ObjProp.GROUPS: group,
        },
        func_id=trigger.obj.func,
        mode=ObjectMode.TRIGGER,
        unique_id=source.unique_id,
    )
    ptr = objects.push(trigger.obj.func, new_obj, order)
    new_trigger = Trigger(obj=ptr, role=role, deleted=deleted)
    network.add_trigger(group, new_trigger)
    return new_trigger