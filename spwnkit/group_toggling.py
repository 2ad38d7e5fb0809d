"""Grouping of instant count triggers fired in the same frame.

When a group fires several instant count triggers whose targets do nothing
but produce output, those outputs are copied into the firing group behind
a shared output group. Toggle triggers around each instant count trigger
switch that output group on and off, so the results keep their order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Optional

from .model import GdObj, Group, Id, ObjectMode
from .network import (
    NO_GROUP,
    ObjId,
    ObjProp,
    ObjPtr,
    ReservedIds,
    Trigger,
    TriggerNetwork,
    TriggerRole,
    Triggerlist,
    is_start_group,
)

_SPACING = 0.0001
_MIN_GROUPABLE = 3
_MAX_EXTRA_GROUPS = 5
_SIGNAL_ROLES = (TriggerRole.FUNC, TriggerRole.SPAWN)
_FORWARDING_CODES = frozenset({ObjId.INSTANT_COUNT, ObjId.SPAWN})

_Item = tuple[Trigger, float]


def _object_code(obj: GdObj) -> Optional[int]:
    value = obj.params.get(1)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return 0xFFFF if value > 0 else 0
    return max(0, min(0xFFFF, int(value)))


def create_toggle_trigger(
    obj: ObjPtr,
    target_group: Group,
    groups: list[Group],
    enable: bool,
    objects: Triggerlist,
    network: TriggerNetwork,
    order: float,
) -> Trigger:
    """Add a toggle trigger next to ``obj`` and return it."""
    new_obj = GdObj(
        params={
            1: float(ObjId.TOGGLE),
            ObjProp.TARGET: target_group,
            ObjProp.ACTIVATE_GROUP: enable,
            ObjProp.GROUPS: list(groups),
        },
        func_id=obj.func,
        mode=ObjectMode.TRIGGER,
        unique_id=objects[obj][0].unique_id,
    )
    ptr = objects.push(obj.func, new_obj, order)
    new_trigger = Trigger(obj=ptr, role=TriggerRole.OUTPUT, deleted=False)
    group = new_obj.params.get(ObjProp.GROUPS)
    network.add_trigger(group if isinstance(group, Group) else NO_GROUP, new_trigger)
    return new_trigger


@dataclass
class _Grouping:
    network: TriggerNetwork
    objects: Triggerlist
    reserved: ReservedIds
    closed_group: int
    visited: set[Group] = field(default_factory=set)

    def new_group(self) -> Group:
        self.closed_group += 1
        return Group(Id.arbitrary(self.closed_group))

    def order(self, trigger: Trigger) -> float:
        return self.objects[trigger.obj][1]

    def visit_group(self, group: Group) -> None:
        if group in self.visited:
            return
        self.visited.add(group)
        triggers = sorted(self.network.map[group].triggers, key=self.order)
        if not triggers:
            return
        items = [
            (trigger, self.order(following) - self.order(trigger))
            for trigger, following in zip(triggers, triggers[1:])
        ]
        items.append((triggers[-1], 1.0))
        self.process(items, group, [], None)

    def visit_list(
        self,
        items: list[_Item],
        main_group: Group,
        additional: list[Group],
        toggle_groups: Optional[tuple[Group, Group]],
    ) -> None:
        ordered = sorted(items, key=lambda item: self.order(item[0]))
        self.process(ordered, main_group, additional, toggle_groups)

    def is_groupable(self, trigger: Trigger) -> bool:
        obj = self.objects[trigger.obj][0]
        if _object_code(obj) != ObjId.INSTANT_COUNT:
            return False
        target = obj.params.get(ObjProp.TARGET)
        if not isinstance(target, Group) or is_start_group(target, self.reserved):
            return False
        gang = self.network.map[target]
        return gang.connections_in == 1 and all(
            t.role == TriggerRole.OUTPUT
            or _object_code(self.objects[t.obj][0]) in _FORWARDING_CODES
            for t in gang.triggers
        )

    def process(
        self,
        items: list[_Item],
        main_group: Group,
        additional: list[Group],
        toggle_groups: Optional[tuple[Group, Group]],
    ) -> None:
        groupable: list[_Item] = []
        ungroupable: list[_Item] = []
        for item in items:
            (groupable if self.is_groupable(item[0]) else ungroupable).append(item)

        if len(groupable) >= _MIN_GROUPABLE:
            self.group_triggers(groupable, main_group, additional, toggle_groups)
        else:
            ungroupable.extend(groupable)

        for trigger, _ in ungroupable:
            self.follow(trigger)

    def follow(self, trigger: Trigger) -> None:
        if trigger.role not in _SIGNAL_ROLES:
            return
        target = self.objects[trigger.obj][0].params.get(ObjProp.TARGET)
        if isinstance(target, Group) and not is_start_group(target, self.reserved):
            self.visit_group(target)

    def group_triggers(
        self,
        triggers: list[_Item],
        main_group: Group,
        additional: list[Group],
        toggle_groups: Optional[tuple[Group, Group]],
    ) -> None:
        if toggle_groups is not None:
            swapping_group, output_group = toggle_groups
        else:
            swapping_group = self.new_group()
            output_group = self.new_group()

        can_recurse_further = len(additional) < _MAX_EXTRA_GROUPS
        recursion_groups = (self.new_group(), self.new_group())

        for trigger, between in triggers:
            ptr = trigger.obj
            source, order = self.objects[ptr]

            target = source.params.get(ObjProp.TARGET)
            if not isinstance(target, Group):
                raise RuntimeError(f"groupable trigger {ptr} has no target group")
            target_gang = self.network.map[target]
            originals = list(target_gang.triggers)
            target_gang.triggers[:] = [replace(t, deleted=True) for t in originals]
            source.params[ObjProp.TARGET] = output_group  # enable output

            outputs: list[Trigger] = []
            for output in originals:
                copied_obj, copied_order = self.objects[output.obj]
                new_obj = replace(
                    copied_obj, params=dict(copied_obj.params), func_id=ptr.func
                )
                new_ptr = self.objects.push(ptr.func, new_obj, copied_order)
                outputs.append(replace(output, obj=new_ptr, deleted=False))

            for output in outputs:
                params = self.objects[output.obj][0].params
                if ObjProp.GROUPS in params:
                    params[ObjProp.GROUPS] = [
                        main_group,
                        output_group,
                        swapping_group,
                        *additional,
                    ]

            outputs.sort()

            delta = (between - _SPACING * 2.0) / len(outputs) if outputs else 0.0
            current_order = order + _SPACING
            for output in outputs:
                obj = self.objects[output.obj][0]
                self.objects[output.obj] = (obj, current_order)
                current_order += delta

            if can_recurse_further:
                self.visit_list(
                    [(output, delta) for output in outputs],
                    main_group,
                    [*additional, main_group, output_group, swapping_group],
                    recursion_groups,
                )
            else:
                for output in outputs:
                    self.follow(output)

            self.network.map[main_group].triggers.extend(outputs)

            toggle_delta = _SPACING / 17.0
            toggle_groups_list = [main_group, *additional]
            # before the instant count trigger
            create_toggle_trigger(
                ptr,
                swapping_group,
                toggle_groups_list,
                False,
                self.objects,
                self.network,
                order - toggle_delta,
            )
            create_toggle_trigger(
                ptr,
                output_group,
                toggle_groups_list,
                False,
                self.objects,
                self.network,
                order - toggle_delta,
            )
            # after the instant count trigger
            create_toggle_trigger(
                ptr,
                swapping_group,
                toggle_groups_list,
                True,
                self.objects,
                self.network,
                order + toggle_delta,
            )


def group_toggling(
    network: TriggerNetwork,
    objects: Triggerlist,
    reserved: ReservedIds,
    closed_group: int,
) -> int:
    """Group instant count triggers reachable from start groups.

    Returns the highest group id in use afterwards.
    """
    grouping = _Grouping(network, objects, reserved, closed_group)
    for group in list(network.map):
        if is_start_group(group, reserved):
            grouping.visit_group(group)
    return grouping.closed_group