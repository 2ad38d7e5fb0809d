import copy

from spwnkit.model import FunctionId, GdObj, Group, Id
from spwnkit.network import (
    NO_GROUP,
    ObjId,
    ObjProp,
    ObjPtr,
    ReservedIds,
    Trigger,
    TriggerGang,
    TriggerNetwork,
    TriggerRole,
)
from spwnkit.optimize import optimize, rebuild


def _move(func_id=0, group=None):
    params = {1: float(ObjId.MOVE)}
    if group is not None:
        params[ObjProp.GROUPS] = group
    return GdObj(params=params, func_id=func_id)


def _spawn(target, func_id=0, group=None, delay=0.0):
    params = {1: float(ObjId.SPAWN), ObjProp.TARGET: target, 63: delay}
    if group is not None:
        params[ObjProp.GROUPS] = group
    return GdObj(params=params, func_id=func_id)


def _all_objects(functions):
    return [obj for function in functions for obj, _ in function.obj_list]


def _codes(functions):
    return sorted(int(obj.params[1]) for obj in _all_objects(functions))


def test_rebuild_skips_deleted_triggers():
    kept = _move()
    dropped = _move()
    functions = [FunctionId(obj_list=[(kept, 1.0), (dropped, 2.0)], name="main")]
    network = TriggerNetwork(
        map={
            NO_GROUP: TriggerGang(
                [
                    Trigger(ObjPtr(0, 0), TriggerRole.OUTPUT, False),
                    Trigger(ObjPtr(0, 1), TriggerRole.OUTPUT, True),
                ]
            )
        }
    )
    out = rebuild(network, functions)
    assert len(out) == 1
    assert out[0].name == "main"
    assert out[0].obj_list == [(kept, 1.0)]
    # the original structure is untouched
    assert len(functions[0].obj_list) == 2


def test_rebuild_places_objects_by_func_id():
    obj = _move(func_id=0)
    functions = [FunctionId(), FunctionId(obj_list=[(obj, 3.0)], parent=0)]
    network = TriggerNetwork(
        map={NO_GROUP: TriggerGang([Trigger(ObjPtr(1, 0), TriggerRole.OUTPUT)])}
    )
    out = rebuild(network, functions)
    assert out[0].obj_list == [(obj, 3.0)]
    assert out[1].obj_list == []
    assert out[1].parent == 0


def test_optimize_empty_input():
    assert optimize([], 0, ReservedIds()) == []


def test_output_trigger_in_start_group_is_kept():
    start = Group(Id.specific(1))
    obj = _move(group=start)
    functions = [FunctionId(obj_list=[(obj, 0.5)])]
    out = optimize(functions, 0, ReservedIds())
    objs = _all_objects(out)
    assert len(objs) == 1
    assert objs[0].params == obj.params


def test_unreachable_trigger_is_removed():
    start = Group(Id.specific(1))
    lonely = Group(Id.arbitrary(5))
    functions = [
        FunctionId(obj_list=[(_move(group=start), 0.0), (_move(group=lonely), 1.0)])
    ]
    out = optimize(functions, 5, ReservedIds())
    objs = _all_objects(out)
    assert len(objs) == 1
    assert objs[0].params[ObjProp.GROUPS] == start


def test_dangling_spawn_trigger_is_removed():
    start = Group(Id.specific(1))
    nowhere = Group(Id.arbitrary(3))
    functions = [FunctionId(obj_list=[(_spawn(nowhere, group=start), 0.0)])]
    out = optimize(functions, 3, ReservedIds())
    assert _all_objects(out) == []


def test_zero_delay_spawn_is_merged_into_its_target():
    target = Group(Id.arbitrary(2))
    functions = [
        FunctionId(obj_list=[(_spawn(target), 0.0), (_move(group=target), 1.0)])
    ]
    out = optimize(functions, 2, ReservedIds())
    objs = _all_objects(out)
    assert _codes(out) == [int(ObjId.MOVE)]
    assert objs[0].params[ObjProp.GROUPS] == NO_GROUP


def test_crowded_zero_group_gets_new_start_group():
    functions = [FunctionId(obj_list=[(_move(), 0.0), (_move(), 1.0)])]
    closed_group = 10
    out = optimize(functions, closed_group, ReservedIds())
    assert _codes(out) == sorted([int(ObjId.MOVE), int(ObjId.MOVE), int(ObjId.SPAWN)])
    spawns = [o for o in _all_objects(out) if int(o.params[1]) == ObjId.SPAWN]
    assert len(spawns) == 1
    assert spawns[0].params[ObjProp.TARGET] == Group(Id.arbitrary(closed_group + 1))
    assert spawns[0].params[ObjProp.GROUPS] == NO_GROUP
    assert spawns[0].params[63] == 0.0


def test_optimize_leaves_arguments_untouched():
    target = Group(Id.arbitrary(2))
    functions = [
        FunctionId(obj_list=[(_spawn(target), 0.0), (_move(group=target), 1.0)])
    ]
    snapshot = copy.deepcopy(functions)
    reserved = ReservedIds(trigger_groups={Id.arbitrary(2)})
    optimize(functions, 2, reserved)
    assert functions == snapshot
    assert reserved.trigger_groups == {Id.arbitrary(2)}


def test_output_objects_sit_in_their_own_function():
    start = Group(Id.specific(1))
    functions = [
        FunctionId(obj_list=[(_move(func_id=0, group=start), 0.0)]),
        FunctionId(obj_list=[(_move(func_id=1, group=start), 0.0)], parent=0),
    ]
    out = optimize(functions, 0, ReservedIds())
    assert len(out) == 2
    for index, function in enumerate(out):
        assert all(obj.func_id == index for obj, _ in function.obj_list)
    assert len(_all_objects(out)) == 2