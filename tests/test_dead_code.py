from spwnkit.dead_code import dead_code_optimization
from spwnkit.model import FunctionId, GdObj, Group, Id
from spwnkit.network import (
    NO_GROUP,
    ObjPtr,
    ReservedIds,
    Trigger,
    TriggerNetwork,
    Triggerlist,
    clean_network,
    get_role,
)

A = Group(Id.arbitrary(1))
B = Group(Id.arbitrary(2))
LOOSE = Group(Id.arbitrary(9))
FIXED = Group(Id.specific(5))


def _run(params_list, reserved=None):
    objs = [GdObj(params=p) for p in params_list]
    funcs = [FunctionId(obj_list=[(o, float(i)) for i, o in enumerate(objs)])]
    objects = Triggerlist(funcs)
    network = TriggerNetwork()
    for i, o in enumerate(objs):
        network.add_trigger(NO_GROUP, Trigger(ObjPtr(0, i), get_role(o)))
    if reserved is None:
        reserved = ReservedIds.from_objects([], funcs)
    clean_network(network, objects, True)
    dead_code_optimization(network, objects, reserved)
    return {t.obj: t.deleted for g in network.map.values() for t in g.triggers}


def test_chain_to_output_is_kept():
    flags = _run([
        {1: 1268.0, 51: A},
        {1: 901.0, 57: A, 51: FIXED},
    ])
    assert flags == {ObjPtr(0, 0): False, ObjPtr(0, 1): False}


def test_spawn_to_empty_group_is_deleted():
    flags = _run([{1: 1268.0, 51: B}])
    assert flags[ObjPtr(0, 0)] is True


def test_output_to_unused_group_is_deleted():
    flags = _run([
        {1: 1268.0, 51: A},
        {1: 901.0, 57: A, 51: LOOSE},
    ])
    assert flags == {ObjPtr(0, 0): True, ObjPtr(0, 1): True}


def test_output_to_reserved_trigger_group_is_kept():
    reserved = ReservedIds(trigger_groups={LOOSE.id})
    flags = _run([
        {1: 1268.0, 51: A},
        {1: 901.0, 57: A, 51: LOOSE},
    ], reserved)
    assert flags == {ObjPtr(0, 0): False, ObjPtr(0, 1): False}


def test_loops_are_kept():
    flags = _run([
        {1: 1268.0, 51: A},
        {1: 1268.0, 57: A, 51: B},
        {1: 1268.0, 57: B, 51: A},
    ])
    assert flags == {
        ObjPtr(0, 0): False,
        ObjPtr(0, 1): False,
        ObjPtr(0, 2): False,
    }


def test_unreachable_group_is_deleted():
    flags = _run([
        {1: 901.0, 51: FIXED},
        {1: 901.0, 57: A, 51: FIXED},
    ])
    assert flags[ObjPtr(0, 0)] is False
    assert flags[ObjPtr(0, 1)] is True


def test_trigger_targeting_start_group_is_kept():
    flags = _run([{1: 1268.0, 51: FIXED}, {1: 1268.0, 57: A, 51: FIXED}])
    assert flags[ObjPtr(0, 0)] is False
    assert flags[ObjPtr(0, 1)] is True