"""Identifiers, object parameters, level objects and trigger functions."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True, order=True)
class Id:
    """A numeric id that is either fixed by the user or picked by the compiler."""

    is_arbitrary: bool
    value: int

    @classmethod
    def specific(cls, value: int) -> Id:
        return cls(False, value)

    @classmethod
    def arbitrary(cls, value: int) -> Id:
        return cls(True, value)


@dataclass(frozen=True, order=True)
class Group:
    id: Id


@dataclass(frozen=True, order=True)
class Color:
    id: Id


@dataclass(frozen=True, order=True)
class Block:
    id: Id


@dataclass(frozen=True, order=True)
class Item:
    id: Id


@dataclass(frozen=True)
class Epsilon:
    """The smallest delay a spawn trigger can have."""


ObjParam = Union[
    Group,
    Color,
    Block,
    Item,
    Epsilon,
    bool,
    int,
    float,
    str,
    "tuple[Group, ...]",
    "list[Group]",
]


class ObjectMode(enum.Enum):
    OBJECT = "object"
    TRIGGER = "trigger"


@dataclass
class GdObj:
    """A level object: a map from property numbers to values."""

    params: dict[int, ObjParam] = field(default_factory=dict)
    func_id: int = 0
    mode: ObjectMode = ObjectMode.TRIGGER
    unique_id: int = 0


@dataclass
class FunctionId:
    """A trigger function and the objects it holds, each with its trigger order."""

    obj_list: list[tuple[GdObj, float]] = field(default_factory=list)
    parent: Optional[int] = None
    name: str = ""