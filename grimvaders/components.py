"""Component values, board constants, game modes and input events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .ecs import Entity

BOARD_W = 4
BOARD_H = 4
MAX_WAVE_H = 3
WAVE_COUNT = 3
MAX_BATTLES = 12

DECK_SIZE = 8
SHOP_SIZE = 5


class Tile(Enum):
    PLAINS = "Plains"
    MEADOW = "Meadow"
    FIELD = "Field"
    FOREST = "Forest"


class Tag(Enum):
    BASIC = "Basic"
    FOOD_PRODUCER = "FoodProducer"
    HEALER = "Healer"
    HEAVY = "Heavy"

    def label(self) -> str:
        """Human readable name of the tag."""
        return _TAG_LABELS[self]


_TAG_LABELS = {
    Tag.BASIC: "Basic",
    Tag.FOOD_PRODUCER: "Food Producer",
    Tag.HEALER: "Healer",
    Tag.HEAVY: "Heavy",
}


def _check_amount(value: int) -> None:
    if value < 0:
        raise ValueError(f"amount must be non-negative, got {value}")


@dataclass
class ValueDefault:
    """A non-negative counter together with the value it restores to."""

    current: int
    default: Optional[int] = None

    def __post_init__(self) -> None:
        if self.default is None:
            self.default = self.current
        _check_amount(self.current)
        _check_amount(self.default)

    def add(self, value: int) -> None:
        _check_amount(value)
        self.current += value

    def sub(self, value: int) -> None:
        _check_amount(value)
        self.current = max(0, self.current - value)

    def add_default(self, value: int) -> None:
        _check_amount(value)
        self.default += value
        self.current += value

    def sub_default(self, value: int) -> None:
        _check_amount(value)
        self.default = max(0, self.default - value)
        self.current = max(0, self.current - value)

    def restore(self) -> None:
        self.current = self.default


@dataclass(frozen=True)
class Position:
    x: int
    y: int

    def manhattan(self, other: "Position") -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def __add__(self, other: "Position") -> "Position":
        if not isinstance(other, Position):
            return NotImplemented
        return Position(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Position") -> "Position":
        if not isinstance(other, Position):
            return NotImplemented
        return Position(self.x - other.x, self.y - other.y)


ORTHO = (Position(0, 1), Position(1, 0), Position(0, -1), Position(-1, 0))


class GameMode(Enum):
    INIT = "init"
    RUNNING = "running"
    GAME_OVER = "game_over"
    WIN = "win"


@dataclass(frozen=True)
class MoveUnitEvent:
    entity: Entity
    position: Position


@dataclass(frozen=True)
class SummonPlayerEvent:
    entity: Entity
    position: Position


@dataclass(frozen=True)
class DoneEvent:
    pass


@dataclass(frozen=True)
class PickUnitEvent:
    index: int


@dataclass(frozen=True)
class DiscardUnitEvent:
    entity: Entity


InputEvent = Union[
    MoveUnitEvent, SummonPlayerEvent, DoneEvent, PickUnitEvent, DiscardUnitEvent
]