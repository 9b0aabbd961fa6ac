"""The game world: component storages, resources and board queries."""

from __future__ import annotations

import copy
import random
from collections import deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable, Optional

from .components import (
    BOARD_H,
    BOARD_W,
    MAX_WAVE_H,
    ORTHO,
    GameMode,
    Position,
    Tag,
    Tile,
    ValueDefault,
)
from .data import DataError, GameData
from .ecs import ComponentStorage, Entity, Observer, Scheduler, WorldStorage

MARKERS = frozenset({"killed", "npc", "player"})


def _storage() -> ComponentStorage:
    return ComponentStorage()


@dataclass
class Components:
    """Every component storage of the world, one attribute per component."""

    cost: ComponentStorage[int] = field(default_factory=_storage)
    health: ComponentStorage[ValueDefault] = field(default_factory=_storage)
    # temporary marker for units that are about to be removed
    killed: ComponentStorage[None] = field(default_factory=_storage)
    name: ComponentStorage[str] = field(default_factory=_storage)
    npc: ComponentStorage[None] = field(default_factory=_storage)
    on_spawn: ComponentStorage[str] = field(default_factory=_storage)
    on_fight: ComponentStorage[str] = field(default_factory=_storage)
    on_kill: ComponentStorage[str] = field(default_factory=_storage)
    on_ally_kill: ComponentStorage[str] = field(default_factory=_storage)
    on_attack: ComponentStorage[str] = field(default_factory=_storage)
    on_damage: ComponentStorage[str] = field(default_factory=_storage)
    on_ally_heal: ComponentStorage[str] = field(default_factory=_storage)
    on_ally_damage: ComponentStorage[str] = field(default_factory=_storage)
    on_ally_gain_food: ComponentStorage[str] = field(default_factory=_storage)
    player: ComponentStorage[None] = field(default_factory=_storage)
    position: ComponentStorage[Position] = field(default_factory=_storage)
    tags: ComponentStorage[list[Tag]] = field(default_factory=_storage)
    tile: ComponentStorage[Tile] = field(default_factory=_storage)
    trigger_limit: ComponentStorage[ValueDefault] = field(default_factory=_storage)

    def storage(self, name: str) -> ComponentStorage:
        """Return the storage of a component by name; KeyError if unknown."""
        if name not in COMPONENT_NAMES:
            raise KeyError(f"unknown component: {name}")
        return getattr(self, name)

    def entities_with(self, name: str) -> set[Entity]:
        """Entities holding the named component; empty for unknown names."""
        if name not in COMPONENT_NAMES:
            return set()
        return self.storage(name).entities()

    def insert_from_yaml(self, entity: Entity, name: str, value: Any) -> None:
        """Insert a component from its YAML value; unknown names are ignored."""
        parser = _PARSERS.get(name)
        if parser is None:
            return
        try:
            parsed = parser(value)
        except (DataError, ValueError, TypeError) as exc:
            raise DataError(f"can't deserialize component '{name}': {exc}") from exc
        self.storage(name).insert(entity, parsed)


COMPONENT_NAMES = frozenset(f.name for f in fields(Components))


def _parse_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise DataError(f"expected a non-negative integer, got {value!r}")
    return value


def _parse_value_default(value: Any) -> ValueDefault:
    if isinstance(value, Sequence) and not isinstance(value, str):
        if len(value) != 2:
            raise DataError(f"expected two values, got {value!r}")
        return ValueDefault(_parse_count(value[0]), _parse_count(value[1]))
    return ValueDefault(_parse_count(value))


def _parse_marker(value: Any) -> None:
    if value is not None:
        raise DataError(f"marker components take no value, got {value!r}")
    return None


def _parse_text(value: Any) -> str:
    if not isinstance(value, str):
        raise DataError(f"expected a string, got {value!r}")
    return value


def _parse_position(value: Any) -> Position:
    if isinstance(value, Mapping):
        if "x" not in value or "y" not in value:
            raise DataError("position needs 'x' and 'y'")
        x, y = value["x"], value["y"]
    elif isinstance(value, Sequence) and not isinstance(value, str) and len(value) == 2:
        x, y = value
    else:
        raise DataError(f"invalid position {value!r}")
    if any(isinstance(v, bool) or not isinstance(v, int) for v in (x, y)):
        raise DataError(f"position coordinates must be integers, got {value!r}")
    return Position(x, y)


def _parse_tags(value: Any) -> list[Tag]:
    if not isinstance(value, Sequence) or isinstance(value, str):
        raise DataError(f"expected a list of tags, got {value!r}")
    return [Tag(item) for item in value]


_PARSERS: dict[str, Callable[[Any], Any]] = {
    "cost": _parse_count,
    "health": _parse_value_default,
    "killed": _parse_marker,
    "name": _parse_text,
    "npc": _parse_marker,
    "player": _parse_marker,
    "position": _parse_position,
    "tags": _parse_tags,
    "tile": Tile,
    "trigger_limit": _parse_value_default,
    **{
        handler: _parse_text
        for handler in COMPONENT_NAMES
        if handler.startswith("on_")
    },
}


@dataclass
class PlayerData:
    discard: list[Entity] = field(default_factory=list)
    deck: list[Entity] = field(default_factory=list)
    level: int = 0
    health: int = 0
    food: int = 0


class BattleMode(Enum):
    PLAN = "plan"
    FIGHT = "fight"
    DONE = "done"


@dataclass
class BattleState:
    on_fight_queue: deque[Entity] = field(default_factory=deque)
    mode: BattleMode = BattleMode.PLAN
    wave: int = 0


@dataclass
class Resources:
    battle_state: BattleState = field(default_factory=BattleState)
    data: GameData = field(default_factory=GameData)
    game_mode: GameMode = GameMode.INIT
    player_data: PlayerData = field(default_factory=PlayerData)
    # the script engine; never part of saved state
    scripts: Any = None


class World(WorldStorage[Components, Resources]):
    """Entities, their components and the shared game resources."""

    def __init__(
        self,
        components: Optional[Components] = None,
        resources: Optional[Resources] = None,
    ) -> None:
        super().__init__(
            components if components is not None else Components(),
            resources if resources is not None else Resources(),
        )

    # Resources

    def get_current_food(self) -> int:
        return self.resources.player_data.food

    def board_size(self) -> tuple[int, int]:
        return (BOARD_W, BOARD_H)

    # Components

    def query(self, with_: Sequence[str], without: Sequence[str] = ()) -> list[Entity]:
        """Entities having every component in ``with_`` and none in ``without``."""
        if not with_:
            return []
        entities = self.components.entities_with(with_[0])
        for name in with_[1:]:
            entities &= self.components.entities_with(name)
        for name in without:
            entities -= self.components.entities_with(name)
        return sorted(entities)

    def get(self, component: str, entity: Entity) -> Any:
        """A copy of a component value; True for markers, None if absent."""
        if component not in COMPONENT_NAMES:
            return None
        storage = self.components.storage(component)
        if entity not in storage:
            return None
        if component in MARKERS:
            return True
        return copy.deepcopy(storage.get(entity))

    def tile_at(self, position: Position) -> Optional[Tile]:
        entity = get_tile_at(self, position)
        if entity is None:
            return None
        return self.components.tile.get(entity)

    def unit_at(self, position: Position) -> Optional[Entity]:
        return get_unit_at(self, position)

    def _is_player(self, entity: Entity) -> bool:
        return entity in self.components.player

    def player_in_front(self, entity: Entity) -> Optional[Entity]:
        position = self.components.position.get(entity)
        if position is None:
            return None
        unit = get_unit_at(self, position + Position(0, 1))
        if unit is None or not self._is_player(unit):
            return None
        return unit

    def adjacent_players(self, entity: Entity) -> list[Entity]:
        position = self.components.position.get(entity)
        if position is None:
            return []
        units = (get_unit_at(self, position + d) for d in ORTHO)
        return [u for u in units if u is not None and self._is_player(u)]

    def players_in_column(self, x: int) -> list[Entity]:
        return [
            entity
            for entity, position in self.components.position.items()
            if self._is_player(entity) and position.x == x
        ]

    def players_with_tag(self, tag: Tag) -> list[Entity]:
        return [
            entity
            for entity, _ in self.components.position.items()
            if self._is_player(entity)
            and tag in (self.components.tags.get(entity) or ())
        ]

    def _positions(self, entity: Entity, other: Entity):
        return (
            self.components.position.get(entity),
            self.components.position.get(other),
        )

    def is_in_front(self, entity: Entity, other: Entity) -> bool:
        a, b = self._positions(entity, other)
        if a is None or b is None:
            return False
        return a.x == b.x and b.y - a.y == 1

    def is_adjacent(self, entity: Entity, other: Entity) -> bool:
        a, b = self._positions(entity, other)
        if a is None or b is None:
            return False
        return a.manhattan(b) == 1


@dataclass
class GameEnv:
    world: World = field(default_factory=World)
    scheduler: Scheduler[World] = field(default_factory=Scheduler)
    input: Optional[Observer[Any]] = None


# Board utilities


def is_on_board(p: Position) -> bool:
    return 0 <= p.x < BOARD_W and 0 <= p.y < BOARD_H


def is_on_extended_board(p: Position) -> bool:
    return 0 <= p.x < BOARD_W and 0 <= p.y < BOARD_H + MAX_WAVE_H


def get_unit_at(world: World, position: Position) -> Optional[Entity]:
    """The first non-tile entity standing at a position."""
    tiles = world.components.tile
    return next(
        (
            entity
            for entity, p in world.components.position.items()
            if entity not in tiles and p == position
        ),
        None,
    )


def get_tile_at(world: World, position: Position) -> Optional[Entity]:
    tiles = world.components.tile
    return next(
        (
            entity
            for entity, p in world.components.position.items()
            if entity in tiles and p == position
        ),
        None,
    )


def spawn_by_name(name: str, world: World) -> Optional[Entity]:
    """Spawn an entity from its definition; None if the name is unknown."""
    data = world.resources.data.entities.get(name)
    if data is None:
        return None
    entity = world.spawn()
    for component, value in data.components.items():
        world.components.insert_from_yaml(entity, component, copy.deepcopy(value))
    world.components.name.insert(entity, name)
    return entity


def take_random(values: list, rng: random.Random) -> Any:
    """Remove and return a random element; ValueError if the list is empty."""
    if not values:
        raise ValueError("cannot take from an empty list")
    return values.pop(rng.randrange(len(values)))


# Player


def initial_squad(rng: Optional[random.Random] = None) -> list[str]:
    rng = rng if rng is not None else random.Random()
    squad = ["Scarecrow", take_random(["Peasant", "Sheep"], rng)]
    squad.extend(["Villager"] * (4 - len(squad)))
    return squad


def player_game_init(world: World, rng: Optional[random.Random] = None) -> None:
    """Reset the player's data and spawn the starting squad into the deck."""
    world.resources.player_data = PlayerData(health=5)
    for name in initial_squad(rng):
        entity = spawn_by_name(name, world)
        if entity is None:
            raise KeyError(f"unknown unit: {name}")
        world.components.player.insert(entity, None)
        world.resources.player_data.deck.append(entity)


def reset_deck(world: World) -> None:
    data = world.resources.player_data
    data.deck.extend(data.discard)
    data.discard.clear()


def reset_player(entity: Entity, world: World) -> None:
    health = world.components.health.get(entity)
    if health is not None:
        health.restore()
    world.components.killed.remove(entity)


def remove_player_from_board(entity: Entity, world: World) -> None:
    world.components.position.remove(entity)
    reset_player(entity, world)
    world.resources.player_data.discard.append(entity)