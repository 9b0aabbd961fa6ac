import random

import pytest

from grimvaders.components import BOARD_H, BOARD_W, MAX_WAVE_H, Position, Tag, Tile, ValueDefault
from grimvaders.data import DataError
from grimvaders.world import (
    Components,
    GameEnv,
    World,
    get_tile_at,
    get_unit_at,
    initial_squad,
    is_on_board,
    is_on_extended_board,
    player_game_init,
    remove_player_from_board,
    reset_deck,
    reset_player,
    spawn_by_name,
    take_random,
)

UNITS = """
Scarecrow:
  components:
    health: [3, 3]
    cost: 1
    tags: [Heavy]
  sprite:
    atlas: units
Peasant:
  components:
    health: 2
    cost: 2
    tags: [FoodProducer]
  sprite:
    atlas: units
Sheep:
  components:
    health: 1
    cost: 1
  sprite:
    atlas: units
Villager:
  components:
    health: 2
    cost: 1
    tags: [Basic]
    on_fight: villager_fight
    mystery: 7
  sprite:
    atlas: units
"""


@pytest.fixture
def world():
    w = World()
    w.resources.data.add_entities(UNITS, "player")
    return w


def place(world, name, x, y, player=True):
    entity = spawn_by_name(name, world)
    world.components.position.insert(entity, Position(x, y))
    if player:
        world.components.player.insert(entity, None)
    return entity


def test_board_bounds():
    assert is_on_board(Position(0, 0))
    assert is_on_board(Position(BOARD_W - 1, BOARD_H - 1))
    assert not is_on_board(Position(BOARD_W, 0))
    assert not is_on_board(Position(0, -1))
    assert not is_on_board(Position(0, BOARD_H))
    assert is_on_extended_board(Position(0, BOARD_H + MAX_WAVE_H - 1))
    assert not is_on_extended_board(Position(0, BOARD_H + MAX_WAVE_H))


def test_spawn_by_name_inserts_components(world):
    entity = spawn_by_name("Villager", world)
    assert world.components.name.get(entity) == "Villager"
    assert world.components.health.get(entity) == ValueDefault(2, 2)
    assert world.components.tags.get(entity) == [Tag.BASIC]
    assert world.components.on_fight.get(entity) == "villager_fight"


def test_spawn_unknown_name(world):
    assert spawn_by_name("Nobody", world) is None


def test_insert_from_yaml_variants():
    components = Components()
    w = World(components=components)
    e = w.spawn()
    components.insert_from_yaml(e, "position", {"x": 1, "y": 2})
    components.insert_from_yaml(e, "tile", "Forest")
    components.insert_from_yaml(e, "npc", None)
    components.insert_from_yaml(e, "unknown", 5)
    assert components.position.get(e) == Position(1, 2)
    assert components.tile.get(e) == Tile.FOREST
    assert e in components.npc


def test_insert_from_yaml_rejects_bad_values():
    w = World()
    e = w.spawn()
    with pytest.raises(DataError):
        w.components.insert_from_yaml(e, "tags", ["Nope"])
    with pytest.raises(DataError):
        w.components.insert_from_yaml(e, "cost", -1)


def test_storage_lookup():
    c = Components()
    assert c.storage("cost") is c.cost
    with pytest.raises(KeyError):
        c.storage("mana")
    assert c.entities_with("mana") == set()


def test_unit_and_tile_at(world):
    tile = world.spawn()
    world.components.position.insert(tile, Position(1, 1))
    world.components.tile.insert(tile, Tile.FIELD)
    assert get_unit_at(world, Position(1, 1)) is None
    assert get_tile_at(world, Position(1, 1)) == tile
    unit = place(world, "Villager", 1, 1)
    assert get_unit_at(world, Position(1, 1)) == unit
    assert world.unit_at(Position(1, 1)) == unit
    assert world.tile_at(Position(1, 1)) == Tile.FIELD
    assert world.tile_at(Position(2, 2)) is None


def test_query_with_and_without(world):
    a = place(world, "Villager", 0, 0)
    b = place(world, "Sheep", 1, 0, player=False)
    assert world.query(["position"], []) == sorted([a, b])
    assert world.query(["position", "player"], []) == [a]
    assert world.query(["position"], ["player"]) == [b]
    assert world.query([], ["player"]) == []


def test_get_returns_copy(world):
    a = place(world, "Villager", 0, 0)
    health = world.get("health", a)
    health.sub(2)
    assert world.components.health.get(a).current == 2
    assert world.get("player", a) is True
    assert world.get("npc", a) is None
    assert world.get("mana", a) is None


def test_neighbour_queries(world):
    a = place(world, "Villager", 1, 1)
    front = place(world, "Scarecrow", 1, 2)
    side = place(world, "Peasant", 2, 1)
    enemy = place(world, "Sheep", 0, 1, player=False)
    assert world.player_in_front(a) == front
    assert world.player_in_front(front) is None
    assert set(world.adjacent_players(a)) == {front, side}
    assert enemy not in world.adjacent_players(a)
    assert set(world.players_in_column(1)) == {a, front}
    assert world.players_with_tag(Tag.HEAVY) == [front]
    assert world.is_in_front(a, front)
    assert not world.is_in_front(front, a)
    assert world.is_adjacent(a, side)
    assert not world.is_adjacent(front, side)


def test_resources(world):
    world.resources.player_data.food = 7
    assert world.get_current_food() == 7
    assert world.board_size() == (BOARD_W, BOARD_H)


def test_take_random():
    values = [1, 2, 3]
    taken = take_random(values, random.Random(1))
    assert taken not in values
    assert len(values) == 2
    with pytest.raises(ValueError):
        take_random([], random.Random(1))


def test_initial_squad():
    squad = initial_squad(random.Random(3))
    assert len(squad) == 4
    assert squad[0] == "Scarecrow"
    assert squad[1] in ("Peasant", "Sheep")
    assert squad[2:] == ["Villager", "Villager"]


def test_player_game_init(world):
    player_game_init(world, random.Random(0))
    data = world.resources.player_data
    assert data.health == 5
    assert len(data.deck) == 4
    assert all(e in world.components.player for e in data.deck)


def test_player_game_init_missing_unit():
    with pytest.raises(KeyError):
        player_game_init(World(), random.Random(0))


def test_reset_deck(world):
    a, b = world.spawn(), world.spawn()
    data = world.resources.player_data
    data.deck.append(a)
    data.discard.append(b)
    reset_deck(world)
    assert data.deck == [a, b]
    assert data.discard == []


def test_remove_player_from_board(world):
    a = place(world, "Villager", 0, 0)
    world.components.health.get(a).sub(1)
    world.components.killed.insert(a, None)
    remove_player_from_board(a, world)
    assert world.components.position.get(a) is None
    assert a not in world.components.killed
    assert world.components.health.get(a).current == 2
    assert world.resources.player_data.discard == [a]


def test_reset_player_without_health(world):
    e = world.spawn()
    world.components.killed.insert(e, None)
    reset_player(e, world)
    assert e not in world.components.killed


def test_despawn_clears_components(world):
    a = place(world, "Villager", 0, 0)
    world.despawn(a)
    assert world.components.position.get(a) is None
    assert world.query(["player"]) == []


def test_game_env_defaults():
    env = GameEnv()
    assert env.input is None
    assert env.scheduler.step(env.world) is False