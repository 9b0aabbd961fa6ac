import random

import pytest

from grimvaders.components import (
    DECK_SIZE,
    SHOP_SIZE,
    DiscardUnitEvent,
    DoneEvent,
    GameMode,
    PickUnitEvent,
)
from grimvaders.ecs import ObservableQueue
from grimvaders.shop import (
    ShopState,
    deck_init,
    deck_update,
    get_choices,
    init_game,
    pick_unit,
    shop_exit,
    shop_init,
    shop_update,
)
from grimvaders.world import GameEnv

PLAYER_YAML = """
Scarecrow:
  components: {health: 2, cost: 1}
  sprite: {atlas: units}
Peasant:
  components: {health: 1, cost: 1}
  sprite: {atlas: units}
Sheep:
  components: {health: 1, cost: 2}
  sprite: {atlas: units}
  tier: 1
Villager:
  components: {health: 1, cost: 1}
  sprite: {atlas: units}
  chance: 0.5
Knight:
  components: {health: 4, cost: 3}
  sprite: {atlas: units}
  tier: 5
"""

AVAILABLE = {"Scarecrow", "Peasant", "Sheep", "Villager"}


def make_env():
    env = GameEnv()
    env.world.resources.data.add_entities(PLAYER_YAML, "player")
    queue = ObservableQueue()
    env.input = queue.subscribe()
    return env, queue


def test_get_choices_filters_by_tier():
    env, _ = make_env()
    choices = get_choices(1, env.world, random.Random(1))
    assert len(choices) == SHOP_SIZE
    names = [c for c in choices if c is not None]
    assert set(names) == AVAILABLE
    assert len(names) == len(set(names))
    assert choices[len(names):] == [None] * (SHOP_SIZE - len(names))


def test_get_choices_high_tier_offers_everything():
    env, _ = make_env()
    choices = get_choices(5, env.world, random.Random(2))
    assert set(choices) == AVAILABLE | {"Knight"}


def test_get_choices_rejects_zero_tier():
    env, _ = make_env()
    with pytest.raises(ValueError):
        get_choices(0, env.world, random.Random(0))


def test_get_choices_rejects_negative_chance():
    env, _ = make_env()
    env.world.resources.data.entities["Peasant"].chance = -1.0
    with pytest.raises(ValueError):
        get_choices(1, env.world, random.Random(0))


def test_shop_init_and_exit():
    env, _ = make_env()
    env.world.resources.player_data.level = 1
    state = ShopState()
    shop_init(state, env, random.Random(3))
    offered = [e for e in state.choices if e is not None]
    names = {env.world.components.name.get(e) for e in offered}
    assert names == AVAILABLE
    shop_exit(state, env)
    assert not any(env.world.is_alive(e) for e in offered)


def test_pick_unit_moves_entity_to_deck():
    env, _ = make_env()
    env.world.resources.player_data.level = 1
    state = ShopState()
    shop_init(state, env, random.Random(4))
    picked = state.choices[0]
    pick_unit(0, state, env)
    assert env.world.resources.player_data.deck == [picked]
    assert state.choices[0] is None
    assert state.done is True
    shop_exit(state, env)
    assert env.world.is_alive(picked)


def test_pick_unit_empty_slot_does_nothing():
    env, _ = make_env()
    state = ShopState()
    pick_unit(2, state, env)
    assert env.world.resources.player_data.deck == []
    assert state.done is False


def test_shop_update_handles_events():
    env, queue = make_env()
    env.world.resources.player_data.level = 1
    state = ShopState()
    shop_init(state, env, random.Random(5))
    picked = state.choices[1]
    queue.push(PickUnitEvent(1))
    shop_update(state, env)
    assert env.world.resources.player_data.deck == [picked]
    assert state.done is True

    other = ShopState()
    queue.push(DoneEvent())
    shop_update(other, env)
    assert other.done is True


def test_shop_update_without_input_raises():
    env = GameEnv()
    with pytest.raises(RuntimeError):
        shop_update(ShopState(), env)


def test_deck_init_restores_discard():
    env, _ = make_env()
    a, b = env.world.spawn(), env.world.spawn()
    data = env.world.resources.player_data
    data.deck.append(a)
    data.discard.append(b)
    deck_init(env)
    assert data.deck == [a, b]
    assert data.discard == []


def test_deck_update_small_deck_is_done():
    env, _ = make_env()
    env.world.resources.player_data.deck.extend(env.world.spawn() for _ in range(DECK_SIZE))
    assert deck_update(env) is True


def test_deck_update_discards_until_it_fits():
    env, queue = make_env()
    deck = env.world.resources.player_data.deck
    deck.extend(env.world.spawn() for _ in range(DECK_SIZE + 1))
    victim = deck[3]
    queue.push(DiscardUnitEvent(victim))
    assert deck_update(env) is False
    assert victim not in deck
    assert len(deck) == DECK_SIZE
    assert deck_update(env) is True


def test_init_game_prepares_squad_and_scripts():
    env = GameEnv()
    env.world.resources.data.add_entities(PLAYER_YAML, "player")

    def noop(world, entity, command):
        return None

    init_game(env, {"noop": noop}, random.Random(6))
    data = env.world.resources.player_data
    names = [env.world.components.name.get(e) for e in data.deck]
    assert env.world.resources.game_mode is GameMode.RUNNING
    assert "noop" in env.world.resources.scripts
    assert data.health == 5
    assert names[0] == "Scarecrow"
    assert names[1] in {"Peasant", "Sheep"}
    assert names[2:] == ["Villager", "Villager"]
    assert all(e in env.world.components.player for e in data.deck)