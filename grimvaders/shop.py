"""The shop and deck screens, and starting a new game."""

from __future__ import annotations

import random
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from .commands import register_handlers
from .components import (
    DECK_SIZE,
    SHOP_SIZE,
    DiscardUnitEvent,
    DoneEvent,
    GameMode,
    PickUnitEvent,
)
from .ecs import Entity
from .scripting import init_scripts
from .world import GameEnv, World, player_game_init, reset_deck, spawn_by_name


def _events(env: GameEnv) -> Iterator[Any]:
    if env.input is None:
        raise RuntimeError("no input events are subscribed")
    return env.input.drain()


def _empty_choices() -> list[Optional[Entity]]:
    return [None] * SHOP_SIZE


@dataclass
class ShopState:
    choices: list[Optional[Entity]] = field(default_factory=_empty_choices)
    done: bool = False


def _sample_weighted(
    items: list[Any], weights: list[float], amount: int, rng: random.Random
) -> list[Any]:
    """Weighted sampling without replacement."""
    keyed = []
    for item, weight in zip(items, weights):
        if not weight >= 0:
            raise ValueError(f"invalid weight {weight!r}")
        key = rng.random() ** (1.0 / weight) if weight > 0 else 0.0
        keyed.append((key, item))
    keyed.sort(key=lambda pair: pair[0], reverse=True)
    return [item for _, item in keyed[:amount]]


def get_choices(
    tier: int, world: World, rng: Optional[random.Random] = None
) -> list[Optional[str]]:
    """Pick up to SHOP_SIZE distinct unit names, weighted by tier and chance."""
    if tier <= 0:
        raise ValueError(f"shop tier must be positive, got {tier}")
    rng = rng if rng is not None else random.Random()
    entities = world.resources.data.entities

    names: list[str] = []
    weights: list[float] = []
    for name in world.resources.data.categories["player"]:
        data = entities.get(name)
        if data is None:
            continue
        if (data.tier if data.tier is not None else 0) > tier:
            continue
        entity_tier = data.tier if data.tier is not None else 1
        tier_dist = 0.8 / tier * entity_tier + 0.2
        names.append(name)
        weights.append(tier_dist * (data.chance if data.chance is not None else 1.0))

    picked = _sample_weighted(names, weights, min(SHOP_SIZE, len(names)), rng)
    return picked + [None] * (SHOP_SIZE - len(picked))


def shop_init(
    state: ShopState, env: GameEnv, rng: Optional[random.Random] = None
) -> None:
    """Spawn the units offered at the player's current level."""
    level = env.world.resources.player_data.level
    for index, name in enumerate(get_choices(level, env.world, rng)):
        if name is None:
            continue
        state.choices[index] = spawn_by_name(name, env.world)


def shop_exit(state: ShopState, env: GameEnv) -> None:
    """Despawn every unit that was offered but not picked."""
    for entity in state.choices:
        if entity is not None:
            env.world.despawn(entity)


def shop_update(state: ShopState, env: GameEnv) -> None:
    for event in _events(env):
        if isinstance(event, DoneEvent):
            state.done = True
        elif isinstance(event, PickUnitEvent):
            pick_unit(event.index, state, env)


def pick_unit(index: int, state: ShopState, env: GameEnv) -> None:
    """Move an offered unit into the deck and close the shop."""
    entity = state.choices[index]
    if entity is None:
        return
    env.world.resources.player_data.deck.append(entity)
    state.choices[index] = None
    state.done = True


def deck_init(env: GameEnv) -> None:
    # bring the discard pile back so the deck size can be checked
    reset_deck(env.world)


def deck_update(env: GameEnv) -> bool:
    """Apply discards; True once the deck fits within DECK_SIZE."""
    deck = env.world.resources.player_data.deck
    if len(deck) <= DECK_SIZE:
        return True
    for event in _events(env):
        if isinstance(event, DiscardUnitEvent):
            deck[:] = [e for e in deck if e != event.entity]
    return False


def init_game(
    env: GameEnv,
    scripts: Optional[Mapping[str, Any]] = None,
    rng: Optional[random.Random] = None,
) -> None:
    """Start a new game: scripts, command handlers and the starting squad."""
    env.world.resources.game_mode = GameMode.RUNNING
    env.world.resources.scripts = init_scripts(env.world, scripts or {})
    register_handlers(env.scheduler)
    player_game_init(env.world, rng)