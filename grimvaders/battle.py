"""Battle flow: board setup, turns, enemy waves and the fight phase."""

from __future__ import annotations

import math
import random
from collections import deque
from collections.abc import Iterator, Sequence
from typing import Any, Optional

from .commands import (
    Attack,
    AttackTown,
    MoveUnit,
    RemoveUnit,
    SpawnUnit,
    SummonPlayer,
    check_trigger_limit,
    use_trigger_limit,
)
from .components import (
    BOARD_H,
    BOARD_W,
    MAX_BATTLES,
    MAX_WAVE_H,
    WAVE_COUNT,
    DoneEvent,
    GameMode,
    MoveUnitEvent,
    Position,
    SummonPlayerEvent,
    Tile,
)
from .ecs import CommandContinue, Entity
from .scripting import run_command_script
from .world import (
    BattleMode,
    GameEnv,
    World,
    remove_player_from_board,
    reset_deck,
    spawn_by_name,
    take_random,
)


def _rng(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else random.Random()


def _events(env: GameEnv) -> Iterator[Any]:
    if env.input is None:
        raise RuntimeError("no input events are subscribed")
    return env.input.drain()


# Battle flow


def battle_init(env: GameEnv, rng: Optional[random.Random] = None) -> None:
    """Start a new battle: raise the level, lay out tiles, start wave one."""
    rng = _rng(rng)
    state = env.world.resources.battle_state
    state.mode = BattleMode.PLAN
    state.wave = 0
    env.world.resources.player_data.level += 1

    tiles_init(env, rng)
    reset_deck(env.world)
    _next_turn(env, rng)


def battle_exit(env: GameEnv) -> None:
    """Finish pending commands, return player units to the deck, clear the board."""
    while env.scheduler.step(env.world):
        pass
    for entity in env.world.query(["position", "player"]):
        remove_player_from_board(entity, env.world)
    clear_board(env)


def battle_update(env: GameEnv, rng: Optional[random.Random] = None) -> None:
    """Advance the battle by one step."""
    if env.scheduler.step(env.world):
        return
    if handle_killed(env):
        return
    if check_loose(env):
        env.world.resources.game_mode = GameMode.GAME_OVER
        return

    mode = env.world.resources.battle_state.mode
    if mode is BattleMode.PLAN:
        _handle_input_events(env)
    elif mode is BattleMode.FIGHT:
        if handle_on_fight(env):
            return
        if not next_attack(env):
            _next_turn(env, _rng(rng))


def _next_turn(env: GameEnv, rng: random.Random) -> None:
    state = env.world.resources.battle_state
    if state.wave >= WAVE_COUNT:
        if check_win(env):
            env.world.resources.game_mode = GameMode.WIN
        state.mode = BattleMode.DONE
        return
    state.wave += 1
    state.mode = BattleMode.PLAN
    _player_next_turn(env)
    reset_trigger_limits(env.world)
    next_wave(env, rng)


def _player_next_turn(env: GameEnv) -> None:
    reset_deck(env.world)
    food_gain = 3 if env.world.resources.battle_state.wave in (1, 2) else 4
    env.world.resources.player_data.food += food_gain


def _fight_start(env: GameEnv) -> None:
    env.world.resources.battle_state.mode = BattleMode.FIGHT
    positions = env.world.components.position
    hosts = env.world.query(["position", "on_fight"])
    # consistent front to back order
    hosts.sort(key=lambda e: (-positions.get(e).y, positions.get(e).x))
    env.world.resources.battle_state.on_fight_queue = deque(hosts)


def _handle_input_events(env: GameEnv) -> None:
    for event in _events(env):
        if isinstance(event, SummonPlayerEvent):
            env.scheduler.send(SummonPlayer(event.entity, event.position))
        elif isinstance(event, MoveUnitEvent):
            env.scheduler.send(MoveUnit(event.entity, event.position))
        elif isinstance(event, DoneEvent):
            _fight_start(env)


# Board


def tiles_init(env: GameEnv, rng: Optional[random.Random] = None) -> None:
    """Cover the board with an equal share of every tile kind, shuffled."""
    rng = _rng(rng)
    kinds = list(Tile)
    kind_count = (BOARD_W * BOARD_H) // len(kinds)
    pool = [kind for kind in kinds for _ in range(kind_count)]

    for x in range(BOARD_W):
        for y in range(BOARD_H):
            tile = take_random(pool, rng)
            entity = env.world.spawn()
            env.world.components.position.insert(entity, Position(x, y))
            env.world.components.tile.insert(entity, tile)


def clear_board(env: GameEnv) -> None:
    """Despawn every entity that has a position."""
    for entity in env.world.query(["position"]):
        env.world.despawn(entity)


# Enemies


def target_score(tier: int, wave: int) -> int:
    """The total score of the enemies sent in a wave."""
    return max(0, math.ceil(math.floor(0.75 * tier) + (1.5 * wave - 1.0)))


def npc_pool(tier: int, world: World) -> list[tuple[str, int]]:
    """Names and scores of the enemies available at a tier."""
    entities = world.resources.data.entities
    pool = []
    for name in world.resources.data.categories["npcs"]:
        data = entities[name]
        if (data.tier if data.tier is not None else 1) <= tier:
            pool.append((name, data.score if data.score is not None else 1))
    return pool


def _choose_index(weights: Sequence[float], rng: random.Random) -> Optional[int]:
    if not weights or sum(weights) <= 0:
        return None
    return rng.choices(range(len(weights)), weights=weights)[0]


def next_wave(env: GameEnv, rng: Optional[random.Random] = None) -> None:
    """Spawn enemies up to the wave's target score, stacked in columns."""
    rng = _rng(rng)
    world = env.world
    tier = world.resources.player_data.level
    wave = world.resources.battle_state.wave
    target = target_score(tier, wave)
    score = 0

    pool = npc_pool(tier, world)
    layout: list[list[Entity]] = [[] for _ in range(BOARD_W)]

    while True:
        candidates = [(name, s) for name, s in pool if s <= target - score]
        if not candidates:
            break
        choice = _choose_index([s for _, s in candidates], rng)
        if choice is None:
            break
        name, entity_score = candidates[choice]

        entity = spawn_by_name(name, world)
        if entity is None:
            raise KeyError(f"unknown unit: {name}")
        score += entity_score
        world.components.npc.insert(entity, None)

        # prefer stacking onto columns that are already in use
        column_weights = [
            0.0 if len(column) == MAX_WAVE_H else max(float(len(column)), 0.5)
            for column in layout
        ]
        column = _choose_index(column_weights, rng)
        if column is None:
            break
        layout[column].append(entity)

    for x, column in enumerate(layout):
        for y, entity in enumerate(column):
            env.scheduler.send(SpawnUnit(entity, Position(x, BOARD_H + y)))


def _next_npc(world: World) -> Optional[tuple[Entity, Position]]:
    positions = world.components.position
    npcs = [(e, positions.get(e)) for e in world.query(["npc", "position"])]
    npcs.sort(key=lambda item: (item[1].x, item[1].y))
    return npcs[0] if npcs else None


def _next_target(column: int, world: World) -> Optional[Entity]:
    positions = world.components.position
    players = [
        (e, positions.get(e))
        for e in world.query(["player", "position"])
        if positions.get(e).x == column
    ]
    players.sort(key=lambda item: -item[1].y)
    return players[0][0] if players else None


def next_attack(env: GameEnv) -> bool:
    """Send the next enemy attack; False when no enemy is left."""
    found = _next_npc(env.world)
    if found is None:
        return False
    entity, position = found
    target = _next_target(position.x, env.world)
    if target is not None:
        env.scheduler.send(Attack(entity, target))
    else:
        env.scheduler.send(AttackTown(entity))
    return True


# Systems


def handle_killed(env: GameEnv) -> bool:
    """Queue removal of every killed unit; True if there was any."""
    killed = env.world.query(["killed"])
    for entity in killed:
        env.scheduler.send(RemoveUnit(entity))
    return bool(killed)


def reset_trigger_limits(world: World) -> None:
    for _, limit in world.components.trigger_limit.items():
        limit.restore()


def handle_on_fight(env: GameEnv) -> bool:
    """Run the next queued fight script; False when the queue is empty."""
    queue = env.world.resources.battle_state.on_fight_queue
    if not queue:
        return False
    entity = queue.popleft()

    try:
        check_trigger_limit(entity, env.world)
    except CommandContinue:
        return True

    script = env.world.components.on_fight.get(entity)
    if script is None:
        return True

    commands = run_command_script(script, entity, env.world, None)
    if commands is not None:
        if commands:
            use_trigger_limit(entity, env.world)
        for command in commands:
            if command is not None:
                env.scheduler.send(command)
    return True


def check_win(env: GameEnv) -> bool:
    return env.world.resources.player_data.level >= MAX_BATTLES


def check_loose(env: GameEnv) -> bool:
    return env.world.resources.player_data.health == 0