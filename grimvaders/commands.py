"""Game commands and the systems that carry them out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .components import Position, Tag
from .ecs import CommandBreak, CommandContinue, Entity, Scheduler, SchedulerContext
from .scripting import run_command_script
from .world import World, get_unit_at, remove_player_from_board, reset_player

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeFood:
    amount: int
    source: Optional[Entity] = None


@dataclass(frozen=True)
class SummonPlayer:
    entity: Entity
    position: Position


@dataclass(frozen=True)
class SpawnUnit:
    entity: Entity
    position: Position


@dataclass(frozen=True)
class MoveUnit:
    entity: Entity
    position: Position


@dataclass(frozen=True)
class Attack:
    attacker: Entity
    target: Entity


@dataclass(frozen=True)
class AttackTown:
    entity: Entity


@dataclass(frozen=True)
class ChangeHealth:
    entity: Entity
    amount: int


@dataclass(frozen=True)
class Kill:
    entity: Entity


@dataclass(frozen=True)
class RemoveUnit:
    entity: Entity


@dataclass(frozen=True)
class RespawnPlayer:
    entity: Entity
    position: Position


_COMMAND_TYPES = (
    ChangeFood,
    SummonPlayer,
    SpawnUnit,
    MoveUnit,
    Attack,
    AttackTown,
    ChangeHealth,
    Kill,
    RemoveUnit,
    RespawnPlayer,
)


def register_handlers(scheduler: Scheduler) -> None:
    """Register every command system with its priority."""
    scheduler.add_system(ChangeFood, _change_food)
    scheduler.add_system(ChangeFood, _handle_on_ally_gain_food, 1)
    scheduler.add_system(SummonPlayer, _summon_player)
    scheduler.add_system(SpawnUnit, _spawn_unit)
    scheduler.add_system(SpawnUnit, _handle_on_spawn, 1)
    scheduler.add_system(MoveUnit, _move_unit)
    scheduler.add_system(Attack, _attack)
    scheduler.add_system(Attack, _handle_on_attack, 1)
    scheduler.add_system(AttackTown, _attack_town)
    scheduler.add_system(ChangeHealth, _change_health)
    scheduler.add_system(ChangeHealth, _handle_on_damage, 1)
    scheduler.add_system(ChangeHealth, _handle_on_ally_heal, 2)
    scheduler.add_system(ChangeHealth, _handle_on_ally_damage, 2)
    scheduler.add_system(Kill, _kill)
    scheduler.add_system(Kill, _handle_on_kill, 1)
    scheduler.add_system(Kill, _handle_on_ally_kill, 2)
    scheduler.add_system(RemoveUnit, _remove_unit)
    scheduler.add_system(RespawnPlayer, _respawn_player)


# Script triggers


def _run_trigger(
    entity: Entity, script: str, world: World, cx: SchedulerContext, trigger: Any
) -> None:
    commands = run_command_script(script, entity, world, trigger)
    if commands is None:
        return
    if commands:
        use_trigger_limit(entity, world)
    for command in commands:
        if command is None:
            continue
        if not isinstance(command, _COMMAND_TYPES):
            log.error("script %s returned a non-command: %r", script, command)
            continue
        cx.send(command)


def _handle_on_self(
    world: World, cx: SchedulerContext, handler: str, entity: Entity, trigger: Any
) -> None:
    check_trigger_limit(entity, world)
    script = world.components.storage(handler).get(entity)
    if script is None:
        raise CommandContinue
    _run_trigger(entity, script, world, cx, trigger)


def _handle_on_ally(
    world: World, cx: SchedulerContext, handler: str, target: Entity, trigger: Any
) -> None:
    if target not in world.components.player:
        return
    storage = world.components.storage(handler)
    hosts = [
        (entity, storage.get(entity))
        for entity in world.query(["player", "position", handler])
        # do not trigger on self
        if entity != target
    ]
    for entity, script in hosts:
        try:
            check_trigger_limit(entity, world)
        except CommandContinue:
            continue
        _run_trigger(entity, script, world, cx, trigger)


def _current_health(entity: Entity, world: World) -> int:
    health = world.components.health.get(entity)
    if health is None:
        raise CommandBreak
    return health.current


# Systems


def _change_food(cmd: ChangeFood, world: World, cx: SchedulerContext) -> None:
    data = world.resources.player_data
    if cmd.amount < 0:
        data.food = max(0, data.food + cmd.amount)
    else:
        data.food += cmd.amount


def _handle_on_ally_gain_food(cmd: ChangeFood, world: World, cx: SchedulerContext) -> None:
    if cmd.amount <= 0 or cmd.source is None:
        return
    _handle_on_ally(world, cx, "on_ally_gain_food", cmd.source, cmd)


def _summon_player(cmd: SummonPlayer, world: World, cx: SchedulerContext) -> None:
    if get_unit_at(world, cmd.position) is not None:
        raise CommandBreak
    cost = world.components.cost.get(cmd.entity)
    if cost is None:
        raise CommandBreak
    data = world.resources.player_data
    if cmd.entity not in data.deck or cost > data.food:
        raise CommandBreak
    data.deck[:] = [e for e in data.deck if e != cmd.entity]
    cx.send(SpawnUnit(cmd.entity, cmd.position))
    cx.send(ChangeFood(-cost, None))


def _spawn_unit(cmd: SpawnUnit, world: World, cx: SchedulerContext) -> None:
    existing = get_unit_at(world, cmd.position)
    if (
        existing is not None
        and existing not in world.components.killed
        and existing != cmd.entity
    ):
        raise CommandBreak
    world.components.position.insert(cmd.entity, cmd.position)


def _handle_on_spawn(cmd: SpawnUnit, world: World, cx: SchedulerContext) -> None:
    _handle_on_self(world, cx, "on_spawn", cmd.entity, cmd)


def _move_unit(cmd: MoveUnit, world: World, cx: SchedulerContext) -> None:
    if Tag.HEAVY in (world.components.tags.get(cmd.entity) or ()):
        raise CommandBreak
    if get_unit_at(world, cmd.position) is not None:
        raise CommandBreak
    world.components.position.insert(cmd.entity, cmd.position)


def _attack(cmd: Attack, world: World, cx: SchedulerContext) -> None:
    attacker = _current_health(cmd.attacker, world)
    target = _current_health(cmd.target, world)
    cx.send(ChangeHealth(cmd.target, -attacker))
    cx.send(ChangeHealth(cmd.attacker, -target))


def _handle_on_attack(cmd: Attack, world: World, cx: SchedulerContext) -> None:
    _handle_on_self(world, cx, "on_attack", cmd.attacker, cmd)


def _attack_town(cmd: AttackTown, world: World, cx: SchedulerContext) -> None:
    damage = _current_health(cmd.entity, world)
    data = world.resources.player_data
    data.health = max(0, data.health - damage)
    # the attacking npc is removed
    cx.send(Kill(cmd.entity))


def _change_health(cmd: ChangeHealth, world: World, cx: SchedulerContext) -> None:
    health = world.components.health.get(cmd.entity)
    if health is None:
        raise CommandBreak
    if cmd.amount < 0:
        health.sub(-cmd.amount)
        if health.current == 0:
            cx.send(Kill(cmd.entity))
    else:
        health.add(cmd.amount)


def _handle_on_damage(cmd: ChangeHealth, world: World, cx: SchedulerContext) -> None:
    if cmd.amount >= 0:
        return
    # only trigger while the unit is still alive
    if _current_health(cmd.entity, world) == 0:
        return
    _handle_on_self(world, cx, "on_damage", cmd.entity, cmd)


def _handle_on_ally_heal(cmd: ChangeHealth, world: World, cx: SchedulerContext) -> None:
    if cmd.amount <= 0:
        return
    _handle_on_ally(world, cx, "on_ally_heal", cmd.entity, cmd)


def _handle_on_ally_damage(cmd: ChangeHealth, world: World, cx: SchedulerContext) -> None:
    if cmd.amount >= 0:
        return
    if _current_health(cmd.entity, world) == 0:
        return
    _handle_on_ally(world, cx, "on_ally_damage", cmd.entity, cmd)


def _kill(cmd: Kill, world: World, cx: SchedulerContext) -> None:
    world.components.killed.insert(cmd.entity, None)


def _handle_on_kill(cmd: Kill, world: World, cx: SchedulerContext) -> None:
    _handle_on_self(world, cx, "on_kill", cmd.entity, cmd)


def _handle_on_ally_kill(cmd: Kill, world: World, cx: SchedulerContext) -> None:
    _handle_on_ally(world, cx, "on_ally_kill", cmd.entity, cmd)


def _remove_unit(cmd: RemoveUnit, world: World, cx: SchedulerContext) -> None:
    if cmd.entity in world.components.player:
        remove_player_from_board(cmd.entity, world)
    else:
        world.despawn(cmd.entity)


def _respawn_player(cmd: RespawnPlayer, world: World, cx: SchedulerContext) -> None:
    # only killed units respawn
    if cmd.entity not in world.components.killed:
        raise CommandBreak
    reset_player(cmd.entity, world)
    cx.send(SpawnUnit(cmd.entity, cmd.position))


# Trigger limits


def check_trigger_limit(entity: Entity, world: World) -> None:
    """Raise CommandContinue if the entity has used up its triggers."""
    limit = world.components.trigger_limit.get(entity)
    if limit is not None and limit.current <= 0:
        raise CommandContinue


def use_trigger_limit(entity: Entity, world: World) -> None:
    limit = world.components.trigger_limit.get(entity)
    if limit is not None:
        limit.sub(1)