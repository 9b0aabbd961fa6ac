from dataclasses import dataclass, field

import pytest

from grimvaders.ecs import (
    CommandBreak,
    CommandContinue,
    ComponentStorage,
    Entity,
    ObservableQueue,
    Scheduler,
    WorldStorage,
)


@dataclass
class _Components:
    health: ComponentStorage = field(default_factory=ComponentStorage)
    marker: ComponentStorage = field(default_factory=ComponentStorage)


@dataclass
class Ping:
    value: int


@dataclass
class Pong:
    value: int


def _world():
    return WorldStorage(_Components(), {"log": []})


def test_spawn_gives_distinct_live_entities():
    world = _world()
    entities = [world.spawn() for _ in range(5)]
    assert len(set(entities)) == 5
    assert all(world.is_alive(e) for e in entities)


def test_despawn_clears_components_and_reuses_id():
    world = _world()
    first = world.spawn()
    world.components.health.insert(first, 3)
    world.components.marker.insert(first, True)
    world.despawn(first)
    assert not world.is_alive(first)
    assert first not in world.components.health
    assert world.components.marker.get(first) is None
    again = world.spawn()
    assert again == Entity(first.id, first.version + 1)
    assert world.is_alive(again)


def test_component_storage_operations():
    storage = ComponentStorage()
    a, b = Entity(0), Entity(1)
    storage.insert(a, "x")
    storage.insert(b, "y")
    assert storage.entities() == {a, b}
    assert dict(storage.items()) == {a: "x", b: "y"}
    assert storage.remove(a) == "x"
    assert storage.remove(a) is None
    assert a not in storage and b in storage


def test_step_on_empty_queue_returns_false():
    assert Scheduler().step(_world()) is False


def test_systems_run_in_priority_order():
    scheduler = Scheduler()
    world = _world()
    log = world.resources["log"]
    scheduler.add_system(Ping, lambda c, w, cx: log.append("late"), 1)
    scheduler.add_system(Ping, lambda c, w, cx: log.append("early"))
    scheduler.send(Ping(1))
    assert scheduler.step(world) is True
    assert log == ["early", "late"]


def test_break_stops_systems_and_observers():
    scheduler = Scheduler()
    world = _world()
    log = world.resources["log"]
    observer = scheduler.observe(Ping)

    def stop(cmd, w, cx):
        cx.send(Pong(cmd.value))
        raise CommandBreak

    scheduler.add_system(Ping, stop)
    scheduler.add_system(Ping, lambda c, w, cx: log.append("after"), 1)
    scheduler.send(Ping(1))
    scheduler.step(world)
    assert log == []
    assert observer.next() is None
    assert scheduler.step(world) is False


def test_continue_skips_only_current_system():
    scheduler = Scheduler()
    world = _world()
    log = world.resources["log"]

    def skip(cmd, w, cx):
        raise CommandContinue

    scheduler.add_system(Ping, skip)
    scheduler.add_system(Ping, lambda c, w, cx: log.append(c.value), 1)
    observer = scheduler.observe(Ping)
    scheduler.send(Ping(7))
    scheduler.step(world)
    assert log == [7]
    assert observer.next() == Ping(7)


def test_sent_commands_run_before_queued_ones():
    scheduler = Scheduler()
    world = _world()
    log = world.resources["log"]

    def on_ping(cmd, w, cx):
        log.append(("ping", cmd.value))
        cx.send(Pong(cmd.value))

    scheduler.add_system(Ping, on_ping)
    scheduler.add_system(Pong, lambda c, w, cx: log.append(("pong", c.value)))
    scheduler.send(Ping(1))
    scheduler.send(Ping(2))
    while scheduler.step(world):
        pass
    assert log == [("ping", 1), ("pong", 1), ("ping", 2), ("pong", 2)]


def test_observer_drain_yields_in_order():
    scheduler = Scheduler()
    observer = scheduler.observe(Pong)
    for value in (3, 4):
        scheduler.send(Pong(value))
    while scheduler.step(_world()):
        pass
    assert list(observer.drain()) == [Pong(3), Pong(4)]
    assert observer.next() is None


def test_observable_queue_broadcasts():
    queue = ObservableQueue()
    first = queue.subscribe()
    queue.push("a")
    second = queue.subscribe()
    queue.push("b")
    assert list(first.drain()) == ["a", "b"]
    assert list(second.drain()) == ["b"]


def test_system_exceptions_propagate():
    scheduler = Scheduler()

    def broken(cmd, w, cx):
        raise KeyError("boom")

    scheduler.add_system(Ping, broken)
    scheduler.send(Ping(1))
    with pytest.raises(KeyError):
        scheduler.step(_world())