"""A small entity-component store with a prioritised command scheduler."""

from __future__ import annotations

import weakref
from collections import deque
from dataclasses import dataclass
from itertools import count
from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")
W = TypeVar("W")
C = TypeVar("C")
R = TypeVar("R")


@dataclass(frozen=True, order=True)
class Entity:
    """A generational entity handle."""

    id: int
    version: int = 0


class CommandBreak(Exception):
    """Raised by a system to abort the command: no further systems run."""


class CommandContinue(Exception):
    """Raised by a system to skip itself; later systems still run."""


class ComponentStorage(Generic[T]):
    """Component values keyed by entity. Use ``in`` for marker components."""

    def __init__(self) -> None:
        self._values: dict[Entity, T] = {}

    def get(self, entity: Entity) -> Optional[T]:
        return self._values.get(entity)

    def insert(self, entity: Entity, value: T) -> None:
        self._values[entity] = value

    def remove(self, entity: Entity) -> Optional[T]:
        return self._values.pop(entity, None)

    def entities(self) -> set[Entity]:
        return set(self._values)

    def items(self) -> Iterator[tuple[Entity, T]]:
        """Iterate over a snapshot of (entity, value) pairs."""
        return iter(list(self._values.items()))

    def __contains__(self, entity: object) -> bool:
        return entity in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._values))


class Observer(Generic[T]):
    """Receives items published by a queue or scheduler."""

    def __init__(self) -> None:
        self._pending: deque[T] = deque()

    def _deliver(self, item: T) -> None:
        self._pending.append(item)

    def next(self) -> Optional[T]:
        return self._pending.popleft() if self._pending else None

    def drain(self) -> Iterator[T]:
        while self._pending:
            yield self._pending.popleft()


class ObservableQueue(Generic[T]):
    """Broadcasts pushed items to every live subscriber."""

    def __init__(self) -> None:
        self._observers: "weakref.WeakSet[Observer[T]]" = weakref.WeakSet()

    def push(self, item: T) -> None:
        for observer in list(self._observers):
            observer._deliver(item)

    def subscribe(self) -> Observer[T]:
        observer: Observer[T] = Observer()
        self._observers.add(observer)
        return observer


class SchedulerContext:
    """Collects commands sent by systems while a command is handled."""

    def __init__(self) -> None:
        self._commands: list[Any] = []

    def send(self, command: Any) -> None:
        self._commands.append(command)


System = Callable[[Any, Any, SchedulerContext], None]


class Scheduler(Generic[W]):
    """Runs queued commands through their systems, one command per step.

    Systems for a command run in ascending priority, in registration order
    within a priority. Commands sent while handling run before commands
    that were already queued. Observers see a command once every system
    has run without aborting it.
    """

    def __init__(self) -> None:
        self._systems: dict[type, list[tuple[int, int, System]]] = {}
        self._observers: dict[type, "weakref.WeakSet[Observer[Any]]"] = {}
        self._queue: deque[Any] = deque()
        self._order = count()

    def add_system(self, command_type: type, system: System, priority: int = 0) -> None:
        entries = self._systems.setdefault(command_type, [])
        entries.append((priority, next(self._order), system))
        entries.sort(key=lambda entry: (entry[0], entry[1]))

    def send(self, command: Any) -> None:
        self._queue.append(command)

    def step(self, world: W) -> bool:
        """Handle one queued command; return False if the queue was empty."""
        if not self._queue:
            return False
        command = self._queue.popleft()
        context = SchedulerContext()
        for _, _, system in self._systems.get(type(command), ()):
            try:
                system(command, world, context)
            except CommandContinue:
                continue
            except CommandBreak:
                return True
        for observer in list(self._observers.get(type(command), ())):
            observer._deliver(command)
        self._queue.extendleft(reversed(context._commands))
        return True

    def observe(self, command_type: type) -> Observer[Any]:
        observer: Observer[Any] = Observer()
        self._observers.setdefault(command_type, weakref.WeakSet()).add(observer)
        return observer


class WorldStorage(Generic[C, R]):
    """Entity allocation over a components object and a resources object.

    Every ``ComponentStorage`` attribute of the components object is
    cleared of an entity when it is despawned.
    """

    def __init__(self, components: C, resources: R) -> None:
        self.components = components
        self.resources = resources
        self._versions: list[int] = []
        self._free: list[int] = []
        self._alive: set[Entity] = set()

    def spawn(self) -> Entity:
        if self._free:
            index = self._free.pop()
            self._versions[index] += 1
        else:
            index = len(self._versions)
            self._versions.append(0)
        entity = Entity(index, self._versions[index])
        self._alive.add(entity)
        return entity

    def despawn(self, entity: Entity) -> None:
        if entity not in self._alive:
            return
        for storage in vars(self.components).values():
            if isinstance(storage, ComponentStorage):
                storage.remove(entity)
        self._alive.discard(entity)
        self._free.append(entity.id)

    def is_alive(self, entity: Entity) -> bool:
        return entity in self._alive