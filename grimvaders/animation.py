"""Unit sprite animations and floating value bubbles."""

from __future__ import annotations

import math
import random
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .components import Position
from .ecs import Entity
from .geometry import (
    BUBBLE_MAX_AGE,
    BUBBLE_SPEED,
    BUBBLE_WAIT_AGE,
    DISINTEGRATE_SPEED,
    MOVE_SPEED,
    SPRITE_SIZE,
    Color,
    InputState,
    Vector2,
    is_mouse_over,
    tile_to_sprite,
)
from .world import World


class Ease(Enum):
    NONE = "none"
    IN = "in"
    OUT = "out"
    IN_OUT = "in_out"


Waypoint = tuple[Vector2, Ease]


@dataclass
class Translate:
    """Movement along a path; ``t`` is progress on the current segment."""

    t: float
    path: deque[Waypoint]


@dataclass
class Disintegrate:
    """Fade-out; ``value`` falls from 1 to 0."""

    value: float


Animation = Union[Translate, Disintegrate]


@dataclass
class UnitSprite:
    entity: Entity
    origin: Vector2 = field(default_factory=Vector2)
    atlas: str = "units"
    index: int = 0
    frame: int = 0
    frames: Optional[int] = None
    animation: Optional[Animation] = None
    remove: bool = False

    @classmethod
    def from_entity(cls, entity: Entity, world: World) -> "UnitSprite":
        """A sprite for an entity, using its definition's atlas data if any."""
        sprite = cls(entity)
        name = world.components.name.get(entity)
        data = world.resources.data.entities.get(name) if name is not None else None
        if data is not None:
            sprite.atlas = data.sprite.atlas
            sprite.index = data.sprite.index
            sprite.frames = data.sprite.frames
        return sprite

    def add_translations(self, path: Iterable[Waypoint]) -> None:
        """Extend the current movement, or start one from the sprite's origin."""
        if isinstance(self.animation, Translate):
            self.animation.path.extend(path)
        else:
            waypoints: deque[Waypoint] = deque(path)
            waypoints.appendleft((self.origin, Ease.NONE))
            self.animation = Translate(0.0, waypoints)

    def mouse_over(self, state: InputState) -> bool:
        return is_mouse_over(self.origin, Vector2(SPRITE_SIZE, SPRITE_SIZE), state)


def get_unit_sprite(entity: Entity, sprites: list[UnitSprite]) -> Optional[UnitSprite]:
    return next((s for s in sprites if s.entity == entity), None)


def place_unit_sprite(
    entity: Entity, position: Position, world: World, sprites: list[UnitSprite]
) -> None:
    sprite = UnitSprite.from_entity(entity, world)
    sprite.origin = tile_to_sprite(position)
    sprites.append(sprite)


def remove_unit_sprite(entity: Entity, sprites: list[UnitSprite]) -> None:
    sprites[:] = [s for s in sprites if s.entity != entity]


def kill_unit_sprite(entity: Entity, sprites: list[UnitSprite]) -> None:
    sprite = get_unit_sprite(entity, sprites)
    if sprite is not None:
        sprite.animation = Disintegrate(1.0)


def purge_unit_sprites(sprites: list[UnitSprite]) -> None:
    sprites[:] = [s for s in sprites if not s.remove]


def move_unit_sprite(entity: Entity, world: World, sprites: list[UnitSprite]) -> None:
    sprite = get_unit_sprite(entity, sprites)
    position = world.components.position.get(entity)
    if sprite is not None and position is not None:
        sprite.add_translations([(tile_to_sprite(position), Ease.IN_OUT)])


def attack_unit_sprite(
    source: Entity, target: Entity, world: World, sprites: list[UnitSprite]
) -> None:
    """Jump the attacker back a little, then onto the target."""
    sprite = get_unit_sprite(source, sprites)
    target_position = world.components.position.get(target)
    if sprite is None or target_position is None:
        return
    dest = tile_to_sprite(target_position)
    path: list[Waypoint] = []
    # attacking again from the target's spot: step back out first
    if (sprite.origin - dest).length_squared() < 0.1:
        path.append((tile_to_sprite(target_position + Position(0, 1)), Ease.IN))
    path.append((sprite.origin - Vector2(0.0, 0.125 * SPRITE_SIZE), Ease.IN_OUT))
    path.append((dest, Ease.IN))
    sprite.add_translations(path)


def attack_town(source: Entity, world: World, sprites: list[UnitSprite]) -> None:
    sprite = get_unit_sprite(source, sprites)
    position = world.components.position.get(source)
    if sprite is None or position is None:
        return
    sprite.add_translations([(tile_to_sprite(Position(position.x, -1)), Ease.IN)])


def animate_unit_sprite(sprite: UnitSprite, delta: float) -> bool:
    """Advance the sprite's animation; True while it blocks the game."""
    animation = sprite.animation
    if animation is None:
        return False
    blocking = True
    if isinstance(animation, Translate):
        path = animation.path
        if len(path) < 2:
            sprite.animation = None
        elif animation.t >= 0.999:
            path.popleft()
            sprite.origin = path[0][0]
            animation.t = 0.0
        else:
            start, (end, kind) = path[0][0], path[1]
            total = translation_time(start, end)
            animation.t += min(delta / total, 1.0) if total > 0 else 1.0
            eased = ease(animation.t, kind)
            origin = start.lerp(end, eased)
            sprite.origin = Vector2(
                origin.x, origin.y + parabole(eased, 0.2 * (start - end).length())
            )
    else:
        animation.value -= DISINTEGRATE_SPEED * delta
        if animation.value <= 0.0:
            sprite.remove = True
        if animation.value <= 0.5:
            blocking = False
    return blocking


def translation_time(a: Vector2, b: Vector2) -> float:
    return (b - a).length() / MOVE_SPEED


def ease(value: float, kind: Ease) -> float:
    if kind is Ease.IN:
        return 1.0 - math.cos(0.5 * value * math.pi)
    if kind is Ease.OUT:
        return math.sin(0.5 * value * math.pi)
    if kind is Ease.IN_OUT:
        return -0.5 * (math.cos(math.pi * value) - 1.0)
    return value


def parabole(t: float, h: float) -> float:
    return h * math.sin(t * math.pi)


# Bubbles


class Bubble:
    """A floating text or icon that rises and fades out."""

    def __init__(
        self,
        origin: Vector2,
        color: Color,
        text: Optional[str] = None,
        icon: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        rng = rng if rng is not None else random.Random()
        offset = Vector2(rng.uniform(0.25, 0.75), rng.uniform(-0.25, 0.25)) * SPRITE_SIZE
        self.origin = origin + offset
        self.color = color
        self.text = text
        self.icon = icon
        self.age = 0.0

    def __repr__(self) -> str:
        return (
            f"Bubble(origin={self.origin!r}, text={self.text!r}, "
            f"icon={self.icon!r}, age={self.age!r})"
        )


def move_bubbles(bubbles: list[Bubble], delta: float) -> bool:
    """Raise and age every bubble; True while any bubble is still fresh."""
    wait = False
    for bubble in bubbles:
        bubble.origin = bubble.origin + Vector2(0.0, BUBBLE_SPEED)
        bubble.age += delta
        if bubble.age <= BUBBLE_WAIT_AGE:
            wait = True
    return wait


def remove_old_bubbles(bubbles: list[Bubble]) -> None:
    bubbles[:] = [b for b in bubbles if b.age < BUBBLE_MAX_AGE]


def update_bubbles(bubbles: list[Bubble], delta: float) -> bool:
    wait = move_bubbles(bubbles, delta)
    remove_old_bubbles(bubbles)
    return wait