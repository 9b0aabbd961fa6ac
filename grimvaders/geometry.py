"""Board geometry, screen layout constants and pointer input state."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

from .components import BOARD_H, BOARD_W, DECK_SIZE, MAX_WAVE_H, Position


@dataclass(frozen=True)
class Vector2:
    """An immutable 2D vector of floats."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Vector2") -> "Vector2":
        if not isinstance(other, Vector2):
            return NotImplemented
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2") -> "Vector2":
        if not isinstance(other, Vector2):
            return NotImplemented
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> "Vector2":
        if isinstance(factor, Vector2) or not isinstance(factor, (int, float)):
            return NotImplemented
        return Vector2(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def __neg__(self) -> "Vector2":
        return Vector2(-self.x, -self.y)

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def lerp(self, other: "Vector2", t: float) -> "Vector2":
        """Linear interpolation: ``self`` at t=0, ``other`` at t=1."""
        return self + (other - self) * t

    def round(self) -> "Vector2":
        """Round each component to the nearest integer, halves away from zero."""
        return Vector2(_round_half_away(self.x), _round_half_away(self.y))


def _round_half_away(value: float) -> float:
    return float(math.copysign(math.floor(abs(value) + 0.5), value))


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int
    a: int = 255


# Sizes

TILE_SIZE = 32.0
SPRITE_SIZE = 32.0
SPRITE_OFFSET = Vector2(0.0, 0.5 * TILE_SIZE)

GAP = 4.0

BUTTON_SIZE = 0.5 * SPRITE_SIZE + GAP
BUTTON_CLICK_SHIFT = 2.0
DECK_BUTTON_H = SPRITE_SIZE + 4.0 * GAP
DECK_BUTTON_W = SPRITE_SIZE
ACTION_BUTTON_W = (DECK_SIZE // 2) * DECK_BUTTON_W + (DECK_SIZE // 2 - 1) * GAP
SIDE_PANEL_W = ACTION_BUTTON_W + GAP

BUBBLE_Z = 150
OVERLAY_Z = 100
UI_Z = 200
TILE_Z = 0
BACKGROUND_Z = -1000

BASE_TEXT_SIZE = 9.0
TEXT_LINE_GAP = 0.1
DIGITS_TEXT_SIZE = 6.0
ICON_SIZE = 6.0

BUBBLE_SPEED = 0.5
BUBBLE_MAX_AGE = 3.0
BUBBLE_WAIT_AGE = 0.25

MOVE_SPEED = 6.0 * TILE_SIZE
MOVE_THRESH = 0.1
DISINTEGRATE_SPEED = 2.0

# Palette

BACKGROUND_COLOR = Color(128, 121, 120, 255)
BUTTON_TEXT_COLOR = Color(66, 53, 83, 255)
FOOD_COLOR = Color(207, 131, 103, 255)
RED_COLOR = Color(194, 97, 108, 255)
WHITE = Color(255, 255, 255, 255)

# Tile sprites
CURSOR_SPRITE = 0
NPC_TILE_SPRITE = 1
TOWN_SPRITE = 10

# Icons
HEALTH_ICON = 0
FOOD_ICON = 1
FIGHT_ICON = 2
UNIT_ICON = 3
TOWN_ICON = 4

# UI sprites
BUTTON_SPRITE = 0
BUTTON_SPRITE_SELECTED = 2
DECK_BUTTON_SPRITE = 3
DECK_BUTTON_SPRITE_SELECTED = 5
PANEL_SPRITE = 6

TOTAL_BOARD_H = BOARD_H + MAX_WAVE_H + 1


# Input


class ButtonState(Enum):
    UP = "up"
    DOWN = "down"
    PRESSED = "pressed"
    RELEASED = "released"


@dataclass
class InputState:
    mouse_world_position: Vector2 = field(default_factory=Vector2)
    click: ButtonState = ButtonState.UP


def button_state(down: bool, released: bool, pressed: bool) -> ButtonState:
    """Combine raw mouse flags; pressed beats released, which beats down."""
    if pressed:
        return ButtonState.PRESSED
    if released:
        return ButtonState.RELEASED
    if down:
        return ButtonState.DOWN
    return ButtonState.UP


# Board projection


def tile_to_world(p: Position) -> Vector2:
    """Isometric world coordinates of a board tile."""
    return Vector2(
        0.5 * TILE_SIZE * p.x - 0.5 * TILE_SIZE * p.y,
        0.25 * TILE_SIZE * p.y + 0.25 * TILE_SIZE * p.x,
    )


def tile_to_sprite(p: Position) -> Vector2:
    return tile_to_world(p) + SPRITE_OFFSET


def world_to_tile(v: Vector2) -> Position:
    return Position(
        math.floor((v.x + 2.0 * v.y) / TILE_SIZE - 1.0),
        math.floor((2.0 * v.y - v.x) / TILE_SIZE),
    )


def get_z_offset(p: Position) -> int:
    """Draw order offset: tiles nearer the viewer get a higher value."""
    return BOARD_H - 8 * p.y + BOARD_W - 3 * p.x


def is_mouse_over(origin: Vector2, size: Vector2, state: InputState) -> bool:
    v = state.mouse_world_position
    return (
        origin.x <= v.x <= origin.x + size.x
        and origin.y <= v.y <= origin.y + size.y
    )


def background_mesh(
    bounds: tuple[Vector2, Vector2],
) -> tuple[list[Vector2], list[Vector2], list[int]]:
    """Vertices, texture coordinates and indices of the tiled background quad."""
    low, high = bounds
    u = (high.x - low.x) / TILE_SIZE
    v = (high.y - low.y) / TILE_SIZE
    vertices = [low, Vector2(high.x, low.y), high, Vector2(low.x, high.y)]
    uvs = [Vector2(0.0, 0.0), Vector2(u, 0.0), Vector2(u, v), Vector2(0.0, v)]
    return vertices, uvs, [0, 1, 2, 0, 2, 3]


def camera_center() -> Vector2:
    """Where the camera looks: the board centre, shifted for the side panel."""
    board_center = tile_to_world(
        Position(BOARD_W // 2, (BOARD_H + MAX_WAVE_H - 1) // 2)
    ) + Vector2(0.5 * TILE_SIZE, 0.5 * TILE_SIZE)
    return Vector2(board_center.x + 0.5 * SIDE_PANEL_W, board_center.y)


def target_resolution(width: float, height: float) -> tuple[int, int]:
    """Even rendering resolution for a window, scaled by a whole factor."""
    target_dim = TILE_SIZE * (1.0 + TOTAL_BOARD_H) / 1.5
    scale = math.floor(min(width, height) / target_dim)
    if scale <= 0:
        raise ValueError(
            f"window {width}x{height} is smaller than the board ({target_dim})"
        )
    return (
        math.floor(width / scale) // 2 * 2,
        math.floor(height / scale) // 2 * 2,
    )