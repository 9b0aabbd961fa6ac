"""Layout of text spans, buttons, wrapped text boxes and unit descriptions."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Optional, Union

from .ecs import Entity
from .geometry import (
    BASE_TEXT_SIZE,
    BUTTON_SPRITE,
    BUTTON_TEXT_COLOR,
    FOOD_COLOR,
    SPRITE_SIZE,
    TEXT_LINE_GAP,
    WHITE,
    ButtonState,
    Color,
    InputState,
    Vector2,
    is_mouse_over,
)
from .world import World

Measure = Callable[[str, str, float], float]
"""Width of a text: ``measure(font, text, size)``."""


@dataclass(frozen=True)
class TextItem:
    text: str


@dataclass(frozen=True)
class SpriteItem:
    atlas: str
    index: int


@dataclass(frozen=True)
class SpacerItem:
    width: float


SpanItem = Union[TextItem, SpriteItem, SpacerItem]


@dataclass(frozen=True)
class TextDraw:
    """A piece of text placed on screen."""

    font: str
    text: str
    position: Vector2
    size: float
    color: Color


@dataclass(frozen=True)
class SpriteDraw:
    """An atlas sprite placed on screen."""

    atlas: str
    index: int
    position: Vector2
    size: float
    color: Color


@dataclass(frozen=True)
class Span:
    """A horizontal run of texts, sprites and gaps, vertically centred."""

    font: str = "default"
    text_color: Color = BUTTON_TEXT_COLOR
    sprite_color: Color = WHITE
    text_size: float = BASE_TEXT_SIZE
    sprite_size: float = BASE_TEXT_SIZE
    items: tuple[SpanItem, ...] = ()

    def _append(self, item: SpanItem) -> "Span":
        return replace(self, items=self.items + (item,))

    def with_text(self, text: str) -> "Span":
        return self._append(TextItem(text))

    def with_sprite(self, atlas: str, index: int) -> "Span":
        return self._append(SpriteItem(atlas, index))

    def with_spacer(self, width: float) -> "Span":
        return self._append(SpacerItem(width))

    def with_text_color(self, color: Color) -> "Span":
        return replace(self, text_color=color)

    def with_sprite_color(self, color: Color) -> "Span":
        return replace(self, sprite_color=color)

    def with_text_size(self, size: float) -> "Span":
        return replace(self, text_size=size)

    def with_sprite_size(self, size: float) -> "Span":
        return replace(self, sprite_size=size)

    def with_font(self, font: str) -> "Span":
        return replace(self, font=font)

    def _item_width(self, item: SpanItem, measure: Measure) -> float:
        if isinstance(item, TextItem):
            return measure(self.font, item.text, self.text_size)
        if isinstance(item, SpriteItem):
            return self.sprite_size
        return item.width

    def width(self, measure: Measure) -> float:
        return sum(self._item_width(item, measure) for item in self.items)

    def height(self) -> float:
        return max(self.text_size, self.sprite_size)

    def is_empty(self) -> bool:
        return not self.items

    def layout(
        self, origin: Vector2, measure: Measure
    ) -> list[Union[TextDraw, SpriteDraw]]:
        """Place every text and sprite of the span, left to right."""
        origin = origin.round()
        middle = Vector2(origin.x, origin.y + 0.5 * self.height())
        draws: list[Union[TextDraw, SpriteDraw]] = []
        offset = 0.0
        for item in self.items:
            if isinstance(item, TextItem):
                position = (middle + Vector2(offset, -0.5 * self.text_size)).round()
                draws.append(
                    TextDraw(self.font, item.text, position, self.text_size, self.text_color)
                )
            elif isinstance(item, SpriteItem):
                position = (middle + Vector2(offset, -0.5 * self.sprite_size)).round()
                draws.append(
                    SpriteDraw(
                        item.atlas, item.index, position, self.sprite_size, self.sprite_color
                    )
                )
            offset += self._item_width(item, measure)
        return draws


def _default_slice() -> tuple[int, Vector2]:
    return (8, Vector2(SPRITE_SIZE, SPRITE_SIZE))


@dataclass(frozen=True)
class Button:
    """A nine-sliced sprite button with an optional label span."""

    origin: Vector2
    size: Vector2
    z: int = 0
    atlas: str = "ui"
    index: int = BUTTON_SPRITE
    span: Optional[Span] = None
    slice: Optional[tuple[int, Vector2]] = field(default_factory=_default_slice)

    def with_span(self, span: Span) -> "Button":
        return replace(self, span=span)

    def with_sprite(self, atlas: str, index: int) -> "Button":
        return replace(self, atlas=atlas, index=index)

    def mouse_over(self, state: InputState) -> bool:
        return is_mouse_over(self.origin, self.size, state)

    def clicked(self, state: InputState) -> bool:
        return state.click is ButtonState.RELEASED and self.mouse_over(state)

    def pressed(self, state: InputState) -> bool:
        return state.click is ButtonState.DOWN and self.mouse_over(state)

    def sprite_index(self, state: InputState) -> int:
        """The atlas index to draw: the next frame while held down."""
        return self.index + 1 if self.pressed(state) else self.index


@dataclass(frozen=True)
class TextBox:
    """Word-wrapped text, laid out downwards from its origin."""

    text: str
    text_color: Color = FOOD_COLOR
    text_size: float = BASE_TEXT_SIZE

    def layout(
        self, origin: Vector2, width: float, measure: Measure
    ) -> tuple[list[TextDraw], float]:
        """Place each word, wrapping at ``width``; returns the words and box height."""
        line_height = (1.0 + TEXT_LINE_GAP) * self.text_size
        space = measure("default", " ", self.text_size)
        draws: list[TextDraw] = []
        v_offset = 0.0
        for paragraph in self.text.split("\n"):
            line_width = 0.0
            for word in paragraph.split(" "):
                w = measure("default", word, self.text_size)
                if line_width + w > width:
                    line_width = 0.0
                    v_offset += line_height
                draws.append(
                    TextDraw(
                        "default",
                        word,
                        origin + Vector2(line_width, -v_offset),
                        self.text_size,
                        self.text_color,
                    )
                )
                line_width += w + space
            v_offset += line_height
        return draws, v_offset


@dataclass(frozen=True)
class EntityDescription:
    """What the info panel shows about a unit."""

    name: str
    tags: tuple[str, ...]
    text: Optional[str]


def describe_entity(entity: Entity, world: World) -> Optional[EntityDescription]:
    """The name, tag labels and description of a unit; None if it has none."""
    name = world.components.name.get(entity)
    if name is None:
        return None
    data = world.resources.data.entities.get(name)
    if data is None:
        return None
    tags = world.components.tags.get(entity) or []
    text = None
    if data.description is not None:
        text = data.description
        limit = world.components.trigger_limit.get(entity)
        if limit is not None:
            text += f"Triggers max {limit.default}x/turn."
    return EntityDescription(name, tuple(tag.label() for tag in tags), text)