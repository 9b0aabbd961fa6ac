"""Entity definitions and sprite sheet metadata loaded from YAML."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml


class DataError(ValueError):
    """Raised when game data or sprite sheet metadata cannot be parsed."""


def _parse(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise DataError(f"can't parse yaml data: {exc}") from exc


def _require_mapping(value: Any, what: str) -> Mapping:
    if not isinstance(value, Mapping):
        raise DataError(f"{what} must be a mapping")
    return value


def _required(raw: Mapping, key: str, what: str) -> Any:
    if key not in raw:
        raise DataError(f"{what} is missing the '{key}' field")
    return raw[key]


def _opt_int(raw: Mapping, key: str, what: str) -> Optional[int]:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise DataError(f"{what}: '{key}' must be a non-negative integer")
    return value


def _opt_float(raw: Mapping, key: str, what: str) -> Optional[float]:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DataError(f"{what}: '{key}' must be a number")
    return float(value)


def _opt_str(raw: Mapping, key: str, what: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise DataError(f"{what}: '{key}' must be a string")
    return value


@dataclass
class SpriteData:
    """Where an entity's sprite lives in a texture atlas."""

    atlas: str
    index: int = 0
    frames: Optional[int] = None
    tag: Optional[str] = None


def _sprite_from_dict(raw: Any, what: str) -> SpriteData:
    raw = _require_mapping(raw, f"{what}: sprite")
    atlas = _required(raw, "atlas", f"{what}: sprite")
    if not isinstance(atlas, str):
        raise DataError(f"{what}: sprite atlas must be a string")
    index = _opt_int(raw, "index", f"{what}: sprite")
    return SpriteData(
        atlas=atlas,
        index=0 if index is None else index,
        frames=_opt_int(raw, "frames", f"{what}: sprite"),
        tag=_opt_str(raw, "tag", f"{what}: sprite"),
    )


@dataclass
class EntityData:
    """The definition of one kind of entity."""

    components: dict[str, Any]
    sprite: SpriteData
    chance: Optional[float] = None
    tier: Optional[int] = None
    score: Optional[int] = None
    script: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Any) -> "EntityData":
        """Build an entity definition from a parsed YAML mapping."""
        what = "entity"
        raw = _require_mapping(raw, what)
        components = _require_mapping(
            _required(raw, "components", what), f"{what}: components"
        )
        if not all(isinstance(key, str) for key in components):
            raise DataError(f"{what}: component names must be strings")
        return cls(
            components=dict(components),
            sprite=_sprite_from_dict(_required(raw, "sprite", what), what),
            chance=_opt_float(raw, "chance", what),
            tier=_opt_int(raw, "tier", what),
            score=_opt_int(raw, "score", what),
            script=_opt_str(raw, "script", what),
            description=_opt_str(raw, "description", what),
        )


@dataclass
class GameData:
    """All entity definitions, grouped into named categories."""

    entities: dict[str, EntityData] = field(default_factory=dict)
    categories: dict[str, list[str]] = field(default_factory=dict)

    def add_entities(self, text: str, category: str) -> None:
        """Parse a YAML document of entities and file them under a category."""
        parsed = _parse(text)
        if parsed is None:
            parsed = {}
        parsed = _require_mapping(parsed, "entity file")
        loaded: dict[str, EntityData] = {}
        for name, raw in parsed.items():
            if not isinstance(name, str):
                raise DataError("entity names must be strings")
            try:
                loaded[name] = EntityData.from_dict(raw)
            except DataError as exc:
                raise DataError(f"{name}: {exc}") from exc
        self.entities.update(loaded)
        self.categories[category] = list(loaded)


@dataclass(frozen=True)
class FrameTag:
    """A named, inclusive range of frames in a sprite sheet."""

    name: str
    start: int
    end: int


@dataclass(frozen=True)
class SheetSize:
    w: int
    h: int


@dataclass(frozen=True)
class SpriteSheetData:
    """The metadata part of a sprite sheet export."""

    frame_tags: tuple[FrameTag, ...]
    size: SheetSize


def load_sprite_sheet_data(text: str) -> SpriteSheetData:
    """Parse sprite sheet metadata (JSON or YAML)."""
    data = _require_mapping(_parse(text), "sprite sheet")
    meta = _require_mapping(_required(data, "meta", "sprite sheet"), "meta")
    raw_tags = _required(meta, "frameTags", "meta")
    if not isinstance(raw_tags, list):
        raise DataError("meta: 'frameTags' must be a list")
    tags = []
    for raw in raw_tags:
        raw = _require_mapping(raw, "frame tag")
        name = _required(raw, "name", "frame tag")
        if not isinstance(name, str):
            raise DataError("frame tag name must be a string")
        for key in ("from", "to"):
            _required(raw, key, "frame tag")
        tags.append(
            FrameTag(
                name=name,
                start=_opt_int(raw, "from", "frame tag"),
                end=_opt_int(raw, "to", "frame tag"),
            )
        )
    raw_size = _require_mapping(_required(meta, "size", "meta"), "size")
    for key in ("w", "h"):
        _required(raw_size, key, "size")
    size = SheetSize(w=_opt_int(raw_size, "w", "size"), h=_opt_int(raw_size, "h", "size"))
    return SpriteSheetData(frame_tags=tuple(tags), size=size)


def _find_tag(name: str, sheet_data: SpriteSheetData) -> Optional[FrameTag]:
    return next((tag for tag in sheet_data.frame_tags if tag.name == name), None)


def update_sprite_data(game_data: GameData, sheet_data: SpriteSheetData) -> None:
    """Resolve tagged sprites to atlas indices and frame counts."""
    for entity in game_data.entities.values():
        tag = entity.sprite.tag
        if tag is None:
            continue
        tag_data = _find_tag(tag, sheet_data)
        if tag_data is None:
            continue
        entity.sprite.index = tag_data.start
        if tag_data.end - tag_data.start > 0:
            entity.sprite.frames = tag_data.end - tag_data.start + 1