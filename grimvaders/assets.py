"""Loading game data files from an asset directory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from .data import GameData, load_sprite_sheet_data, update_sprite_data

log = logging.getLogger(__name__)

DATA_FILES = ("player", "npcs")
SPRITE_SHEET_FILE = Path("sprites") / "units.json"


def load_data_item(name: str, raw: bytes, game_data: GameData) -> None:
    """Add the entities of one data file under the category ``name``."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        log.error("Can't parse %s as string!", name)
        return
    game_data.add_entities(text, name)


def load_data(
    directory: Union[str, Path],
    game_data: GameData,
    sprite_sheet: Optional[str] = None,
) -> bool:
    """Load every data file found in ``directory``/data.

    Sprite tags are then resolved against ``sprite_sheet`` text, or the
    sheet file in the asset directory when none is given. Returns True if
    any data file was loaded.
    """
    root = Path(directory)
    updated = False
    for name in DATA_FILES:
        path = root / "data" / f"{name}.yaml"
        if not path.is_file():
            continue
        updated = True
        load_data_item(name, path.read_bytes(), game_data)

    if updated:
        if sprite_sheet is None:
            sheet_path = root / SPRITE_SHEET_FILE
            if sheet_path.is_file():
                sprite_sheet = sheet_path.read_text(encoding="utf-8")
        if sprite_sheet is not None:
            update_sprite_data(game_data, load_sprite_sheet_data(sprite_sheet))
    return updated