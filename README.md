# grimvaders

This package holds the rules and state of a small turn-based strategy game.
Enemies come in waves down a 4×4 board. You place units from your deck to
stop them before they reach the town. Between battles you pick a new unit in
a shop and trim your deck.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `grimvaders.data` holds the entity definitions.
  - `GameData.add_entities(text, category)` parses a YAML mapping of entity names to definitions. Each definition has `components`, `sprite`, and optionally `chance`, `tier`, `score`, `script` and `description`.
  - `load_sprite_sheet_data` reads the frame tags and size of a sprite sheet from JSON or YAML. `update_sprite_data` uses those tags to set each sprite's index and frame count.
  - Bad data raises `DataError`.
- `grimvaders.components` holds the basic types and the board constants (`BOARD_W`, `BOARD_H`, `MAX_WAVE_H`, `WAVE_COUNT`, `MAX_BATTLES`, `DECK_SIZE`, `SHOP_SIZE`).
  - Board types: `Position`, `Tile` and `Tag`.
  - `ValueDefault` is a non-negative counter that can be restored to its default.
  - `GameMode` is the state of the game.
  - The input events are `MoveUnitEvent`, `SummonPlayerEvent`, `DoneEvent`, `PickUnitEvent` and `DiscardUnitEvent`.
- `grimvaders.ecs` is a small entity-component store.
  - `WorldStorage`, `ComponentStorage` and generational `Entity` handles.
  - `Scheduler` runs commands through systems in priority order. A system raises `CommandBreak` to abort a command, or `CommandContinue` to skip itself.
  - `ObservableQueue` and `Observer` pass events between parts of the game.
- `grimvaders.world` holds the game state.
  - `World` holds the component storages and `Resources`, and answers board queries: `query`, `unit_at`, `tile_at`, `adjacent_players`, `players_in_column` and others.
  - `GameEnv` bundles a world, a scheduler and an input observer.
  - `spawn_by_name` creates an entity from its definition.
- `grimvaders.commands` holds the commands and the systems that handle them. The commands are `ChangeFood`, `SummonPlayer`, `SpawnUnit`, `MoveUnit`, `Attack`, `AttackTown`, `ChangeHealth`, `Kill`, `RemoveUnit` and `RespawnPlayer`. `register_handlers` installs their systems on a scheduler.
- `grimvaders.scripting` runs unit scripts. `ScriptEngine` maps script names to Python callables. `run_command_script` calls a script and returns the commands it produced.
- `grimvaders.battle` runs a battle.
  - `battle_init`, `battle_update` and `battle_exit` start, advance and end it.
  - `next_wave` spawns the enemies up to `target_score(tier, wave)`.
- `grimvaders.shop` covers the screens between battles and the start of a game.
  - Shop: `shop_init`, `shop_update`, `pick_unit` and `shop_exit`.
  - Deck trimming: `deck_init` and `deck_update`.
  - `init_game` starts a new game.
- `grimvaders.geometry` holds the screen side of the board.
  - `Vector2` and `Color`, plus the layout and palette constants.
  - Isometric conversion: `tile_to_world`, `world_to_tile` and `get_z_offset`.
  - Window setup: `camera_center` and `target_resolution`.
  - Pointer input: `InputState` and `button_state`.
- `grimvaders.animation` moves sprites and bubbles.
  - `UnitSprite` paths with easing (`animate_unit_sprite`).
  - Attack and move paths.
  - Floating `Bubble`s (`update_bubbles`).
- `grimvaders.ui` computes layout.
  - `Span`, `Button` and `TextBox` return placed `TextDraw`/`SpriteDraw` items. Text width comes from a `measure(font, text, size)` callable that you supply.
  - `describe_entity` builds the text of the info panel.
- `grimvaders.assets` loads data files. `load_data(directory, game_data)` reads `data/player.yaml` and `data/npcs.yaml` under `directory`, then applies `sprites/units.json` if that file is present.

## Example

```python
import random

from grimvaders.assets import load_data
from grimvaders.battle import battle_init, battle_update
from grimvaders.components import DoneEvent
from grimvaders.ecs import ObservableQueue
from grimvaders.shop import init_game
from grimvaders.world import GameEnv

rng = random.Random(1)
env = GameEnv()
load_data("assets", env.world.resources.data)

events = ObservableQueue()
env.input = events.subscribe()

init_game(env, {}, rng)
battle_init(env, rng)

events.push(DoneEvent())
for _ in range(100):
    battle_update(env, rng)
```

`init_game` spawns the starting squad by name: Scarecrow, Peasant or Sheep, and Villager. The data must therefore define those units. A battle also needs an `npcs` category. The shop needs a `player` category.

## Unit scripts

A handler component such as `on_spawn`, `on_fight`, `on_damage` or `on_ally_kill` holds the name of a script. Scripts are plain Python functions, passed to `init_game` as a mapping. Each one is called as `function(world, entity, command)` and returns a command, a list of commands, or `None`. If a script raises, the error is logged and the game goes on.

```python
from grimvaders.commands import ChangeFood

def harvest(world, entity, command):
    return ChangeFood(1, entity)

init_game(env, {"harvest": harvest}, rng)
```

## What this package does not do

- It opens no window and draws nothing.
- It plays no sound.
- It provides no command to play the game.

`geometry`, `animation` and `ui` compute positions, paths and layouts. A renderer that you supply has to draw them. The game data, sprite sheets and other assets are not included.