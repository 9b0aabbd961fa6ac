"""Named unit scripts that react to game commands."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Optional

from .ecs import Entity

log = logging.getLogger(__name__)

Script = Callable[[Any, Entity, Any], Any]


class ScriptEngine:
    """A registry of script functions, looked up by name.

    A script is called as ``function(world, entity, command)``. It returns
    a command, a list of commands, or None when it has nothing to say.
    """

    def __init__(self) -> None:
        self._functions: dict[str, Script] = {}

    def register(self, name: str, function: Script) -> None:
        if not callable(function):
            raise TypeError(f"script '{name}' is not callable")
        self._functions[name] = function

    def call(self, name: str, world: Any, entity: Entity, command: Any) -> Any:
        """Run a script; KeyError if no script has that name."""
        try:
            function = self._functions[name]
        except KeyError:
            raise KeyError(f"unknown script: {name}") from None
        return function(world, entity, command)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)


def init_scripts(world: Any, functions: Mapping[str, Script]) -> ScriptEngine:
    """Build a script engine holding the given functions."""
    engine = ScriptEngine()
    for name, function in functions.items():
        engine.register(name, function)
    log.debug("script engine created with %d scripts", len(engine))
    return engine


def run_command_script(
    script: str, entity: Entity, world: Any, command: Any
) -> Optional[list[Any]]:
    """Run a named script for an entity.

    Returns the commands it produced as a list, wrapping a single command.
    Returns None when the script produced nothing or failed.
    """
    engine = world.resources.scripts
    if engine is None:
        raise RuntimeError("the script engine has not been initialised")
    log.debug("running script: %s", script)
    try:
        output = engine.call(script, world, entity, command)
    except Exception as exc:  # a failing script must not stop the game
        log.error("script %s failed: %s", script, exc)
        return None
    if output is None:
        result = None
    elif isinstance(output, (list, tuple)):
        result = list(output)
    else:
        result = [output]
    log.debug("%s result: %r", script, result)
    return result