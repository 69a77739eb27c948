from __future__ import annotations

import json
import shlex
from typing import Any

import typer

from .configmanager import ConfigManager


def load_config_callback(value: str | None) -> str | None:
    """Eager callback to load env file before other options are processed."""
    ConfigManager.load_dotenv(value)
    return value


_SECRET_OPTIONS = frozenset({"--redis-password", "--password"})


def format_cli_invocation_for_log(ctx: typer.Context, argv: list[str] | None = None) -> str:
    """Shell-quoted command line with password values replaced."""
    prog = (ctx.find_root().info_name or "beachhead-companion").strip()
    words: list[str] = [prog]
    hide_value = False
    for arg in ctx.args if argv is None else argv:
        if not arg:
            continue
        if hide_value:
            words.append("<redacted>")
            hide_value = False
        elif arg.lower() in _SECRET_OPTIONS:
            words.append(arg)
            hide_value = True
        elif "password=" in arg.lower():
            words.append(arg.partition("=")[0] + "=<redacted>")
        else:
            words.append(arg)
    return shlex.join(words)


def console_log_level(log_level: str, *, verbose: bool, quiet: bool) -> str:
    """--verbose and --quiet override --log-level and cancel each other out."""
    if verbose and quiet:
        return log_level
    if verbose:
        return "DEBUG"
    if quiet:
        return "WARNING"
    return log_level


def print_json(value: Any) -> None:
    print(json.dumps(value, ensure_ascii=False, sort_keys=True, indent=2))
