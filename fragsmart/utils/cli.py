"""
CLI utilities for fragsmart.

Provides Click `Group`/`Command` classes that record every invoked
(sub)command with its parameter values on the context object, so that
the full invocation can be logged together with the results.

Public API:
- `MyGroup`, `MyCommand`
- `describe_invocation`
"""

import logging
import typing as t

import click
from click import Context

logger = logging.getLogger(__name__)


def _add_subcommand_info_to_ctx(ctx):
    """
    Add subcommand information to the Click context object.

    Args:
        ctx (Context): Click context object containing command information.
    """
    ctx.ensure_object(dict)
    if "subcommand" not in ctx.obj:
        ctx.obj["subcommand"] = []

    parent = ctx.parent.info_name if ctx.parent is not None else None
    ctx.obj["subcommand"] += [
        {
            "name": ctx.info_name,
            "kwargs": dict(ctx.params),
            "parent": parent,
        }
    ]


class MyGroup(click.Group):
    """
    Click Group that records invocation metadata in the context.

    Appends this group's name and parameter values to
    `ctx.obj["subcommand"]`. Expects `ctx.obj` to be a mutable mapping.
    """

    def invoke(self, ctx: Context) -> t.Any:
        _add_subcommand_info_to_ctx(ctx)
        return super().invoke(ctx)


class MyCommand(click.Command):
    """
    Click Command that records invocation metadata in the context.

    Used together with `MyGroup` to capture the entire command chain.
    """

    def invoke(self, ctx):
        _add_subcommand_info_to_ctx(ctx)
        return super().invoke(ctx)


def describe_invocation(commands):
    """
    Render recorded subcommands as a single readable line.

    Parameters that are None or empty are left out.

    Args:
        commands (list[dict]): Records from `ctx.obj["subcommand"]`.

    Returns:
        str: e.g. "fragment(num_procs=4) single(algorithm=recap)".
    """
    parts = []
    for command in commands:
        kwargs = ", ".join(
            f"{key}={value}"
            for key, value in command["kwargs"].items()
            if value is not None and value != ()
        )
        parts.append(f"{command['name']}({kwargs})")
    return " ".join(parts)
