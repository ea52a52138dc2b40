import functools
import logging

import click

logger = logging.getLogger(__name__)


def logger_options(f):
    """Logging configuration options."""

    @click.option(
        "-d",
        "--debug/--no-debug",
        default=False,
        help="Turn on debug logging.",
    )
    @click.option(
        "--stream/--no-stream",
        default=True,
        help="Turn on logging to stdout.",
    )
    @click.option(
        "--logfile",
        type=str,
        default=None,
        help="Also write the log to this file in the output directory.",
    )
    @click.option(
        "--errfile",
        type=str,
        default=None,
        help="Also write warnings and errors to this file in the output "
        "directory.",
    )
    @click.option(
        "--log-once/--no-log-once",
        default=False,
        help="Log repeated identical messages only once.",
    )
    @functools.wraps(f)
    def wrapper_common_options(*args, **kwargs):
        return f(*args, **kwargs)

    return wrapper_common_options
