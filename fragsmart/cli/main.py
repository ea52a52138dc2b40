"""CLI interface for fragsmart project."""

import click

from fragsmart.utils.cli import MyGroup

from .fragment import fragment


@click.group(cls=MyGroup)
@click.pass_context
@click.option("--verbose", is_flag=True, default=False)
def entry_point(ctx, verbose):
    # Set up logging
    from fragsmart.utils.logger import create_logger

    logger = create_logger(debug=verbose, stream=verbose)
    logger.debug("Entering fragsmart")


entry_point.add_command(fragment)


def main():  # pragma: no cover
    """
    The main function executes on commands:
    `python -m fragsmart` and `$ fragsmart `.
    """
    obj = {}
    entry_point(obj=obj)


if __name__ == "__main__":
    main()
