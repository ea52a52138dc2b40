"""
CLI command group for molecule fragmentation.

The `fragment` group loads the molecules and settings; its subcommands
choose between a single fragmentation stage and a pipeline of stages.
"""

import functools
import logging
import os

import click

from fragsmart.io.molecules.smiles import SMILESFile
from fragsmart.jobs.fragmentation import (
    FragmentationJob,
    FragmenterFactory,
)
from fragsmart.settings.fragmentation import FragmentationSettings
from fragsmart.utils.cli import MyCommand, MyGroup, describe_invocation
from fragsmart.utils.logger import create_logger
from fragsmart.utils.utils import FragmentationError

from .logger import logger_options

logger = logging.getLogger(__name__)


def click_fragmenter_options(f):
    """Options shared by the fragmentation subcommands."""

    @click.option(
        "--saturation/--no-saturation",
        default=True,
        help="Saturate open valences of fragments with hydrogen.",
    )
    @click.option(
        "-n",
        "--name",
        type=str,
        default=None,
        help="Name of the fragmentation run. Defaults to the algorithm "
        "name for single stages and to the configured pipeline name.",
    )
    @functools.wraps(f)
    def wrapper_common_options(*args, **kwargs):
        return f(*args, **kwargs)

    return wrapper_common_options


def _create_fragmenters(algorithms, saturation):
    saturation_option = (
        "hydrogen_saturation" if saturation else "no_saturation"
    )
    return [
        FragmenterFactory.create(
            algorithm, fragment_saturation=saturation_option
        )
        for algorithm in algorithms
    ]


@click.group(name="fragment", cls=MyGroup)
@click.option(
    "-f",
    "--filename",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="SMILES file with one molecule per line, optionally followed "
    "by a name.",
)
@click.option(
    "-np",
    "--num-procs",
    type=int,
    default=None,
    help="Number of parallel worker tasks. Defaults to the number of CPUs.",
)
@click.option(
    "-l",
    "--label",
    type=str,
    default=None,
    help="Label prefix of the result files. Defaults to the input file "
    "name without extension.",
)
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(file_okay=False),
    default=".",
    help="Directory for the result files.",
)
@click.option(
    "-of",
    "--output-format",
    type=click.Choice(
        list(FragmentationSettings.SUPPORTED_OUTPUT_FORMATS),
        case_sensitive=False,
    ),
    default=None,
    help="Format of the result file. Defaults to csv.",
)
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML file with fragmentation settings.",
)
@logger_options
@click.pass_context
def fragment(
    ctx,
    filename,
    num_procs,
    label,
    output_dir,
    output_format,
    config,
    debug,
    stream,
    logfile,
    errfile,
    log_once,
):
    """
    Fragment the molecules of a SMILES file.

    Common options (-f, -np, -o, -of, -c) go BEFORE the subcommand.

    Examples:
        fragsmart fragment -f drugs.smi -np 4 single -a recap
        fragsmart fragment -f drugs.smi pipeline -a components -a murcko
    """
    ctx.ensure_object(dict)
    if logfile is not None or errfile is not None:
        os.makedirs(output_dir, exist_ok=True)
    create_logger(
        debug=debug,
        folder=output_dir,
        logfile=logfile,
        errfile=errfile,
        stream=stream,
        log_once=log_once,
    )

    try:
        if config is not None:
            settings = FragmentationSettings.from_yaml(config)
        else:
            settings = FragmentationSettings()
        settings = settings.copy(
            num_tasks=num_procs, output_format=output_format
        )
    except FragmentationError as e:
        raise click.BadParameter(str(e)) from e

    molecules = SMILESFile(filename=filename).get_molecules()
    if not molecules:
        raise click.BadParameter(f"No molecules found in {filename}.")
    if label is None:
        label = os.path.splitext(os.path.basename(filename))[0]

    logger.info(
        f"Loaded {len(molecules)} molecules from {filename} with label: "
        f"{label}"
    )
    logger.debug(f"Fragmentation settings: {settings}")

    ctx.obj["molecules"] = molecules
    ctx.obj["settings"] = settings
    ctx.obj["label"] = label
    ctx.obj["output_dir"] = output_dir


@fragment.command("single", cls=MyCommand)
@click.option(
    "-a",
    "--algorithm",
    type=click.Choice(FragmenterFactory.available(), case_sensitive=False),
    required=True,
    help="Fragmentation algorithm.",
)
@click_fragmenter_options
@click.pass_context
def single(ctx, algorithm, saturation, name):
    """
    Fragment all molecules with one algorithm.

    Examples:
        fragsmart fragment -f drugs.smi single -a brics
    """
    fragmenters = _create_fragmenters([algorithm], saturation)
    return FragmentationJob(
        molecules=ctx.obj["molecules"],
        fragmenters=fragmenters,
        pipeline=False,
        label=ctx.obj["label"],
        name=name,
        settings=ctx.obj["settings"],
        output_dir=ctx.obj["output_dir"],
    )


@fragment.command("pipeline", cls=MyCommand)
@click.option(
    "-a",
    "--algorithm",
    "algorithms",
    type=click.Choice(FragmenterFactory.available(), case_sensitive=False),
    multiple=True,
    required=True,
    help="Fragmentation algorithm of a stage. Repeat for every stage, in "
    "order.",
)
@click.option(
    "--keep-last-fragment/--drop-last-fragment",
    default=None,
    help="Keep fragments that a later stage cannot decompose further. "
    "Defaults to the configured value.",
)
@click_fragmenter_options
@click.pass_context
def pipeline(ctx, algorithms, keep_last_fragment, saturation, name):
    """
    Fragment all molecules with a sequence of algorithms.

    Fragments of every stage are fragmented again by the next stage and
    their frequencies are attributed to the original molecules.

    Examples:
        fragsmart fragment -f drugs.smi pipeline -a components -a recap
    """
    settings = ctx.obj["settings"]
    if keep_last_fragment is not None:
        settings = settings.copy(keep_last_fragment=keep_last_fragment)
    fragmenters = _create_fragmenters(algorithms, saturation)
    return FragmentationJob(
        molecules=ctx.obj["molecules"],
        fragmenters=fragmenters,
        pipeline=True,
        label=ctx.obj["label"],
        name=name,
        settings=settings,
        output_dir=ctx.obj["output_dir"],
    )


@fragment.result_callback()
@click.pass_context
def fragment_process_pipeline(ctx, *args, **kwargs):
    """Run the job returned by the subcommand."""
    job = args[0]
    if not isinstance(job, FragmentationJob):
        raise ValueError(f"Invalid job type: {type(job)}.")

    logger.info(
        f"Command: {describe_invocation(ctx.obj.get('subcommand', []))}"
    )
    logger.debug(f"Job to be run: {job}")
    result = job.run()

    click.echo(
        f"Fragmentation {result.name} {result.status.value}: "
        f"{result.num_fragments} fragments, {result.num_errors} errors."
    )
    if job.output_file is not None:
        click.echo(f"Results written to {job.output_file}")
    ctx.obj["result"] = result
    return result
