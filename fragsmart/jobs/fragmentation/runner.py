"""
Fragmentation service running single stages and pipelines.

The service distributes molecules over a pool of worker threads, waits
for all of them, finalizes fragment percentages and keeps track of the
run names used in the session. Pipelines run their stages strictly one
after another, re-attributing fragment frequencies to the original
molecules after every stage.
"""

import logging
import threading
import time
from enum import Enum
from multiprocessing.pool import ThreadPool
from typing import Callable, List, Optional, Sequence

from fragsmart.io.molecules.structure import MoleculeRecord
from fragsmart.settings.fragmentation import FragmentationSettings
from fragsmart.utils.utils import ConfigurationError, canonical_smiles

from .base import Fragmenter
from .partition import split_into_partitions
from .pipeline import reattribute_stage
from .statistics import finalize_percentages
from .table import FragmentTable
from .task import FragmentationTask

logger = logging.getLogger(__name__)


class RunStatus(Enum):
    """Outcome of a fragmentation run."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FragmentationResult:
    """
    Result of a single stage or pipeline run.

    Attributes:
        name (str): Disambiguated run name; molecule fragments are stored
            under this name.
        table (FragmentTable): Aggregated fragments of the run.
        num_errors (int): Total number of per-record errors.
        stage_errors (list[int]): Error count of every executed stage.
        status (RunStatus): COMPLETED or CANCELLED.
        num_molecules (int): Number of distinct input molecules.
        elapsed_time (float): Wall time of the run in seconds.
    """

    def __init__(
        self,
        name,
        table,
        stage_errors,
        status,
        num_molecules,
        elapsed_time=0.0,
    ):
        self.name = name
        self.table = table
        self.stage_errors = list(stage_errors)
        self.status = status
        self.num_molecules = num_molecules
        self.elapsed_time = elapsed_time

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(name={self.name!r}, "
            f"status={self.status.value}, num_fragments={self.num_fragments}, "
            f"num_errors={self.num_errors})"
        )

    @property
    def num_errors(self) -> int:
        return sum(self.stage_errors)

    @property
    def num_fragments(self) -> int:
        return len(self.table)

    @property
    def completed(self) -> bool:
        return self.status is RunStatus.COMPLETED

    @property
    def cancelled(self) -> bool:
        return self.status is RunStatus.CANCELLED


class FragmentationService:
    """
    Runs fragmentations of molecule lists with parallel worker tasks.

    Attributes:
        settings (FragmentationSettings): Settings of this service.
        identity (Callable): Maps a fragment structure to its canonical
            key. Defaults to RDKit canonical SMILES.
        existing_fragmentation_names (list[str]): Run names used so far.
    """

    def __init__(
        self,
        settings: Optional[FragmentationSettings] = None,
        identity: Callable = canonical_smiles,
    ):
        if settings is None:
            settings = FragmentationSettings()
        self.settings = settings
        self.identity = identity
        self.existing_fragmentation_names: List[str] = []
        self._names_lock = threading.Lock()

    def __repr__(self):
        return f"{self.__class__.__name__}(settings={self.settings})"

    def disambiguate_name(self, name: str) -> str:
        """
        Reserve a unique run name.

        An already used name gets the first free suffix "_1", "_2", ...

        Args:
            name (str): Requested run name.

        Returns:
            str: The reserved name.
        """
        with self._names_lock:
            unique_name = name
            index = 0
            while unique_name in self.existing_fragmentation_names:
                index += 1
                unique_name = f"{name}_{index}"
            self.existing_fragmentation_names.append(unique_name)
        if unique_name != name:
            logger.info(
                f"Fragmentation name {name} already exists, "
                f"using {unique_name} instead."
            )
        return unique_name

    def _resolve_num_tasks(self, num_tasks):
        if num_tasks is None:
            return self.settings.num_tasks
        return FragmentationSettings.normalize_num_tasks(num_tasks)

    @staticmethod
    def _validate_molecules(molecules) -> List[MoleculeRecord]:
        if molecules is None:
            raise ConfigurationError("No molecules given.")
        molecules = list(molecules)
        if not molecules:
            raise ConfigurationError("Molecule list is empty.")
        if not all(isinstance(m, MoleculeRecord) for m in molecules):
            raise ConfigurationError(
                "All items must be MoleculeRecord instances."
            )
        unique_molecules = list(dict.fromkeys(molecules))
        if len(unique_molecules) != len(molecules):
            logger.warning(
                f"Ignoring {len(molecules) - len(unique_molecules)} "
                f"duplicate molecule records."
            )
        return unique_molecules

    @staticmethod
    def _validate_fragmenter(fragmenter) -> None:
        if fragmenter is None:
            raise ConfigurationError("No fragmenter given.")
        if not isinstance(fragmenter, Fragmenter):
            raise ConfigurationError(
                f"Expected a Fragmenter instance, got {type(fragmenter)}."
            )

    def run_stage(
        self,
        molecules: Sequence[MoleculeRecord],
        fragmenter: Fragmenter,
        fragmentation_name: str,
        num_tasks: int,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Fragment molecules with parallel tasks into a new table.

        Blocks until every task has returned. The name is used as given.

        Returns:
            Tuple[FragmentTable, int, bool]: The stage table, its error
                count and whether a task stopped before finishing its slice.
        """
        table = FragmentTable(num_shards=self.settings.num_shards)
        partitions = split_into_partitions(molecules, num_tasks)
        tasks = [
            FragmentationTask(
                molecules=partition,
                fragmenter=fragmenter.copy(),
                table=table,
                fragmentation_name=fragmentation_name,
                identity=self.identity,
                cancel_event=cancel_event,
            )
            for partition in partitions
        ]
        logger.info(
            f"Fragmenting {len(molecules)} molecules with {fragmenter.name} "
            f"in {len(tasks)} tasks ({fragmentation_name})."
        )
        if not tasks:
            return table, 0, False
        with ThreadPool(len(tasks)) as pool:
            error_counts = pool.map(lambda task: task(), tasks, chunksize=1)
        num_errors = sum(error_counts)
        interrupted = any(
            task.num_processed < len(task.molecules) for task in tasks
        )
        if num_errors > 0:
            logger.warning(
                f"{num_errors} errors occurred during fragmentation "
                f"{fragmentation_name} with {fragmenter.name}."
            )
        logger.info(
            f"Stage {fragmentation_name} ({fragmenter.name}) found "
            f"{len(table)} distinct fragments."
        )
        return table, num_errors, interrupted

    @staticmethod
    def _is_cancelled(cancel_event) -> bool:
        return cancel_event is not None and cancel_event.is_set()

    def run_single_stage(
        self,
        molecules: Sequence[MoleculeRecord],
        fragmenter: Fragmenter,
        num_tasks: Optional[int] = None,
        name: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> FragmentationResult:
        """
        Fragment molecules with one fragmenter.

        Args:
            molecules: Input molecules; fragments are stored on them under
                the run name.
            fragmenter (Fragmenter): Fragmenter, copied once per task.
            num_tasks (int): Number of parallel tasks. Defaults to the
                settings value; values below one are treated as one.
            name (str): Run name. Defaults to the fragmenter name.
            cancel_event (threading.Event): Set to stop the run early.

        Returns:
            FragmentationResult: Table, error count and status.

        Raises:
            ConfigurationError: For empty input or a missing fragmenter.
        """
        molecules = self._validate_molecules(molecules)
        self._validate_fragmenter(fragmenter)
        num_tasks = self._resolve_num_tasks(num_tasks)
        fragmentation_name = self.disambiguate_name(name or fragmenter.name)

        start_time = time.time()
        table, num_errors, interrupted = self.run_stage(
            molecules, fragmenter, fragmentation_name, num_tasks, cancel_event
        )
        if interrupted:
            status = RunStatus.CANCELLED
            logger.info(f"Fragmentation {fragmentation_name} was cancelled.")
        else:
            status = RunStatus.COMPLETED
            finalize_percentages(table, len(molecules))
        return FragmentationResult(
            name=fragmentation_name,
            table=table,
            stage_errors=[num_errors],
            status=status,
            num_molecules=len(molecules),
            elapsed_time=time.time() - start_time,
        )

    def run_pipeline(
        self,
        molecules: Sequence[MoleculeRecord],
        fragmenters: Sequence[Fragmenter],
        num_tasks: Optional[int] = None,
        name: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        keep_last_fragment: Optional[bool] = None,
    ) -> FragmentationResult:
        """
        Fragment molecules with a sequence of fragmenters.

        Stage i fragments the distinct fragments of stage i - 1. After every
        later stage the fragments of the original molecules are rebuilt by
        multiplying occurrence counts through the parent-child chains.

        Args:
            molecules: Original input molecules.
            fragmenters: Ordered fragmenters, one per stage.
            num_tasks (int): Number of parallel tasks per stage.
            name (str): Pipeline name. Defaults to the settings value.
            cancel_event (threading.Event): Set to stop the run early; no
                further stage starts once it is set.
            keep_last_fragment (bool): Keep fragments a later stage cannot
                decompose. Defaults to the settings value.

        Returns:
            FragmentationResult: Final table, total error count and status.
                A pipeline cancelled after its first stage returns the
                last fully re-attributed table.

        Raises:
            ConfigurationError: For empty input or an empty pipeline.
        """
        molecules = self._validate_molecules(molecules)
        fragmenters = list(fragmenters or [])
        if not fragmenters:
            raise ConfigurationError("Pipeline needs at least one fragmenter.")
        for fragmenter in fragmenters:
            self._validate_fragmenter(fragmenter)
        num_tasks = self._resolve_num_tasks(num_tasks)
        if keep_last_fragment is None:
            keep_last_fragment = self.settings.keep_last_fragment
        fragmentation_name = self.disambiguate_name(
            name or self.settings.pipeline_name
        )

        start_time = time.time()
        stage_errors = []
        table, num_errors, interrupted = self.run_stage(
            molecules,
            fragmenters[0],
            fragmentation_name,
            num_tasks,
            cancel_event,
        )
        stage_errors.append(num_errors)
        status = RunStatus.COMPLETED

        for stage_index, fragmenter in enumerate(fragmenters[1:], start=1):
            if interrupted or self._is_cancelled(cancel_event):
                interrupted = True
                break
            working_set = list(table.values())
            if not working_set:
                logger.info(
                    f"No fragments left after stage {stage_index} of "
                    f"{fragmentation_name}, skipping remaining stages."
                )
                break
            logger.info(
                f"Pipeline {fragmentation_name} stage {stage_index + 1}/"
                f"{len(fragmenters)}: {len(working_set)} fragments as input."
            )
            stage_table, num_errors, interrupted = self.run_stage(
                working_set,
                fragmenter,
                fragmentation_name,
                num_tasks,
                cancel_event,
            )
            stage_errors.append(num_errors)
            if interrupted:
                break
            table = reattribute_stage(
                molecules,
                fragmentation_name,
                stage_table,
                keep_last_fragment=keep_last_fragment,
                num_shards=self.settings.num_shards,
            )

        if interrupted:
            status = RunStatus.CANCELLED
            logger.info(f"Pipeline {fragmentation_name} was cancelled.")
        else:
            finalize_percentages(table, len(molecules))

        return FragmentationResult(
            name=fragmentation_name,
            table=table,
            stage_errors=stage_errors,
            status=status,
            num_molecules=len(molecules),
            elapsed_time=time.time() - start_time,
        )
