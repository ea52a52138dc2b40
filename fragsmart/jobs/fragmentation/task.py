"""
Worker task fragmenting one slice of molecules.
"""

import logging
import threading
from typing import Callable, List, Optional

from fragsmart.io.molecules.structure import MoleculeRecord

from .base import FilterVerdict, Fragmenter
from .table import FragmentTable

logger = logging.getLogger(__name__)


class FragmentationTask:
    """
    Fragments a slice of molecules into a shared FragmentTable.

    The task owns its molecule slice and its fragmenter instance for the
    duration of a stage; the table is the only object shared with other
    tasks. Errors of single molecules or fragments are logged and counted,
    they never abort the task.

    Attributes:
        molecules (list[MoleculeRecord]): Slice processed by this task.
        fragmenter (Fragmenter): Fragmenter instance owned by this task.
        table (FragmentTable): Aggregation table shared by the stage.
        fragmentation_name (str): Name the fragments are stored under.
        identity (Callable): Maps a fragment structure to its key.
        cancel_event (threading.Event): Cooperative cancellation signal.
        num_processed (int): Molecules handled so far.
    """

    def __init__(
        self,
        molecules: List[MoleculeRecord],
        fragmenter: Fragmenter,
        table: FragmentTable,
        fragmentation_name: str,
        identity: Callable,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.molecules = molecules
        self.fragmenter = fragmenter
        self.table = table
        self.fragmentation_name = fragmentation_name
        self.identity = identity
        self.cancel_event = cancel_event
        self.num_processed = 0

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(num_molecules={len(self.molecules)}, "
            f"fragmenter={self.fragmenter.name}, "
            f"fragmentation_name={self.fragmentation_name!r})"
        )

    @property
    def cancelled(self):
        return self.cancel_event is not None and self.cancel_event.is_set()

    def __call__(self) -> int:
        """
        Process all molecules of the slice.

        Returns:
            int: Number of errors encountered. When cancelled, the errors
                counted up to that point.
        """
        num_errors = 0
        for molecule in self.molecules:
            if self.cancelled:
                logger.info(
                    f"Fragmentation task cancelled after "
                    f"{self.num_processed} of {len(self.molecules)} molecules."
                )
                break
            num_errors += self._fragment_molecule(molecule)
            self.num_processed += 1
        return num_errors

    def _store_empty(self, molecule: MoleculeRecord) -> None:
        molecule.set_fragments(self.fragmentation_name, [], {})

    def _fragment_molecule(self, molecule: MoleculeRecord) -> int:
        """Fragment one molecule and return the number of errors."""
        try:
            structure = molecule.get_structure()
        except Exception as e:
            logger.error(
                f"Could not obtain structure of molecule {molecule.name}: {e}"
            )
            return 1

        try:
            verdict = self.fragmenter.assess(structure)
            if verdict is FilterVerdict.FILTERED:
                logger.debug(f"Molecule {molecule.name} is filtered.")
                self._store_empty(molecule)
                return 0
            if verdict is FilterVerdict.NEEDS_PREPROCESSING:
                structure = self.fragmenter.preprocess(structure)
            fragments = self.fragmenter.decompose(structure)
        except Exception as e:
            logger.error(
                f"Fragmentation of molecule {molecule.name} failed: {e}"
            )
            self._store_empty(molecule)
            return 1

        num_errors = 0
        fragment_records = []
        frequencies = {}
        for fragment in fragments:
            try:
                key = self.identity(fragment)
            except Exception as e:
                logger.error(
                    f"Could not compute identity of a fragment of molecule "
                    f"{molecule.name}: {e}"
                )
                num_errors += 1
                continue
            record = self.table.resolve_and_increment(
                key, molecule, structure=fragment
            )
            if key in frequencies:
                frequencies[key] += 1
            else:
                frequencies[key] = 1
                fragment_records.append(record)
        molecule.set_fragments(
            self.fragmentation_name, fragment_records, frequencies
        )
        return num_errors
