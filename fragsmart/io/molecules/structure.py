"""
Molecule and fragment records for fragmentation runs.

A MoleculeRecord owns the fragments found for it by every fragmentation
run, keyed by run name. A FragmentRecord is the deduplicated entry of an
aggregation table; it is itself a MoleculeRecord so that the fragments of
one pipeline stage can be fed into the next one.
"""

import logging
from typing import Dict, List, Optional

from fragsmart.utils.utils import smiles_to_structure

logger = logging.getLogger(__name__)


class MoleculeRecord:
    """
    Input record of a fragmentation run.

    The structure handle is opaque to the fragmentation core. When only a
    SMILES string is known, the structure is parsed with RDKit on demand.
    Records hash by identity so they can be collected in the parent sets
    of fragment records.

    Attributes:
        name (str): Display name of the molecule.
        smiles (str): SMILES string, if known.
        fragments_by_stage (dict): Run name -> fragments of this molecule,
            one entry per distinct fragment in first-seen order.
        frequencies_by_stage (dict): Run name -> {fragment key: number of
            occurrences of that fragment within this molecule}.
    """

    DEFAULT_NAME = "NoName"

    def __init__(self, name=None, smiles=None, structure=None):
        """
        Initialize a molecule record.

        Args:
            name (str): Display name. Defaults to "NoName".
            smiles (str): SMILES string used to build the structure when
                no structure handle is given.
            structure: Opaque structure handle (usually an RDKit Mol).
        """
        self._name = name
        self.smiles = smiles
        self._structure = structure
        self.fragments_by_stage: Dict[str, List["FragmentRecord"]] = {}
        self.frequencies_by_stage: Dict[str, Dict[str, int]] = {}

    def __repr__(self):
        return f"{self.__class__.__name__}(name={self.name!r})"

    @property
    def name(self):
        if not self._name:
            return self.DEFAULT_NAME
        return self._name

    @name.setter
    def name(self, value):
        self._name = value

    @property
    def structure(self):
        """The structure handle as given, without parsing."""
        return self._structure

    def get_structure(self):
        """
        Get the structure handle of this molecule.

        Returns:
            The structure handle, parsed from SMILES if necessary.

        Raises:
            MoleculeParseError: If no structure is set and the SMILES
                string cannot be parsed.
        """
        if self._structure is not None:
            return self._structure
        return smiles_to_structure(self.smiles)

    def set_fragments(
        self,
        fragmentation_name: str,
        fragments: List["FragmentRecord"],
        frequencies: Dict[str, int],
    ) -> None:
        """Attach the fragments of one run, replacing earlier entries."""
        self.fragments_by_stage[fragmentation_name] = fragments
        self.frequencies_by_stage[fragmentation_name] = frequencies

    def get_fragments(
        self, fragmentation_name: str
    ) -> Optional[List["FragmentRecord"]]:
        return self.fragments_by_stage.get(fragmentation_name)

    def get_fragment_frequencies(
        self, fragmentation_name: str
    ) -> Optional[Dict[str, int]]:
        return self.frequencies_by_stage.get(fragmentation_name)

    def has_fragments(self, fragmentation_name: str) -> bool:
        """True if the run produced at least one fragment for this molecule."""
        return bool(self.fragments_by_stage.get(fragmentation_name))

    def remove_fragments(self, fragmentation_name: str) -> None:
        self.fragments_by_stage.pop(fragmentation_name, None)
        self.frequencies_by_stage.pop(fragmentation_name, None)


class FragmentRecord(MoleculeRecord):
    """
    Deduplicated fragment entry of an aggregation table.

    Frequencies are only mutated through FragmentTable, which serializes
    updates per key. Percentages are None until a run is finalized.

    Attributes:
        key (str): Canonical identity of the fragment, immutable.
        absolute_frequency (int): Occurrences across all molecules.
        molecule_frequency (int): Number of distinct parent molecules.
        parent_molecules (set): Molecules containing this fragment.
        absolute_percentage (float): Share of all fragment occurrences.
        molecule_percentage (float): Share of all molecules.
    """

    def __init__(self, key: str, structure=None):
        super().__init__(name=key, smiles=key, structure=structure)
        self._key = key
        self.absolute_frequency = 0
        self.molecule_frequency = 0
        self.parent_molecules = set()
        self.absolute_percentage: Optional[float] = None
        self.molecule_percentage: Optional[float] = None

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(key={self._key!r}, "
            f"absolute_frequency={self.absolute_frequency}, "
            f"molecule_frequency={self.molecule_frequency})"
        )

    @property
    def key(self):
        return self._key

    def add_occurrences(self, molecule: MoleculeRecord, count: int = 1):
        """
        Count occurrences of this fragment in a molecule.

        The molecule frequency grows only the first time a given molecule
        is seen. Callers must hold the table lock guarding this key.
        """
        self.absolute_frequency += count
        if molecule not in self.parent_molecules:
            self.parent_molecules.add(molecule)
            self.molecule_frequency += 1
