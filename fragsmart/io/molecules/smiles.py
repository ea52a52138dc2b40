"""
Reader for plain SMILES list files.

Each non-empty line holds a SMILES string optionally followed by a name,
separated by whitespace. Lines starting with '#' are comments.
"""

import logging
from functools import cached_property

from fragsmart.io.molecules.structure import MoleculeRecord
from fragsmart.utils.mixins import FileMixin

logger = logging.getLogger(__name__)


class SMILESFile(FileMixin):
    """
    SMILES list file.

    Structures are not parsed here; parsing happens lazily in the worker
    tasks so that a broken SMILES string only costs one record.
    """

    def __init__(self, filename):
        self.filename = filename

    @cached_property
    def molecules(self):
        """
        Molecule records in file order.

        Unnamed entries get "<basename>_<line number>" as name.

        Returns:
            list[MoleculeRecord]: One record per SMILES line.
        """
        molecules = []
        for i, line in enumerate(self.contents, start=1):
            if not line or line.startswith("#"):
                continue
            parts = line.split(maxsplit=1)
            smiles = parts[0]
            name = parts[1] if len(parts) > 1 else f"{self.basename}_{i}"
            molecules.append(MoleculeRecord(name=name, smiles=smiles))
        logger.debug(
            f"Read {len(molecules)} molecules from {self.filepath}"
        )
        return molecules

    def get_molecules(self):
        return list(self.molecules)
