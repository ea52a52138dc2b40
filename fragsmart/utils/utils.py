"""
General utilities for fragsmart.

Contains the package exception hierarchy and the canonical identity
function used to deduplicate fragments across molecules.
"""

import logging

from rdkit import Chem

logger = logging.getLogger(__name__)


class FragmentationError(Exception):
    """
    Base exception for errors raised by the fragmentation core.

    Per-record failures deriving from this class are caught and counted
    by the worker tasks; they never abort a fragmentation batch.
    """

    pass


class MoleculeParseError(FragmentationError):
    """
    Exception raised when a molecule structure cannot be obtained.

    Used when a SMILES string cannot be parsed into a structure handle.
    """

    pass


class ConfigurationError(FragmentationError):
    """
    Exception raised for invalid fragmentation run configuration.

    Raised before any worker starts, e.g. for an empty molecule list,
    a missing fragmenter or an unknown settings key.
    """

    pass


def canonical_smiles(structure):
    """
    Compute the canonical identity key of a structure.

    Uses RDKit canonical isomeric SMILES so that two fragments with the
    same constitution map to the same key regardless of atom order.

    Args:
        structure (Chem.Mol): RDKit molecule to identify.

    Returns:
        str: Canonical SMILES string.

    Raises:
        FragmentationError: If the structure is None or has no atoms.
    """
    if structure is None:
        raise FragmentationError("Cannot compute identity of None structure.")
    if structure.GetNumAtoms() == 0:
        raise FragmentationError(
            "Cannot compute identity of a structure without atoms."
        )
    return Chem.MolToSmiles(structure)


def smiles_to_structure(smiles):
    """
    Parse a SMILES string into an RDKit molecule.

    Args:
        smiles (str): SMILES string.

    Returns:
        Chem.Mol: Parsed molecule.

    Raises:
        MoleculeParseError: If RDKit cannot parse the string.
    """
    if not smiles:
        raise MoleculeParseError("Empty SMILES string given.")
    structure = Chem.MolFromSmiles(smiles)
    if structure is None:
        raise MoleculeParseError(f"Could not parse SMILES: {smiles}")
    return structure
