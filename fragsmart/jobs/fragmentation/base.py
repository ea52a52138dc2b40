"""
Base classes for molecule fragmentation algorithms.

This module contains the capability interface shared by all fragmenters:
- FragmenterType: Tag identifying the concrete fragmenter variant
- FilterVerdict: Pre-flight result of a structure check
- FragmentSaturationOption: Treatment of open valences on fragments
- Fragmenter: Abstract base class for all fragmenter implementations
"""

import copy
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List

from rdkit import Chem

logger = logging.getLogger(__name__)


class FragmenterType(Enum):
    """Tags of the available fragmenter variants."""

    COMPONENTS = "components"
    RECAP = "recap"
    BRICS = "brics"
    MURCKO = "murcko"


class FilterVerdict(Enum):
    """Result of checking a structure before decomposition."""

    DECOMPOSABLE = "decomposable"
    NEEDS_PREPROCESSING = "needs_preprocessing"
    FILTERED = "filtered"


class FragmentSaturationOption(Enum):
    """How open valences left by bond cleavage are treated."""

    NO_SATURATION = "no_saturation"
    HYDROGEN_SATURATION = "hydrogen_saturation"


def saturate_with_hydrogen(fragment: Chem.Mol) -> Chem.Mol:
    """
    Replace dummy atoms of a fragment with hydrogens.

    Dummy atoms mark the attachment points left by bond cleavage. They
    are turned into hydrogens, which are then made implicit.

    Args:
        fragment (Chem.Mol): Fragment possibly containing dummy atoms.

    Returns:
        Chem.Mol: New molecule without dummy atoms.
    """
    saturated = Chem.RWMol(fragment)
    for atom in saturated.GetAtoms():
        if atom.GetAtomicNum() == 0:
            atom.SetAtomicNum(1)
            atom.SetIsotope(0)
            atom.SetFormalCharge(0)
            atom.SetNoImplicit(False)
    saturated = saturated.GetMol()
    Chem.SanitizeMol(saturated)
    return Chem.RemoveHs(saturated)


class Fragmenter(ABC):
    """
    Abstract base class for fragmentation algorithms.

    A fragmenter decides whether a structure can be decomposed, optionally
    preprocesses it, and returns its fragments. Every worker task gets its
    own copy (see `copy`), so implementations do not need to be thread
    safe.

    Attributes:
        TYPE (FragmenterType): Tag of the concrete variant.
        NAME (str): Algorithm name, used as default run name.
        fragment_saturation (FragmentSaturationOption): Treatment of
            open valences on the returned fragments.
    """

    TYPE = None
    NAME = None
    DEFAULT_FRAGMENT_SATURATION = FragmentSaturationOption.HYDROGEN_SATURATION

    def __init__(self, fragment_saturation=None):
        self.fragment_saturation = self.DEFAULT_FRAGMENT_SATURATION
        if fragment_saturation is not None:
            self.set_fragment_saturation(fragment_saturation)

    def __repr__(self):
        return (
            f"{self.__class__.__name__}("
            f"fragment_saturation={self.fragment_saturation.value})"
        )

    @property
    def name(self) -> str:
        if self.NAME is not None:
            return self.NAME
        return self.__class__.__name__

    def set_fragment_saturation(self, option) -> None:
        """
        Set the fragment saturation option.

        Args:
            option (FragmentSaturationOption | str): Option or its value.

        Raises:
            ValueError: If the option name is unknown.
        """
        if isinstance(option, str):
            option = FragmentSaturationOption(option.lower())
        if not isinstance(option, FragmentSaturationOption):
            raise TypeError(
                f"Expected FragmentSaturationOption, got {type(option)}"
            )
        self.fragment_saturation = option

    def restore_default_settings(self) -> None:
        self.fragment_saturation = self.DEFAULT_FRAGMENT_SATURATION

    def copy(self) -> "Fragmenter":
        """Independent copy for use by one worker task."""
        return copy.deepcopy(self)

    def should_filter(self, structure) -> bool:
        """True if the structure cannot be decomposed at all."""
        return False

    def should_preprocess(self, structure) -> bool:
        return False

    def preprocess(self, structure):
        """Return a structure suitable for `decompose`."""
        return structure

    def assess(self, structure) -> FilterVerdict:
        """
        Combine the pre-flight checks into one verdict.

        Args:
            structure: Structure handle of the molecule.

        Returns:
            FilterVerdict: FILTERED, NEEDS_PREPROCESSING or DECOMPOSABLE.
        """
        if self.should_filter(structure):
            return FilterVerdict.FILTERED
        if self.should_preprocess(structure):
            return FilterVerdict.NEEDS_PREPROCESSING
        return FilterVerdict.DECOMPOSABLE

    @abstractmethod
    def decompose(self, structure) -> List:
        """
        Decompose a structure into fragments.

        Must be implemented by subclasses. One list entry per fragment
        occurrence; the same fragment may appear several times.

        Args:
            structure: Structure handle of the molecule.

        Returns:
            list: Fragment structure handles.
        """
        pass

    def _finalize_fragment(self, fragment):
        if (
            self.fragment_saturation
            is FragmentSaturationOption.HYDROGEN_SATURATION
        ):
            return saturate_with_hydrogen(fragment)
        return fragment
