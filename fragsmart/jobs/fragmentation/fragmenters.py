"""
RDKit based fragmenter implementations.

Supported fragmenter types:
- "components": disconnected components of a structure
- "recap": RECAP retrosynthetic leaves
- "brics": BRICS bond breaking, every piece counted
- "murcko": Bemis-Murcko scaffold
"""

import logging
from typing import List

from rdkit import Chem
from rdkit.Chem import BRICS, Recap
from rdkit.Chem.Scaffolds import MurckoScaffold

from .base import Fragmenter, FragmenterType

logger = logging.getLogger(__name__)


def largest_component(structure: Chem.Mol) -> Chem.Mol:
    """Largest disconnected component by heavy atom count."""
    components = Chem.GetMolFrags(structure, asMols=True)
    return max(components, key=lambda mol: mol.GetNumHeavyAtoms())


class RDKitFragmenter(Fragmenter):
    """
    Common checks for fragmenters operating on RDKit molecules.

    Structures without atoms are filtered. Multi-component structures
    are reduced to their largest component when
    `REQUIRES_SINGLE_COMPONENT` is set.
    """

    REQUIRES_SINGLE_COMPONENT = True

    def should_filter(self, structure) -> bool:
        return structure is None or structure.GetNumAtoms() == 0

    def should_preprocess(self, structure) -> bool:
        if not self.REQUIRES_SINGLE_COMPONENT:
            return False
        return len(Chem.GetMolFrags(structure)) > 1

    def preprocess(self, structure):
        preprocessed = largest_component(structure)
        logger.debug(
            f"Kept largest component with {preprocessed.GetNumAtoms()} "
            f"of {structure.GetNumAtoms()} atoms."
        )
        return preprocessed


class ComponentsFragmenter(RDKitFragmenter):
    """Splits a structure into its disconnected components."""

    TYPE = FragmenterType.COMPONENTS
    NAME = "Components"
    REQUIRES_SINGLE_COMPONENT = False

    def decompose(self, structure) -> List[Chem.Mol]:
        return list(Chem.GetMolFrags(structure, asMols=True))


class RECAPFragmenter(RDKitFragmenter):
    """
    RECAP fragmentation.

    Returns the leaves of the RECAP hierarchy, or the whole structure when
    no RECAP rule applies. RDKit keys the hierarchy by SMILES, so a leaf
    that occurs several times in a molecule is returned once: RECAP
    frequencies record presence, not multiplicity. Use BRICS to count
    repeated pieces.
    """

    TYPE = FragmenterType.RECAP
    NAME = "RECAP"

    def __init__(self, min_fragment_size=0, **kwargs):
        super().__init__(**kwargs)
        self.min_fragment_size = min_fragment_size

    def restore_default_settings(self) -> None:
        super().restore_default_settings()
        self.min_fragment_size = 0

    def decompose(self, structure) -> List[Chem.Mol]:
        hierarchy = Recap.RecapDecompose(
            structure, minFragmentSize=self.min_fragment_size
        )
        leaves = hierarchy.GetLeaves()
        if not leaves:
            return [Chem.Mol(structure)]
        return [
            self._finalize_fragment(node.mol) for node in leaves.values()
        ]


class BRICSFragmenter(RDKitFragmenter):
    """BRICS fragmentation keeping every piece of the broken structure."""

    TYPE = FragmenterType.BRICS
    NAME = "BRICS"

    def decompose(self, structure) -> List[Chem.Mol]:
        broken = BRICS.BreakBRICSBonds(structure)
        pieces = Chem.GetMolFrags(broken, asMols=True)
        return [self._finalize_fragment(piece) for piece in pieces]


class MurckoScaffoldFragmenter(RDKitFragmenter):
    """Bemis-Murcko scaffold; acyclic structures have no scaffold."""

    TYPE = FragmenterType.MURCKO
    NAME = "Murcko"

    def decompose(self, structure) -> List[Chem.Mol]:
        scaffold = MurckoScaffold.GetScaffoldForMol(structure)
        if scaffold.GetNumAtoms() == 0:
            return []
        return [scaffold]


class FragmenterFactory:
    """Creates fragmenters from their type tag."""

    FRAGMENTER_CLASSES = {
        FragmenterType.COMPONENTS: ComponentsFragmenter,
        FragmenterType.RECAP: RECAPFragmenter,
        FragmenterType.BRICS: BRICSFragmenter,
        FragmenterType.MURCKO: MurckoScaffoldFragmenter,
    }

    @classmethod
    def available(cls):
        return [
            fragmenter_type.value for fragmenter_type in cls.FRAGMENTER_CLASSES
        ]

    @classmethod
    def create(cls, fragmenter_type, **kwargs) -> Fragmenter:
        """
        Create a fragmenter.

        Args:
            fragmenter_type (FragmenterType | str): Tag or its value,
                e.g. "recap".
            **kwargs: Fragmenter specific options.

        Returns:
            Fragmenter: New fragmenter instance.

        Raises:
            ValueError: If the type is unknown.
        """
        if isinstance(fragmenter_type, str):
            try:
                fragmenter_type = FragmenterType(fragmenter_type.lower())
            except ValueError:
                raise ValueError(
                    f"Unknown fragmenter type: {fragmenter_type}. "
                    f"Available: {cls.available()}"
                ) from None
        if fragmenter_type not in cls.FRAGMENTER_CLASSES:
            raise ValueError(f"Unknown fragmenter type: {fragmenter_type}")
        return cls.FRAGMENTER_CLASSES[fragmenter_type](**kwargs)
