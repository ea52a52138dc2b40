import pytest
from rdkit import Chem

from fragsmart.jobs.fragmentation.base import (
    FilterVerdict,
    FragmenterType,
    FragmentSaturationOption,
    saturate_with_hydrogen,
)
from fragsmart.jobs.fragmentation.fragmenters import (
    BRICSFragmenter,
    ComponentsFragmenter,
    FragmenterFactory,
    MurckoScaffoldFragmenter,
    RECAPFragmenter,
)
from fragsmart.utils.utils import (
    FragmentationError,
    MoleculeParseError,
    canonical_smiles,
    smiles_to_structure,
)


def keys(fragments):
    return sorted(canonical_smiles(fragment) for fragment in fragments)


class TestIdentity:
    def test_canonical_smiles_is_order_independent(self):
        ethanol = Chem.MolFromSmiles("CCO")
        reordered = Chem.MolFromSmiles("OCC")
        assert canonical_smiles(reordered) == canonical_smiles(ethanol)

    def test_canonical_smiles_invalid(self):
        with pytest.raises(FragmentationError):
            canonical_smiles(None)
        with pytest.raises(FragmentationError):
            canonical_smiles(Chem.Mol())

    def test_smiles_to_structure(self):
        assert smiles_to_structure("c1ccccc1").GetNumAtoms() == 6
        with pytest.raises(MoleculeParseError):
            smiles_to_structure("C1CC")
        with pytest.raises(MoleculeParseError):
            smiles_to_structure("")


class TestFragmenters:
    def test_components(self):
        fragmenter = ComponentsFragmenter()
        structure = Chem.MolFromSmiles("CCO.CCO.C")
        assert fragmenter.assess(structure) is FilterVerdict.DECOMPOSABLE
        assert keys(fragmenter.decompose(structure)) == ["C", "CCO", "CCO"]

    def test_murcko_scaffold(self):
        fragmenter = MurckoScaffoldFragmenter()
        fragments = fragmenter.decompose(Chem.MolFromSmiles("Cc1ccccc1"))
        assert keys(fragments) == ["c1ccccc1"]
        assert fragmenter.decompose(Chem.MolFromSmiles("CCO")) == []

    def test_multi_component_needs_preprocessing(self):
        fragmenter = MurckoScaffoldFragmenter()
        structure = Chem.MolFromSmiles("[Na+].Cc1ccccc1")
        assert (
            fragmenter.assess(structure) is FilterVerdict.NEEDS_PREPROCESSING
        )
        preprocessed = fragmenter.preprocess(structure)
        assert canonical_smiles(preprocessed) == "Cc1ccccc1"

    def test_empty_structure_is_filtered(self):
        assert RECAPFragmenter().assess(Chem.Mol()) is FilterVerdict.FILTERED

    def test_recap_with_hydrogen_saturation(self):
        fragmenter = RECAPFragmenter()
        fragments = fragmenter.decompose(
            Chem.MolFromSmiles("CC(=O)Nc1ccc(O)cc1")
        )
        assert len(fragments) >= 2
        for fragment in fragments:
            assert "*" not in canonical_smiles(fragment)

    def test_recap_without_saturation_keeps_attachment_points(self):
        fragmenter = RECAPFragmenter(
            fragment_saturation=FragmentSaturationOption.NO_SATURATION
        )
        fragments = fragmenter.decompose(
            Chem.MolFromSmiles("CC(=O)Nc1ccc(O)cc1")
        )
        assert any("*" in canonical_smiles(f) for f in fragments)

    def test_recap_no_rule_returns_structure(self):
        fragments = RECAPFragmenter().decompose(Chem.MolFromSmiles("CCCC"))
        assert keys(fragments) == ["CCCC"]

    def test_recap_repeated_leaves_are_counted_once(self):
        diethyl_succinate = Chem.MolFromSmiles("CCOC(=O)CCC(=O)OCC")
        recap_keys = keys(RECAPFragmenter().decompose(diethyl_succinate))
        assert "CCO" in recap_keys
        assert len(recap_keys) == len(set(recap_keys))

        brics_keys = keys(BRICSFragmenter().decompose(diethyl_succinate))
        assert len(brics_keys) > len(set(brics_keys))

    def test_brics_counts_every_piece(self):
        fragmenter = BRICSFragmenter()
        structure = Chem.MolFromSmiles("CC(=O)Oc1ccccc1C(=O)O")
        fragments = fragmenter.decompose(structure)
        assert len(fragments) >= 2
        for fragment in fragments:
            assert "*" not in canonical_smiles(fragment)

    def test_saturate_with_hydrogen(self):
        phenyl = Chem.MolFromSmiles("[1*]c1ccccc1")
        saturated = saturate_with_hydrogen(phenyl)
        assert canonical_smiles(saturated) == "c1ccccc1"

    def test_set_fragment_saturation(self):
        fragmenter = BRICSFragmenter()
        assert (
            fragmenter.fragment_saturation
            is FragmentSaturationOption.HYDROGEN_SATURATION
        )
        fragmenter.set_fragment_saturation("no_saturation")
        assert (
            fragmenter.fragment_saturation
            is FragmentSaturationOption.NO_SATURATION
        )
        with pytest.raises(ValueError):
            fragmenter.set_fragment_saturation("carbon_saturation")
        fragmenter.restore_default_settings()
        assert (
            fragmenter.fragment_saturation
            is FragmentSaturationOption.HYDROGEN_SATURATION
        )

    def test_copy_is_independent(self):
        fragmenter = RECAPFragmenter(min_fragment_size=3)
        copied = fragmenter.copy()
        assert copied is not fragmenter
        assert copied.min_fragment_size == 3
        copied.min_fragment_size = 5
        assert fragmenter.min_fragment_size == 3


class TestFragmenterFactory:
    def test_available(self):
        assert FragmenterFactory.available() == [
            "components",
            "recap",
            "brics",
            "murcko",
        ]

    @pytest.mark.parametrize(
        "fragmenter_type,expected",
        [
            ("components", ComponentsFragmenter),
            ("RECAP", RECAPFragmenter),
            (FragmenterType.BRICS, BRICSFragmenter),
            ("murcko", MurckoScaffoldFragmenter),
        ],
    )
    def test_create(self, fragmenter_type, expected):
        fragmenter = FragmenterFactory.create(fragmenter_type)
        assert isinstance(fragmenter, expected)
        assert fragmenter.TYPE is expected.TYPE

    def test_create_with_options(self):
        fragmenter = FragmenterFactory.create(
            "recap", min_fragment_size=2, fragment_saturation="no_saturation"
        )
        assert fragmenter.min_fragment_size == 2
        assert (
            fragmenter.fragment_saturation
            is FragmentSaturationOption.NO_SATURATION
        )

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            FragmenterFactory.create("unknown")
