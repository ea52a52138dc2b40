import pytest

from fragsmart.io.molecules.smiles import SMILESFile
from fragsmart.io.molecules.structure import FragmentRecord, MoleculeRecord
from fragsmart.utils.utils import MoleculeParseError


class TestSMILESFile:
    def test_read_molecules(self, drugs_smiles_file):
        smiles_file = SMILESFile(filename=drugs_smiles_file)
        molecules = smiles_file.get_molecules()
        assert len(molecules) == 7
        assert [m.name for m in molecules[:5]] == [
            "aspirin",
            "ibuprofen",
            "caffeine",
            "paracetamol",
            "ethanol",
        ]
        assert molecules[0].smiles == "CC(=O)Oc1ccccc1C(=O)O"
        # unnamed entries are named after the file and line
        assert molecules[-1].name == "drugs_9"
        assert molecules[-1].smiles == "Cc1ccccc1"

    def test_structures_are_parsed_lazily(self, drugs_smiles_file):
        molecules = SMILESFile(filename=drugs_smiles_file).get_molecules()
        broken = molecules[5]
        assert broken.name == "broken"
        assert broken.structure is None
        with pytest.raises(MoleculeParseError):
            broken.get_structure()
        assert molecules[0].get_structure().GetNumAtoms() == 13

    def test_names_with_spaces(self, tmpdir):
        smiles_file = tmpdir.join("named.smi")
        smiles_file.write("CCO  ethyl alcohol\n\n# comment\nC\n")
        molecules = SMILESFile(filename=str(smiles_file)).get_molecules()
        assert [m.name for m in molecules] == ["ethyl alcohol", "named_4"]


class TestMoleculeRecord:
    def test_default_name(self):
        assert MoleculeRecord().name == "NoName"
        assert MoleculeRecord(name="x").name == "x"

    def test_fragment_storage(self):
        molecule = MoleculeRecord(name="m", structure="A.B")
        fragment = FragmentRecord("A", structure="A")
        assert not molecule.has_fragments("run")
        assert molecule.get_fragments("run") is None
        molecule.set_fragments("run", [fragment], {"A": 2})
        assert molecule.has_fragments("run")
        assert molecule.get_fragments("run") == [fragment]
        assert molecule.get_fragment_frequencies("run") == {"A": 2}
        molecule.remove_fragments("run")
        assert molecule.get_fragments("run") is None

    def test_fragment_record_is_a_molecule(self):
        fragment = FragmentRecord("CCO")
        assert isinstance(fragment, MoleculeRecord)
        assert fragment.key == "CCO"
        assert fragment.name == "CCO"
        # without a stored structure the key is parsed as SMILES
        assert fragment.get_structure().GetNumAtoms() == 3

    def test_records_hash_by_identity(self):
        first = MoleculeRecord(name="same", smiles="C")
        second = MoleculeRecord(name="same", smiles="C")
        assert first != second
        assert len({first, second}) == 2
