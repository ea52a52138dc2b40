import os
import threading

import pytest

from fragsmart.io.molecules.structure import MoleculeRecord
from fragsmart.jobs.fragmentation.base import Fragmenter
from fragsmart.settings.fragmentation import FragmentationSettings
from fragsmart.utils.utils import FragmentationError


############ String Fragmenters ##################
# Structures in these fixtures are plain strings: a molecule "A.B.B" is
# decomposed into the fragments "A", "B" and "B".
def string_identity(structure):
    if not isinstance(structure, str) or not structure:
        raise FragmentationError(f"Invalid fragment structure: {structure!r}")
    return structure


class SplitFragmenter(Fragmenter):
    """Splits a structure string on '.'; a structure without '.' is kept."""

    NAME = "Split"

    def __init__(self, fail_on=None, filter_on=None, **kwargs):
        super().__init__(**kwargs)
        self.fail_on = set(fail_on or [])
        self.filter_on = set(filter_on or [])

    def should_filter(self, structure):
        return structure in self.filter_on

    def should_preprocess(self, structure):
        return structure.startswith("salt:")

    def preprocess(self, structure):
        return structure[len("salt:") :]

    def decompose(self, structure):
        if structure in self.fail_on:
            raise FragmentationError(f"Cannot decompose {structure}")
        return structure.split(".")


class RecipeFragmenter(Fragmenter):
    """Decomposes structures by a fixed lookup table."""

    NAME = "Recipe"

    def __init__(self, recipes, **kwargs):
        super().__init__(**kwargs)
        self.recipes = recipes

    def decompose(self, structure):
        return list(self.recipes.get(structure, []))


class CancellingFragmenter(SplitFragmenter):
    """Sets a cancel event after a number of decompositions."""

    NAME = "Cancelling"

    def __init__(self, cancel_event, cancel_after, counter, **kwargs):
        super().__init__(**kwargs)
        self.cancel_event = cancel_event
        self.cancel_after = cancel_after
        self.counter = counter

    def __deepcopy__(self, memo):
        # every task copy must share the event and the call counter
        return CancellingFragmenter(
            self.cancel_event, self.cancel_after, self.counter
        )

    def decompose(self, structure):
        with self.counter["lock"]:
            self.counter["calls"] += 1
            if self.counter["calls"] >= self.cancel_after:
                self.cancel_event.set()
        return super().decompose(structure)


def make_molecules(structures):
    return [
        MoleculeRecord(name=f"mol_{i}", structure=structure)
        for i, structure in enumerate(structures, start=1)
    ]


@pytest.fixture()
def split_fragmenter():
    return SplitFragmenter()


@pytest.fixture()
def simple_molecules():
    return make_molecules(["A.B.B", "B.C", "A.A.A", "C"])


@pytest.fixture()
def many_molecules():
    structures = [
        ".".join(f"F{(i * j) % 17}" for j in range(1, i % 5 + 2))
        for i in range(200)
    ]
    return make_molecules(structures)


@pytest.fixture()
def cancel_counter():
    return {"calls": 0, "lock": threading.Lock()}


@pytest.fixture()
def default_settings():
    return FragmentationSettings(num_tasks=4)


############ Data Fixtures ##################
@pytest.fixture()
def test_data_directory():
    current_directory = os.path.dirname(os.path.abspath(__file__))
    return os.path.abspath(os.path.join(current_directory, "data"))


@pytest.fixture()
def drugs_smiles_file(test_data_directory):
    return os.path.join(test_data_directory, "drugs.smi")


@pytest.fixture()
def settings_yaml_file(test_data_directory):
    return os.path.join(test_data_directory, "settings.yaml")
