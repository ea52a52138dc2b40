import threading

import pytest
from conftest import (
    CancellingFragmenter,
    SplitFragmenter,
    make_molecules,
    string_identity,
)

from fragsmart.jobs.fragmentation.runner import (
    FragmentationService,
    RunStatus,
)
from fragsmart.settings.fragmentation import FragmentationSettings
from fragsmart.utils.utils import ConfigurationError


@pytest.fixture()
def service():
    return FragmentationService(
        settings=FragmentationSettings(num_tasks=4), identity=string_identity
    )


class TestSingleStage:
    def test_simple_run(self, service, simple_molecules, split_fragmenter):
        result = service.run_single_stage(simple_molecules, split_fragmenter)
        assert result.status is RunStatus.COMPLETED
        assert result.completed
        assert result.name == "Split"
        assert result.num_errors == 0
        assert result.num_molecules == 4
        assert result.table.snapshot() == {
            "A": (4, 2),
            "B": (3, 2),
            "C": (2, 2),
        }
        record = result.table["A"]
        assert record.absolute_percentage == pytest.approx(4 / 9)
        assert record.molecule_percentage == pytest.approx(2 / 4)
        assert simple_molecules[0].get_fragment_frequencies("Split") == {
            "A": 1,
            "B": 2,
        }

    @pytest.mark.parametrize("num_tasks", [2, 3, 8, 64])
    def test_result_independent_of_worker_count(
        self, many_molecules, num_tasks
    ):
        sequential = FragmentationService(identity=string_identity)
        parallel = FragmentationService(identity=string_identity)
        molecules_1 = make_molecules([m.structure for m in many_molecules])
        molecules_n = make_molecules([m.structure for m in many_molecules])

        result_1 = sequential.run_single_stage(
            molecules_1, SplitFragmenter(), num_tasks=1
        )
        result_n = parallel.run_single_stage(
            molecules_n, SplitFragmenter(), num_tasks=num_tasks
        )
        assert result_1.table.snapshot() == result_n.table.snapshot()
        for m1, mn in zip(molecules_1, molecules_n):
            assert m1.get_fragment_frequencies(
                "Split"
            ) == mn.get_fragment_frequencies("Split")

    def test_frequency_conservation(
        self, service, many_molecules, split_fragmenter
    ):
        result = service.run_single_stage(many_molecules, split_fragmenter)
        total = sum(
            sum(m.get_fragment_frequencies("Split").values())
            for m in many_molecules
        )
        assert result.table.total_absolute_frequency() == total
        for record in result.table.values():
            assert 1 <= record.molecule_frequency <= len(many_molecules)
            assert record.molecule_frequency <= record.absolute_frequency
            assert record.molecule_frequency == len(record.parent_molecules)

    def test_error_isolation(self, service):
        structures = [f"A{i}.B" for i in range(10)]
        molecules = make_molecules(structures)
        fragmenter = SplitFragmenter(fail_on=[structures[2]])
        result = service.run_single_stage(molecules, fragmenter, num_tasks=3)
        assert result.completed
        assert result.num_errors == 1
        with_fragments = [m for m in molecules if m.has_fragments("Split")]
        assert len(with_fragments) == 9
        assert molecules[2] not in with_fragments
        assert result.table["B"].molecule_frequency == 9

    def test_cancellation(self, cancel_counter):
        service = FragmentationService(identity=string_identity)
        molecules = make_molecules([f"K{i % 37}.S" for i in range(1000)])
        cancel_event = threading.Event()
        fragmenter = CancellingFragmenter(
            cancel_event, cancel_after=100, counter=cancel_counter
        )
        result = service.run_single_stage(
            molecules, fragmenter, num_tasks=4, cancel_event=cancel_event
        )
        assert result.status is RunStatus.CANCELLED
        assert result.cancelled
        processed = [
            m for m in molecules if m.get_fragments("Cancelling") is not None
        ]
        assert 100 <= len(processed) < 1000
        # only processed molecules contributed, each one completely
        assert result.table["S"].absolute_frequency == len(processed)
        assert result.table.total_absolute_frequency() == 2 * len(processed)
        for record in result.table.values():
            assert record.parent_molecules <= set(processed)
            assert record.absolute_percentage is None

    def test_cancel_event_set_after_run_keeps_completed(
        self, service, simple_molecules, split_fragmenter
    ):
        cancel_event = threading.Event()
        result = service.run_single_stage(
            simple_molecules, split_fragmenter, cancel_event=cancel_event
        )
        cancel_event.set()
        assert result.completed

    def test_name_disambiguation(
        self, service, simple_molecules, split_fragmenter
    ):
        names = [
            service.run_single_stage(simple_molecules, split_fragmenter).name
            for _ in range(3)
        ]
        assert names == ["Split", "Split_1", "Split_2"]
        assert service.existing_fragmentation_names == names
        for name in names:
            assert simple_molecules[0].get_fragments(name)

        result = service.run_single_stage(
            simple_molecules, split_fragmenter, name="custom"
        )
        assert result.name == "custom"

    def test_duplicate_molecules_processed_once(self, service):
        molecule = make_molecules(["A.B"])[0]
        result = service.run_single_stage(
            [molecule, molecule], SplitFragmenter()
        )
        assert result.num_molecules == 1
        assert result.table.snapshot() == {"A": (1, 1), "B": (1, 1)}

    def test_non_positive_num_tasks(
        self, service, simple_molecules, split_fragmenter
    ):
        result = service.run_single_stage(
            simple_molecules, split_fragmenter, num_tasks=0
        )
        assert result.completed
        assert len(result.table) == 3

    def test_all_filtered(self, service):
        molecules = make_molecules(["X", "Y"])
        fragmenter = SplitFragmenter(filter_on=["X", "Y"])
        result = service.run_single_stage(molecules, fragmenter)
        assert result.completed
        assert len(result.table) == 0
        assert result.num_errors == 0

    @pytest.mark.parametrize("molecules", [None, []])
    def test_empty_input(self, service, split_fragmenter, molecules):
        with pytest.raises(ConfigurationError):
            service.run_single_stage(molecules, split_fragmenter)

    def test_missing_fragmenter(self, service, simple_molecules):
        with pytest.raises(ConfigurationError):
            service.run_single_stage(simple_molecules, None)

    def test_invalid_molecule_type(self, service, split_fragmenter):
        with pytest.raises(ConfigurationError):
            service.run_single_stage(["A.B"], split_fragmenter)

    def test_fragmenter_is_copied_per_task(
        self, service, simple_molecules, split_fragmenter
    ):
        split_fragmenter.fail_on.add("A.A.A")
        result = service.run_single_stage(simple_molecules, split_fragmenter)
        assert result.num_errors == 1
        # the original instance is left untouched by the tasks
        assert split_fragmenter.fail_on == {"A.A.A"}
