"""
Fragmentation job bundling inputs, settings and result output.

A FragmentationJob is what the CLI builds from its options: it runs a
single stage or a pipeline through FragmentationService and writes the
result table with ResultsRecorder.
"""

import logging
import os
from typing import List, Optional

from fragsmart.io.molecules.structure import MoleculeRecord
from fragsmart.settings.fragmentation import FragmentationSettings
from fragsmart.utils.utils import ConfigurationError

from .base import Fragmenter
from .recorder import ResultsRecorder
from .runner import FragmentationService

logger = logging.getLogger(__name__)


class FragmentationJob:
    """
    Fragmentation of a molecule list with one or more fragmenters.

    Attributes:
        molecules (list[MoleculeRecord]): Molecules to fragment.
        fragmenters (list[Fragmenter]): One fragmenter per stage.
        pipeline (bool): Run the fragmenters as a pipeline. A single
            fragmenter without this flag is run as a single stage.
        label (str): Label used as output file prefix.
        name (str): Requested run name.
        settings (FragmentationSettings): Settings of the run.
        output_dir (str): Directory for result files; None disables
            writing results.
        service (FragmentationService): Service executing the job.
    """

    TYPE = "fragmentation"

    def __init__(
        self,
        molecules: List[MoleculeRecord],
        fragmenters: List[Fragmenter],
        pipeline: bool = False,
        label: Optional[str] = None,
        name: Optional[str] = None,
        settings: Optional[FragmentationSettings] = None,
        output_dir: Optional[str] = ".",
        service: Optional[FragmentationService] = None,
    ):
        if not fragmenters:
            raise ConfigurationError("At least one fragmenter is required.")
        if not pipeline and len(fragmenters) != 1:
            raise ConfigurationError(
                "A single stage job takes exactly one fragmenter, "
                f"got {len(fragmenters)}."
            )
        if settings is None:
            settings = FragmentationSettings()
        if service is None:
            service = FragmentationService(settings=settings)
        self.molecules = molecules
        self.fragmenters = list(fragmenters)
        self.pipeline = pipeline
        self.label = label
        self.name = name
        self.settings = settings
        self.output_dir = output_dir
        self.service = service
        self.result = None
        self.result_file = None

    def __repr__(self):
        names = ", ".join(f.name for f in self.fragmenters)
        return (
            f"{self.__class__.__name__}(label={self.label!r}, "
            f"num_molecules={len(self.molecules)}, fragmenters=[{names}], "
            f"pipeline={self.pipeline})"
        )

    def run(self, cancel_event=None):
        """
        Execute the fragmentation and record its results.

        Args:
            cancel_event (threading.Event): Optional cancellation signal.

        Returns:
            FragmentationResult: Result of the run.
        """
        if self.pipeline:
            result = self.service.run_pipeline(
                self.molecules,
                self.fragmenters,
                name=self.name,
                cancel_event=cancel_event,
            )
        else:
            result = self.service.run_single_stage(
                self.molecules,
                self.fragmenters[0],
                name=self.name,
                cancel_event=cancel_event,
            )
        self.result = result

        logger.info(
            f"Fragmentation {result.name} {result.status.value}: "
            f"{result.num_fragments} fragments from "
            f"{result.num_molecules} molecules, {result.num_errors} errors."
        )
        if result.num_errors > 0:
            logger.warning(
                f"{result.num_errors} molecules or fragments could not be "
                f"processed, see log for details."
            )

        if self.output_dir is not None:
            recorder = ResultsRecorder(
                output_dir=self.output_dir,
                label=self.label,
                output_format=self.settings.output_format,
            )
            self.result_file = recorder.record_results(
                result, molecules=self.molecules
            )
        return result

    @property
    def output_file(self):
        """Path of the written result file, None before `run`."""
        return self.result_file

    @classmethod
    def from_filename(cls, filename, fragmenters, **kwargs):
        """
        Create a job from a SMILES list file.

        The label defaults to the file's base name.
        """
        from fragsmart.io.molecules.smiles import SMILESFile

        smiles_file = SMILESFile(filename=filename)
        kwargs.setdefault(
            "label", os.path.splitext(os.path.basename(filename))[0]
        )
        return cls(
            molecules=smiles_file.get_molecules(),
            fragmenters=fragmenters,
            **kwargs,
        )
