"""
Fragmentation Job Management Module.

This module provides the parallel fragmentation core: partitioning of
molecule lists, worker tasks, the shared aggregation table, multi-stage
pipelines with frequency re-attribution, and percentage statistics.
"""

from .base import (
    FilterVerdict,
    Fragmenter,
    FragmenterType,
    FragmentSaturationOption,
    saturate_with_hydrogen,
)
from .fragmenters import (
    BRICSFragmenter,
    ComponentsFragmenter,
    FragmenterFactory,
    MurckoScaffoldFragmenter,
    RECAPFragmenter,
)
from .job import FragmentationJob
from .partition import plan_partitions, split_into_partitions
from .pipeline import molecule_contributions, reattribute_stage
from .recorder import ResultsRecorder
from .runner import FragmentationResult, FragmentationService, RunStatus
from .statistics import (
    finalize_percentages,
    fragments_dataframe,
    frequency_summary,
)
from .table import FragmentTable
from .task import FragmentationTask

__all__ = [
    # Service
    "FragmentationJob",
    "FragmentationService",
    "FragmentationResult",
    "RunStatus",
    # Core
    "FragmentationTask",
    "FragmentTable",
    "plan_partitions",
    "split_into_partitions",
    "molecule_contributions",
    "reattribute_stage",
    # Statistics and output
    "finalize_percentages",
    "fragments_dataframe",
    "frequency_summary",
    "ResultsRecorder",
    # Fragmenters
    "Fragmenter",
    "FragmenterType",
    "FilterVerdict",
    "FragmentSaturationOption",
    "saturate_with_hydrogen",
    "ComponentsFragmenter",
    "RECAPFragmenter",
    "BRICSFragmenter",
    "MurckoScaffoldFragmenter",
    "FragmenterFactory",
]
