"""
Frequency statistics of completed fragmentation runs.
"""

import logging

import numpy as np
import pandas as pd

from .table import FragmentTable

logger = logging.getLogger(__name__)

FRAGMENT_COLUMNS = [
    "Key",
    "AbsoluteFrequency",
    "AbsolutePercentage",
    "MoleculeFrequency",
    "MoleculePercentage",
]


def finalize_percentages(table: FragmentTable, total_molecules: int) -> bool:
    """
    Set absolute and molecule percentages of all records of a table.

    Args:
        table (FragmentTable): Completed aggregation table.
        total_molecules (int): Number of distinct molecules of the run.

    Returns:
        bool: False if the absolute frequency total is zero and no
            percentage was set, True otherwise.
    """
    total_absolute = table.total_absolute_frequency()
    if total_absolute == 0:
        logger.warning(
            "Sum of absolute fragment frequencies is zero, "
            "fragment percentages are not calculated."
        )
        return False
    if total_molecules <= 0:
        logger.warning(
            "Number of molecules is zero, "
            "molecule percentages are not calculated."
        )
    for record in table.values():
        record.absolute_percentage = (
            record.absolute_frequency / total_absolute
        )
        if total_molecules > 0:
            record.molecule_percentage = (
                record.molecule_frequency / total_molecules
            )
    logger.debug(
        f"Finalized percentages of {len(table)} fragments "
        f"(total frequency {total_absolute}, {total_molecules} molecules)."
    )
    return True


def fragments_dataframe(table: FragmentTable) -> pd.DataFrame:
    """
    Tabulate the records of a table.

    Rows are sorted by absolute frequency (descending), then by key.

    Returns:
        pd.DataFrame with the columns in FRAGMENT_COLUMNS.
    """
    rows = [
        {
            "Key": record.key,
            "AbsoluteFrequency": record.absolute_frequency,
            "AbsolutePercentage": record.absolute_percentage,
            "MoleculeFrequency": record.molecule_frequency,
            "MoleculePercentage": record.molecule_percentage,
        }
        for record in table.values()
    ]
    df = pd.DataFrame(rows, columns=FRAGMENT_COLUMNS)
    if df.empty:
        return df
    return df.sort_values(
        by=["AbsoluteFrequency", "Key"], ascending=[False, True]
    ).reset_index(drop=True)


def frequency_summary(table: FragmentTable) -> dict:
    """
    Summary numbers of the absolute frequency distribution.

    Returns:
        dict: num_fragments, total, mean, median and max of the absolute
            frequencies; zeros for an empty table.
    """
    frequencies = np.array(
        [record.absolute_frequency for record in table.values()], dtype=int
    )
    if frequencies.size == 0:
        return {
            "num_fragments": 0,
            "total": 0,
            "mean": 0.0,
            "median": 0.0,
            "max": 0,
        }
    return {
        "num_fragments": int(frequencies.size),
        "total": int(frequencies.sum()),
        "mean": float(frequencies.mean()),
        "median": float(np.median(frequencies)),
        "max": int(frequencies.max()),
    }
