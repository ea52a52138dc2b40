"""
Frequency re-attribution between pipeline stages.

After a pipeline stage has fragmented the distinct fragments of the
previous stage, the fragments of every original molecule are rebuilt:
a previous fragment P occurring freq(M, P) times in molecule M that
decomposes into child C occurring freq(P, C) times in P contributes
freq(M, P) * freq(P, C) occurrences of C to M. Contributions of
different previous fragments to the same key are summed.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from fragsmart.io.molecules.structure import FragmentRecord, MoleculeRecord

from .table import FragmentTable

logger = logging.getLogger(__name__)


def molecule_contributions(
    molecule: MoleculeRecord,
    fragmentation_name: str,
    stage_table: FragmentTable,
    keep_last_fragment: bool = False,
) -> Tuple[Dict[str, int], Dict[str, FragmentRecord]]:
    """
    Compute the fan-out/fan-in contributions of one molecule.

    Args:
        molecule (MoleculeRecord): Original input molecule whose fragments
            under `fragmentation_name` are those of the previous stage.
        fragmentation_name (str): Pipeline name shared by all stages.
        stage_table (FragmentTable): Table of the stage just completed.
        keep_last_fragment (bool): Keep previous fragments without
            children even if the stage did not produce their key.

    Returns:
        Tuple of {key: count} in first-seen order and {key: record the
        structure of the key is taken from}.
    """
    contributions: Dict[str, int] = {}
    sources: Dict[str, FragmentRecord] = {}

    def add(key, count, source):
        if count <= 0:
            return
        if key in contributions:
            contributions[key] += count
        else:
            contributions[key] = count
            sources[key] = source

    previous_fragments = molecule.get_fragments(fragmentation_name) or []
    previous_frequencies = (
        molecule.get_fragment_frequencies(fragmentation_name) or {}
    )
    for parent in previous_fragments:
        parent_count = previous_frequencies.get(parent.key, 0)
        children = parent.get_fragments(fragmentation_name)
        if not children:
            if parent.key in stage_table:
                add(parent.key, parent_count, stage_table[parent.key])
            elif keep_last_fragment:
                add(parent.key, parent_count, parent)
            continue
        child_frequencies = parent.get_fragment_frequencies(
            fragmentation_name
        )
        for child in children:
            add(
                child.key,
                parent_count * child_frequencies[child.key],
                child,
            )
    return contributions, sources


def reattribute_stage(
    molecules: Sequence[MoleculeRecord],
    fragmentation_name: str,
    stage_table: FragmentTable,
    keep_last_fragment: bool = False,
    num_shards: int = FragmentTable.DEFAULT_NUM_SHARDS,
) -> FragmentTable:
    """
    Rebuild molecule fragments and the run table after a pipeline stage.

    The fragments of every molecule under `fragmentation_name` are
    replaced by the combined contributions, and a fresh table is derived
    whose frequencies and parents refer to `molecules` only.

    Args:
        molecules: Original input molecules of the pipeline.
        fragmentation_name (str): Pipeline name shared by all stages.
        stage_table (FragmentTable): Table of the stage just completed,
            with previous-stage fragments as parents.
        keep_last_fragment (bool): See `molecule_contributions`.
        num_shards (int): Lock shards of the derived table.

    Returns:
        FragmentTable: Derived table of the pipeline after this stage.
    """
    per_molecule: List[tuple] = []
    for molecule in molecules:
        contributions, sources = molecule_contributions(
            molecule, fragmentation_name, stage_table, keep_last_fragment
        )
        per_molecule.append((molecule, contributions, sources))

    derived_table = FragmentTable(num_shards=num_shards)
    for molecule, contributions, sources in per_molecule:
        records = [
            derived_table.resolve_and_increment(
                key, molecule, structure=sources[key].structure, count=count
            )
            for key, count in contributions.items()
        ]
        molecule.set_fragments(fragmentation_name, records, contributions)

    logger.debug(
        f"Re-attributed {len(stage_table)} stage fragments to "
        f"{len(derived_table)} fragments of {len(molecules)} molecules."
    )
    return derived_table
