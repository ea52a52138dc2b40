"""
Concurrency-safe aggregation table of fragment records.

All worker tasks of one stage write into a single FragmentTable. Keys
are spread over a fixed number of shards, each guarded by its own lock,
so that workers only contend when their keys fall into the same shard.
"""

import logging
import threading
from collections.abc import Mapping

from fragsmart.io.molecules.structure import FragmentRecord, MoleculeRecord

logger = logging.getLogger(__name__)


class FragmentTable(Mapping):
    """
    Sharded map from fragment key to FragmentRecord.

    Reading through the Mapping interface is meant for completed stages;
    concurrent writers must go through `resolve_and_increment`.

    Attributes:
        num_shards (int): Number of lock shards.
    """

    DEFAULT_NUM_SHARDS = 32

    def __init__(self, num_shards: int = DEFAULT_NUM_SHARDS):
        if num_shards < 1:
            raise ValueError(f"num_shards must be >= 1, got {num_shards}")
        self.num_shards = num_shards
        self._shards = [{} for _ in range(num_shards)]
        self._locks = [threading.Lock() for _ in range(num_shards)]

    def __repr__(self):
        return f"{self.__class__.__name__}(num_fragments={len(self)})"

    def _shard_index(self, key: str) -> int:
        return hash(key) % self.num_shards

    def __getitem__(self, key):
        return self._shards[self._shard_index(key)][key]

    def __contains__(self, key):
        return key in self._shards[self._shard_index(key)]

    def __iter__(self):
        for shard in self._shards:
            yield from list(shard)

    def __len__(self):
        return sum(len(shard) for shard in self._shards)

    def resolve_and_increment(
        self,
        key: str,
        molecule: MoleculeRecord,
        structure=None,
        count: int = 1,
    ) -> FragmentRecord:
        """
        Get or create the record for `key` and count occurrences in it.

        The lookup, creation and both frequency updates happen in one
        critical section of the key's shard, so concurrent callers never
        create two records for one key or lose an increment.

        Args:
            key (str): Canonical fragment key.
            molecule (MoleculeRecord): Molecule the occurrences belong to.
            structure: Structure handle stored on a newly created record.
            count (int): Number of occurrences to add. Defaults to 1.

        Returns:
            FragmentRecord: The record stored under `key`.
        """
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        index = self._shard_index(key)
        with self._locks[index]:
            shard = self._shards[index]
            record = shard.get(key)
            if record is None:
                record = FragmentRecord(key, structure=structure)
                shard[key] = record
            record.add_occurrences(molecule, count)
        return record

    def total_absolute_frequency(self) -> int:
        return sum(record.absolute_frequency for record in self.values())

    def to_dict(self):
        """Plain dict copy of the table."""
        return dict(self.items())

    def snapshot(self):
        """
        Frequencies of all records as {key: (absolute, molecule)}.

        Useful to compare two tables independent of record identity.
        """
        return {
            key: (record.absolute_frequency, record.molecule_frequency)
            for key, record in self.items()
        }
