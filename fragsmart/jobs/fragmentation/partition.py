"""
Partitioning of molecule lists into contiguous worker slices.
"""

import logging
from typing import List, Sequence, Tuple

logger = logging.getLogger(__name__)


def plan_partitions(num_items: int, num_tasks: int) -> List[Tuple[int, int]]:
    """
    Split `num_items` items into near-equal contiguous slices.

    A worker count below one is treated as one and the worker count is
    clamped to the number of items. Slice sizes differ by at most one;
    the remainder `num_items % num_tasks` goes to the first slices.

    Args:
        num_items (int): Number of items to distribute.
        num_tasks (int): Requested number of worker tasks.

    Returns:
        List[Tuple[int, int]]: Half-open (start, end) index pairs covering
            [0, num_items) without gaps or overlaps. Empty for no items.
    """
    if num_items < 0:
        raise ValueError(f"Number of items must be >= 0, got {num_items}")
    num_tasks = max(1, num_tasks)
    num_tasks = min(num_tasks, num_items)
    if num_tasks == 0:
        return []

    base_size, remainder = divmod(num_items, num_tasks)
    partitions = []
    start = 0
    for i in range(num_tasks):
        size = base_size + 1 if i < remainder else base_size
        partitions.append((start, start + size))
        start += size
    return partitions


def split_into_partitions(items: Sequence, num_tasks: int) -> List[list]:
    """Apply `plan_partitions` to a sequence and return the slices."""
    return [
        list(items[start:end])
        for start, end in plan_partitions(len(items), num_tasks)
    ]
