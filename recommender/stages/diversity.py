"""
Forced-refresh diversity — keep the best-ranked prefix fixed and shuffle the tail.

Trades determinism for discovery variety when the user explicitly asks for a
refresh. The random source is injected so the fixed prefix can be asserted.
"""

import math
import random
from typing import List, Optional, TypeVar

T = TypeVar("T")


def shuffle_tail(
    ranked: List[T],
    limit: int,
    fixed_fraction: float = 0.5,
    rng: Optional[random.Random] = None,
) -> List[T]:
    """
    Keep the top ceil(len * fixed_fraction) entries in order and uniformly
    shuffle the remainder. Lists no longer than limit are returned unchanged.

    Args:
        ranked: Entries sorted best-first. Not mutated.
        limit: Requested result size; shuffling only applies when exceeded.
        fixed_fraction: Share of the list kept in ranked order.
        rng: Random source (defaults to the module-level generator).

    Returns:
        New list with the same entries.
    """
    if len(ranked) <= limit:
        return list(ranked)
    top_count = math.ceil(len(ranked) * fixed_fraction)
    head = list(ranked[:top_count])
    tail = list(ranked[top_count:])
    (rng or random).shuffle(tail)
    return head + tail
