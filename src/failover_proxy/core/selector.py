"""Weighted-random origin selection.

The probability of picking origin *i* is ``weight_i / sum(weights)``,
independent of where it sits in the sequence.
"""

import random
from collections.abc import Sequence
from typing import Protocol

from failover_proxy.models import Origin


class RandomSource(Protocol):
    """Anything with a ``random()`` method returning a float in [0, 1)."""

    def random(self) -> float: ...


def select_origin(origins: Sequence[Origin], rng: RandomSource | None = None) -> Origin:
    """Pick one origin by weighted random sampling.

    Draws ``r`` uniformly from ``[0, total_weight)`` and returns the first
    origin whose cumulative weight reaches ``r``. A single origin is
    returned without drawing. The input is never modified.

    Args:
        origins: Candidate origins, at least one.
        rng: Random source. Defaults to the ``random`` module.

    Returns:
        The selected origin.

    Raises:
        ValueError: If ``origins`` is empty.

    Examples:
        >>> a = Origin(url="https://a.internal", weight=1)
        >>> select_origin([a]) is a
        True
    """
    if not origins:
        raise ValueError("Cannot select from an empty origin pool")

    if len(origins) == 1:
        return origins[0]

    source = rng if rng is not None else random
    total_weight = sum(origin.weight for origin in origins)
    r = source.random() * total_weight

    cumulative = 0.0
    for origin in origins:
        cumulative += origin.weight
        if cumulative >= r:
            return origin

    # Only reachable through float rounding in the running sum
    return origins[0]
