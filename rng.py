"""
Seeded random streams.

Every random decision in a match draws from a stream keyed by a string built
from the game seed plus contextual ids (turn, team, cell) and a purpose tag,
so replaying the same choices from the same seed gives identical results.
"""

import hashlib
import random
from typing import Callable, Sequence

Rng = Callable[[], float]


def seed_to_int(seed: str) -> int:
    """Stable 64-bit integer for a seed string (independent of PYTHONHASHSEED)."""
    digest = hashlib.sha256(str(seed).encode('utf-8')).digest()
    return int.from_bytes(digest[:8], 'big')


def create_rng(seed: str) -> Rng:
    """
    Create a deterministic generator of floats in [0, 1).

    Args:
        seed: Seed string; the whole output sequence depends only on it

    Returns:
        Zero-argument callable producing the next float of the stream
    """
    return random.Random(seed_to_int(seed)).random


def derive_seed(seed: str, purpose: str, *parts: object) -> str:
    """Compose a stream key, e.g. derive_seed('demo', 'match', 3, 0, 7) -> 'demo:match:3:0:7'."""
    return ':'.join([str(seed), purpose] + [str(p) for p in parts])


def weighted_choice(weights: Sequence[float], rng: Rng) -> int:
    """
    Draw an index with probability proportional to its weight.

    Inverse-CDF sampling over cumulative weights.

    Args:
        weights: Non-negative weights
        rng: Stream to draw from

    Returns:
        Selected index (0 when every weight is zero)
    """
    if not weights:
        raise ValueError("weighted_choice needs at least one weight")
    if any(w < 0 for w in weights):
        raise ValueError(f"Weights must be non-negative: {list(weights)}")
    total = float(sum(weights))
    if total <= 0:
        return 0
    threshold = rng() * total
    cumulative = 0.0
    for index, weight in enumerate(weights):
        cumulative += weight
        if threshold < cumulative:
            return index
    # Float rounding can leave threshold == total; pick the last positive weight
    for index in range(len(weights) - 1, -1, -1):
        if weights[index] > 0:
            return index
    return 0
