from __future__ import annotations

import math
from typing import Sequence

from .types import ChenNode, Point

# ============================================================================
# Deterministic geometry utilities shared by every layout algorithm
#
# Layouts never use a platform random source: jitter is derived from node ids
# through a rolling hash and a sine-based generator, so identical inputs
# always produce identical diagrams.
# ============================================================================

TWO_PI = math.pi * 2

# Side length of the square assumed for a node that has not been measured yet
KIND_SIZES = {
    "entity": 140,
    "relationship": 90,
    "attribute": 90,
}
DEFAULT_KIND_SIZE = 90

MIN_NODE_RADIUS = 10.0

# Distance substituted for coincident points before normalizing
EPSILON = 0.01


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def deterministic_hash(text: str, seed: int = 0) -> int:
    """Polynomial rolling hash (``h * 31 + c``) folded to 32 bits.

    Characters are consumed as UTF-16 code units so the value matches the
    hashes stored alongside diagrams produced by browser front ends.
    """
    h = seed
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        h = _to_int32((h << 5) - h + code)
    return abs(h)


def deterministic_random(seed: float, extra_seed: float = 0) -> float:
    """Pseudo-random value in [-0.5, 0.5) from a sine-based fractional part."""
    x = math.sin(seed + extra_seed * 1000) * 10000
    return (x - math.floor(x)) - 0.5


def normalize_angle(angle: float) -> float:
    """Map an angle in radians into [0, 2π)."""
    a = math.fmod(angle, TWO_PI)
    if a < 0:
        a += TWO_PI
    # fmod of a tiny negative value can round back up to exactly 2π
    if a >= TWO_PI:
        a = 0.0
    return a


def node_size(node: ChenNode) -> tuple[float, float]:
    """Bounding box size of a node, falling back to the kind-based square."""
    if node.width is not None and node.height is not None:
        return max(0.0, node.width), max(0.0, node.height)
    size = KIND_SIZES.get(node.kind, DEFAULT_KIND_SIZE)
    return float(size), float(size)


def estimate_radius(node: ChenNode | None) -> float:
    """Half-diagonal of the node's bounding box, never below MIN_NODE_RADIUS."""
    if node is None:
        return 30.0
    w, h = node_size(node)
    return max(MIN_NODE_RADIUS, math.hypot(w, h) / 2)


def sign(value: float, tolerance: float = 1e-9) -> int:
    if value > tolerance:
        return 1
    if value < -tolerance:
        return -1
    return 0


def angle_to(origin: Point, target: Point) -> float:
    """Normalized direction angle from ``origin`` towards ``target``."""
    return normalize_angle(math.atan2(target.y - origin.y, target.x - origin.x))


def separation_axis(a: Point, b: Point, key: str = "") -> tuple[float, float, float]:
    """Unit vector from ``a`` to ``b`` and the distance between them.

    Coincident points get EPSILON as their distance and a direction derived
    from ``key`` so the pair can still be pushed apart.
    """
    dx = b.x - a.x
    dy = b.y - a.y
    dist = math.hypot(dx, dy)
    if dist < EPSILON:
        angle = (deterministic_hash(key) % 3600) / 3600 * TWO_PI
        return math.cos(angle), math.sin(angle), EPSILON
    return dx / dist, dy / dist, dist


def allocate_largest_remainder(weights: Sequence[float], total: int) -> list[int]:
    """Split ``total`` items across ``weights`` proportionally.

    Each share is floored; the leftover items go to the largest fractional
    parts, earlier entries winning ties.
    """
    if not weights or total <= 0:
        return [0] * len(weights)
    weight_sum = sum(max(0.0, w) for w in weights)
    if weight_sum <= 0:
        counts = [0] * len(weights)
        counts[0] = total
        return counts

    counts: list[int] = []
    fractions: list[float] = []
    for w in weights:
        ideal = max(0.0, w) / weight_sum * total
        base = math.floor(ideal)
        counts.append(base)
        fractions.append(ideal - base)

    remaining = total - sum(counts)
    order = sorted(range(len(weights)), key=lambda i: (-fractions[i], i))
    for i in range(remaining):
        counts[order[i % len(order)]] += 1
    return counts
