"""Vector helpers for embedding comparison."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``.

    Returns ``0.0`` when either vector is empty, the lengths differ, or
    either vector has zero magnitude.
    """
    if len(a) == 0 or len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def is_finite_vector(vector: Sequence[float]) -> bool:
    """Return ``True`` if the vector is non-empty and contains no NaN or infinity."""
    if len(vector) == 0:
        return False
    return bool(np.all(np.isfinite(np.asarray(vector, dtype=np.float64))))
