from __future__ import annotations
from typing import Optional, Sequence
import numpy as np

from zkexport.core.model import FinalizedModel, SparseRow


def matvec_rows_modp(rows: Sequence[SparseRow], z: np.ndarray, p: int) -> np.ndarray:
    """Compute (Rows @ z) mod p, where rows[i] is [(coeff, col), ...]."""
    out = np.zeros(len(rows), dtype=object)
    for i, row in enumerate(rows):
        acc = 0
        for c, j in row:
            acc += c * z[j]
        out[i] = acc % p
    return out


def first_unsatisfied(A: Sequence[SparseRow], B: Sequence[SparseRow], C: Sequence[SparseRow],
                      z: Sequence[int], p: int) -> Optional[int]:
    """Index of the first row with (A z) * (B z) != (C z) over F_p, or None."""
    if not A:
        return None
    z = np.array(list(z), dtype=object)
    Az = matvec_rows_modp(A, z, p)
    Bz = matvec_rows_modp(B, z, p)
    Cz = matvec_rows_modp(C, z, p)
    residual = (Az * Bz - Cz) % p
    bad = np.nonzero(residual)[0]
    return int(bad[0]) if bad.size else None


def is_satisfied(model: FinalizedModel) -> bool:
    z = list(model.instance_assignment) + list(model.witness_assignment)
    return first_unsatisfied(model.a, model.b, model.c, z, model.prime) is None
