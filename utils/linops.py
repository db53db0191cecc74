from __future__ import annotations
import warnings

import numpy as np
import scipy.linalg as la

from core.exceptions import SingularSystemError, SystemShapeError

EPS = float(np.finfo(np.float64).eps)


class LinearOperator:
    """
    Wraps a dense LU factorisation of a square system and exposes a .solve(b) method.

    With ``least_squares=True`` non-square systems are accepted and solved in
    the least-squares sense instead of being rejected.
    """
    __slots__ = ("_solve", "shape")

    def __init__(self, A: np.ndarray, singular_tol: float = EPS, least_squares: bool = False):
        A = np.asarray(A, dtype=np.float64)
        if A.ndim != 2:
            raise SystemShapeError(f"Expected a 2-D system matrix, got shape {A.shape}.")
        self.shape = A.shape
        rows, cols = A.shape

        if rows != cols:
            if not least_squares:
                raise SystemShapeError(
                    f"System has {rows} equations for {cols} unknowns."
                )
            self._solve = lambda b: la.lstsq(A, b)[0]
            return

        with warnings.catch_warnings():
            warnings.simplefilter("error", la.LinAlgWarning)
            try:
                lu, piv = la.lu_factor(A)
            except (la.LinAlgWarning, np.linalg.LinAlgError) as exc:
                raise SingularSystemError(f"System matrix is singular: {exc}") from exc

        if rows:
            # reciprocal condition number in the 1-norm, estimated from the LU factors
            gecon, = la.get_lapack_funcs(("gecon",), (lu,))
            rcond, info = gecon(lu, np.linalg.norm(A, 1), norm="1")
            if info != 0 or not rcond >= singular_tol:
                raise SingularSystemError(
                    f"System matrix is singular to working precision (rcond {rcond:.3e})."
                )
        self._solve = lambda b: la.lu_solve((lu, piv), b)

    def __call__(self, rhs):
        return self._solve(rhs)

    def solve(self, rhs: "np.ndarray") -> "np.ndarray":
        return self._solve(rhs)
