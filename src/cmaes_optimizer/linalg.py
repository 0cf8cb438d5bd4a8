"""
Linear Algebra Primitives

Symmetric eigendecomposition of the covariance matrix and the
derived views used by sampling and the evolution-path update:

    C = B * diag(D)^2 * B^T
    invsqrtC = B * diag(D)^-1 * B^T
    bd = B * diag(D)

D holds the square roots of the eigenvalues, B the orthonormal
eigenvectors (one per column).
"""

from dataclasses import dataclass
import numpy as np
from scipy.linalg import eigh


@dataclass
class EigenSystem:
    """Cached decomposition of a covariance matrix C."""
    B: np.ndarray
    D: np.ndarray
    invsqrtC: np.ndarray
    bd: np.ndarray

    @property
    def condition_ratio(self) -> float:
        """max(D) / min(D), i.e. the square root of the condition number of C."""
        return float(np.max(self.D) / np.min(self.D))

    def copy(self) -> 'EigenSystem':
        return EigenSystem(
            B=self.B.copy(),
            D=self.D.copy(),
            invsqrtC=self.invsqrtC.copy(),
            bd=self.bd.copy()
        )


def symmetrize(C: np.ndarray) -> np.ndarray:
    """
    Force C symmetric by mirroring its lower triangle onto the upper one.

    Returns a new matrix; C is left untouched.
    """
    lower = np.tril(C)
    return lower + np.tril(C, -1).T


def max_asymmetry(C: np.ndarray) -> float:
    """Largest |C[i][j] - C[j][i]|."""
    return float(np.max(np.abs(C - C.T)))


def decompose(C: np.ndarray) -> EigenSystem:
    """
    Eigendecompose a symmetric positive definite matrix.

    Args:
        C: Symmetric n x n matrix

    Returns:
        EigenSystem with B, D, invsqrtC and B*D

    Raises:
        np.linalg.LinAlgError: if C has non-finite entries, the solver does
            not converge, or C is not positive definite
    """
    C = np.asarray(C, dtype=np.float64)
    if C.ndim != 2 or C.shape[0] != C.shape[1]:
        raise np.linalg.LinAlgError(f"Covariance must be square, got shape {C.shape}")
    if not np.all(np.isfinite(C)):
        raise np.linalg.LinAlgError("Covariance contains non-finite entries")

    eigenvalues, B = eigh(C)

    if np.min(eigenvalues) <= 0.0:
        raise np.linalg.LinAlgError(
            f"Covariance is not positive definite (smallest eigenvalue {np.min(eigenvalues):.3e})"
        )

    D = np.sqrt(eigenvalues)
    invsqrtC = (B / D) @ B.T
    bd = B * D
    return EigenSystem(B=B, D=D, invsqrtC=invsqrtC, bd=bd)
