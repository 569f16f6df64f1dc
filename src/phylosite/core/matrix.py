"""
Matrix operations for transition probability calculations.
"""

import numpy as np
from scipy.linalg import expm


def matrix_exponential(Q: np.ndarray, t: float) -> np.ndarray:
    """
    Compute transition probability matrix P(t) = exp(Q*t).

    Parameters
    ----------
    Q : ndarray, shape (n, n)
        Instantaneous rate matrix
    t : float
        Evolutionary distance (rate times branch length)

    Returns
    -------
    P : ndarray, shape (n, n)
        P[i,j] is the probability of moving from state i to state j

    Examples
    --------
    >>> Q = create_reversible_Q(np.ones((4, 4)), np.ones(4) / 4)
    >>> P = matrix_exponential(Q, 0.1)
    >>> np.allclose(P.sum(axis=1), 1.0)
    True
    """
    return expm(Q * t)


def create_reversible_Q(
    rates: np.ndarray, pi: np.ndarray, normalize: bool = True
) -> np.ndarray:
    """
    Create a reversible rate matrix from exchangeabilities and frequencies.

    Q[i,j] = r[i,j] * pi[j] for i != j, rows sum to zero.

    Parameters
    ----------
    rates : ndarray, shape (n, n)
        Symmetric exchangeability matrix; the diagonal is ignored
    pi : ndarray, shape (n,)
        Stationary distribution
    normalize : bool, default=True
        Scale Q to one expected substitution per unit time

    Returns
    -------
    Q : ndarray, shape (n, n)
    """
    Q = rates * pi[np.newaxis, :]

    np.fill_diagonal(Q, 0.0)
    np.fill_diagonal(Q, -Q.sum(axis=1))

    if normalize:
        expected_rate = -np.dot(pi, Q.diagonal())
        Q /= expected_rate

    return Q
