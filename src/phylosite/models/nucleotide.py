"""
Nucleotide substitution models.

Models expose their rate matrix and the transition probabilities for a
given rate multiplier and branch length. Site models treat them as opaque.
"""

import numpy as np

from ..core.matrix import create_reversible_Q, matrix_exponential
from ..io.alphabets import NUCLEOTIDE, StateAlphabet

# Purine <-> purine and pyrimidine <-> pyrimidine changes in A, C, G, T order
_TRANSITIONS = {(0, 2), (2, 0), (1, 3), (3, 1)}


class NucleotideModel:
    """Base class for reversible 4-state nucleotide models."""

    n_states = 4

    def __init__(self, frequencies: np.ndarray = None):
        if frequencies is None:
            self.frequencies = np.ones(self.n_states) / self.n_states
        else:
            frequencies = np.asarray(frequencies, dtype=float)
            if frequencies.shape != (self.n_states,):
                raise ValueError(
                    f"frequencies must have length {self.n_states}, got {len(frequencies)}"
                )
            if np.any(frequencies <= 0):
                raise ValueError("frequencies must be positive")
            self.frequencies = frequencies / frequencies.sum()

    def exchangeabilities(self) -> np.ndarray:
        raise NotImplementedError

    def can_handle(self, alphabet: StateAlphabet) -> bool:
        return alphabet.name == NUCLEOTIDE.name

    def get_Q_matrix(self) -> np.ndarray:
        """
        Rate matrix normalized to one expected substitution per unit time.

        Returns
        -------
        np.ndarray, shape (4, 4)
        """
        return create_reversible_Q(self.exchangeabilities(), self.frequencies)

    def transition_probabilities(self, rate: float, branch_length: float) -> np.ndarray:
        """P(rate * branch_length) for this model."""
        return matrix_exponential(self.get_Q_matrix(), rate * branch_length)


class JC69(NucleotideModel):
    """Jukes-Cantor model: equal rates and equal frequencies."""

    def __init__(self):
        super().__init__()

    def exchangeabilities(self) -> np.ndarray:
        return np.ones((4, 4))


class HKY85(NucleotideModel):
    """
    HKY85 model with transition/transversion ratio kappa.

    Parameters
    ----------
    kappa : float
        Transition/transversion rate ratio (default 2.0)
    frequencies : np.ndarray, shape (4,), optional
        Base frequencies in A, C, G, T order. Uniform if None.
    """

    def __init__(self, kappa: float = 2.0, frequencies: np.ndarray = None):
        if kappa <= 0:
            raise ValueError(f"kappa must be positive, got {kappa}")
        self.kappa = kappa
        super().__init__(frequencies)

    def exchangeabilities(self) -> np.ndarray:
        S = np.ones((4, 4))
        for i, j in _TRANSITIONS:
            S[i, j] = self.kappa
        return S


def get_substitution_model(name: str, kappa: float = 2.0, frequencies=None) -> NucleotideModel:
    """Construct a substitution model by name ('jc69' or 'hky')."""
    key = name.lower()
    if key == "jc69":
        return JC69()
    if key in ("hky", "hky85"):
        return HKY85(kappa=kappa, frequencies=frequencies)
    raise ValueError(f"Unknown substitution model '{name}'. Valid models: jc69, hky")
