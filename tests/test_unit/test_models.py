"""
Unit tests for substitution models, matrix helpers and branch clocks.
"""

import numpy as np
import pytest

from phylosite.core.matrix import create_reversible_Q, matrix_exponential
from phylosite.io.alphabets import AMINO_ACID, NUCLEOTIDE
from phylosite.io.trees import Tree
from phylosite.models.clocks import LabelledClock, StrictClock
from phylosite.models.nucleotide import HKY85, JC69, get_substitution_model


class TestMatrix:
    """Test rate matrix construction and exponentiation."""

    def test_reversible_Q_rows_sum_to_zero(self):
        pi = np.array([0.1, 0.2, 0.3, 0.4])
        Q = create_reversible_Q(np.ones((4, 4)), pi)

        np.testing.assert_allclose(Q.sum(axis=1), 0.0, atol=1e-12)
        # One expected substitution per unit time
        np.testing.assert_allclose(-np.dot(pi, Q.diagonal()), 1.0)

    def test_detailed_balance(self):
        pi = np.array([0.1, 0.2, 0.3, 0.4])
        Q = create_reversible_Q(HKY85(kappa=3.0).exchangeabilities(), pi)

        flux = pi[:, np.newaxis] * Q
        np.testing.assert_allclose(flux, flux.T, atol=1e-12)

    def test_exponential_identity_at_zero(self):
        Q = JC69().get_Q_matrix()
        np.testing.assert_allclose(matrix_exponential(Q, 0.0), np.eye(4), atol=1e-14)

    def test_exponential_rows_sum_to_one(self):
        Q = HKY85(kappa=5.0, frequencies=[0.1, 0.2, 0.3, 0.4]).get_Q_matrix()
        P = matrix_exponential(Q, 0.7)

        np.testing.assert_allclose(P.sum(axis=1), 1.0, atol=1e-12)
        assert np.all(P >= 0)


class TestNucleotideModels:
    """Test JC69 and HKY85."""

    def test_jc69_analytic(self):
        P = JC69().transition_probabilities(rate=1.0, branch_length=0.3)

        same = 0.25 + 0.75 * np.exp(-4.0 * 0.3 / 3.0)
        different = 0.25 - 0.25 * np.exp(-4.0 * 0.3 / 3.0)
        np.testing.assert_allclose(np.diag(P), same, rtol=1e-10)
        np.testing.assert_allclose(P[0, 1], different, rtol=1e-10)

    def test_rate_scales_branch_length(self):
        model = HKY85(kappa=2.0)
        np.testing.assert_allclose(
            model.transition_probabilities(2.0, 0.1),
            model.transition_probabilities(1.0, 0.2),
            atol=1e-14,
        )

    def test_zero_rate_is_identity(self):
        P = HKY85().transition_probabilities(rate=0.0, branch_length=5.0)
        np.testing.assert_allclose(P, np.eye(4), atol=1e-14)

    def test_hky_kappa_one_equals_jc69(self):
        np.testing.assert_allclose(
            HKY85(kappa=1.0).get_Q_matrix(), JC69().get_Q_matrix(), atol=1e-14
        )

    def test_hky_transitions_faster(self):
        Q = HKY85(kappa=4.0).get_Q_matrix()
        # A->G is a transition, A->C a transversion
        assert Q[0, 2] == pytest.approx(4.0 * Q[0, 1])

    def test_frequencies_normalized(self):
        model = HKY85(frequencies=[1.0, 1.0, 2.0, 4.0])
        np.testing.assert_allclose(model.frequencies, [0.125, 0.125, 0.25, 0.5])

    def test_invalid_parameters(self):
        with pytest.raises(ValueError, match="kappa"):
            HKY85(kappa=0.0)
        with pytest.raises(ValueError, match="length 4"):
            HKY85(frequencies=[0.5, 0.5])

    def test_can_handle(self):
        assert JC69().can_handle(NUCLEOTIDE)
        assert not HKY85().can_handle(AMINO_ACID)

    def test_get_substitution_model(self):
        assert isinstance(get_substitution_model("JC69"), JC69)
        model = get_substitution_model("hky", kappa=3.0)
        assert isinstance(model, HKY85)
        assert model.kappa == 3.0

        with pytest.raises(ValueError, match="Unknown substitution model"):
            get_substitution_model("gtr")


class TestClocks:
    """Test branch rate models."""

    def test_strict_clock(self):
        clock = StrictClock(0.5)
        tree = Tree.from_newick("(a:1,b:1);")

        assert clock.get_rate(None) == 0.5
        assert all(clock.get_rate(node) == 0.5 for node in tree.postorder())

    def test_labelled_clock(self):
        tree = Tree.from_newick("(a:1,(b:1,c:1)#1:1);")
        clock = LabelledClock({"#1": 3.0}, default=0.5)

        labelled = tree.root.children[1]
        assert clock.get_rate(labelled) == 3.0
        assert clock.get_rate(tree.root.children[0]) == 0.5
        assert clock.get_rate(None) == 0.5

    def test_invalid_rates(self):
        with pytest.raises(ValueError):
            StrictClock(0.0)
        with pytest.raises(ValueError):
            LabelledClock({"#1": -1.0})
