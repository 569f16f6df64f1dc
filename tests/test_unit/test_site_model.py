"""
Unit tests for site models and gamma discretization.
"""

import numpy as np
import pytest

from phylosite.errors import CategoryAccessViolation
from phylosite.io.alphabets import AMINO_ACID, NUCLEOTIDE
from phylosite.io.trees import Tree
from phylosite.models import site_model as site_model_module
from phylosite.models.clocks import LabelledClock
from phylosite.models.nucleotide import JC69
from phylosite.models.site_model import SiteModel, SiteModelConfig, discretize_gamma


class TestDiscretizeGamma:
    """Test discrete gamma rate categories."""

    def test_median_mean_one(self):
        rates = discretize_gamma(0.5, 4)

        assert len(rates) == 4
        assert np.mean(rates) == pytest.approx(1.0)
        assert np.all(np.diff(rates) > 0)

    def test_mean_method_matches_yang(self):
        # Yang (1994), alpha = 0.5, four categories
        rates = discretize_gamma(0.5, 4, method="mean")
        np.testing.assert_allclose(rates, [0.0334, 0.2519, 0.8203, 2.8944], rtol=1e-3)

    def test_single_category(self):
        np.testing.assert_allclose(discretize_gamma(0.3, 1), [1.0])

    def test_large_shape_near_one(self):
        rates = discretize_gamma(1e6, 4)
        np.testing.assert_allclose(rates, 1.0, atol=1e-2)

    def test_tiny_shape_falls_back_to_category_means(self):
        with pytest.warns(UserWarning, match="too small"):
            rates = discretize_gamma(1e-5, 4)

        assert np.all(np.isfinite(rates))
        assert np.mean(rates) == pytest.approx(1.0)
        np.testing.assert_array_equal(rates, discretize_gamma(1e-5, 4, method="mean"))

    def test_tiny_shape_site_model_rates_finite(self):
        model = SiteModel(JC69(), gamma_category_count=4, shape=1e-5, proportion_invariant=0.2)

        with pytest.warns(UserWarning, match="too small"):
            rates = model.get_category_rates()

        assert np.all(np.isfinite(rates))
        assert np.dot(rates, model.get_category_proportions()) == pytest.approx(1.0)

    def test_invalid_arguments(self):
        with pytest.raises(ValueError, match="positive"):
            discretize_gamma(0.0, 4)
        with pytest.raises(ValueError, match="at least one"):
            discretize_gamma(0.5, 0)
        with pytest.raises(ValueError, match="Unknown discretization"):
            discretize_gamma(0.5, 4, method="mode")


class TestCategories:
    """Test category rates and proportions."""

    def test_no_rate_variation(self):
        model = SiteModel(JC69())

        assert model.get_category_count() == 1
        assert model.get_rate_for_category(0) == 1.0
        assert model.get_proportion_for_category(0) == 1.0

    def test_gamma_categories(self):
        model = SiteModel(JC69(), gamma_category_count=4, shape=0.5)

        assert model.get_category_count() == 4
        np.testing.assert_allclose(model.get_category_proportions(), 0.25)
        assert np.mean(model.get_category_rates()) == pytest.approx(1.0)

    def test_invariant_category_first(self):
        model = SiteModel(
            JC69(), gamma_category_count=4, shape=0.5, proportion_invariant=0.2
        )
        rates = model.get_category_rates()
        proportions = model.get_category_proportions()

        assert model.get_category_count() == 5
        assert model.has_invariant_category()
        assert rates[0] == 0.0
        assert proportions[0] == pytest.approx(0.2)
        np.testing.assert_allclose(proportions[1:], 0.2)
        assert proportions.sum() == pytest.approx(1.0)
        assert np.dot(rates, proportions) == pytest.approx(1.0)

    def test_invariant_not_a_category(self):
        model = SiteModel(
            JC69(),
            gamma_category_count=4,
            shape=0.5,
            proportion_invariant=0.2,
            prop_invariant_is_category=False,
        )
        rates = model.get_category_rates()
        proportions = model.get_category_proportions()

        assert model.get_category_count() == 4
        assert not model.has_invariant_category()
        assert proportions.sum() == pytest.approx(0.8)
        # Mean over all sites, invariant ones included, stays one
        assert np.dot(rates, proportions) == pytest.approx(1.0)

    def test_invariant_without_gamma(self):
        model = SiteModel(JC69(), proportion_invariant=0.2)

        np.testing.assert_allclose(model.get_category_rates(), [0.0, 1.25])
        np.testing.assert_allclose(model.get_category_proportions(), [0.2, 0.8])

    def test_zero_pinv_has_no_invariant_category(self):
        model = SiteModel(JC69(), gamma_category_count=4, shape=1.0)

        assert not model.has_invariant_category()
        assert model.get_category_count() == 4

    def test_mu_scales_rates(self):
        base = SiteModel(JC69(), gamma_category_count=4, shape=0.5)
        fast = SiteModel(JC69(), gamma_category_count=4, shape=0.5, mu=2.0)

        np.testing.assert_allclose(fast.get_category_rates(), 2.0 * base.get_category_rates())
        np.testing.assert_array_equal(
            fast.get_category_proportions(), base.get_category_proportions()
        )

    def test_batch_matches_single_accessors(self):
        tree = Tree.from_newick("(a:1,(b:1,c:1)#1:1);")
        node = tree.root.children[1]
        model = SiteModel(
            JC69(),
            gamma_category_count=4,
            shape=0.7,
            proportion_invariant=0.1,
            mu=1.5,
            branch_rates=LabelledClock({"#1": 3.0}),
        )

        for context in (None, node):
            rates = model.get_category_rates(context)
            proportions = model.get_category_proportions(context)
            for c in range(model.get_category_count()):
                assert model.get_rate_for_category(c, context) == rates[c]
                assert model.get_proportion_for_category(c, context) == proportions[c]

        assert model.get_rate_for_category(1, node) == pytest.approx(
            3.0 * model.get_rate_for_category(1)
        )

    def test_category_out_of_range(self):
        model = SiteModel(JC69(), gamma_category_count=4, shape=0.5)

        with pytest.raises(IndexError):
            model.get_rate_for_category(4)
        with pytest.raises(IndexError):
            model.get_proportion_for_category(-1)

    def test_proportions_are_copies(self):
        model = SiteModel(JC69(), gamma_category_count=4, shape=0.5)

        proportions = model.get_category_proportions()
        proportions[0] = 0.0
        assert model.get_proportion_for_category(0) == pytest.approx(0.25)

    def test_unused_categories_warn(self):
        with pytest.warns(UserWarning, match="ignored"):
            model = SiteModel(JC69(), gamma_category_count=4)
        assert model.get_category_count() == 1


class TestLazyRecompute:
    """Test that derived categories follow parameter changes."""

    def test_recomputed_only_when_stale(self, monkeypatch):
        calls = []
        original = site_model_module.discretize_gamma

        def counting(*args, **kwargs):
            calls.append(args)
            return original(*args, **kwargs)

        monkeypatch.setattr(site_model_module, "discretize_gamma", counting)
        model = SiteModel(JC69(), gamma_category_count=4, shape=0.5)
        assert calls == []

        model.get_category_rates()
        model.get_rate_for_category(2)
        model.get_category_count()
        assert len(calls) == 1

        model.set_shape(1.0)
        assert len(calls) == 1
        model.get_category_proportions()
        assert len(calls) == 2

    def test_setters_update_categories(self):
        model = SiteModel(JC69(), gamma_category_count=4, shape=0.5)
        version = model.version

        model.set_gamma_category_count(6)
        assert model.get_category_count() == 6

        model.set_proportion_invariant(0.3)
        assert model.get_category_count() == 7
        assert model.get_proportion_for_category(0) == pytest.approx(0.3)

        model.set_prop_invariant_is_category(False)
        assert model.get_category_count() == 6

        model.set_mu(0.5)
        assert np.mean(model.get_category_rates()) == pytest.approx(0.5 / 0.7)

        assert model.version == version + 4

    def test_rates_change_with_shape(self):
        model = SiteModel(JC69(), gamma_category_count=4, shape=0.5)
        before = model.get_category_rates()

        model.set_shape(5.0)
        after = model.get_category_rates()

        assert after[0] > before[0]
        assert after[-1] < before[-1]

    def test_invalid_setter_leaves_model_unchanged(self):
        model = SiteModel(JC69(), gamma_category_count=4, shape=0.5)
        version = model.version
        rates = model.get_category_rates()

        with pytest.raises(ValueError, match="proportion_invariant"):
            model.set_proportion_invariant(1.0)
        with pytest.raises(ValueError, match="cannot handle data type"):
            model.set_alphabet(AMINO_ACID)

        assert model.version == version
        np.testing.assert_array_equal(model.get_category_rates(), rates)

    def test_set_alphabet(self):
        model = SiteModel(JC69())
        model.set_alphabet(NUCLEOTIDE)
        assert model.config.alphabet is NUCLEOTIDE


class TestSiteCategories:
    """Test per-site category lookups."""

    def test_integrating_model_rejects_lookup(self):
        model = SiteModel(JC69(), gamma_category_count=4, shape=0.5)

        with pytest.raises(CategoryAccessViolation):
            model.get_category_of_site(0)
        with pytest.raises(RuntimeError):
            model.get_category_of_site(0)

    def test_default_category(self):
        model = SiteModel(
            JC69(),
            gamma_category_count=4,
            shape=0.5,
            proportion_invariant=0.1,
            integrate_across_categories=False,
        )
        # Invariant category holds 0.1, each gamma category 0.225
        assert model.get_category_of_site(0) == 1
        assert model.get_category_of_site(100) == 1

    def test_default_category_tie_lowest_index(self):
        model = SiteModel(
            JC69(), gamma_category_count=4, shape=0.5, integrate_across_categories=False
        )
        assert model.get_category_of_site(3) == 0

    def test_explicit_assignment(self):
        model = SiteModel(
            JC69(),
            gamma_category_count=4,
            shape=0.5,
            integrate_across_categories=False,
            site_categories=[3, 0, 2],
        )

        assert [model.get_category_of_site(s) for s in range(3)] == [3, 0, 2]
        with pytest.raises(IndexError):
            model.get_category_of_site(3)
        with pytest.raises(IndexError):
            model.get_category_of_site(-1)

    def test_assignment_beyond_category_count(self):
        model = SiteModel(
            JC69(),
            gamma_category_count=4,
            shape=0.5,
            integrate_across_categories=False,
            site_categories=[0, 1],
        )
        model.set_gamma_category_count(2)
        model.set_site_categories([0, 2])

        assert model.get_category_of_site(0) == 0
        with pytest.raises(ValueError, match="category 2"):
            model.get_category_of_site(1)

    def test_negative_assignment_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            SiteModel(JC69(), integrate_across_categories=False, site_categories=[0, -1])

    def test_assignment_copied_on_construction(self):
        categories = [0, 1, 2]
        model = SiteModel(
            JC69(),
            gamma_category_count=4,
            shape=0.5,
            integrate_across_categories=False,
            site_categories=categories,
        )

        categories[1] = -5
        assert model.get_category_of_site(1) == 1
        assert model.version == 0
        assert model.config.site_categories == (0, 1, 2)

    def test_assignment_not_shared_through_config(self):
        model = SiteModel(
            JC69(),
            gamma_category_count=4,
            shape=0.5,
            integrate_across_categories=False,
            site_categories=[0, 1, 2],
        )

        with pytest.raises(TypeError):
            model.config.site_categories[2] = 3
        assert model.get_category_of_site(2) == 2

    def test_assignment_copied_by_setter(self):
        model = SiteModel(
            JC69(), gamma_category_count=4, shape=0.5, integrate_across_categories=False
        )
        categories = [3, 3]
        model.set_site_categories(categories)

        categories[0] = 0
        assert model.get_category_of_site(0) == 3


class TestConfiguration:
    """Test configuration validation and round trips."""

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"gamma_category_count": 0}, "gamma_category_count"),
            ({"shape": -1.0}, "shape"),
            ({"proportion_invariant": -0.1}, "proportion_invariant"),
            ({"mu": 0.0}, "mu"),
            ({"discretization": "mode"}, "Unknown discretization"),
            ({"alphabet": AMINO_ACID}, "cannot handle data type"),
        ],
    )
    def test_invalid_config(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            SiteModel(JC69(), **kwargs)

    def test_missing_substitution_model(self):
        with pytest.raises(ValueError, match="substitution_model"):
            SiteModelConfig(None).validate()

    def test_from_config(self):
        config = SiteModelConfig(
            JC69(), gamma_category_count=4, shape=0.5, proportion_invariant=0.2
        )
        model = SiteModel.from_config(config)

        assert model.get_category_count() == 5
        np.testing.assert_array_equal(
            model.get_category_rates(),
            SiteModel(JC69(), gamma_category_count=4, shape=0.5,
                      proportion_invariant=0.2).get_category_rates(),
        )

    def test_config_is_a_copy(self):
        model = SiteModel(JC69(), gamma_category_count=4, shape=0.5)

        config = model.config
        config.shape = 10.0
        assert model.config.shape == 0.5

    def test_repr(self):
        model = SiteModel(JC69(), gamma_category_count=4, shape=0.5)
        assert repr(model) == (
            "SiteModel(categories=4, shape=0.5, proportion_invariant=0.0, mu=1.0)"
        )
