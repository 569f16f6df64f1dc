"""
Site models: rate heterogeneity across sites.

A site model splits sites into discrete rate categories, each with a rate
multiplier and an expected proportion of sites. Rates come from a gamma
distribution with mean one, discretized into equal-probability bins, plus
an optional class of invariant (rate zero) sites.

Derived rates and proportions are cached and recomputed lazily: every
setter bumps a version counter and the next read recomputes when the
cached version is stale.
"""

import logging
import warnings
from dataclasses import dataclass, fields, replace
from typing import Callable, Optional, Protocol, Sequence

import numpy as np
from scipy.special import gammainc
from scipy.stats import gamma

from ..errors import CategoryAccessViolation
from ..io.alphabets import StateAlphabet
from ..io.trees import TreeNode

logger = logging.getLogger(__name__)

DISCRETIZATION_METHODS = ("median", "mean")


class SubstitutionModel(Protocol):
    frequencies: np.ndarray

    def can_handle(self, alphabet: StateAlphabet) -> bool: ...

    def transition_probabilities(self, rate: float, branch_length: float) -> np.ndarray: ...


class BranchRateModel(Protocol):
    def get_rate(self, node: Optional[TreeNode]) -> float: ...


def discretize_gamma(shape: float, n_categories: int, method: str = "median") -> np.ndarray:
    """
    Discretize a mean-one gamma distribution into equal-probability bins.

    Parameters
    ----------
    shape : float
        Gamma shape parameter alpha (rate parameter is also alpha)
    n_categories : int
        Number of bins
    method : str
        'median' uses the quantile at the middle of each bin, rescaled so
        the rates average to one. 'mean' uses the conditional mean of each
        bin (Yang 1994). 'median' falls back to 'mean' with a warning when
        every bin median underflows to zero.

    Returns
    -------
    np.ndarray, shape (n_categories,)
        Category rates with mean 1

    Examples
    --------
    >>> rates = discretize_gamma(0.5, 4)
    >>> round(float(rates.mean()), 12)
    1.0
    """
    if shape <= 0:
        raise ValueError(f"Gamma shape must be positive, got {shape}")
    if n_categories < 1:
        raise ValueError(f"Need at least one category, got {n_categories}")

    K = n_categories
    if method == "median":
        points = (2.0 * np.arange(K) + 1.0) / (2.0 * K)
        rates = gamma.ppf(points, shape, scale=1.0 / shape)
        if rates.mean() > 0:
            return rates / rates.mean()
        # Every bin median underflows to zero for tiny shapes
        warnings.warn(
            f"Gamma shape {shape} too small for median discretization; "
            "using category means",
            UserWarning,
        )
        method = "mean"

    if method == "mean":
        cuts = gamma.ppf(np.arange(1, K) / K, shape, scale=1.0 / shape)
        cdf = np.concatenate(([0.0], gammainc(shape + 1.0, cuts * shape), [1.0]))
        return K * np.diff(cdf)

    raise ValueError(
        f"Unknown discretization '{method}'. "
        f"Valid methods: {', '.join(DISCRETIZATION_METHODS)}"
    )


@dataclass
class SiteModelConfig:
    """
    Named configuration of a :class:`SiteModel`.

    Attributes
    ----------
    substitution_model : SubstitutionModel
        Model along branches (required)
    gamma_category_count : int
        Number of gamma rate categories (>= 1)
    shape : float, optional
        Gamma shape parameter. If None, all variable sites share one rate.
    proportion_invariant : float
        Proportion of invariant sites, in [0, 1)
    mu : float
        Overall substitution rate multiplier
    integrate_across_categories : bool
        If True, the likelihood sums over categories at every site. If
        False, each site belongs to exactly one category.
    prop_invariant_is_category : bool
        If True, invariant sites are exposed as a rate-zero category. If
        False, only the gamma categories are exposed and the evaluator
        handles invariant sites itself.
    site_categories : sequence of int, optional
        Category of each site, used when not integrating. Stored as a tuple.
    discretization : str
        Gamma discretization, 'median' or 'mean'
    branch_rates : BranchRateModel, optional
        Per-branch rate multiplier consulted with the context node
    alphabet : StateAlphabet, optional
        Data type the substitution model must handle
    """

    substitution_model: SubstitutionModel
    gamma_category_count: int = 1
    shape: Optional[float] = None
    proportion_invariant: float = 0.0
    mu: float = 1.0
    integrate_across_categories: bool = True
    prop_invariant_is_category: bool = True
    site_categories: Optional[Sequence[int]] = None
    discretization: str = "median"
    branch_rates: Optional[BranchRateModel] = None
    alphabet: Optional[StateAlphabet] = None

    def __post_init__(self):
        if self.site_categories is not None:
            self.site_categories = tuple(int(c) for c in self.site_categories)

    def validate(self) -> None:
        """
        Check field values.

        Raises
        ------
        ValueError
            If any field is out of range
        """
        if self.substitution_model is None:
            raise ValueError("substitution_model is required")
        if self.gamma_category_count < 1:
            raise ValueError(
                f"gamma_category_count must be >= 1, got {self.gamma_category_count}"
            )
        if self.shape is not None and self.shape <= 0:
            raise ValueError(f"shape must be positive, got {self.shape}")
        if not 0.0 <= self.proportion_invariant < 1.0:
            raise ValueError(
                f"proportion_invariant must be in [0, 1), got {self.proportion_invariant}"
            )
        if self.mu <= 0:
            raise ValueError(f"mu must be positive, got {self.mu}")
        if self.discretization not in DISCRETIZATION_METHODS:
            raise ValueError(
                f"Unknown discretization '{self.discretization}'. "
                f"Valid methods: {', '.join(DISCRETIZATION_METHODS)}"
            )
        if self.site_categories is not None and any(c < 0 for c in self.site_categories):
            raise ValueError("site_categories must be non-negative")
        if self.alphabet is not None and not self.substitution_model.can_handle(self.alphabet):
            raise ValueError("substitution model cannot handle data type")


class _VersionedCache:
    """Value recomputed when the requested version differs from the cached one."""

    def __init__(self, compute: Callable):
        self._compute = compute
        self._version = None
        self._value = None

    def get(self, version: int):
        if self._version != version:
            self._value = self._compute()
            self._version = version
        return self._value


class SiteModel:
    """
    Discrete-gamma site model with optional invariant sites.

    Parameters
    ----------
    substitution_model : SubstitutionModel
        Model along branches
    **kwargs
        Any other :class:`SiteModelConfig` field

    Examples
    --------
    >>> from phylosite.models.nucleotide import JC69
    >>> model = SiteModel(JC69(), gamma_category_count=4, shape=0.5,
    ...                   proportion_invariant=0.2)
    >>> model.get_category_count()
    5
    >>> round(float(model.get_category_proportions().sum()), 12)
    1.0
    """

    def __init__(self, substitution_model: SubstitutionModel, **kwargs):
        config = SiteModelConfig(substitution_model, **kwargs)
        config.validate()
        self._config = config
        self._version = 0
        self._categories = _VersionedCache(self._calculate_categories)
        self._warn_unused_categories()

    @classmethod
    def from_config(cls, config: SiteModelConfig) -> "SiteModel":
        return cls(**{f.name: getattr(config, f.name) for f in fields(config)})

    @property
    def config(self) -> SiteModelConfig:
        """Copy of the current configuration."""
        return replace(self._config)

    @property
    def version(self) -> int:
        """Configuration generation; bumped by every setter."""
        return self._version

    def _update(self, **changes) -> None:
        config = replace(self._config, **changes)
        config.validate()
        self._config = config
        self._version += 1

    def _warn_unused_categories(self) -> None:
        if self._config.shape is None and self._config.gamma_category_count > 1:
            warnings.warn(
                f"gamma_category_count={self._config.gamma_category_count} ignored "
                "because no shape parameter is set; using a single rate category",
                UserWarning,
            )

    def set_shape(self, shape: Optional[float]) -> None:
        self._update(shape=shape)
        self._warn_unused_categories()

    def set_gamma_category_count(self, count: int) -> None:
        self._update(gamma_category_count=count)
        self._warn_unused_categories()

    def set_proportion_invariant(self, proportion: float) -> None:
        self._update(proportion_invariant=proportion)

    def set_prop_invariant_is_category(self, is_category: bool) -> None:
        self._update(prop_invariant_is_category=is_category)

    def set_mu(self, mu: float) -> None:
        self._update(mu=mu)

    def set_alphabet(self, alphabet: StateAlphabet) -> None:
        """Set the data type, checking the substitution model can handle it."""
        self._update(alphabet=alphabet)

    def set_site_categories(self, site_categories: Optional[Sequence[int]]) -> None:
        self._update(site_categories=site_categories)

    def get_substitution_model(self) -> SubstitutionModel:
        return self._config.substitution_model

    def integrate_across_categories(self) -> bool:
        return self._config.integrate_across_categories

    def get_proportion_invariant(self) -> float:
        return self._config.proportion_invariant

    def has_invariant_category(self) -> bool:
        """Whether invariant sites are exposed as a rate-zero category."""
        cfg = self._config
        return cfg.proportion_invariant > 0 and cfg.prop_invariant_is_category

    def _calculate_categories(self) -> tuple[np.ndarray, np.ndarray]:
        """
        Compute base category rates and proportions.

        The invariant category, when counted, comes first with rate 0.
        Variable-site rates are scaled so that the mean rate over all
        sites, invariant ones included, is 1.
        """
        cfg = self._config
        p_inv = cfg.proportion_invariant
        prop_variable = 1.0 - p_inv

        rates = []
        proportions = []
        if self.has_invariant_category():
            rates.append(0.0)
            proportions.append(p_inv)

        if cfg.shape is not None:
            n_gamma = cfg.gamma_category_count
            variable_rates = discretize_gamma(cfg.shape, n_gamma, cfg.discretization)
            variable_rates = variable_rates / (prop_variable * variable_rates.mean())
        else:
            n_gamma = 1
            variable_rates = np.array([1.0 / prop_variable])

        rates.extend(variable_rates)
        proportions.extend([prop_variable / n_gamma] * n_gamma)

        rates = np.array(rates, dtype=float)
        proportions = np.array(proportions, dtype=float)
        rates.setflags(write=False)
        proportions.setflags(write=False)

        logger.debug(
            "Recomputed %d rate categories (version %d): rates=%s proportions=%s",
            len(rates), self._version, rates, proportions,
        )
        return rates, proportions

    def _base_rates(self) -> np.ndarray:
        return self._categories.get(self._version)[0]

    def _base_proportions(self) -> np.ndarray:
        return self._categories.get(self._version)[1]

    def _scale(self, node: Optional[TreeNode]) -> float:
        scale = self._config.mu
        if self._config.branch_rates is not None:
            scale = scale * self._config.branch_rates.get_rate(node)
        return scale

    def _check_category(self, category: int) -> None:
        count = self.get_category_count()
        if not 0 <= category < count:
            raise IndexError(f"Category {category} out of range (0-{count - 1})")

    def get_category_count(self) -> int:
        """Number of rate categories, including a counted invariant category."""
        return len(self._base_rates())

    def get_rate_for_category(self, category: int, node: Optional[TreeNode] = None) -> float:
        """
        Rate for one category, including ``mu`` and the branch rate of ``node``.

        Parameters
        ----------
        category : int
            Category index
        node : TreeNode, optional
            Branch context passed to the branch rate model

        Returns
        -------
        float
        """
        self._check_category(category)
        return float(self._base_rates()[category] * self._scale(node))

    def get_category_rates(self, node: Optional[TreeNode] = None) -> np.ndarray:
        """Rates for all categories; element-wise equal to get_rate_for_category."""
        return self._base_rates() * self._scale(node)

    def get_proportion_for_category(self, category: int, node: Optional[TreeNode] = None) -> float:
        """Expected proportion of sites in one category."""
        self._check_category(category)
        return float(self._base_proportions()[category])

    def get_category_proportions(self, node: Optional[TreeNode] = None) -> np.ndarray:
        """Proportions for all categories."""
        return np.array(self._base_proportions())

    def get_category_of_site(self, site: int, node: Optional[TreeNode] = None) -> int:
        """
        Category a site belongs to.

        Only meaningful when not integrating across categories. Without an
        explicit assignment every site falls in the category with the
        largest proportion (lowest index on ties).

        Raises
        ------
        CategoryAccessViolation
            If the model integrates across categories
        """
        if self._config.integrate_across_categories:
            raise CategoryAccessViolation(
                "Integrating across categories: sites have no single category"
            )
        if site < 0:
            raise IndexError(f"Site {site} out of range")

        site_categories = self._config.site_categories
        if site_categories is None:
            return int(np.argmax(self._base_proportions()))

        if site >= len(site_categories):
            raise IndexError(
                f"Site {site} out of range (0-{len(site_categories) - 1})"
            )
        category = int(site_categories[site])
        count = self.get_category_count()
        if category >= count:
            raise ValueError(
                f"Site {site} assigned to category {category}, "
                f"but the model has {count} categories"
            )
        return category

    def __repr__(self) -> str:
        cfg = self._config
        return (
            f"SiteModel(categories={self.get_category_count()}, shape={cfg.shape}, "
            f"proportion_invariant={cfg.proportion_invariant}, mu={cfg.mu})"
        )
