"""
Likelihood calculation for phylogenetic models.

Felsenstein's pruning algorithm starting from the alignment's tip
probabilities, with rate variation across sites taken from a site model.
"""

import logging

import numpy as np
from scipy.special import logsumexp

from ..io.sequences import Alignment
from ..io.trees import Tree
from ..models.site_model import SiteModel

logger = logging.getLogger(__name__)


class LikelihoodCalculator:
    """
    Compute phylogenetic likelihood using Felsenstein's pruning algorithm.

    Parameters
    ----------
    alignment : Alignment
        Certain and/or uncertain sequence data
    tree : Tree
        Tree whose leaf names match the alignment's taxa
    site_model : SiteModel
        Rate categories and substitution model

    Examples
    --------
    >>> calc = LikelihoodCalculator(aln, tree, SiteModel(JC69(), shape=0.5,
    ...                             gamma_category_count=4))
    >>> lnL = calc.log_likelihood()
    """

    def __init__(self, alignment: Alignment, tree: Tree, site_model: SiteModel):
        self.alignment = alignment
        self.tree = tree
        self.site_model = site_model

        if len(alignment.names) != tree.n_leaves:
            raise ValueError(
                f"Alignment has {len(alignment.names)} sequences but tree has "
                f"{tree.n_leaves} leaves"
            )

        alignment_names_set = set(alignment.names)
        tree_names_set = set(tree.leaf_names)
        if alignment_names_set != tree_names_set:
            raise ValueError(
                "Alignment and tree have different taxa. "
                f"In alignment but not tree: {alignment_names_set - tree_names_set}. "
                f"In tree but not alignment: {tree_names_set - alignment_names_set}"
            )

        substitution_model = site_model.get_substitution_model()
        if not substitution_model.can_handle(alignment.alphabet):
            raise ValueError("substitution model cannot handle data type")

        self.n_states = alignment.alphabet.size
        self.n_sites = alignment.n_sites

        frequencies = np.asarray(substitution_model.frequencies)
        if frequencies.shape != (self.n_states,):
            raise ValueError(
                f"Substitution model has {len(frequencies)} states, "
                f"alignment has {self.n_states}"
            )

    def _category_site_log_likelihoods(self, category: int) -> np.ndarray:
        """Per-site log-likelihood when every site evolves under one category."""
        substitution_model = self.site_model.get_substitution_model()
        partials = {}
        log_scale = np.zeros(self.n_sites)

        for node in self.tree.postorder():
            if node.is_leaf:
                partials[node.id] = self.alignment.tip_partials(node.name)
                continue

            partial = np.ones((self.n_sites, self.n_states))
            for child in node.children:
                rate = self.site_model.get_rate_for_category(category, child)
                P = substitution_model.transition_probabilities(rate, child.branch_length)
                # Sum over child states: L_child @ P^T
                partial = partial * (partials[child.id] @ P.T)

                # Log scale factors are added back at the root
                scale = partial.max(axis=1)
                scale[scale <= 0] = 1.0
                partial = partial / scale[:, np.newaxis]
                log_scale += np.log(scale)
            partials[node.id] = partial

        with np.errstate(divide="ignore"):
            root = np.log(partials[self.tree.root.id] @ substitution_model.frequencies)
        return root + log_scale

    def _invariant_site_log_likelihoods(self) -> np.ndarray:
        """Per-site log-likelihood assuming no change anywhere on the tree."""
        frequencies = self.site_model.get_substitution_model().frequencies
        with np.errstate(divide="ignore"):
            log_tips = np.log(self.alignment.tip_probabilities).sum(axis=0)
            return logsumexp(log_tips + np.log(frequencies), axis=1)

    def site_log_likelihoods(self) -> np.ndarray:
        """
        Log-likelihood of each site.

        Returns
        -------
        np.ndarray, shape (n_sites,)
        """
        n_categories = self.site_model.get_category_count()
        by_category = np.column_stack(
            [self._category_site_log_likelihoods(c) for c in range(n_categories)]
        )

        if self.site_model.integrate_across_categories():
            with np.errstate(divide="ignore"):
                log_proportions = np.log(self.site_model.get_category_proportions())
            site_lnL = logsumexp(by_category + log_proportions, axis=1)
            p_inv = self.site_model.get_proportion_invariant()
            if p_inv > 0 and not self.site_model.has_invariant_category():
                site_lnL = np.logaddexp(
                    site_lnL, np.log(p_inv) + self._invariant_site_log_likelihoods()
                )
        else:
            categories = [
                self.site_model.get_category_of_site(site) for site in range(self.n_sites)
            ]
            site_lnL = by_category[np.arange(self.n_sites), categories]

        logger.debug(
            "Evaluated %d sites over %d rate categories", self.n_sites, n_categories
        )
        return site_lnL

    def site_likelihoods(self) -> np.ndarray:
        """Likelihood of each site (may underflow to zero on large trees)."""
        return np.exp(self.site_log_likelihoods())

    def log_likelihood(self) -> float:
        """Total log-likelihood (sum over sites)."""
        return float(np.sum(self.site_log_likelihoods()))
