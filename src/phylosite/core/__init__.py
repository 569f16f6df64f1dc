"""
Core algorithms for phylogenetic likelihood calculation.
"""

from phylosite.core.likelihood import LikelihoodCalculator
from phylosite.core.matrix import create_reversible_Q, matrix_exponential

__all__ = ["LikelihoodCalculator", "create_reversible_Q", "matrix_exponential"]
