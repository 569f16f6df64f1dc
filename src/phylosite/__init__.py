"""
phylosite: site rate heterogeneity and probabilistic alignments.

Building blocks for phylogenetic likelihood evaluation: discrete-gamma
site models with invariant sites, and alignments whose sequences are
either certain symbol strings or per-site probability vectors.

Quick Start
-----------
Build an alignment from uncertain data:

>>> from phylosite import Alignment, Sequence, NUCLEOTIDE
>>> seq = Sequence("seq1", "0.7,0.0,0.3,0.0; 0.0,0.3,0.0,0.7;", uncertain=True)
>>> aln = Alignment([seq], NUCLEOTIDE)
>>> aln.get_representative_string("seq1")
'AT'

Discretize rates across sites:

>>> from phylosite import SiteModel, HKY85
>>> model = SiteModel(HKY85(kappa=2.0), gamma_category_count=4, shape=0.5)
>>> rates = model.get_category_rates()
"""

__version__ = "0.1.0"

from .errors import (
    PhylositeError,
    MalformedProbabilityVector,
    ProbabilityNormalizationError,
    UnknownSymbol,
    SiteCountMismatch,
    CategoryAccessViolation,
)

from .io.alphabets import StateAlphabet, NUCLEOTIDE, AMINO_ACID, BINARY, get_alphabet
from .io.sequences import Alignment, Sequence
from .io.trees import Tree, TreeNode

from .models.site_model import SiteModel, SiteModelConfig, discretize_gamma
from .models.nucleotide import JC69, HKY85
from .models.clocks import StrictClock, LabelledClock

from .core.likelihood import LikelihoodCalculator

__all__ = [
    # Errors
    "PhylositeError",
    "MalformedProbabilityVector",
    "ProbabilityNormalizationError",
    "UnknownSymbol",
    "SiteCountMismatch",
    "CategoryAccessViolation",

    # Data
    "StateAlphabet",
    "NUCLEOTIDE",
    "AMINO_ACID",
    "BINARY",
    "get_alphabet",
    "Alignment",
    "Sequence",
    "Tree",
    "TreeNode",

    # Models
    "SiteModel",
    "SiteModelConfig",
    "discretize_gamma",
    "JC69",
    "HKY85",
    "StrictClock",
    "LabelledClock",

    # Core
    "LikelihoodCalculator",

    # Version
    "__version__",
]
