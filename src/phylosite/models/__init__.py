"""
Evolutionary models.

- **Site models**: discrete-gamma rate categories with invariant sites
- **Nucleotide models**: JC69 and HKY85 substitution processes
- **Clocks**: per-branch rate multipliers
"""

from phylosite.models.site_model import SiteModel, SiteModelConfig, discretize_gamma
from phylosite.models.nucleotide import JC69, HKY85, get_substitution_model
from phylosite.models.clocks import StrictClock, LabelledClock

__all__ = [
    "SiteModel",
    "SiteModelConfig",
    "discretize_gamma",
    "JC69",
    "HKY85",
    "get_substitution_model",
    "StrictClock",
    "LabelledClock",
]
