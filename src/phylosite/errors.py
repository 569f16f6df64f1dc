"""
Exception types raised while ingesting sequence data or querying site models.

Data errors derive from ``ValueError`` so that callers catching the generic
error keep working. ``CategoryAccessViolation`` signals a caller bug and is
a ``RuntimeError`` instead.
"""


class PhylositeError(Exception):
    """Base class for all phylosite errors."""


class MalformedProbabilityVector(PhylositeError, ValueError):
    """A site's probability segment does not hold exactly K valid values."""


class ProbabilityNormalizationError(PhylositeError, ValueError):
    """A probability vector does not sum to one within tolerance."""


class UnknownSymbol(PhylositeError, ValueError):
    """A sequence symbol is not part of the state alphabet."""


class SiteCountMismatch(PhylositeError, ValueError):
    """A sequence length disagrees with the alignment's site count."""


class CategoryAccessViolation(PhylositeError, RuntimeError):
    """Per-site category requested while integrating across categories."""
