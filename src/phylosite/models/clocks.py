"""
Branch rate models consulted by site models for per-branch scaling.
"""

from typing import Mapping, Optional

from ..io.trees import TreeNode


class StrictClock:
    """Same rate on every branch."""

    def __init__(self, rate: float = 1.0):
        if rate <= 0:
            raise ValueError(f"Clock rate must be positive, got {rate}")
        self.rate = rate

    def get_rate(self, node: Optional[TreeNode]) -> float:
        return self.rate


class LabelledClock:
    """
    Rates keyed by branch label.

    Branches carry labels such as ``#1`` in the Newick string; unlabelled
    branches (and a missing node) get ``default``.

    Examples
    --------
    >>> clock = LabelledClock({"#1": 2.0})
    >>> clock.get_rate(None)
    1.0
    """

    def __init__(self, rates: Mapping[str, float], default: float = 1.0):
        for label, rate in rates.items():
            if rate <= 0:
                raise ValueError(f"Rate for branch label {label} must be positive, got {rate}")
        if default <= 0:
            raise ValueError(f"Default rate must be positive, got {default}")
        self.rates = dict(rates)
        self.default = default

    def get_rate(self, node: Optional[TreeNode]) -> float:
        if node is None or node.label is None:
            return self.default
        return self.rates.get(node.label, self.default)
