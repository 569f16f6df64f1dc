"""Rates command implementation."""

import json
import sys
from typing import Optional

from phylosite.models.nucleotide import JC69
from phylosite.models.site_model import SiteModel


def run_rates(
    shape: Optional[float],
    categories: int,
    pinv: float,
    invariant_category: bool,
    mu: float,
    method: str,
    format: str,
):
    """Print category rates and proportions."""
    try:
        # Rates do not depend on the substitution model
        site_model = SiteModel(
            JC69(),
            gamma_category_count=categories if shape is not None else 1,
            shape=shape,
            proportion_invariant=pinv,
            prop_invariant_is_category=invariant_category,
            mu=mu,
            discretization=method,
        )
    except ValueError as e:
        print("Error: Invalid site model", file=sys.stderr)
        print(f"Details: {e}", file=sys.stderr)
        sys.exit(1)

    rates = site_model.get_category_rates()
    proportions = site_model.get_category_proportions()

    if format == "json":
        data = {
            "shape": shape,
            "proportion_invariant": pinv,
            "invariant_is_category": site_model.has_invariant_category(),
            "mu": mu,
            "method": method,
            "categories": [
                {"category": i, "rate": float(r), "proportion": float(p)}
                for i, (r, p) in enumerate(zip(rates, proportions))
            ],
        }
        print(json.dumps(data, indent=2))
        return

    print(f"{'Category':>8}  {'Rate':>12}  {'Proportion':>12}")
    for i, (r, p) in enumerate(zip(rates, proportions)):
        print(f"{i:>8}  {r:>12.6f}  {p:>12.6f}")
    if pinv > 0 and not site_model.has_invariant_category():
        print(f"Invariant sites (not a category): {pinv:.6f}")
