"""Log-likelihood command implementation."""

import json
import sys
from pathlib import Path
from typing import Optional

from phylosite.core.likelihood import LikelihoodCalculator
from phylosite.io.alphabets import NUCLEOTIDE
from phylosite.io.sequences import Alignment
from phylosite.io.trees import Tree
from phylosite.models.nucleotide import get_substitution_model
from phylosite.models.site_model import SiteModel


def run_loglik(
    alignment: Path,
    tree: Path,
    uncertain: bool,
    model: str,
    kappa: float,
    shape: Optional[float],
    categories: int,
    pinv: float,
    format: str,
):
    """Compute the log-likelihood for fixed parameters."""
    try:
        aln = Alignment.from_fasta(alignment, NUCLEOTIDE, uncertain=uncertain)
    except ValueError as e:
        print(f"Error: Could not load alignment from {alignment}", file=sys.stderr)
        print(f"Details: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        tree_obj = Tree.from_file(tree)
    except ValueError as e:
        print(f"Error: Could not load tree from {tree}", file=sys.stderr)
        print(f"Details: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        site_model = SiteModel(
            get_substitution_model(model, kappa=kappa),
            gamma_category_count=categories if shape is not None else 1,
            shape=shape,
            proportion_invariant=pinv,
            alphabet=aln.alphabet,
        )
        lnL = LikelihoodCalculator(aln, tree_obj, site_model).log_likelihood()
    except ValueError as e:
        print("Error: Likelihood calculation failed", file=sys.stderr)
        print(f"Details: {e}", file=sys.stderr)
        sys.exit(1)

    if format == "json":
        print(json.dumps({
            "model": model,
            "kappa": kappa if model == "hky" else None,
            "shape": shape,
            "categories": site_model.get_category_count(),
            "proportion_invariant": pinv,
            "n_taxa": aln.n_species,
            "n_sites": aln.n_sites,
            "lnL": lnL,
        }, indent=2))
        return

    print(f"Taxa:            {aln.n_species}")
    print(f"Sites:           {aln.n_sites}")
    print(f"Rate categories: {site_model.get_category_count()}")
    print(f"Log-likelihood:  {lnL:.6f}")
