"""Main CLI application for phylosite."""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="phylosite",
    help="Site rate categories and probabilistic alignments for phylogenetic likelihoods",
    no_args_is_help=True,
)


class OutputFormat(str, Enum):
    """Output format."""
    TEXT = "text"
    JSON = "json"


class Discretization(str, Enum):
    """Gamma discretization method."""
    MEDIAN = "median"
    MEAN = "mean"


class ModelName(str, Enum):
    """Nucleotide substitution model."""
    JC69 = "jc69"
    HKY = "hky"


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@app.command()
def rates(
    shape: Optional[float] = typer.Option(
        None,
        "--shape", "-a",
        help="Gamma shape parameter (omit for a single rate category)",
    ),
    categories: int = typer.Option(
        4,
        "--categories", "-c",
        help="Number of gamma rate categories",
        min=1,
    ),
    pinv: float = typer.Option(
        0.0,
        "--pinv",
        help="Proportion of invariant sites",
        min=0.0,
    ),
    invariant_category: bool = typer.Option(
        True,
        "--invariant-category/--no-invariant-category",
        help="Report invariant sites as a rate-zero category",
    ),
    mu: float = typer.Option(
        1.0,
        "--mu",
        help="Overall substitution rate multiplier",
    ),
    method: Discretization = typer.Option(
        Discretization.MEDIAN,
        "--method",
        help="Gamma discretization method",
    ),
    format: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--format",
        help="Output format",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Show debug logging",
    ),
):
    """
    Print the rate and proportion of each site rate category.

    Example:
        phylosite rates --shape 0.5 --categories 4 --pinv 0.2
    """
    from .commands.rates import run_rates

    _configure_logging(verbose)
    run_rates(
        shape=shape,
        categories=categories,
        pinv=pinv,
        invariant_category=invariant_category,
        mu=mu,
        method=method.value,
        format=format.value,
    )


@app.command()
def states(
    alignment: Path = typer.Option(
        ...,
        "--alignment", "-s",
        help="Alignment file (FASTA)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    uncertain: bool = typer.Option(
        False,
        "--uncertain", "-u",
        help="Sequences are per-site probability blocks",
    ),
    alphabet: str = typer.Option(
        "nucleotide",
        "--alphabet",
        help="Data type (nucleotide, aminoacid, binary)",
    ),
    format: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--format",
        help="Output format",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Show debug logging",
    ),
):
    """
    Print the most probable sequence of each taxon.

    Example:
        phylosite states -s uncertain.fasta --uncertain
    """
    from .commands.states import run_states

    _configure_logging(verbose)
    run_states(
        alignment=alignment,
        uncertain=uncertain,
        alphabet=alphabet,
        format=format.value,
    )


@app.command()
def loglik(
    alignment: Path = typer.Option(
        ...,
        "--alignment", "-s",
        help="Nucleotide alignment file (FASTA)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    tree: Path = typer.Option(
        ...,
        "--tree", "-t",
        help="Phylogenetic tree file (Newick format)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    uncertain: bool = typer.Option(
        False,
        "--uncertain", "-u",
        help="Sequences are per-site probability blocks",
    ),
    model: ModelName = typer.Option(
        ModelName.HKY,
        "--model", "-m",
        help="Substitution model",
    ),
    kappa: float = typer.Option(
        2.0,
        "--kappa",
        help="Transition/transversion ratio (HKY only)",
    ),
    shape: Optional[float] = typer.Option(
        None,
        "--shape", "-a",
        help="Gamma shape parameter (omit for no rate variation)",
    ),
    categories: int = typer.Option(
        4,
        "--categories", "-c",
        help="Number of gamma rate categories",
        min=1,
    ),
    pinv: float = typer.Option(
        0.0,
        "--pinv",
        help="Proportion of invariant sites",
        min=0.0,
    ),
    format: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--format",
        help="Output format",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Show debug logging",
    ),
):
    """
    Compute the log-likelihood of an alignment on a fixed tree.

    Example:
        phylosite loglik -s data.fasta -t tree.nwk --shape 0.5 --pinv 0.1
    """
    from .commands.loglik import run_loglik

    _configure_logging(verbose)
    run_loglik(
        alignment=alignment,
        tree=tree,
        uncertain=uncertain,
        model=model.value,
        kappa=kappa,
        shape=shape,
        categories=categories,
        pinv=pinv,
        format=format.value,
    )


def main():
    app()


if __name__ == "__main__":
    main()
