"""
Pytest configuration and shared fixtures.
"""

import pytest
from typer.testing import CliRunner

from phylosite.io.alphabets import NUCLEOTIDE
from phylosite.io.sequences import Alignment, Sequence
from phylosite.io.trees import Tree


UNCERTAIN_PROBS = {
    "seq1": "0.7,0.0,0.3,0.0; 0.0,0.3,0.0,0.7; 0.0,0.0,0.0,1.0;",
    "seq2": "0.7,0.0,0.3,0.0; 0.0,0.3,0.0,0.7; 0.0,1.0,0.0,0.0;",
    "seq3": "0.4,0.0,0.6,0.0; 0.0,0.6,0.0,0.4; 0.0,1.0,0.0,0.0;",
}

# Most probable states of UNCERTAIN_PROBS
CERTAIN_SEQS = {
    "seq1": "ATT",
    "seq2": "ATC",
    "seq3": "GCC",
}

INVALID_PROBS = "0.1,0.2,0.4,0.3; 0.1,0.0,0.6,0.0; 0.2,0.2,0.4,0.2;"


@pytest.fixture
def uncertain_probs():
    return dict(UNCERTAIN_PROBS)


@pytest.fixture
def uncertain_alignment():
    """Three-taxon alignment of per-site probability vectors."""
    return Alignment(
        [Sequence(name, probs, uncertain=True) for name, probs in UNCERTAIN_PROBS.items()],
        NUCLEOTIDE,
    )


@pytest.fixture
def certain_alignment():
    """Certain alignment matching the most probable uncertain states."""
    return Alignment(
        [Sequence(name, seq) for name, seq in CERTAIN_SEQS.items()],
        NUCLEOTIDE,
    )


@pytest.fixture
def tree_b():
    return Tree.from_newick("(seq1:2,(seq2:1,seq3:1):1);")


@pytest.fixture
def tree_a():
    return Tree.from_newick("((seq1:1,seq2:1):1,seq3:2);")


@pytest.fixture
def cli_runner():
    """CLI test runner for Typer apps."""
    return CliRunner()


@pytest.fixture
def uncertain_fasta(tmp_path):
    """FASTA file whose records are probability blocks."""
    path = tmp_path / "uncertain.fasta"
    with open(path, "w") as f:
        for name, probs in UNCERTAIN_PROBS.items():
            first, rest = probs.split(";", 1)
            f.write(f">{name}\n{first};\n{rest.strip()}\n")
    return path


@pytest.fixture
def certain_fasta(tmp_path):
    path = tmp_path / "certain.fasta"
    with open(path, "w") as f:
        for name, seq in CERTAIN_SEQS.items():
            f.write(f">{name}\n{seq}\n")
    return path


@pytest.fixture
def tree_file(tmp_path):
    path = tmp_path / "tree.nwk"
    path.write_text("(seq1:2,(seq2:1,seq3:1):1);\n")
    return path
