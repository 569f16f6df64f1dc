"""
Input/Output modules for sequence data and trees.

- **Alphabets**: symbol <-> state index mappings and ambiguity codes
- **Sequences**: certain and uncertain (probabilistic) sequences, alignments
- **Trees**: Newick parsing for the likelihood evaluator
"""

from phylosite.io.alphabets import StateAlphabet, NUCLEOTIDE, AMINO_ACID, BINARY, get_alphabet
from phylosite.io.sequences import Alignment, Sequence, parse_probability_block
from phylosite.io.trees import Tree, TreeNode

__all__ = [
    "StateAlphabet",
    "NUCLEOTIDE",
    "AMINO_ACID",
    "BINARY",
    "get_alphabet",
    "Alignment",
    "Sequence",
    "parse_probability_block",
    "Tree",
    "TreeNode",
]
