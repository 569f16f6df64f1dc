"""
State alphabets mapping character symbols to state indices.
"""

from dataclasses import dataclass, field
from typing import Iterable

import numpy as np

from ..errors import UnknownSymbol


@dataclass(frozen=True, eq=False)
class StateAlphabet:
    """
    Ordered set of K character states plus ambiguity symbols.

    Attributes
    ----------
    name : str
        Data type name (e.g. 'nucleotide')
    symbols : str
        Canonical state symbols; position in the string is the state index
    ambiguities : dict[str, str]
        Ambiguity symbol -> string of compatible canonical symbols
    missing : str
        Symbols denoting full uncertainty (gaps, unknown characters)
    aliases : dict[str, str]
        Extra symbols read as a canonical symbol (e.g. 'U' -> 'T')
    """

    name: str
    symbols: str
    ambiguities: dict[str, str] = field(default_factory=dict)
    missing: str = "-?"
    aliases: dict[str, str] = field(default_factory=dict)
    _lookup: dict[str, np.ndarray] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if len(set(self.symbols)) != len(self.symbols):
            raise ValueError(f"Duplicate symbols in alphabet '{self.name}'")

        K = len(self.symbols)
        lookup = {}

        for i, symbol in enumerate(self.symbols):
            vector = np.zeros(K)
            vector[i] = 1.0
            lookup[symbol] = vector

        for alias, target in self.aliases.items():
            lookup[alias] = lookup[target]

        for code, compatible in self.ambiguities.items():
            vector = np.zeros(K)
            for symbol in compatible:
                vector[self.symbols.index(symbol)] = 1.0
            lookup[code] = vector / vector.sum()

        uniform = np.full(K, 1.0 / K)
        for symbol in self.missing:
            lookup[symbol] = uniform

        for vector in lookup.values():
            vector.setflags(write=False)

        object.__setattr__(self, "_lookup", lookup)

    @property
    def size(self) -> int:
        """Number of canonical states K."""
        return len(self.symbols)

    def _normalize(self, symbol: str) -> str:
        if symbol in self._lookup:
            return symbol
        upper = symbol.upper()
        if upper in self._lookup:
            return upper
        raise UnknownSymbol(
            f"Symbol '{symbol}' is not part of the {self.name} alphabet"
        )

    def index_of(self, symbol: str) -> int:
        """
        Return the state index of a canonical (or aliased) symbol.

        Ambiguous symbols have no single index; use :meth:`tip_vector`.
        """
        symbol = self._normalize(symbol)
        symbol = self.aliases.get(symbol, symbol)
        if symbol not in self.symbols:
            raise ValueError(
                f"Symbol '{symbol}' is ambiguous in the {self.name} alphabet"
            )
        return self.symbols.index(symbol)

    def symbol_of(self, index: int) -> str:
        if not 0 <= index < self.size:
            raise IndexError(f"State index {index} out of range for {self.name}")
        return self.symbols[index]

    def is_ambiguous(self, symbol: str) -> bool:
        symbol = self._normalize(symbol)
        return symbol in self.ambiguities or symbol in self.missing

    def tip_vector(self, symbol: str) -> np.ndarray:
        """
        Probability vector over the K states for an observed symbol.

        Canonical symbols give a one-hot vector; ambiguity codes spread the
        mass uniformly over compatible states; missing data is uniform.
        The returned array is read-only.
        """
        return self._lookup[self._normalize(symbol)]

    def string_to_states(self, text: str) -> list[int]:
        return [self.index_of(symbol) for symbol in text]

    def states_to_string(self, states: Iterable[int]) -> str:
        return "".join(self.symbol_of(int(state)) for state in states)


NUCLEOTIDE = StateAlphabet(
    name="nucleotide",
    symbols="ACGT",
    ambiguities={
        "R": "AG", "Y": "CT", "M": "AC", "K": "GT", "S": "CG", "W": "AT",
        "B": "CGT", "D": "AGT", "H": "ACT", "V": "ACG", "N": "ACGT",
    },
    missing="-?",
    aliases={"U": "T"},
)

AMINO_ACID = StateAlphabet(
    name="aminoacid",
    symbols="ARNDCQEGHILKMFPSTWYV",
    ambiguities={"B": "ND", "Z": "QE", "J": "IL"},
    missing="X-?*",
)

BINARY = StateAlphabet(name="binary", symbols="01", missing="-?")

_ALPHABETS = {
    "nucleotide": NUCLEOTIDE,
    "dna": NUCLEOTIDE,
    "aminoacid": AMINO_ACID,
    "aa": AMINO_ACID,
    "binary": BINARY,
}


def get_alphabet(name: str) -> StateAlphabet:
    """Look up a built-in alphabet by name (case-insensitive)."""
    try:
        return _ALPHABETS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown data type '{name}'. "
            f"Valid data types: {', '.join(sorted(_ALPHABETS))}"
        ) from None
