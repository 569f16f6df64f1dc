"""
Sequence parsing and alignment handling for certain and uncertain data.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Sequence as SequenceType, Union

import numpy as np

from ..errors import (
    MalformedProbabilityVector,
    ProbabilityNormalizationError,
    SiteCountMismatch,
)
from .alphabets import NUCLEOTIDE, StateAlphabet

logger = logging.getLogger(__name__)

# Maximum allowed |sum - 1| for a site's probability vector
PROBABILITY_TOLERANCE = 1e-10


def parse_probability_block(
    text: str,
    n_states: Optional[int] = None,
    taxon: Optional[str] = None,
    tolerance: float = PROBABILITY_TOLERANCE,
) -> np.ndarray:
    """
    Parse a block of per-site probability vectors.

    Sites are separated by ``;`` and the values within a site by ``,``.
    Whitespace is ignored and a single trailing ``;`` is allowed.

    Parameters
    ----------
    text : str
        Probability block, e.g. ``"0.7,0.0,0.3,0.0; 0.0,0.3,0.0,0.7;"``
    n_states : int, optional
        Required number of values per site. If None, every site must have
        the same number of values as the first one.
    taxon : str, optional
        Taxon name used in error messages
    tolerance : float
        Maximum allowed deviation of each site's sum from 1

    Returns
    -------
    np.ndarray, shape (n_sites, n_states)
        Probability vectors, stored verbatim

    Raises
    ------
    MalformedProbabilityVector
        If a site has the wrong number of values or a value is not a
        finite non-negative number
    ProbabilityNormalizationError
        If a site's values do not sum to 1 within tolerance
    """
    where = f" of taxon '{taxon}'" if taxon is not None else ""

    segments = [segment.strip() for segment in text.strip().split(";")]
    if segments and segments[-1] == "":
        segments.pop()
    if not segments:
        raise MalformedProbabilityVector(f"No sites found in probability block{where}")

    rows = []
    width = n_states
    for site, segment in enumerate(segments):
        raw_values = [value.strip() for value in segment.split(",")]
        try:
            values = [float(value) for value in raw_values]
        except ValueError:
            raise MalformedProbabilityVector(
                f"Site {site}{where} contains a non-numeric value: '{segment}'"
            ) from None

        if width is None:
            width = len(values)
        if len(values) != width:
            raise MalformedProbabilityVector(
                f"Site {site}{where} has {len(values)} values, expected {width}"
            )

        vector = np.array(values, dtype=float)
        if not np.all(np.isfinite(vector)) or np.any(vector < 0):
            raise MalformedProbabilityVector(
                f"Site {site}{where} has negative or non-finite values: '{segment}'"
            )

        total = vector.sum()
        if abs(total - 1.0) > tolerance:
            raise ProbabilityNormalizationError(
                f"Probabilities at site {site}{where} do not sum to unity "
                f"(sum = {total:.10g})"
            )
        rows.append(vector)

    return np.vstack(rows)


@dataclass(frozen=True, eq=False)
class Sequence:
    """
    Raw data for one taxon.

    A certain sequence holds one alphabet symbol per site. An uncertain
    sequence holds a probability block (see :func:`parse_probability_block`)
    which is parsed and validated on construction.

    Attributes
    ----------
    taxon : str
        Taxon name
    data : str
        Symbol string or probability block
    uncertain : bool
        Whether ``data`` is a probability block
    alphabet : StateAlphabet, optional
        If given, the data is checked against it immediately
    probabilities : ndarray, shape (n_sites, K) or None
        Parsed probability vectors (uncertain sequences only)
    """

    taxon: str
    data: str
    uncertain: bool = False
    alphabet: Optional[StateAlphabet] = None
    probabilities: Optional[np.ndarray] = field(init=False, default=None, repr=False)

    def __post_init__(self):
        if self.uncertain:
            n_states = self.alphabet.size if self.alphabet is not None else None
            probabilities = parse_probability_block(self.data, n_states, self.taxon)
            probabilities.setflags(write=False)
            object.__setattr__(self, "probabilities", probabilities)
        else:
            object.__setattr__(self, "data", re.sub(r"\s", "", self.data))
            if self.alphabet is not None:
                for symbol in self.data:
                    self.alphabet.tip_vector(symbol)

    @property
    def site_count(self) -> int:
        if self.uncertain:
            return self.probabilities.shape[0]
        return len(self.data)

    def to_probabilities(self, alphabet: StateAlphabet) -> np.ndarray:
        """
        Per-site probability vectors over ``alphabet``.

        Returns
        -------
        np.ndarray, shape (n_sites, K)
        """
        if self.uncertain:
            if self.probabilities.shape[1] != alphabet.size:
                raise MalformedProbabilityVector(
                    f"Taxon '{self.taxon}' has {self.probabilities.shape[1]} values "
                    f"per site, but the {alphabet.name} alphabet has {alphabet.size} states"
                )
            return np.array(self.probabilities)

        if not self.data:
            return np.zeros((0, alphabet.size))
        return np.vstack([alphabet.tip_vector(symbol) for symbol in self.data])


def representative_states(probabilities: np.ndarray) -> np.ndarray:
    """
    Most probable state at each site.

    Ties resolve to the lowest state index.
    """
    return np.argmax(probabilities, axis=-1)


class Alignment:
    """
    Multiple sequence alignment over a single state alphabet.

    Tip probabilities and representative states are computed once on
    construction; the alignment is immutable afterwards. Construction
    either succeeds completely or raises.

    Parameters
    ----------
    sequences : sequence of Sequence
        One entry per taxon; the order given is the canonical taxon order
    alphabet : StateAlphabet
        Alphabet shared by all sequences

    Attributes
    ----------
    names : list[str]
        Taxon names in canonical order
    n_species : int
        Number of taxa
    n_sites : int
        Number of sites
    tip_probabilities : ndarray, shape (n_species, n_sites, K)
        Per-taxon, per-site probability vectors (read-only)
    states : ndarray, shape (n_species, n_sites)
        Representative state indices (read-only)

    Examples
    --------
    >>> aln = Alignment([Sequence("seq1", "ATT"), Sequence("seq2", "ATC")], NUCLEOTIDE)
    >>> aln.get_representative_states()
    [[0, 3, 3], [0, 3, 1]]
    """

    def __init__(self, sequences: SequenceType[Sequence], alphabet: StateAlphabet = NUCLEOTIDE):
        if not sequences:
            raise ValueError("Alignment requires at least one sequence")

        names = []
        seen = set()
        for seq in sequences:
            if seq.taxon in seen:
                raise ValueError(f"Duplicate taxon name: '{seq.taxon}'")
            seen.add(seq.taxon)
            names.append(seq.taxon)

        n_sites = sequences[0].site_count
        tips = []
        for seq in sequences:
            if seq.site_count != n_sites:
                raise SiteCountMismatch(
                    f"Sequence '{seq.taxon}' has {seq.site_count} sites, "
                    f"expected {n_sites}"
                )
            tips.append(seq.to_probabilities(alphabet))

        tip_probabilities = np.stack(tips)
        states = representative_states(tip_probabilities)
        tip_probabilities.setflags(write=False)
        states.setflags(write=False)

        self.alphabet = alphabet
        self.sequences = tuple(sequences)
        self.names = names
        self.n_species = len(names)
        self.n_sites = n_sites
        self.tip_probabilities = tip_probabilities
        self.states = states
        self._taxon_index = {name: i for i, name in enumerate(names)}

        logger.debug(
            "Built %s alignment: %d taxa x %d sites (%d uncertain)",
            alphabet.name, self.n_species, self.n_sites,
            sum(1 for seq in sequences if seq.uncertain),
        )

    @classmethod
    def from_strings(
        cls,
        data: Mapping[str, str],
        alphabet: StateAlphabet = NUCLEOTIDE,
        uncertain: bool = False,
    ) -> "Alignment":
        """
        Build an alignment from a taxon -> data mapping.

        Examples
        --------
        >>> aln = Alignment.from_strings({"seq1": "0.7,0.0,0.3,0.0;"}, uncertain=True)
        >>> aln.get_representative_string("seq1")
        'A'
        """
        return cls(
            [Sequence(name, value, uncertain=uncertain) for name, value in data.items()],
            alphabet,
        )

    @classmethod
    def from_fasta(
        cls,
        filepath: Path | str,
        alphabet: StateAlphabet = NUCLEOTIDE,
        uncertain: bool = False,
    ) -> "Alignment":
        """
        Parse a FASTA format alignment file.

        For uncertain data, each record body is a probability block which
        may span several lines.

        Parameters
        ----------
        filepath : Path or str
            Path to FASTA format file
        alphabet : StateAlphabet
            Alphabet of the sequences
        uncertain : bool
            Whether record bodies are probability blocks

        Returns
        -------
        Alignment
            Parsed alignment
        """
        filepath = Path(filepath)

        records = []
        with open(filepath, "r") as f:
            current_name = None
            current_seq = []

            for line in f:
                line = line.strip()

                if not line:
                    continue

                if line.startswith(">"):
                    if current_name is not None:
                        records.append((current_name, "".join(current_seq)))
                    current_name = line[1:].strip()
                    current_seq = []
                else:
                    current_seq.append(line)

            if current_name is not None:
                records.append((current_name, "".join(current_seq)))

        if not records:
            raise ValueError("No sequences found in FASTA file")

        return cls(
            [Sequence(name, body, uncertain=uncertain) for name, body in records],
            alphabet,
        )

    def to_fasta(self, filepath: Path | str) -> None:
        """
        Write the representative sequences to a FASTA format file.

        Parameters
        ----------
        filepath : Path or str
            Output file path
        """
        filepath = Path(filepath)

        with open(filepath, "w") as f:
            for i, name in enumerate(self.names):
                f.write(f">{name}\n")
                seq = self.get_representative_string(i)

                # Write in blocks of 60
                for start in range(0, len(seq), 60):
                    f.write(seq[start:start + 60] + "\n")

    def get_taxon_count(self) -> int:
        return self.n_species

    def get_site_count(self) -> int:
        return self.n_sites

    def get_taxon_index(self, taxon: Union[int, str]) -> int:
        """Resolve a taxon name or index to its canonical index."""
        if isinstance(taxon, str):
            try:
                return self._taxon_index[taxon]
            except KeyError:
                raise KeyError(f"Taxon '{taxon}' not in alignment") from None
        if not 0 <= taxon < self.n_species:
            raise IndexError(f"Taxon index {taxon} out of range (0-{self.n_species - 1})")
        return taxon

    def is_uncertain(self, taxon: Union[int, str]) -> bool:
        return self.sequences[self.get_taxon_index(taxon)].uncertain

    def get_tip_probabilities(self, taxon: Union[int, str], site: int) -> np.ndarray:
        """
        Probability vector over the alphabet for one taxon and site.

        Returns
        -------
        np.ndarray, shape (K,)
            Read-only view into the alignment's tip probabilities
        """
        if not 0 <= site < self.n_sites:
            raise IndexError(f"Site {site} out of range (0-{self.n_sites - 1})")
        return self.tip_probabilities[self.get_taxon_index(taxon), site]

    def tip_partials(self, taxon: Union[int, str]) -> np.ndarray:
        """Tip probabilities of one taxon, shape (n_sites, K)."""
        return self.tip_probabilities[self.get_taxon_index(taxon)]

    def get_representative_states(self) -> list[list[int]]:
        """Representative state indices, one list per taxon in canonical order."""
        return self.states.tolist()

    def get_representative_string(self, taxon: Union[int, str]) -> str:
        return self.alphabet.states_to_string(self.states[self.get_taxon_index(taxon)])

    def __repr__(self) -> str:
        return (
            f"Alignment(n_species={self.n_species}, n_sites={self.n_sites}, "
            f"alphabet='{self.alphabet.name}')"
        )
