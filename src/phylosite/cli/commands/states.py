"""States command implementation."""

import json
import sys
from pathlib import Path

from phylosite.io.alphabets import get_alphabet
from phylosite.io.sequences import Alignment


def run_states(
    alignment: Path,
    uncertain: bool,
    alphabet: str,
    format: str,
):
    """Print representative sequences."""
    try:
        data_type = get_alphabet(alphabet)
        aln = Alignment.from_fasta(alignment, data_type, uncertain=uncertain)
    except ValueError as e:
        print(f"Error: Could not load alignment from {alignment}", file=sys.stderr)
        print(f"Details: {e}", file=sys.stderr)
        sys.exit(1)

    if format == "json":
        data = {
            name: {
                "sequence": aln.get_representative_string(i),
                "states": aln.states[i].tolist(),
                "uncertain": aln.is_uncertain(i),
            }
            for i, name in enumerate(aln.names)
        }
        print(json.dumps(data, indent=2))
        return

    width = max(len(name) for name in aln.names)
    for i, name in enumerate(aln.names):
        print(f"{name:<{width}}  {aln.get_representative_string(i)}")
