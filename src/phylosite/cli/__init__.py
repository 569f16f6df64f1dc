"""Command-line interface for phylosite."""
