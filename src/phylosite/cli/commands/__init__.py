"""Implementations of the phylosite subcommands."""
