"""Command line actions for node-converge."""
