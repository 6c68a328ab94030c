"""Command-line front end for qprof."""
