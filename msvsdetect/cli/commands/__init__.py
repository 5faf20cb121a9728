"""Command handlers for the msvs-detect command line."""
