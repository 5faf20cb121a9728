"""Reusable test fixtures for msvs-detect."""
