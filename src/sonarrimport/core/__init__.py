"""Core import pipeline: scanning, renaming, parsing, resolution and submission."""
