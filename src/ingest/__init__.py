"""Ranking table ingestion pipeline.

This package fetches the source document, extracts table rows, and
normalizes them into bank records for the store layer.
"""
