"""
Data ingestion module for Accredited TREs.

Handles retrieval of raw sheet exports and their tokenization into rows,
including header detection and preamble skipping.
"""
