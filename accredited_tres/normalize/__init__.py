"""
Data normalization modules for Accredited TREs.

Turns tokenized sheet rows into provider records: location headings, column
shifts, record ids, and the source freshness date.
"""
