"""
Fetch-all pipeline for Accredited TREs.
"""
