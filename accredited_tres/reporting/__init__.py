"""
Listing helpers for Accredited TREs.
"""
