"""
Accredited TREs - listing engine for accredited tourism-related establishments

Normalizes hand-maintained, per-province spreadsheet exports into a uniform
set of provider records for a listing UI.
"""

__version__ = "1.0.0"
__author__ = "Accredited TREs Team"
