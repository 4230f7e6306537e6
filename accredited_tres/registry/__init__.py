"""
Source registry for Accredited TREs.

Maps each province id to its display name and the location of its sheet export.
"""
