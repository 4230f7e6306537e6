"""
Source registry for Accredited TREs.

Static, ordered list of the provinces shown in the listing and where each
province's sheet export lives. Order is display order.
"""

import logging
from typing import Dict, Optional, Tuple

from accredited_tres.errors import SourceNotFound
from accredited_tres.normalize.records import ProvinceDescriptor

logger = logging.getLogger(__name__)


PROVINCES: Tuple[ProvinceDescriptor, ...] = (
    ProvinceDescriptor("agusan-norte", "Agusan del Norte", "agusan-norte.csv"),
    ProvinceDescriptor("agusan-sur", "Agusan del Sur", "agusan-sur.csv"),
    ProvinceDescriptor("dinagat-islands", "Dinagat Islands", "dinagat-islands.csv"),
    ProvinceDescriptor("surigao-norte", "Surigao del Norte", "surigao-norte.csv"),
    ProvinceDescriptor("surigao-sur", "Surigao del Sur", "surigao-sur.csv"),
)

_BY_ID: Dict[str, ProvinceDescriptor] = {province.id: province for province in PROVINCES}


def list_provinces() -> Tuple[ProvinceDescriptor, ...]:
    """Return every province in display order."""
    return PROVINCES


def resolve_province(province_id: str) -> ProvinceDescriptor:
    """
    Look up a province by id.

    Args:
        province_id: Province identifier, e.g. ``agusan-norte``

    Returns:
        Matching ProvinceDescriptor

    Raises:
        SourceNotFound: If the id is not registered
    """
    try:
        return _BY_ID[province_id]
    except KeyError:
        raise SourceNotFound(province_id) from None


def with_overrides(overrides: Optional[Dict[str, str]] = None,
                   provinces: Tuple[ProvinceDescriptor, ...] = PROVINCES) -> Tuple[ProvinceDescriptor, ...]:
    """
    Build a copy of the registry with some source locations replaced.

    Args:
        overrides: Mapping of province id to replacement source location
        provinces: Descriptors to start from

    Returns:
        New tuple of descriptors, same order

    Raises:
        SourceNotFound: If an override names an unknown province
    """
    overrides = overrides or {}
    known = {province.id for province in provinces}
    for province_id in overrides:
        if province_id not in known:
            raise SourceNotFound(province_id)

    result = tuple(
        ProvinceDescriptor(p.id, p.display_name, overrides.get(p.id, p.source_location))
        for p in provinces
    )
    if overrides:
        logger.info(f"Applied {len(overrides)} source location overrides")
    return result
