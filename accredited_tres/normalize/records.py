"""
Record types produced by the normalization engine.

All types are rebuilt from scratch on every normalization call; nothing here
is cached or persisted.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# Output field order, camelCase as consumed by the listing UI
RECORD_FIELDS = [
    "id",
    "location",
    "enterpriseType",
    "name",
    "address",
    "phone",
    "email",
    "accreditationNo",
    "validity",
    "status",
]


@dataclass(frozen=True)
class ProvinceDescriptor:
    """One province and the location of its raw tabular export."""

    id: str
    display_name: str
    source_location: str


@dataclass(frozen=True)
class ProviderRecord:
    """One accredited establishment."""

    id: str
    location: str
    enterprise_type: str
    name: str
    address: str
    phone: str
    email: Optional[str]
    accreditation_no: str
    validity: str
    status: str

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the camelCase mapping used by the listing UI.

        Returns:
            Dictionary keyed by output field name; ``email`` is omitted when absent
        """
        data = {
            "id": self.id,
            "location": self.location,
            "enterpriseType": self.enterprise_type,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "accreditationNo": self.accreditation_no,
            "validity": self.validity,
            "status": self.status,
        }
        if self.email is None:
            del data["email"]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProviderRecord":
        return cls(
            id=data["id"],
            location=data.get("location", ""),
            enterprise_type=data.get("enterpriseType", ""),
            name=data["name"],
            address=data.get("address", ""),
            phone=data.get("phone", ""),
            email=data.get("email") or None,
            accreditation_no=data.get("accreditationNo", ""),
            validity=data.get("validity", ""),
            status=data.get("status", ""),
        )


@dataclass
class NormalizationResult:
    """
    Outcome of normalizing one or more raw sheets.

    ``error`` carries a flat diagnostic when a source failed; ``degraded`` is
    set when no header marker was found and the fixed preamble fallback was used.
    """

    records: List[ProviderRecord] = field(default_factory=list)
    freshness_date: str = ""
    error: Optional[str] = None
    degraded: bool = False
    source_count: int = 1

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "providers": [record.to_dict() for record in self.records],
            "asOfDate": self.freshness_date,
            "degraded": self.degraded,
        }
        if self.error:
            data["error"] = self.error
        return data
