from __future__ import annotations

from dataclasses import dataclass
from typing import Any

HOME_SERVICE_CATEGORY = "Home Services"
HOME_SERVICE_SUBCATEGORIES = frozenset(
    {
        "Plumbing",
        "HVAC",
        "Cleaning",
        "Electrical",
        "Landscaping",
        "Pest Control",
        "Home Repair",
        "Painting",
        "Roofing",
        "Flooring",
        "Installation",
    }
)


@dataclass(frozen=True)
class BusinessProfile:
    business_id: str
    name: str
    email: str | None = None
    phone: str | None = None
    category: str | None = None
    subcategories: tuple[str, ...] = ()
    services: tuple[str, ...] = ()
    hours: str | dict[str, Any] | None = None

    @property
    def is_home_service(self) -> bool:
        if self.category == HOME_SERVICE_CATEGORY:
            return True
        return any(sub in HOME_SERVICE_SUBCATEGORIES for sub in self.subcategories)

    @staticmethod
    def from_payload(business_id: str, payload: dict[str, Any]) -> "BusinessProfile":
        services = []
        for item in payload.get("services") or []:
            if isinstance(item, dict):
                name = item.get("name")
            else:
                name = item
            if name and str(name).strip():
                services.append(str(name).strip())
        return BusinessProfile(
            business_id=business_id,
            name=(payload.get("name") or payload.get("business_name") or "Business").strip(),
            email=payload.get("email"),
            phone=str(payload["phone"]) if payload.get("phone") else None,
            category=payload.get("category"),
            subcategories=tuple(payload.get("subcategories") or ()),
            services=tuple(services),
            hours=payload.get("hours"),
        )
