"""Core data types for scheme matching.

Catalog records (government schemes) are read-only inputs, farmer profiles
are composed from a core row plus owned sub-records, and suggestions are the
only artifact handed back to callers.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# Region labels that make a scheme applicable everywhere
NATIONWIDE_REGIONS = frozenset({"all india", "national", "pan india", "all states"})

_REGION_SPLIT = re.compile(r"[,;|]")


class LookupField(str, Enum):
    """Catalog fields supported by structured lookups."""

    NAME = "name"
    AUTHORITY = "authority"
    REGION = "region"
    ID = "id"


class Dimension(str, Enum):
    """Matching-strategy axes a retrieval action can explore."""

    GEOGRAPHIC = "geographic"
    DEMOGRAPHIC = "demographic"
    LAND = "land"
    CROP = "crop"
    INFRASTRUCTURE = "infrastructure"


def _first(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return default


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _parse_regions(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        parts = [str(v) for v in value]
    else:
        parts = _REGION_SPLIT.split(str(value))
    return tuple(p.strip() for p in parts if p and p.strip())


def _to_float(value: Any) -> float | None:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


# =============================================================================
# Catalog
# =============================================================================


@dataclass(frozen=True)
class CatalogRecord:
    """One government scheme in the searchable catalog.

    Payload/row fields accepted:
        - id / scheme_id: str - Opaque unique identifier (UUID)
        - scheme_name / name: str - Published scheme name
        - ministry / authority: str - Owning authority
        - state / regions: str | list - Applicability region(s)
        - description / eligibility / benefits: str - Free text
        - category: str - Optional scheme category
    """

    id: str
    name: str
    authority: str = ""
    regions: tuple[str, ...] = ()
    description: str = ""
    category: str = ""
    embedding: tuple[float, ...] | None = field(default=None, repr=False)
    metadata: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> CatalogRecord:
        """Build a record from a relational row mapping."""
        description_parts = [
            str(row[key]).strip()
            for key in ("description", "eligibility", "benefits")
            if row.get(key)
        ]
        embedding = row.get("embedding")
        return cls(
            id=str(_first(row, "id", "scheme_id", default="")),
            name=str(_first(row, "scheme_name", "name", default="")),
            authority=str(_first(row, "ministry", "authority", default="")),
            regions=_parse_regions(_first(row, "state", "regions", "region")),
            description="\n".join(description_parts),
            category=str(_first(row, "category", default="")),
            embedding=tuple(embedding) if embedding else None,
        )

    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        point_id: str | None = None,
        metadata_key: str | None = "metadata",
        content_key: str = "page_content",
    ) -> CatalogRecord:
        """Build a record from a vector-index payload.

        Handles flat payloads as well as documents stored with their scheme
        fields nested under ``metadata_key`` and the text under ``content_key``.
        """
        fields: dict[str, Any] = dict(payload)
        if metadata_key and isinstance(payload.get(metadata_key), Mapping):
            fields = {**payload[metadata_key]}
        record = cls.from_row(fields)

        description = record.description or str(payload.get(content_key) or "")
        record_id = record.id or (str(point_id) if point_id is not None else "")
        return cls(
            id=record_id,
            name=record.name,
            authority=record.authority,
            regions=record.regions,
            description=description,
            category=record.category,
            metadata=fields,
        )

    def applies_to_region(self, region: str, include_nationwide: bool = True) -> bool:
        """Case-insensitive substring match against the applicability regions."""
        needle = region.strip().lower()
        if not needle:
            return False
        for r in self.regions:
            label = r.lower()
            if needle in label:
                return True
            if include_nationwide and label in NATIONWIDE_REGIONS:
                return True
        return False

    @property
    def is_nationwide(self) -> bool:
        return any(r.lower() in NATIONWIDE_REGIONS for r in self.regions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "scheme_name": self.name,
            "ministry": self.authority,
            "state": ", ".join(self.regions),
            "description": self.description,
            "category": self.category,
        }


@dataclass(frozen=True)
class ScoredRecord:
    """A catalog record with its similarity score from the vector index."""

    record: CatalogRecord
    score: float

    @property
    def id(self) -> str:
        return self.record.id


# =============================================================================
# Profile
# =============================================================================


@dataclass
class ProfileCore:
    """The core farmer row."""

    id: str
    name: str = ""
    state: str = ""
    district: str = ""
    village: str = ""
    age: int | None = None
    gender: str = ""
    education: str = ""
    experience_years: int | None = None
    total_land_acres: float | None = None
    land_ownership: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)

    _KNOWN = (
        "id", "name", "state", "district", "village", "age", "gender",
        "education", "experience_years", "total_land_acres", "land_ownership",
        "full_name", "education_level", "farming_experience", "total_land_area",
        "ownership_status",
    )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ProfileCore:
        return cls(
            id=str(row.get("id", "")),
            name=str(_first(row, "name", "full_name", default="")),
            state=str(_first(row, "state", default="")),
            district=str(_first(row, "district", default="")),
            village=str(_first(row, "village", default="")),
            age=_to_int(row.get("age")),
            gender=str(_first(row, "gender", default="")),
            education=str(_first(row, "education", "education_level", default="")),
            experience_years=_to_int(_first(row, "experience_years", "farming_experience")),
            total_land_acres=_to_float(_first(row, "total_land_acres", "total_land_area")),
            land_ownership=str(_first(row, "land_ownership", "ownership_status", default="")),
            attributes={k: v for k, v in row.items() if k not in cls._KNOWN},
        )


@dataclass
class ContactRecord:
    """Contact details; every field empty when the farmer has none on file."""

    phone: str = ""
    email: str = ""
    address: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.phone or self.email or self.address)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ContactRecord:
        return cls(
            phone=str(_first(row, "phone", "phone_number", default="")),
            email=str(_first(row, "email", default="")),
            address=str(_first(row, "address", default="")),
        )


@dataclass
class Plot:
    """A land parcel owned or farmed by the profile."""

    id: str
    farmer_id: str = ""
    name: str = ""
    area_acres: float | None = None
    soil_type: str = ""
    irrigation_method: str = ""
    ownership_status: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Plot:
        return cls(
            id=str(row.get("id", "")),
            farmer_id=str(row.get("farmer_id", "")),
            name=str(_first(row, "name", "plot_name", default="")),
            area_acres=_to_float(_first(row, "area_acres", "area")),
            soil_type=str(_first(row, "soil_type", default="")),
            irrigation_method=str(_first(row, "irrigation_method", "irrigation_type", default="")),
            ownership_status=str(_first(row, "ownership_status", default="")),
        )


@dataclass
class PlotCrop:
    """A crop grown on one of the profile's plots."""

    id: str
    farmer_id: str = ""
    plot_id: str = ""
    crop_name: str = ""
    variety: str = ""
    season: str = ""
    growth_stage: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> PlotCrop:
        return cls(
            id=str(row.get("id", "")),
            farmer_id=str(row.get("farmer_id", "")),
            plot_id=str(row.get("plot_id", "")),
            crop_name=str(_first(row, "crop_name", "crop", default="")),
            variety=str(_first(row, "variety", default="")),
            season=str(_first(row, "season", default="")),
            growth_stage=str(_first(row, "growth_stage", default="")),
        )


@dataclass
class ActivityLogEntry:
    """One entry of the append-only farming activity log."""

    id: str
    farmer_id: str = ""
    activity_type: str = ""
    description: str = ""
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ActivityLogEntry:
        return cls(
            id=str(row.get("id", "")),
            farmer_id=str(row.get("farmer_id", "")),
            activity_type=str(_first(row, "activity_type", "type", default="")),
            description=str(_first(row, "description", "notes", default="")),
            created_at=_to_datetime(row.get("created_at")),
        )


@dataclass
class Profile:
    """Composite, read-only view of a farmer and their sub-records."""

    core: ProfileCore
    contact: ContactRecord = field(default_factory=ContactRecord)
    plots: list[Plot] = field(default_factory=list)
    crops: list[PlotCrop] = field(default_factory=list)
    logs: list[ActivityLogEntry] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.core.id

    @property
    def location(self) -> str:
        parts = [self.core.village, self.core.district, self.core.state]
        return ", ".join(p for p in parts if p)

    @property
    def crop_names(self) -> list[str]:
        names: list[str] = []
        for crop in self.crops:
            if crop.crop_name and crop.crop_name not in names:
                names.append(crop.crop_name)
        return names

    @property
    def total_land_acres(self) -> float | None:
        if self.core.total_land_acres is not None:
            return self.core.total_land_acres
        areas = [p.area_acres for p in self.plots if p.area_acres is not None]
        return sum(areas) if areas else None

    @property
    def irrigation_methods(self) -> list[str]:
        return sorted({p.irrigation_method for p in self.plots if p.irrigation_method})

    @property
    def soil_types(self) -> list[str]:
        return sorted({p.soil_type for p in self.plots if p.soil_type})

    def grounding_terms(self) -> list[str]:
        """Concrete profile values a justification can cite."""
        terms = [self.core.state, self.core.district, self.core.village]
        terms += self.crop_names + self.soil_types + self.irrigation_methods
        return [t for t in terms if t and len(t) > 2]

    def summary(self) -> str:
        """Compact text rendering used for planner prompts."""
        core = self.core
        lines = [
            f"Farmer: {core.name or core.id}",
            f"Location: {self.location or 'unknown'}",
            f"Age: {core.age if core.age is not None else 'unknown'}, "
            f"Gender: {core.gender or 'unknown'}, Education: {core.education or 'unknown'}",
            f"Experience: {core.experience_years if core.experience_years is not None else 'unknown'} years",
            f"Land: {self.total_land_acres if self.total_land_acres is not None else 'unknown'} acres"
            + (f" ({core.land_ownership})" if core.land_ownership else ""),
            f"Plots: {len(self.plots)}; soil: {', '.join(self.soil_types) or 'unknown'}; "
            f"irrigation: {', '.join(self.irrigation_methods) or 'unknown'}",
            f"Crops: {', '.join(self.crop_names) or 'none recorded'}",
        ]
        if self.logs:
            recent = self.logs[-3:]
            lines.append(
                "Recent activity: "
                + "; ".join(f"{e.activity_type} {e.description}".strip() for e in recent)
            )
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "farmer": {
                "id": self.core.id,
                "name": self.core.name,
                "state": self.core.state,
                "district": self.core.district,
                "village": self.core.village,
                "age": self.core.age,
                "gender": self.core.gender,
                "education": self.core.education,
                "experience_years": self.core.experience_years,
                "total_land_acres": self.core.total_land_acres,
                "land_ownership": self.core.land_ownership,
                **self.core.attributes,
            },
            "contact": {} if self.contact.is_empty else {
                "phone": self.contact.phone,
                "email": self.contact.email,
                "address": self.contact.address,
            },
            "plots": [vars(p).copy() for p in self.plots],
            "crops": [vars(c).copy() for c in self.crops],
            "logs": [
                {**vars(e), "created_at": e.created_at.isoformat() if e.created_at else None}
                for e in self.logs
            ],
        }


# =============================================================================
# Output
# =============================================================================


@dataclass(frozen=True)
class SuggestionResult:
    """A recommended scheme with the reason it fits the farmer."""

    scheme_name: str
    scheme_id: str
    reason: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SuggestionResult:
        return cls(
            scheme_name=_text(data.get("scheme_name")),
            scheme_id=_text(data.get("scheme_id")),
            reason=_text(data.get("reason")),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "scheme_name": self.scheme_name,
            "scheme_id": self.scheme_id,
            "reason": self.reason,
        }
