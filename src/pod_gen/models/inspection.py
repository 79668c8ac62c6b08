from __future__ import annotations

import base64
import binascii
from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class View(str, Enum):
    FRONT = "front"
    REAR = "rear"
    DRIVER_SIDE = "driverSide"
    PASSENGER_SIDE = "passengerSide"
    ROOF = "roof"

    @property
    def label(self) -> str:
        return _VIEW_LABELS[self]


_VIEW_LABELS = {
    View.FRONT: "Front",
    View.REAR: "Rear",
    View.DRIVER_SIDE: "Driver Side",
    View.PASSENGER_SIDE: "Passenger Side",
    View.ROOF: "Roof",
}

_VIEW_ALIASES = {
    "front": View.FRONT,
    "rear": View.REAR,
    "back": View.REAR,
    "driverside": View.DRIVER_SIDE,
    "driver": View.DRIVER_SIDE,
    "offside": View.DRIVER_SIDE,
    "os": View.DRIVER_SIDE,
    "passengerside": View.PASSENGER_SIDE,
    "passenger": View.PASSENGER_SIDE,
    "nearside": View.PASSENGER_SIDE,
    "ns": View.PASSENGER_SIDE,
    "roof": View.ROOF,
    "top": View.ROOF,
}


def normalize_view(value: Any) -> View:
    if isinstance(value, View):
        return value
    key = str(value or "").strip().lower().replace("_", "").replace("-", "").replace(" ", "")
    if key in _VIEW_ALIASES:
        return _VIEW_ALIASES[key]
    raise ValueError(f"invalid view: {value!r}")


class DamageType(str, Enum):
    SCRATCH = "scratch"
    DENT = "dent"
    CHIP = "chip"
    CRACK = "crack"
    SCUFF = "scuff"
    RUST = "rust"
    MISSING = "missing"
    BROKEN = "broken"
    BAD_REPAIR = "bad-repair"
    PAINTWORK = "paintwork"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").title()


# Legacy database enum values from older capture apps.
_DAMAGE_TYPE_ALIASES = {
    "light-scratch": DamageType.SCRATCH,
    "deep-scratch": DamageType.SCRATCH,
    "small-dent": DamageType.DENT,
    "large-dent": DamageType.DENT,
    "paintwork-damage": DamageType.PAINTWORK,
    "generic-damage": DamageType.OTHER,
}


def normalize_damage_type(value: Any) -> DamageType:
    if isinstance(value, DamageType):
        return value
    key = str(value or "").strip().lower().replace("_", "-").replace(" ", "-")
    if not key:
        return DamageType.OTHER
    if key in _DAMAGE_TYPE_ALIASES:
        return _DAMAGE_TYPE_ALIASES[key]
    try:
        return DamageType(key)
    except ValueError:
        return DamageType.OTHER


class DamageSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"

    @property
    def label(self) -> str:
        return self.value.title()


def normalize_damage_size(value: Any) -> DamageSize:
    if isinstance(value, DamageSize):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        sizes = [DamageSize.SMALL, DamageSize.MEDIUM, DamageSize.LARGE]
        if 1 <= value <= 3:
            return sizes[value - 1]
        raise ValueError(f"invalid damage size: {value!r}")
    try:
        return DamageSize(str(value or "").strip().lower())
    except ValueError as e:
        raise ValueError(f"invalid damage size: {value!r}") from e


def decode_image_payload(value: Any) -> bytes:
    """Accept raw bytes, plain base64 or a `data:image/...;base64,` URL."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        s = value.strip()
        if s.startswith("data:"):
            head, _, s = s.partition(",")
            if ";base64" not in head:
                raise ValueError("only base64 data URLs are supported")
        try:
            return base64.b64decode("".join(s.split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"invalid base64 image payload: {e}") from e
    raise ValueError(f"unsupported image payload type: {type(value).__name__}")


ImagePayload = Annotated[bytes, BeforeValidator(decode_image_payload)]


class _Model(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class InspectionKind(str, Enum):
    COLLECTION = "collection"
    DELIVERY = "delivery"

    @property
    def document_title(self) -> str:
        return "PROOF OF COLLECTION" if self is InspectionKind.COLLECTION else "PROOF OF DELIVERY"


class Address(_Model):
    line1: str = ""
    line2: str = ""
    city: str = ""
    postcode: str = ""

    def lines(self) -> list[str]:
        tail = " ".join(p for p in (self.city, self.postcode) if p)
        return [p for p in (self.line1, self.line2, tail) if p]

    def one_line(self) -> str:
        return ", ".join(self.lines())


class VehicleDescriptor(_Model):
    registration: str = ""
    make: str = ""
    model: str = ""
    colour: str = ""
    year: int | None = None
    fuel_type: str = ""
    vin: str = ""


class Conditions(_Model):
    weather: str = ""
    lighting: str = ""
    cleanliness: str = ""


class DamageMarker(_Model):
    model_config = ConfigDict(allow_inf_nan=False)

    id: str = Field(min_length=1)
    view: View
    x: float = Field(ge=0, le=100)
    y: float = Field(ge=0, le=100)
    damage_type: DamageType = DamageType.OTHER
    size: DamageSize = DamageSize.SMALL
    description: str = ""
    photos: list[ImagePayload] = Field(default_factory=list)

    @field_validator("view", mode="before")
    @classmethod
    def _view(cls, v: Any) -> View:
        return normalize_view(v)

    @field_validator("damage_type", mode="before")
    @classmethod
    def _damage_type(cls, v: Any) -> DamageType:
        return normalize_damage_type(v)

    @field_validator("size", mode="before")
    @classmethod
    def _size(cls, v: Any) -> DamageSize:
        return normalize_damage_size(v)


class ExteriorPhotos(_Model):
    front: list[ImagePayload] = Field(default_factory=list)
    rear: list[ImagePayload] = Field(default_factory=list)
    driver_side: list[ImagePayload] = Field(default_factory=list)
    passenger_side: list[ImagePayload] = Field(default_factory=list)
    roof: list[ImagePayload] = Field(default_factory=list)


class InteriorPhotos(_Model):
    dashboard: list[ImagePayload] = Field(default_factory=list)
    front_seats: list[ImagePayload] = Field(default_factory=list)
    back_seats: list[ImagePayload] = Field(default_factory=list)
    boot: list[ImagePayload] = Field(default_factory=list)


class WheelPhotos(_Model):
    front_left: list[ImagePayload] = Field(default_factory=list)
    front_right: list[ImagePayload] = Field(default_factory=list)
    rear_left: list[ImagePayload] = Field(default_factory=list)
    rear_right: list[ImagePayload] = Field(default_factory=list)


class DocumentPhotos(_Model):
    keys: list[ImagePayload] = Field(default_factory=list)
    v5: list[ImagePayload] = Field(default_factory=list)
    locking_wheel_nut: list[ImagePayload] = Field(default_factory=list)
    service_book: list[ImagePayload] = Field(default_factory=list)
    fuel: list[ImagePayload] = Field(default_factory=list)
    odometer: list[ImagePayload] = Field(default_factory=list)


class InspectionPhotoSet(_Model):
    exterior: ExteriorPhotos = Field(default_factory=ExteriorPhotos)
    interior: InteriorPhotos = Field(default_factory=InteriorPhotos)
    wheels: WheelPhotos = Field(default_factory=WheelPhotos)
    documents: DocumentPhotos = Field(default_factory=DocumentPhotos)


class DocumentPresenceFlags(_Model):
    """`None` means the item was not captured; `False` means it is known to be absent."""

    keys: bool | None = None
    v5: bool | None = None
    locking_wheel_nut: bool | None = None
    service_book: bool | None = None


FUEL_LEVEL_LABELS = ["Empty", "1/4", "1/2", "3/4", "Full"]


class InspectionRecord(_Model):
    kind: InspectionKind = InspectionKind.DELIVERY
    job_number: str = Field(min_length=1)
    vehicle: VehicleDescriptor = Field(default_factory=VehicleDescriptor)
    collection_address: Address = Field(default_factory=Address)
    delivery_address: Address = Field(default_factory=Address)
    conditions: Conditions = Field(default_factory=Conditions)
    mileage: str = ""
    fuel_level: int | None = Field(default=None, ge=0, le=4)
    number_of_keys: int | None = Field(default=None, ge=0)
    driver_name: str = ""
    customer_name: str = ""
    customer_signature: ImagePayload | None = None
    notes: str = ""
    completed_at: datetime
    photos: InspectionPhotoSet = Field(default_factory=InspectionPhotoSet)
    damage_markers: list[DamageMarker] = Field(default_factory=list)
    document_presence: DocumentPresenceFlags = Field(default_factory=DocumentPresenceFlags)

    @field_validator("damage_markers")
    @classmethod
    def _unique_marker_ids(cls, markers: list[DamageMarker]) -> list[DamageMarker]:
        seen: set[str] = set()
        for m in markers:
            if m.id in seen:
                raise ValueError(f"duplicate marker id: {m.id!r}")
            seen.add(m.id)
        return markers

    @property
    def fuel_label(self) -> str:
        if self.fuel_level is None:
            return "N/A"
        return FUEL_LEVEL_LABELS[self.fuel_level]
