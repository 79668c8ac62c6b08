from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

_CENT = Decimal("0.01")


def to_money(value: Decimal | float | int | str) -> Decimal:
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


class BundleItem(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    document: bytes = Field(repr=False)
    reference: str
    secondary_reference: str = ""
    amount: Decimal = Decimal("0.00")

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v: object) -> Decimal:
        return to_money(v if v is not None else 0)  # type: ignore[arg-type]


class BundleManifest(BaseModel):
    """Documents to combine plus their summary metadata; consumed once by the combiner."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    bundle_reference: str = ""
    issued_on: date | None = None
    customer_name: str = ""
    status: str = ""
    items: list[BundleItem] = Field(default_factory=list)

    @property
    def grand_total(self) -> Decimal:
        return to_money(sum((it.amount for it in self.items), Decimal("0")))
