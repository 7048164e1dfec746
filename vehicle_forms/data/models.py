"""Raw extraction records and the normalized application record."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class SealCertificateExtraction(BaseModel):
    """Vision-model output for the seal certificate (印鑑証明書), the old owner."""

    model_config = ConfigDict(extra="ignore")

    document_type: Literal["inkan"] = "inkan"
    name: str | None = None
    address: str | None = None
    certification_date: str | None = None


class VehicleCertificateExtraction(BaseModel):
    """Vision-model output for the vehicle inspection certificate (車検証), the new owner."""

    model_config = ConfigDict(extra="ignore")

    document_type: Literal["shaken"] = "shaken"
    name: str | None = None
    address: str | None = None
    vehicle_number: str | None = None
    chassis_number: str | None = None
    model: str | None = None


class NormalizedApplicationRecord(BaseModel):
    """Null-free record consumed by the stamping engine.

    Address code, 丁目 and 番地 fields are derived from the address strings by
    the integrator. Edits produce a new record via ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    old_owner_name: str = ""
    old_owner_address: str = ""
    old_owner_address_code: str = ""
    old_owner_chome: str = ""
    old_owner_banchi: str = ""
    certification_date: str = ""
    new_owner_name: str = ""
    new_owner_address: str = ""
    new_owner_address_code: str = ""
    new_owner_chome: str = ""
    new_owner_banchi: str = ""
    vehicle_number: str = ""
    chassis_number: str = ""
    model: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _text(value)
