"""Merge the two OCR extraction records into one application record."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from vehicle_forms.core.errors import Degradation, DegradationKind
from vehicle_forms.data.address import AddressCodeTable, AddressLookup
from vehicle_forms.data.constants import REQUIRED_FIELD_LABELS
from vehicle_forms.data.models import (
    NormalizedApplicationRecord,
    SealCertificateExtraction,
    VehicleCertificateExtraction,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntegrationResult:
    """Normalized record plus the labels of required fields left empty."""

    record: NormalizedApplicationRecord
    missing_fields: list[str]
    degradation: Degradation | None = None


def missing_required_fields(record: NormalizedApplicationRecord) -> list[str]:
    """Return labels of required fields that are empty, in form order."""
    return [label for key, label in REQUIRED_FIELD_LABELS if not getattr(record, key)]


def integrate_extractions(
    seal: SealCertificateExtraction | dict[str, Any],
    vehicle: VehicleCertificateExtraction | dict[str, Any],
    lookup: AddressLookup | None = None,
) -> IntegrationResult:
    """Build the application record from seal and vehicle certificate results.

    The seal certificate describes the old owner, the vehicle certificate the
    new owner and the vehicle. Missing required fields are reported, never
    raised, so the record can be routed to manual correction.
    """
    if isinstance(seal, dict):
        seal = SealCertificateExtraction.model_validate(seal)
    if isinstance(vehicle, dict):
        vehicle = VehicleCertificateExtraction.model_validate(vehicle)
    lookup = lookup or AddressCodeTable()

    old_address = (seal.address or "").strip()
    new_address = (vehicle.address or "").strip()
    old_details = lookup(old_address)
    new_details = lookup(new_address)

    record = NormalizedApplicationRecord(
        old_owner_name=seal.name,
        old_owner_address=old_address,
        old_owner_address_code=old_details.code,
        old_owner_chome=old_details.chome,
        old_owner_banchi=old_details.banchi,
        certification_date=seal.certification_date,
        new_owner_name=vehicle.name,
        new_owner_address=new_address,
        new_owner_address_code=new_details.code,
        new_owner_chome=new_details.chome,
        new_owner_banchi=new_details.banchi,
        vehicle_number=vehicle.vehicle_number,
        chassis_number=vehicle.chassis_number,
        model=vehicle.model,
    )

    missing = missing_required_fields(record)
    degradation: Degradation | None = None
    if missing:
        degradation = Degradation(
            kind=DegradationKind.REQUIRED_FIELD_MISSING,
            message="Required fields are empty; manual correction needed.",
            details=tuple(missing),
        )
        LOGGER.warning(
            "Integrated record is missing required fields: %s",
            ", ".join(missing),
            extra={"degradation": str(degradation.kind)},
        )
    else:
        LOGGER.info("Integrated record is complete.")
    return IntegrationResult(record=record, missing_fields=missing, degradation=degradation)
