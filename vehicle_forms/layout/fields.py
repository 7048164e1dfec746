"""Known form field identifiers and application categories."""

from __future__ import annotations

from enum import StrEnum


class FieldId(StrEnum):
    """Dynamic fields the stamper can place on the form."""

    OLD_OWNER_NAME = "old_owner_name"
    OLD_OWNER_ADDRESS = "old_owner_address"
    OLD_OWNER_ADDRESS_CODE = "old_owner_address_code"
    OLD_OWNER_CHOME = "old_owner_chome"
    OLD_OWNER_BANCHI = "old_owner_banchi"
    NEW_OWNER_NAME = "new_owner_name"
    NEW_OWNER_ADDRESS = "new_owner_address"
    NEW_OWNER_ADDRESS_CODE = "new_owner_address_code"
    NEW_OWNER_CHOME = "new_owner_chome"
    NEW_OWNER_BANCHI = "new_owner_banchi"
    VEHICLE_NUMBER_REGION = "vehicle_number_region"
    VEHICLE_NUMBER_CLASS = "vehicle_number_class"
    VEHICLE_NUMBER_KANA = "vehicle_number_kana"
    VEHICLE_NUMBER_DIGITS = "vehicle_number_digits"
    CHASSIS_NUMBER = "chassis_number"
    OLD_OWNER_NAME_SUB = "old_owner_name_sub"
    NEW_OWNER_NAME_SUB = "new_owner_name_sub"


# The form repeats the applicant names in a second box.
DUPLICATE_FIELDS: dict[FieldId, FieldId] = {
    FieldId.OLD_OWNER_NAME_SUB: FieldId.OLD_OWNER_NAME,
    FieldId.NEW_OWNER_NAME_SUB: FieldId.NEW_OWNER_NAME,
}


class ApplicationType(StrEnum):
    """Application categories; each selects a template and static-field set."""

    TRANSFER = "transfer"
    NEW_REGISTRATION = "new_registration"
    TEMPORARY_CANCELLATION = "temporary_cancellation"
    EXPORT_CANCELLATION = "export_cancellation"
    PERMANENT_CANCELLATION = "permanent_cancellation"

    @property
    def is_cancellation(self) -> bool:
        return self in {
            ApplicationType.TEMPORARY_CANCELLATION,
            ApplicationType.EXPORT_CANCELLATION,
            ApplicationType.PERMANENT_CANCELLATION,
        }


def parse_application_type(value: str | None) -> ApplicationType:
    """Parse a category name; empty input means ``transfer``."""
    normalized = (value or "").strip().lower()
    if not normalized:
        return ApplicationType.TRANSFER
    try:
        return ApplicationType(normalized)
    except ValueError:
        allowed = ", ".join(item.value for item in ApplicationType)
        raise ValueError(
            f"Unknown application type: {value!r} (allowed: {allowed})"
        ) from None
