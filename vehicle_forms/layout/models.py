"""Pydantic models describing where fields are stamped on the form."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vehicle_forms.layout.fields import ApplicationType, FieldId

DEFAULT_FIELD_FONT_SIZE = 10.0
DEFAULT_STATIC_FONT_SIZE = 12.0
SPACING_MARGIN = 5.0
CANCELLATION_PARTITION = "cancellation"


def check_rotation(value: int) -> int:
    """Per-glyph rotation must be a right angle."""
    if value % 90 != 0:
        raise ValueError(f"rotation must be a multiple of 90, got {value}")
    return value % 360


class FieldLayoutEntry(BaseModel):
    """Position of one field in template PDF points (bottom-left origin)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    x: float
    y: float
    font_size: float | None = Field(default=None, alias="fontSize")
    spacing: float | None = None
    label: str | None = None

    def effective_font_size(self, default: float = DEFAULT_FIELD_FONT_SIZE) -> float:
        return self.font_size or default

    def effective_spacing(self, font_size: float) -> float:
        """Configured spacing, or the font size plus a fixed margin."""
        return self.spacing or font_size + SPACING_MARGIN


class StaticFieldEntry(FieldLayoutEntry):
    """Literal text stamped regardless of the extracted data.

    ``text`` may be one of the ``AUTO_YEAR``/``AUTO_MONTH``/``AUTO_DAY``
    tokens, resolved to the stamping date.
    """

    text: str


StaticFieldSet = dict[str, StaticFieldEntry]


class LayoutConfiguration(BaseModel):
    """Field positions, page rotation and static-field partitions."""

    model_config = ConfigDict(frozen=True)

    fields: dict[FieldId, FieldLayoutEntry]
    rotation: int = 0
    static_fields: dict[str, StaticFieldSet] = Field(default_factory=dict)

    @field_validator("rotation")
    @classmethod
    def _validate_rotation(cls, value: int) -> int:
        return check_rotation(value)

    @field_validator("static_fields")
    @classmethod
    def _validate_partitions(
        cls, value: dict[str, StaticFieldSet]
    ) -> dict[str, StaticFieldSet]:
        known = {item.value for item in ApplicationType} | {CANCELLATION_PARTITION}
        unknown = sorted(set(value) - known)
        if unknown:
            raise ValueError(f"unknown static field partitions: {unknown}")
        return value

    def static_fields_for(self, application_type: ApplicationType) -> StaticFieldSet:
        """Return the single static-field partition active for a category.

        Cancellation categories without their own partition share the
        ``cancellation`` one, then fall back to ``new_registration`` like every
        other non-transfer category.
        """
        own = self.static_fields.get(application_type.value)
        if own is not None:
            return own
        if application_type.is_cancellation:
            shared = self.static_fields.get(CANCELLATION_PARTITION)
            if shared is not None:
                return shared
            return self.static_fields.get(ApplicationType.NEW_REGISTRATION.value, {})
        return {}

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "LayoutConfiguration":
        """Build from the on-disk JSON document shape.

        Expected keys: ``fields``, ``page_info.rotation`` and
        ``<partition>_static_fields``.
        """
        if not isinstance(document, dict):
            raise ValueError("layout document must be a JSON object")
        page_info = document.get("page_info") or {}
        if not isinstance(page_info, dict):
            raise ValueError("page_info must be an object")

        static_fields: dict[str, Any] = {}
        for key, value in document.items():
            if key.endswith("_static_fields"):
                static_fields[key[: -len("_static_fields")]] = value or {}

        return cls.model_validate(
            {
                "fields": document.get("fields") or {},
                "rotation": page_info.get("rotation") or 0,
                "static_fields": static_fields,
            }
        )
