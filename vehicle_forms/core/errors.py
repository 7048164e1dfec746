"""Error and degradation types shared by the stamping pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class TemplateError(Exception):
    """Template is unreadable or has no stampable page."""


class DegradationKind(StrEnum):
    """Non-fatal conditions recorded while the pipeline keeps going."""

    CONFIG_DEGRADATION = "config_degradation"
    FIELD_PARSE_DEGRADATION = "field_parse_degradation"
    REQUIRED_FIELD_MISSING = "required_field_missing"


@dataclass(frozen=True)
class Degradation:
    """A recorded fallback: what degraded and the details a reviewer needs."""

    kind: DegradationKind
    message: str
    details: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "kind": str(self.kind),
            "message": self.message,
            "details": list(self.details),
        }
