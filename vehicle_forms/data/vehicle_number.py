"""Split a Japanese licence plate string into its printed segments."""

from __future__ import annotations

import re
from dataclasses import dataclass

# 地名 + 3-digit 分類番号 + ひらがな/カタカナ + 1-4 digit 一連指定番号, e.g. 品川500あ1234
PLATE_RE = re.compile(r"(.+?)([0-9]{3})([あ-んア-ン])([0-9]{1,4})")


@dataclass(frozen=True)
class VehicleNumberParts:
    """Plate segments; empty strings mean the segment is unknown."""

    region: str
    class_number: str
    kana: str
    digits: str
    matched: bool

    def joined(self) -> str:
        return f"{self.region}{self.class_number}{self.kana}{self.digits}"


def decompose_vehicle_number(vehicle_number: str) -> VehicleNumberParts:
    """Decompose a plate string, degrading to the whole input as ``region``."""
    text = vehicle_number or ""
    match = PLATE_RE.fullmatch(text)
    if match:
        return VehicleNumberParts(
            region=match.group(1),
            class_number=match.group(2),
            kana=match.group(3),
            digits=match.group(4),
            matched=True,
        )
    return VehicleNumberParts(
        region=text, class_number="", kana="", digits="", matched=False
    )
