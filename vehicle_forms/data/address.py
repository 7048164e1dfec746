"""Address code lookup and 丁目/番地 extraction."""

from __future__ import annotations

import json
import logging
import re
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from vehicle_forms.data.constants import ADDRESS_DASHES, KANJI_DIGITS, PREFECTURE_CODES

LOGGER = logging.getLogger(__name__)

_DASH_RE = re.compile(rf"(?<=\d)\s*[{ADDRESS_DASHES}]\s*(?=\d)")
_KANJI_NUMBER_RE = re.compile(r"([〇一二三四五六七八九十]+)(?=丁目|番)")
_CHOME_BANCHI_RE = re.compile(r"(\d+)丁目\s*(\d+)")
_CHOME_RE = re.compile(r"(\d+)丁目")
_BANCHI_RE = re.compile(r"(\d+)番")
_DASHED_RE = re.compile(r"(\d+)-(\d+)(?:-\d+)?")


@dataclass(frozen=True)
class AddressDetails:
    """Values derived from one address string."""

    code: str
    chome: str
    banchi: str


class AddressLookup(Protocol):
    def __call__(self, address: str) -> AddressDetails: ...


def normalize_address(address: str) -> str:
    """NFKC-normalize, drop whitespace and unify dashes between numbers."""
    normalized = unicodedata.normalize("NFKC", address or "")
    normalized = re.sub(r"\s+", "", normalized)
    return _DASH_RE.sub("-", normalized)


def kanji_to_int(value: str) -> int:
    """Convert kanji numerals below 100 (e.g. 四, 十二, 二十三)."""
    if "十" not in value:
        total = 0
        for char in value:
            total = total * 10 + KANJI_DIGITS[char]
        return total
    tens, _, ones = value.partition("十")
    tens_value = KANJI_DIGITS[tens] if tens else 1
    ones_value = KANJI_DIGITS[ones] if ones else 0
    return tens_value * 10 + ones_value


def _replace_kanji_numbers(text: str) -> str:
    def _sub(match: re.Match[str]) -> str:
        try:
            return str(kanji_to_int(match.group(1)))
        except KeyError:
            return match.group(1)

    return _KANJI_NUMBER_RE.sub(_sub, text)


def extract_chome_banchi(address: str) -> tuple[str, str]:
    """Return ``(chome, banchi)``; unknown parts are empty strings."""
    text = _replace_kanji_numbers(normalize_address(address))
    if not text:
        return "", ""

    match = _CHOME_BANCHI_RE.search(text)
    if match:
        return match.group(1), match.group(2)

    chome_match = _CHOME_RE.search(text)
    chome = chome_match.group(1) if chome_match else ""
    banchi_match = _BANCHI_RE.search(text)
    if chome or banchi_match:
        return chome, banchi_match.group(1) if banchi_match else ""

    # last match: a leading postal code also looks like N-M
    dashed = list(_DASHED_RE.finditer(text))
    if dashed:
        return dashed[-1].group(1), dashed[-1].group(2)
    return "", ""


class AddressCodeTable:
    """Longest-prefix address code lookup.

    Prefecture codes are built in; municipality prefixes can be added from a
    JSON table mapping address prefix to code.
    """

    def __init__(self, extra_codes: dict[str, str] | None = None) -> None:
        codes = dict(PREFECTURE_CODES)
        for prefix, code in (extra_codes or {}).items():
            key = normalize_address(str(prefix))
            if key and str(code).strip():
                codes[key] = str(code).strip()
        self._prefixes = sorted(codes.items(), key=lambda item: len(item[0]), reverse=True)

    @classmethod
    def from_file(cls, path: Path | None) -> "AddressCodeTable":
        """Load extra prefixes from ``path``; unusable files fall back to prefectures."""
        if path is None:
            return cls()
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.warning("Address code table %s unusable (%s); using prefecture codes only.", path, exc)
            return cls()
        source = raw.get("codes") if isinstance(raw, dict) and isinstance(raw.get("codes"), dict) else raw
        if not isinstance(source, dict):
            LOGGER.warning("Address code table %s is not a mapping; using prefecture codes only.", path)
            return cls()
        return cls({str(k): str(v) for k, v in source.items()})

    def code_for(self, address: str) -> str:
        normalized = normalize_address(address)
        if not normalized:
            return ""
        for prefix, code in self._prefixes:
            if normalized.startswith(prefix):
                return code
        return ""

    def __call__(self, address: str) -> AddressDetails:
        chome, banchi = extract_chome_banchi(address)
        return AddressDetails(code=self.code_for(address), chome=chome, banchi=banchi)
