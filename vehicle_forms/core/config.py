"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class StampingConfig:
    """Stamping engine assets and output locations."""

    field_positions_path: Path
    font_path: Path
    template_dir: Path
    output_dir: Path
    era_base_year: int


@dataclass(frozen=True)
class AddressConfig:
    """Address lookup table settings."""

    codes_path: Path | None


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging configuration."""

    level: str


@dataclass(frozen=True)
class SecurityConfig:
    """API perimeter security settings."""

    cors_allowed_origins: list[str]
    request_max_bytes: int


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    stamping: StampingConfig
    address: AddressConfig
    logging: LoggingConfig
    security: SecurityConfig

    @staticmethod
    def from_env(base_dir: Path | None = None) -> "AppConfig":
        """Build app config from process environment.

        Relative paths are resolved against ``base_dir`` (current working
        directory when omitted).
        """
        root = base_dir or Path.cwd()

        def _path(name: str, default: str) -> Path:
            raw = os.getenv(name, default).strip() or default
            path = Path(raw)
            return path if path.is_absolute() else root / path

        address_codes_raw = os.getenv("ADDRESS_CODES_PATH", "").strip()
        address_codes_path: Path | None = None
        if address_codes_raw:
            address_codes_path = Path(address_codes_raw)
            if not address_codes_path.is_absolute():
                address_codes_path = root / address_codes_path

        era_base_year = int(os.getenv("ERA_BASE_YEAR", "2018"))
        log_level = os.getenv("LOG_LEVEL", "INFO").strip() or "INFO"
        cors_allowed_origins = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ALLOWED_ORIGINS",
                "http://localhost:5173,http://127.0.0.1:5173",
            ).split(",")
            if origin.strip()
        ]
        request_max_bytes = int(os.getenv("REQUEST_MAX_BYTES", str(10 * 1024 * 1024)))

        return AppConfig(
            stamping=StampingConfig(
                field_positions_path=_path(
                    "FIELD_POSITIONS_PATH", "config/field-positions.json"
                ),
                font_path=_path("FONT_PATH", "fonts/NotoSansJP-Regular.otf"),
                template_dir=_path("TEMPLATE_DIR", "templates"),
                output_dir=_path("OUTPUT_DIR", "output"),
                era_base_year=era_base_year,
            ),
            address=AddressConfig(codes_path=address_codes_path),
            logging=LoggingConfig(level=log_level),
            security=SecurityConfig(
                cors_allowed_origins=cors_allowed_origins,
                request_max_bytes=request_max_bytes,
            ),
        )
