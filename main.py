from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from vehicle_forms.core.config import AppConfig
from vehicle_forms.core.errors import TemplateError
from vehicle_forms.core.logging import setup_logging
from vehicle_forms.data.address import AddressCodeTable
from vehicle_forms.data.integrate import integrate_extractions
from vehicle_forms.data.models import NormalizedApplicationRecord
from vehicle_forms.layout.fields import ApplicationType, parse_application_type
from vehicle_forms.layout.loader import load_layout
from vehicle_forms.ocr_extract.response import (
    DocumentType,
    Extraction,
    ExtractionError,
    first_successful_extraction,
    parse_extraction_response,
)
from vehicle_forms.pdf.fonts import load_font
from vehicle_forms.pdf.stamping import TemplateStamper
from vehicle_forms.pdf.templates import read_template, template_path_for


def read_argument_text(raw: str) -> str:
    """Inline JSON (optionally code-fenced) is used as is; anything else is a path."""
    if raw.lstrip().startswith(("{", "`")):
        return raw
    return Path(raw).read_text(encoding="utf-8")


def load_json_argument(raw: str) -> dict[str, Any]:
    """Accept either a JSON file path or a raw JSON string."""
    data = json.loads(read_argument_text(raw))
    if not isinstance(data, dict):
        raise ValueError("JSON input must be an object.")
    return data


def load_extraction_pages(pages: list[str], document_type: DocumentType) -> Extraction:
    """Parse per-page model replies and keep the first one of ``document_type``."""
    return first_successful_extraction(
        pages,
        lambda raw: parse_extraction_response(read_argument_text(raw)),
        document_type,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Stamp seal/vehicle certificate data onto the transfer registration form."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--record",
        help="Reviewed application record (JSON file path or raw JSON).",
    )
    source.add_argument(
        "--seal",
        nargs="+",
        help=(
            "Seal certificate (inkan) model reply per page, as file paths or raw "
            "JSON; the first usable page wins. Requires --vehicle."
        ),
    )
    parser.add_argument(
        "--vehicle",
        nargs="+",
        help="Vehicle certificate (shaken) model reply per page.",
    )
    parser.add_argument(
        "--application-type",
        default="transfer",
        choices=[item.value for item in ApplicationType],
    )
    parser.add_argument("--template", default="", help="Override template PDF path.")
    parser.add_argument("--layout", default="", help="Override field layout JSON path.")
    parser.add_argument(
        "--output",
        default="",
        help="Output PDF path (default: <OUTPUT_DIR>/<application_type>_completed.pdf).",
    )
    return parser


def main() -> None:
    load_dotenv()
    config = AppConfig.from_env()
    setup_logging(config.logging.level)
    logger = logging.getLogger("main")
    parser = build_parser()
    args = parser.parse_args()
    stamping = config.stamping

    if args.seal and not args.vehicle:
        parser.error("--seal requires --vehicle")

    application_type = parse_application_type(args.application_type)
    missing_fields: list[str] = []
    try:
        if args.record:
            record = NormalizedApplicationRecord.model_validate(load_json_argument(args.record))
        else:
            result = integrate_extractions(
                load_extraction_pages(args.seal, "inkan"),
                load_extraction_pages(args.vehicle, "shaken"),
                AddressCodeTable.from_file(config.address.codes_path),
            )
            record = result.record
            missing_fields = result.missing_fields
    except (OSError, ValueError, ExtractionError) as exc:
        raise SystemExit(f"Input validation failed:\n{exc}") from exc

    template_path = (
        Path(args.template)
        if args.template
        else template_path_for(stamping.template_dir, application_type)
    )
    output_path = (
        Path(args.output)
        if args.output
        else stamping.output_dir / f"{application_type.value}_completed.pdf"
    )
    stamper = TemplateStamper(
        load_layout(args.layout or stamping.field_positions_path),
        load_font(stamping.font_path),
        era_base_year=stamping.era_base_year,
    )
    try:
        report = stamper.stamp(
            read_template(template_path), record, output_path, application_type
        )
    except TemplateError as exc:
        raise SystemExit(f"Template error: {exc}") from exc

    logger.info("Stamping completed. Review the form before submission.")
    summary = {
        "status": "ok",
        "output": str(output_path),
        "missing_fields": missing_fields,
        "transfer_data": record.model_dump(),
        **report.as_dict(),
    }
    print(json.dumps(summary, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
