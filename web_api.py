from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vehicle_forms.api.http_setup import register_exception_handlers, register_http_middleware
from vehicle_forms.api.routes import StampingRouteDeps, register_stamping_routes
from vehicle_forms.core.config import AppConfig
from vehicle_forms.core.logging import setup_logging
from vehicle_forms.data.address import AddressCodeTable
from vehicle_forms.layout.fields import ApplicationType
from vehicle_forms.pdf.stamping import TemplateStamper
from vehicle_forms.pdf.templates import read_template, template_path_for

LOGGER = logging.getLogger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    app = FastAPI(title="Vehicle Transfer Form API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    register_http_middleware(app, config=config, logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)

    stamping = config.stamping
    stamping.output_dir.mkdir(parents=True, exist_ok=True)

    def read_category_template(application_type: ApplicationType) -> bytes:
        return read_template(template_path_for(stamping.template_dir, application_type))

    register_stamping_routes(
        app,
        deps=StampingRouteDeps(
            stamper=TemplateStamper.from_config(stamping),
            address_lookup=AddressCodeTable.from_file(config.address.codes_path),
            read_template=read_category_template,
            output_dir=stamping.output_dir,
        ),
    )
    return app


def build_app() -> FastAPI:
    """Entry point for ``uvicorn --factory web_api:build_app``."""
    load_dotenv()
    config = AppConfig.from_env()
    setup_logging(config.logging.level)
    return create_app(config)
