from __future__ import annotations

import importlib
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .common.logging import get_logger, setup_logging
from .database.bootstrap import apply_schema, list_tables

from .container import Container, build_container
from .attendance.controller import register as register_dtr
from .schedules.controller import register as register_schedules

log = get_logger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory. Pass a container to run over other repositories."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    setup_logging(
        json_output=bool(getattr(settings, "LOG_JSON", False)),
        log_level=str(getattr(settings, "LOG_LEVEL", "INFO")),
    )

    if container is None:
        log.info(
            "startup",
            settings=settings_module,
            db=f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}",
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            log.info("schema_ready", tables=len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            daily_cap_minutes=int(getattr(settings, "DAILY_CAP_MINUTES", 300)),
            matching=str(getattr(settings, "RECONCILE_MATCHING", "ordinal")),
        )

    register_dtr(app, container)
    register_schedules(app, container)

    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        return jsonify({"message": e.description}), e.code

    return app
