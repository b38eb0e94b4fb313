from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.http import register_error_handlers
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables

from .container import build_container
from .points.controller import register as register_points
from .reports.controller import register as register_reports
from .tasks.controller import register as register_tasks
from .users.controller import register as register_users

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def create_app(overrides: Optional[dict] = None) -> Flask:
    """Build the Flask app from the APP_ENV settings module.

    `overrides` replaces individual settings (tests point LOCAL_STORE_DIR at a
    temp dir this way).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    values = {name: getattr(settings, name) for name in dir(settings) if name.isupper()}
    values.update(overrides or {})

    logging.basicConfig(level=str(values.get("LOG_LEVEL", "INFO")).upper(), format=LOG_FORMAT)

    app.secret_key = values["SECRET_KEY"]
    app.config["DEBUG"] = bool(values.get("DEBUG", False))
    app.config["TESTING"] = bool(values.get("TESTING", False))

    db_config = dict(values["DB_CONFIG"])
    store_backend = str(values.get("STORE_BACKEND", "mysql"))
    local_store_dir = str(values.get("LOCAL_STORE_DIR", "instance/store"))

    logger.info(
        "settings=%s backend=%s db=%s@%s:%s/%s",
        settings_module, store_backend,
        db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
    )

    if store_backend == "mysql":
        if values.get("AUTO_INIT_DB"):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if values.get("AUTO_SEED_DB"):
            ensure_demo_users(db_config)

    container = build_container(
        db_config=db_config,
        store_backend=store_backend,
        local_store_dir=local_store_dir,
    )
    app.extensions["villa_staff"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_points(app, container)
    register_tasks(app, container)
    register_reports(app, container)

    return app
