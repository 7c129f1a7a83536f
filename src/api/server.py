"""Flask application factory."""
from __future__ import annotations

import logging
import logging.handlers
import os
import time
from pathlib import Path
from typing import Optional

from flask import Flask
from flask_cors import CORS

from src.api.explorer_routes import explorer_bp, safe_jsonify
from src.config import get_layout_settings, get_log_level_name

logger = logging.getLogger(__name__)


def create_app(config_overrides: Optional[dict] = None) -> Flask:
    """Initialize and configure the Flask application."""
    app = Flask(__name__)
    CORS(app)

    app.config["STARTUP_TIME"] = time.time()
    app.config["LAYOUT_SETTINGS"] = get_layout_settings()
    # Created lazily on first /cluster call unless injected here (tests inject a mock).
    app.config["CLUSTERING_CLIENT"] = None
    if config_overrides:
        app.config.update(config_overrides)

    _configure_logging(Path(app.config.get("LOG_DIR", "logs")))

    app.register_blueprint(explorer_bp)

    @app.route("/api/health", methods=["GET"])
    def health():
        return safe_jsonify({
            "status": "ok",
            "uptime_seconds": round(time.time() - app.config["STARTUP_TIME"], 3),
        })

    logger.info("Dendrogram explorer API initialized")
    return app


def _configure_logging(log_dir: Path = Path("logs")) -> None:
    """Attach a rotating file handler for API diagnostics."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "api.log"

    log_level = getattr(logging, get_log_level_name(), logging.INFO)

    root = logging.getLogger()

    # Avoid adding duplicate handlers if re-initializing
    already_configured = any(
        isinstance(h, logging.handlers.RotatingFileHandler)
        and getattr(h, "baseFilename", "") == str(log_path.resolve())
        for h in root.handlers
    )
    if already_configured:
        return

    root.setLevel(log_level)

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=5 * 1024 * 1024, backupCount=5
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
        )
    )
    root.addHandler(file_handler)


if __name__ == "__main__":
    # Dev server entry point
    app = create_app()
    port = int(os.getenv("PORT", 8000))
    app.run(host="0.0.0.0", port=port, debug=True)
