import logging
import sys
from typing import Mapping

from cachelib import FileSystemCache
from dotenv import load_dotenv
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

load_dotenv()

from config import Config, describe_config  # noqa: E402  (load_dotenv needs to run first)
from extensions import cors, db, login_manager, server_session  # noqa: E402
from startup import StartupError, run_startup  # noqa: E402

HEALTH_MESSAGE = "Warehouse backend is running."
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def create_app(config_overrides: Mapping | None = None) -> Flask:
    """Application factory for the warehouse backend.

    Only wires extensions and routes; nothing here talks to the database.
    The store is connected and seeded by ``run_startup``.
    """

    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    if app.config.get("SESSION_CACHELIB") is None:
        app.config["SESSION_CACHELIB"] = FileSystemCache(app.config["SESSION_DIR"], threshold=500)

    # reject undecodable JSON before any view runs
    @app.before_request
    def parse_json_body():
        if request.is_json and request.get_data(cache=True):
            request.get_json()  # raises 400 on a malformed body

    # init extensions
    db.init_app(app)
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config["CLIENT_ORIGIN"]}},
        supports_credentials=True,
    )
    server_session.init_app(app)
    login_manager.init_app(app)

    # blueprints
    from modules.auth import bp as auth_bp
    from modules.items import bp as items_bp
    from modules.transactions import bp as transactions_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(items_bp)
    app.register_blueprint(transactions_bp)

    @app.get("/api/health")
    def health():
        return jsonify(message=HEALTH_MESSAGE), 200

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify(message=error.description), error.code

    return app


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def main(app: Flask | None = None) -> int:
    """Run the startup steps, then serve. Returns the process exit status."""
    if app is None:
        configure_logging(Config.LOG_LEVEL)
        app = create_app()

    for key, value in describe_config(app.config).items():
        app.logger.info("config %s=%s", key, value)

    try:
        run_startup(app)
    except StartupError as exc:
        app.logger.error("%s", exc)
        return 1

    app.run(host=app.config["HOST"], port=app.config["PORT"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
