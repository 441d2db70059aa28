import logging
import os
from logging.handlers import RotatingFileHandler

from flask import Flask, jsonify
from flask_cors import CORS

from clubhub.config import config
from clubhub.extensions import db, jwt, limiter, ma, migrate, scheduler, socketio

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(app):
    level = getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
               for h in root.handlers):
        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        root.addHandler(stream)

    log_file = app.config.get("LOG_FILE")
    if log_file and not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


def configure_scheduler(app):
    """Start the APScheduler instance once and register the notification jobs."""
    if not app.config.get("SCHEDULER_ENABLED") or scheduler.running:
        return
    from clubhub.notifications.jobs import register_jobs

    try:
        scheduler.init_app(app)
    except RuntimeError as e:
        if "already initialized" not in str(e):
            raise
    register_jobs(app)
    scheduler.start()
    logger.info("Scheduler started with %s jobs", len(scheduler.get_jobs()))


def configure_jwt(app):
    from clubhub.models import User

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({"msg": "Token has expired"}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({"msg": f"Invalid token: {error}"}), 401

    @jwt.unauthorized_loader
    def unauthorized_callback(error):
        return jsonify({"msg": error}), 401

    @jwt.user_lookup_loader
    def user_lookup_callback(_jwt_header, jwt_data):
        return db.session.get(User, int(jwt_data["sub"]))


def create_app(config_name=None):
    config_name = config_name or os.getenv("APP_ENV") or os.getenv("FLASK_ENV") or "default"

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    configure_logging(app)

    db.init_app(app)
    ma.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    CORS(app, resources={r"/api/*": {
        "origins": app.config["CORS_ORIGINS"],
        "allow_headers": ["Content-Type", "Authorization", "X-Organization-Id"],
        "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        "supports_credentials": True,
    }})
    socketio.init_app(app, async_mode=app.config["SOCKETIO_ASYNC_MODE"])
    import clubhub.sockets  # noqa: F401

    configure_jwt(app)

    from clubhub.cli import register_cli
    from clubhub.errors import register_error_handlers
    from clubhub.filters import register_filters
    from clubhub.routes import register_blueprints

    register_error_handlers(app)
    register_filters(app)
    register_blueprints(app)
    register_cli(app)

    configure_scheduler(app)

    logger.info("ClubHub started with %s config", config_name)
    return app
