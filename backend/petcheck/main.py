"""
PetCheck – Flask Application Factory
Serves the REST API for veterinary drug interaction checks, drug catalog
search, openFDA adverse events and recalls.
"""

import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from petcheck.config import Config
from petcheck.database import db
from petcheck.routes.health import health_bp
from petcheck.routes.interactions import interactions_bp
from petcheck.routes.drugs import drugs_bp
from petcheck.routes.adverse_events import adverse_events_bp
from petcheck.routes.recalls import recalls_bp
from petcheck.middleware.auth_middleware import optional_jwt_middleware
from petcheck.middleware.audit_logger import audit_after_request
from petcheck.middleware.error_handler import register_error_handlers
from petcheck.services.container import EXTENSION_KEY, Services, build_services

limiter = Limiter(key_func=get_remote_address, default_limits=[Config.RATE_LIMIT_DEFAULT])


def create_app(services: Optional[Services] = None) -> Flask:
    Config.validate()

    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.config["SECRET_KEY"] = Config.FLASK_SECRET_KEY
    app.config["SQLALCHEMY_DATABASE_URI"] = Config.DATABASE_URL
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["DEBUG"] = Config.APP_ENV == "development"
    app.config["RATELIMIT_ENABLED"] = Config.APP_ENV != "testing"

    # Extensions
    CORS(app, resources={r"/api/*": {"origins": Config.CORS_ORIGINS}})
    limiter.init_app(app)
    db.init_app(app)

    # Create tables if they don't already exist
    with app.app_context():
        from petcheck.models import models as _models  # noqa: F401 – ensure all models are registered
        db.create_all()
        app.extensions[EXTENSION_KEY] = services or build_services()

    # Middleware
    app.before_request(optional_jwt_middleware)
    app.after_request(audit_after_request)
    register_error_handlers(app)

    # Per-endpoint limits on top of the default
    limiter.limit(Config.RATE_LIMIT_INTERACTIONS)(interactions_bp)
    for bp in (drugs_bp, adverse_events_bp, recalls_bp):
        limiter.limit(Config.RATE_LIMIT_SEARCH)(bp)
    limiter.exempt(health_bp)

    # Blueprints
    app.register_blueprint(health_bp, url_prefix="/api/health")
    app.register_blueprint(interactions_bp, url_prefix="/api/interactions")
    app.register_blueprint(drugs_bp, url_prefix="/api/drugs")
    app.register_blueprint(adverse_events_bp, url_prefix="/api/adverse-events")
    app.register_blueprint(recalls_bp, url_prefix="/api/recalls")

    if Config.ENABLE_SCHEDULER:
        from petcheck.services.background_scheduler import init_scheduler
        init_scheduler(app)

    logging.getLogger("petcheck").info("PetCheck API ready (env=%s)", Config.APP_ENV)
    return app
