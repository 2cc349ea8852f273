import logging
from time import time

from flask import Flask, g, request, jsonify
from flask_cors import CORS

from config import get_config
from init_db import db, init_database
from utils.errors import register_error_handlers
from utils.logger import setup_logging
from utils.timezone_helper import set_local_timezone

logger = logging.getLogger(__name__)


def create_app(config_class=None):
    app = Flask(__name__)

    # Load config
    config_class = config_class or get_config()
    app.config.from_object(config_class)
    config_class.init_app(app)

    setup_logging(app)
    set_local_timezone(app.config.get("TIMEZONE", "Asia/Dhaka"))
    logger.debug(f"Database: {app.config['SQLALCHEMY_DATABASE_URI']}")

    # Initialize DB and CORS; the session cookie carries the caller identity
    db.init_app(app)
    CORS(app, supports_credentials=True)

    register_error_handlers(app)

    # Initialize database tables
    init_database(app)

    # Performance monitoring setup
    @app.before_request
    def before_request():
        g.start_time = time()

    @app.after_request
    def after_request(response):
        if hasattr(g, "start_time"):
            duration = time() - g.start_time
            # Log slow requests (>2 seconds)
            if duration > 2.0:
                logger.warning(f"Slow request: {duration:.2f}s - {request.method} {request.path}")
        return response

    # Register Blueprints
    from routes import init_routes
    init_routes(app)

    @app.route("/")
    def index():
        return jsonify({"ok": True, "service": "officedesk"})

    return app
