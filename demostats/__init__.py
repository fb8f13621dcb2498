# demostats/__init__.py
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from config import get_config
from demostats.extensions import db, migrate, login_manager, cache
import logging, sys


def create_app(config_object=None):
    app = Flask(__name__)
    app.config.from_object(config_object or get_config())

    if not app.config.get("CRON_SECRET"):
        app.logger.warning("CRON_SECRET is not set; cron endpoint will return 401")

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    cache.init_app(app)

    from . import models  # import models before creating tables

    # Blueprints
    from demostats.api.routes import bp as api_bp
    app.register_blueprint(api_bp)

    from demostats.leaderboard import bp as leaderboard_bp
    app.register_blueprint(leaderboard_bp)

    from demostats.admin import bp as admin_bp
    app.register_blueprint(admin_bp)

    from demostats.cli import register_cli
    register_cli(app)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(models.User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Unauthorized", "message": "Login required."}), 401

    @app.errorhandler(HTTPException)
    def json_http_error(e):
        return jsonify({"error": e.name, "message": e.description}), e.code

    # ---------------- Logging & health ----------------

    if not app.debug and not app.testing:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.INFO)
        app.logger.setLevel(logging.INFO)
        app.logger.addHandler(handler)

    @app.get("/healthz")
    def healthz():
        return "ok", 200

    return app
