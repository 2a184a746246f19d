from flask import Flask, jsonify
from bookreserve.config import Config
from bookreserve.errors import ServiceError
from bookreserve.extensions import db, migrate, jwt

from bookreserve.controllers.scan_controller import scan_bp
from bookreserve.controllers.book_controller import book_bp
from bookreserve.controllers.professor_controller import professor_bp
from bookreserve.controllers.admin_controller import admin_bp


def _register_jwt_handlers():
    # same envelope as the rest of the API; rejected before any service runs
    @jwt.unauthorized_loader
    def _missing_token(reason):
        return jsonify({"success": False, "code": "unauthorized", "message": reason}), 401

    @jwt.invalid_token_loader
    def _invalid_token(reason):
        return jsonify({"success": False, "code": "unauthorized", "message": reason}), 401

    @jwt.expired_token_loader
    def _expired_token(_header, _payload):
        return jsonify({"success": False, "code": "unauthorized", "message": "Token has expired"}), 401


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # models must be imported before create_all / migrate see the metadata
    from bookreserve.models import book, professor_request, scan_event  # noqa: F401

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    _register_jwt_handlers()

    app.register_blueprint(scan_bp)
    app.register_blueprint(book_bp)
    app.register_blueprint(professor_bp)
    app.register_blueprint(admin_bp)

    @app.errorhandler(ServiceError)
    def _service_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    @app.cli.command("init-db")
    def init_db():
        """Create all tables (use `flask db upgrade` once migrations exist)."""
        db.create_all()
        app.logger.info("[init-db] Tables created.")

    return app
