import logging

from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix

from config import Config
from extensions import db, migrate, limiter
from routes.auth_routes import auth_bp
from routes.student_routes import student_bp
from routes.teacher_routes import teacher_bp
from routes.lesson_plan_routes import lesson_plan_bp
from routes.fee_routes import fee_bp
from routes.library_routes import library_bp
from routes.transport_routes import transport_bp


def _set_security_headers(resp):
    resp.headers.setdefault("X-Content-Type-Options", "nosniff")
    resp.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    resp.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    resp.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
    return resp


def create_app(overrides=None):
    app = Flask(__name__)

    # Load configuration from Config, then per-instance overrides (tests)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")), logging.INFO))

    # Trust reverse proxy headers for scheme/host when enabled
    if app.config.get("TRUST_PROXY", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # type: ignore[assignment]

    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(student_bp)
    app.register_blueprint(teacher_bp)
    app.register_blueprint(lesson_plan_bp)
    app.register_blueprint(fee_bp)
    app.register_blueprint(library_bp)
    app.register_blueprint(transport_bp)

    app.after_request(_set_security_headers)

    @app.errorhandler(429)
    def _rate_limited(e):
        return jsonify({"ok": False, "error": "Too many attempts, slow down"}), 429

    @app.route('/health')
    def health():
        return jsonify({"ok": True})

    return app


app = create_app()


if __name__ == '__main__':
    with app.app_context():
        db.create_all()
    app.run(debug=False)
