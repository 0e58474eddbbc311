import logging
from datetime import datetime

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import Config
from database import ensure_indexes

from routes.auth_routes import auth
from routes.user_routes import users
from routes.exam_routes import exam
from routes.result_routes import result
from routes.cheating_routes import cheating
from routes.coding_routes import coding
from routes.sms_routes import sms


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # =====================================================
    # LOGGING
    # =====================================================
    logging.basicConfig(
        level=config_class.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s : %(message)s",
    )
    app.logger.setLevel(config_class.LOG_LEVEL)

    CORS(
        app,
        resources={r"/api/*": {"origins": config_class.cors_origins()}},
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # =====================================================
    # BLUEPRINTS
    # =====================================================
    app.register_blueprint(auth, url_prefix="/api/users")
    app.register_blueprint(users, url_prefix="/api/users")
    app.register_blueprint(exam, url_prefix="/api/users")
    app.register_blueprint(result, url_prefix="/api/users")
    app.register_blueprint(cheating, url_prefix="/api/users")
    app.register_blueprint(coding, url_prefix="/api/coding")
    app.register_blueprint(sms, url_prefix="/api/sms")

    ensure_indexes()
    register_error_handlers(app)
    register_info_routes(app)

    app.logger.info(
        "CyberArena backend ready (%s, db=%s)", config_class.ENVIRONMENT, config_class.MONGO_DB_NAME
    )
    return app


# =====================================================
# ERRORS -> JSON
# =====================================================
def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": f"Not Found - {request.path}"}), 404

    @app.errorhandler(413)
    def too_large(e):
        return jsonify({"error": "Request body too large"}), 413

    @app.errorhandler(Exception)
    def internal_error(e):
        app.logger.exception("Unhandled error: %s", e)
        if app.config["IS_PRODUCTION"]:
            return jsonify({"error": "An internal error occurred"}), 500
        return jsonify({"error": str(e)}), 500


# =====================================================
# HEALTH + API INFO
# =====================================================
def register_info_routes(app):
    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/api/health")
    def api_health():
        return jsonify({
            "message": "CyberArena backend is running!",
            "environment": app.config["ENVIRONMENT"],
            "timestamp": datetime.utcnow().isoformat(),
        })

    @app.route("/api")
    def api_info():
        return jsonify({
            "message": "Welcome to CyberArena Backend API",
            "version": "1.0.0",
            "endpoints": {
                "auth": "/api/users/auth",
                "users": "/api/users",
                "exams": "/api/users/exam",
                "results": "/api/users/results",
                "cheatingLogs": "/api/users/cheatingLogs",
                "coding": "/api/coding",
                "sms": "/api/sms",
                "health": "/api/health",
            },
        })


# =====================================================
# LOCAL RUN ONLY (PRODUCTION USES GUNICORN: "app:create_app()")
# =====================================================
if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000)
