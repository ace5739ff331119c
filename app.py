import logging
import os

from flask import Flask
from flask_cors import CORS

from config import Config
from utils.db import init_db_connection
from utils.errors import register_error_handlers

# Import controllers
from controllers.auth_controller import auth_bp
from controllers.password_reset_controller import password_reset_bp
from controllers.users_controller import users_bp
from controllers.system_controller import system_bp


def configure_logging(app):
    level = app.config.get("LOG_LEVEL", "INFO")
    app.logger.setLevel(level)
    root = logging.getLogger()
    root.setLevel(level)

    # avoid duplicate handlers under the reloader
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        root.addHandler(handler)


def create_app(config_object=Config):
    app = Flask(__name__)               # Initialize Flask app
    app.config.from_object(config_object)
    configure_logging(app)

    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ALLOWED_ORIGINS"]}},
         supports_credentials=True)

    init_db_connection(app)             # Bind MongoDB client
    register_error_handlers(app)

    # Register Blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(password_reset_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(system_bp)

    if not app.config.get("MASTER_AUTH_KEY_HASH"):
        app.logger.warning("MASTER_AUTH_KEY_HASH is not set; admin endpoints will reject every request")

    return app


app = create_app()


# Run the app
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)), debug=os.environ.get("FLASK_DEBUG") == "1")
