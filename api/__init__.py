from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from .logging_config import setup_logging
from .responses import api_response
from models import storage  # DBStorage singleton (scoped_session)
from models.credential_store import CredentialStore
from utils.authenticator import RequestAuthenticator
from utils.security import Argon2Hasher, TokenConfig, TokenIssuer, TokenVerifier
from utils.session_manager import SessionManager

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Video Platform API",
        "version": "1.0.0",
        "description": "REST API for users, channels, videos, comments, likes and subscriptions.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def init_auth(app: Flask) -> None:
    """Build the auth core from app.config and hang it on app.extensions."""
    token_config = TokenConfig.from_mapping(app.config)
    store = CredentialStore(storage)
    hasher = Argon2Hasher.from_mapping(app.config)
    verifier = TokenVerifier(token_config)

    app.extensions["password_hasher"] = hasher
    app.extensions["session_manager"] = SessionManager(
        store=store,
        hasher=hasher,
        issuer=TokenIssuer(token_config),
        verifier=verifier,
    )
    app.extensions["request_authenticator"] = RequestAuthenticator(verifier, store)


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    Tests build an isolated app per session with config_name="testing".
    """
    setup_logging()
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))

    # Cookies carry credentials, so CORS must allow them
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Uniform {statusCode, data, message, success} envelope for every error
    register_error_handlers(app)

    init_auth(app)

    from .health import bp as health_bp
    from .users import bp as users_bp
    from .videos import bp as videos_bp
    from .comments import bp as comments_bp
    from .likes import bp as likes_bp
    from .subscriptions import bp as subscriptions_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(users_bp, url_prefix="/api/v1/users")
    app.register_blueprint(videos_bp, url_prefix="/api/v1")
    app.register_blueprint(comments_bp, url_prefix="/api/v1")
    app.register_blueprint(likes_bp, url_prefix="/api/v1/likes")
    app.register_blueprint(subscriptions_bp, url_prefix="/api/v1/subscriptions")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return api_response(200, {
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, "Welcome to Video Platform API")

    return app
