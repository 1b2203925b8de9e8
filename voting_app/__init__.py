from dotenv import load_dotenv
from flask import Flask
from flasgger import Swagger

from .config import Config
from .errors import register_error_handlers, register_jwt_callbacks
from .extensions import db, migrate, jwt, ma
from .middleware.request_id import init_request_id, init_logging
from .swagger_config import swagger_template

load_dotenv()


def create_app(config_class=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)
    Swagger(app, template=swagger_template(app))

    init_logging(app)

    # Extensions
    from . import models  # noqa: F401  (register every table)

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)
    register_jwt_callbacks(jwt)

    # Middleware + errors
    init_request_id(app)
    register_error_handlers(app)

    # Blueprint imports
    from .api.auth.routes import auth_bp
    from .api.users.routes import users_bp
    from .api.candidates.routes import candidates_bp
    from .api.admin.routes import admin_bp

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(candidates_bp, url_prefix="/api/candidates")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    from .cli import register_cli
    register_cli(app)

    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    return app
