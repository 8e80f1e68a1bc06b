from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate

from booktracker.config import Config

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Make sure every model is registered on the metadata
    from booktracker import models  # noqa: F401

    from booktracker.errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints
    from booktracker.routes.auth import bp as auth_bp
    from booktracker.routes.users import bp as users_bp
    from booktracker.routes.batches import bp as batches_bp
    from booktracker.routes.distributions import bp as distributions_bp
    from booktracker.routes.books import bp as books_bp
    from booktracker.routes.locations import bp as locations_bp
    from booktracker.routes.imports import bp as imports_bp
    from booktracker.routes.stats import bp as stats_bp

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(users_bp, url_prefix="/users")
    app.register_blueprint(batches_bp, url_prefix="/batches")
    app.register_blueprint(distributions_bp, url_prefix="/distributions")
    app.register_blueprint(books_bp, url_prefix="/books")
    app.register_blueprint(locations_bp, url_prefix="/locations")
    app.register_blueprint(imports_bp, url_prefix="/imports")
    app.register_blueprint(stats_bp, url_prefix="/stats")

    return app
