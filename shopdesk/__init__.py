from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from dotenv import load_dotenv

from shopdesk.logger import configure_logging

db = SQLAlchemy()
migrate = Migrate()


def create_app(config_object="shopdesk.config.Config", **overrides):
    load_dotenv()

    app = Flask(__name__)
    app.config.from_object(config_object)
    app.config.update(overrides)

    logger = configure_logging(app)

    # app first, then the extensions
    db.init_app(app)
    migrate.init_app(app, db)

    from shopdesk import models  # noqa: F401

    from shopdesk.routes import api_bp, dashboard_bp, register_error_handlers
    app.register_blueprint(api_bp)
    app.register_blueprint(dashboard_bp)
    register_error_handlers(app)

    logger.info("shopdesk app created (db=%s)", app.config["SQLALCHEMY_DATABASE_URI"].split("@")[-1])
    return app
