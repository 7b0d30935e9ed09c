# analyticsmp/__init__.py

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .config import Config

db = SQLAlchemy()
migrate = Migrate()


def create_app(config_object=None, dispatcher=None):
    """
    Build the app. ``config_object`` (class or mapping) is applied on top of
    ``Config``; ``dispatcher`` replaces the HTTP sender for collect hits.
    """
    Config.validate()
    app = Flask(__name__)
    app.config.from_object(Config)
    if isinstance(config_object, dict):
        app.config.update(config_object)
    elif config_object is not None:
        app.config.from_object(config_object)

    db.init_app(app)
    migrate.init_app(app, db)

    from . import models  # noqa: F401  (register tables with metadata)

    # ==================================================
    # ANALYTICS
    # ==================================================
    from .utils.analytics import init_app as init_analytics
    init_analytics(app, dispatcher=dispatcher)

    if not app.config.get("ANALYTICS_TRACKING_ID"):
        app.logger.info("ANALYTICS_TRACKING_ID not set; hits must carry their own 'tid'")

    # ==================================================
    # BLUEPRINTS
    # ==================================================
    from .routes.tracking_routes import tracking_bp

    app.register_blueprint(tracking_bp, url_prefix="/analytics")

    # ==================================================
    # CLI COMMANDS
    # ==================================================
    from .commands import client_id, send_event, tracking_url
    app.cli.add_command(send_event)
    app.cli.add_command(tracking_url)
    app.cli.add_command(client_id)

    # ==================================================
    # HEALTH CHECK
    # ==================================================
    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
