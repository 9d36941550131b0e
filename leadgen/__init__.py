"""
Flask application factory.

Creates and configures the app, builds shared services, registers blueprints.
"""
import os

from flask import Flask


def create_app(services=None, create_tables=None):
    """
    Create and configure the Flask application.

    services      — a prebuilt extensions.Services (tests inject fakes here)
    create_tables — create the schema directly; defaults to on for SQLite only,
                    Postgres schema is managed by Alembic.
    """
    from leadgen.config import SECRET_KEY, DATABASE_URL
    from leadgen.logging_config import configure_logging
    from leadgen.extensions import EXTENSION_KEY, build_services

    app = Flask(__name__)

    configure_logging(app)

    app.secret_key = os.getenv('SECRET_KEY', SECRET_KEY)

    if create_tables is None:
        create_tables = services is None and DATABASE_URL.startswith('sqlite')
    if create_tables:
        from leadgen.database import init_db
        init_db()

    app.extensions[EXTENSION_KEY] = services or build_services()

    from leadgen.routes.leads import bp as leads_bp
    from leadgen.routes.workflow import bp as workflow_bp

    app.register_blueprint(leads_bp)
    app.register_blueprint(workflow_bp)

    return app
