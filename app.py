import logging

import click
from flask import Flask

from admin_service import AdminService
from config import Config
from firestore_db import OrderEventLog
from mailer import ResendMailer
from ordering import OrderService
from postal_lookup import PostalLookup
from routes_api import api
from routes_web import web
from secret_store import get_secret
from sql_db import create_tables, make_engine, make_session_factory
from store import Store


def create_app(overrides=None, lookup=None, mailer=None, order_log=None):
    """
    Build the app and its services. Tests pass config overrides and fake
    lookup/mailer objects; everything else is built from config.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = make_engine(app.config["SQLALCHEMY_DATABASE_URI"])
    # create tables for demo
    create_tables(engine)
    store = Store(make_session_factory(engine))

    if lookup is None:
        lookup = PostalLookup(
            base_url=app.config["ZIPPOPOTAM_BASE_URL"],
            timeout=app.config["GEO_TIMEOUT_SECONDS"],
        )
    if mailer is None:
        api_key = app.config.get("RESEND_API_KEY") or get_secret(
            "RESEND_API_KEY", use_secret_manager=app.config["SECRET_MANAGER_ENABLED"]
        )
        mailer = ResendMailer(
            api_key=api_key,
            from_email=app.config["RESEND_FROM_EMAIL"],
            api_url=app.config["RESEND_API_URL"],
            timeout=app.config["EMAIL_TIMEOUT_SECONDS"],
        )
    if order_log is None and app.config["ORDER_EVENTS_ENABLED"]:
        order_log = OrderEventLog(database=app.config["FIRESTORE_DB_ID"])

    app.extensions["engine"] = engine
    app.extensions["store"] = store
    app.extensions["lookup"] = lookup
    app.extensions["mailer"] = mailer
    app.extensions["orders"] = OrderService(store, mailer, order_log)
    app.extensions["admin"] = AdminService(store, lookup)

    app.register_blueprint(web)
    app.register_blueprint(api)
    register_commands(app)
    return app


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create missing tables."""
        create_tables(app.extensions["engine"])
        click.echo("Tables created.")

    @app.cli.command("add-super-admin")
    @click.argument("email")
    def add_super_admin(email):
        """Give an existing user access to every location."""
        store = app.extensions["store"]
        user = store.get_user_by_email(email)
        if user is None:
            raise click.ClickException(f"No user with email {email}")
        store.add_super_admin(user.id)
        click.echo(f"{user.email} is now a super admin.")


if __name__ == "__main__":
    create_app().run(debug=True)
