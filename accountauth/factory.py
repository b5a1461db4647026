"""Application factory for the account service."""

from typing import Optional
import logging

from flask import Flask

from . import config, mail, service, store


def _configure_logging(app: Flask) -> None:
    level = app.config.get('LOGLEVEL', 20)
    logfile = app.config.get('LOGFILE')
    package_logger = logging.getLogger(__package__)
    package_logger.setLevel(int(level) if str(level).isdigit()
                            else str(level).upper())
    if not package_logger.handlers:
        handler: logging.Handler = (logging.FileHandler(logfile) if logfile
                                    else logging.StreamHandler())
        handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s [%(name)s] %(message)s'
        ))
        package_logger.addHandler(handler)


def create_web_app(create_db: Optional[bool] = None) -> Flask:
    """Initialize and configure the account application."""
    app = Flask('accountauth')
    app.config.from_object(config)

    store.init_app(app)
    mail.init_app(app)
    service.init_app(app)
    _configure_logging(app)

    if create_db is None:
        create_db = app.config['CREATE_DB']
    if create_db:
        with app.app_context():
            store.create_all()
    return app
