"""Logging setup shared by the web app and the CLI commands."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(app):
    """Attach a single stream handler to the ``app`` logger hierarchy.

    Every module logs through ``logging.getLogger(__name__)``, so configuring
    the ``app`` logger covers the services and routes alike. Flask's own
    ``app.logger`` shares the same name and is covered as well.
    """
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    package_logger = logging.getLogger('app')
    package_logger.setLevel(level)

    if not any(getattr(h, '_room_booking', False) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._room_booking = True
        package_logger.addHandler(handler)
