import click
from flask import Flask
from sqlalchemy import event
from app.config import DevelopmentConfig
from app.extensions import db, migrate
from app.logging_config import configure_logging
from app.utils.errors import register_error_handlers


def _enable_sqlite_foreign_keys():
    engine = db.engine
    if engine.dialect.name != 'sqlite':
        return

    @event.listens_for(engine, 'connect')
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


def create_app(config_class=DevelopmentConfig):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    with app.app_context():
        _enable_sqlite_foreign_keys()

    register_error_handlers(app)

    # Register Blueprints
    from app.api.routes.auth import auth_bp
    from app.api.routes.bookings import bookings_bp
    from app.api.routes.rooms import rooms_bp
    from app.api.routes.main import main_bp

    app.register_blueprint(auth_bp, url_prefix='/api')
    app.register_blueprint(bookings_bp, url_prefix='/api/bookings')
    app.register_blueprint(rooms_bp, url_prefix='/api/rooms')
    app.register_blueprint(main_bp)

    @app.cli.command('seed')
    @click.option('--with-rooms/--no-rooms', default=True, help='Also create the sample rooms.')
    def seed_command(with_rooms):
        """Create tables, the default admin and sample rooms."""
        from app.seed import seed_database
        seed_database(with_rooms=with_rooms)

    return app
