from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event, inspect, text
import os
import logging
from zimshelf.constants import DATA_DIR

# Retrieve main logger
logger = logging.getLogger("main")

db = SQLAlchemy()


def init_db(app):
    # Import models so their tables are registered on db.metadata
    import zimshelf.models  # noqa: F401

    with app.app_context():
        # Ensure foreign keys, WAL mode, and timeout are set when connection is opened
        @event.listens_for(db.engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            import sqlite3
            if not isinstance(dbapi_connection, sqlite3.Connection):
                return

            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON;")
            if app.config["SQLALCHEMY_DATABASE_URI"] not in ("sqlite://", "sqlite:///:memory:"):
                # Enable WAL mode for better concurrent access
                cursor.execute("PRAGMA journal_mode=WAL;")
            # Increase timeout to 30 seconds to handle contention
            cursor.execute("PRAGMA busy_timeout=30000;")
            cursor.close()

        if db.engine.url.drivername.startswith("sqlite") and db.engine.url.database not in (None, "", ":memory:"):
            os.makedirs(os.path.dirname(db.engine.url.database) or DATA_DIR, exist_ok=True)

        inspector = inspect(db.engine)
        if not inspector.has_table("books"):
            logger.info("Initializing database tables...")
        db.create_all()


def check_db_connection():
    """Run a trivial query, raising if the database is unreachable."""
    db.session.execute(text("SELECT 1"))
