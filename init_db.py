#!/usr/bin/env python
"""Database initialization script for the translation service.

This script creates the translations table from the SQLAlchemy models.
Use Alembic migrations for deployed databases.

Usage:
    python init_db.py
"""

import os
import sys
from transfill import create_app, db


def init_database():
    """Initialize the database by creating all tables."""
    config_name = os.getenv('FLASK_ENV', 'development')
    app = create_app(config_name)

    print(f"\n{'='*60}")
    print(f"Database Initialization for {config_name.upper()} Environment")
    print(f"{'='*60}\n")

    with app.app_context():
        try:
            print("Creating database tables...")
            print(f"Database URI: {app.config['SQLALCHEMY_DATABASE_URI']}\n")

            db.create_all()

            print("Created tables:")
            print(f"  ✓ {'translations':<25} - Translated values keyed by (key, lang)")
            print(f"\n{'='*60}")
            print("✅ Database initialization complete!")
            print(f"{'='*60}\n")
            print("Next steps:")
            print("  1. Start the Flask server: python wsgi.py")
            print("  2. Start a fill worker: celery -A celery_worker worker -l info")
            print("\n")

            return True

        except Exception as e:
            print(f"❌ Error creating database: {type(e).__name__}: {e}\n")
            return False


if __name__ == '__main__':
    success = init_database()
    sys.exit(0 if success else 1)
