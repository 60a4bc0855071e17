"""
Database Initialization Script for Production
Creates all tables in the database. Run this on first deployment.

Usage: python init_db.py
"""

from app import app, db


def init_database():
    """Initialize the database with all tables"""
    with app.app_context():
        print("🔧 Initializing database...")
        print(f"📍 Database URI: {app.config['SQLALCHEMY_DATABASE_URI'][:50]}...")

        db.create_all()

        print("✅ Database initialized successfully!")
        print("📋 Tables created:")
        for table_name in sorted(db.metadata.tables):
            print(f"   - {table_name}")
        return sorted(db.metadata.tables)


if __name__ == "__main__":
    init_database()
