#!/usr/bin/env python3
"""
Database initialization script
Run this to create all tables in the configured PostgreSQL database
"""

import sys
import os

# Add the app directory to the Python path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from app.database import init_db, test_database_connection

def init_database():
    """Test the connection and create the schema"""
    try:
        print("🔄 Testing database connection...")

        if not test_database_connection():
            print("❌ Could not connect to the database")
            print("\n💡 Troubleshooting:")
            print("1. Check your .env file has DATABASE_URL, or user/password/host/port/dbname")
            print("2. Verify the database server is reachable")
            return False

        print("✅ Database connection successful!")

        init_db()

        print("\n📋 Tables created:")
        print("  - users")
        print("  - categories")
        print("  - questions")
        print("  - quizzes")
        print("  - quiz_questions")
        print("  - quiz_attempts")
        print("  - answers")

        print("\n🎉 Database ready!")
        return True

    except Exception as e:
        print(f"❌ Error initializing database: {e}")
        return False

if __name__ == "__main__":
    success = init_database()
    sys.exit(0 if success else 1)
