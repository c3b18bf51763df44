"""
Database initialization script
Run this to create tables and insert the demo universities into an empty store
"""
from app.database import engine, Base, SessionLocal
from app.models import University, Task, Profile  # noqa: F401 - registers tables
from app.seed import seed_universities

def init_database():
    """Create all tables, then seed if the universities table is empty"""
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        inserted = seed_universities(db)
    finally:
        db.close()
    print(f"Database initialized successfully! ({inserted} universities seeded)")

if __name__ == "__main__":
    init_database()
