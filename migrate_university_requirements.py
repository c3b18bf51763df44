"""
Migration script to add the requirements column to the universities table
and backfill it from the flat requirement fields of existing rows
"""
import os
import sys
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker
from dotenv import load_dotenv

from app.database import normalize_database_url
from app.schemas.requirements import derive_requirements

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./uni_tracker.db")

try:
    engine = create_engine(normalize_database_url(DATABASE_URL), pool_pre_ping=True)
    Session = sessionmaker(bind=engine)
except Exception as e:
    print(f"ERROR: Failed to create engine: {e}")
    sys.exit(1)

FLAT_FIELDS = [
    "sat_min", "sat_avg", "ielts_min", "ielts_avg", "toefl_min",
    "essays_required", "rec_letters_required", "interview_required",
    "transcripts_required", "application_fee", "fee_waiver_available",
]

def migrate():
    """Add universities.requirements if missing and populate it for every row"""
    session = Session()

    try:
        print("Starting migration: Add requirements to universities table...")

        inspector = inspect(engine)
        if "universities" not in inspector.get_table_names():
            print("Table 'universities' does not exist yet. Run init_db.py instead.")
            return

        existing = {column["name"] for column in inspector.get_columns("universities")}
        if "requirements" in existing:
            print("Column 'requirements' already exists. Skipping ALTER.")
        else:
            session.execute(text("ALTER TABLE universities ADD COLUMN requirements TEXT"))
            session.commit()
            print("✅ Added 'requirements' column to 'universities' table")

        # Older tables may predate some flat fields
        fields = [field for field in FLAT_FIELDS if field in existing]
        select_fields = ", ".join(["id"] + fields)
        rows = session.execute(text(f"SELECT {select_fields} FROM universities")).mappings().all()

        for row in rows:
            requirements = derive_requirements(row)
            session.execute(
                text("UPDATE universities SET requirements = :requirements WHERE id = :id"),
                {"requirements": requirements.to_json(), "id": row["id"]},
            )
        session.commit()

        print(f"✅ Updated {len(rows)} universities with requirements")

    except Exception as e:
        session.rollback()
        print(f"❌ Error during migration: {e}")
        raise
    finally:
        session.close()

if __name__ == "__main__":
    migrate()
