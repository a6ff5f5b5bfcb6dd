"""Create tables and seed the access catalog, default roles and admin user"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from scopegrid.database.session import SessionLocal, create_all_tables
from scopegrid.services.bootstrap import create_admin_if_needed, seed_access_catalog, seed_sample_data

if __name__ == "__main__":
    create_all_tables()
    db = SessionLocal()
    try:
        created = seed_access_catalog(db)
        create_admin_if_needed(db)
        if "--sample-data" in sys.argv:
            seed_sample_data(db)
    finally:
        db.close()
    print(f"Seed completed: {created}")
