import sys
import os
sys.path.append(os.getcwd())

from sqlalchemy import MetaData
from exoatlas.db.session import engine, create_tables


def reset_db():
    print("Resetting database...")

    # Reflect all tables to drop everything, not just known models
    meta = MetaData()
    meta.reflect(bind=engine)

    print(f"Dropping tables: {[t.name for t in meta.sorted_tables]}")
    meta.drop_all(bind=engine)

    create_tables(engine)
    print("Database reset complete.")


if __name__ == "__main__":
    reset_db()
