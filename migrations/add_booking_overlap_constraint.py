"""
Add store-level guards against pet double-booking (PostgreSQL only)

- btree_gist extension (equality on pet_id inside a GiST index)
- hosting_bookings: EXCLUDE constraint so one pet cannot hold two active
  bookings whose [check_in_date, check_out_date) ranges overlap
- supporting index for host capacity scans

Safe to run repeatedly. Existing overlapping active rows must be resolved
before the constraint can be created.
"""

# Ensure this script can be run directly from repo root
import logging
import sys
from pathlib import Path

CURRENT_DIR = Path(__file__).resolve().parent
PROJECT_DIR = CURRENT_DIR.parent
if str(PROJECT_DIR) not in sys.path:
    sys.path.insert(0, str(PROJECT_DIR))

from sqlalchemy import text  # noqa: E402

from app.database import engine  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

CONSTRAINT_NAME = "hosting_bookings_no_pet_overlap"
ACTIVE_STATUSES = ("pending_approval", "approved", "confirmed", "in_progress")


def upgrade():
    if engine.dialect.name != "postgresql":
        logger.info(f"Skipping: exclusion constraints need PostgreSQL (dialect={engine.dialect.name})")
        return

    statuses = ", ".join(f"'{s}'" for s in ACTIVE_STATUSES)

    with engine.connect() as conn:
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist;"))

        exists = conn.execute(
            text("SELECT 1 FROM pg_constraint WHERE conname = :name"),
            {"name": CONSTRAINT_NAME},
        ).first()
        if exists:
            logger.info(f"Constraint {CONSTRAINT_NAME} already present")
        else:
            conn.execute(
                text(
                    f"""
                    ALTER TABLE hosting_bookings
                    ADD CONSTRAINT {CONSTRAINT_NAME}
                    EXCLUDE USING gist (
                        pet_id WITH =,
                        daterange(check_in_date, check_out_date, '[)') WITH &&
                    )
                    WHERE (status IN ({statuses}));
                    """
                )
            )
            logger.info(f"✅ Added {CONSTRAINT_NAME}")

        conn.execute(
            text(
                """
                CREATE INDEX IF NOT EXISTS ix_hosting_bookings_host_dates
                ON hosting_bookings (host_id, check_in_date, check_out_date);
                """
            )
        )
        conn.commit()

    logger.info("✅ Migration completed successfully!")


if __name__ == "__main__":
    upgrade()
