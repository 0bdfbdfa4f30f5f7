"""
Allow calendar entries without a capacity override (PostgreSQL only)

- host_availability.max_pets_available: drop NOT NULL and the default, so an
  entry that only sets a custom daily rate leaves the host's max_pets in force

Safe to run repeatedly.
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


def upgrade():
    if engine.dialect.name != "postgresql":
        logger.info(f"Skipping: tables are created from the models on {engine.dialect.name}")
        return

    with engine.connect() as conn:
        conn.execute(
            text(
                """
                ALTER TABLE host_availability
                ALTER COLUMN max_pets_available DROP NOT NULL,
                ALTER COLUMN max_pets_available DROP DEFAULT;
                """
            )
        )
        conn.commit()

    logger.info("✅ host_availability.max_pets_available is now optional")


if __name__ == "__main__":
    upgrade()
