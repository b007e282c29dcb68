import argparse
import logging

from sqlmodel import Session

from core.logger import setup_logger
from database import engine, create_db_and_tables
from services.seed_service import seed_all

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create the CMS tables and optionally load seed data.")
    parser.add_argument("--seed", action="store_true", help="load development seed data")
    args = parser.parse_args(argv)

    setup_logger()
    logger.info("🚀 Creating tables...")
    create_db_and_tables()

    if args.seed:
        with Session(engine) as session:
            seed_all(session)
    logger.info("✅ Database ready")


if __name__ == "__main__":
    main()
