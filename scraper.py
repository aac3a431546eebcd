import argparse
import json
import sys

from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError

# Load environment variables before the settings are read
load_dotenv()

from courtsync.core.config import settings  # noqa: E402
from courtsync.core.database import SessionLocal, init_db  # noqa: E402
from courtsync.schemas.run_summary import RunStatus  # noqa: E402
from courtsync.schemas.search_params import SearchParams  # noqa: E402
from courtsync.services.pipeline import build_site_pipeline  # noqa: E402
from courtsync.utils.sites import SITES, get_site  # noqa: E402


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Scrape one court site and reconcile the results into the database")
    parser.add_argument("site", nargs="?", help="configured site name")
    parser.add_argument("--date", help="order date, dd-mm-yyyy (default: today)")
    parser.add_argument("--from-date", help="range start, dd-mm-yyyy")
    parser.add_argument("--to-date", help="range end, dd-mm-yyyy")
    parser.add_argument("--diary-number", help="diary number, e.g. 1234/2025")
    parser.add_argument("--case-type")
    parser.add_argument("--establishment-code")
    parser.add_argument("--list-sites", action="store_true", help="print the configured sites and exit")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    logger.remove()
    logger.add(sys.stderr, level=settings.LOG_LEVEL)
    logger.add(settings.LOG_FILE, rotation="500 MB")

    args = parse_args(argv)
    if args.list_sites or not args.site:
        print("\n".join(sorted(SITES)))
        return 0

    try:
        site = get_site(args.site)
        params = SearchParams(
            date=args.date,
            from_date=args.from_date,
            to_date=args.to_date,
            diary_number=args.diary_number,
            case_type=args.case_type,
            establishment_code=args.establishment_code,
        )
    except (ValueError, ValidationError) as e:
        logger.error(str(e))
        return 2

    init_db()
    db = SessionLocal()
    try:
        pipeline = build_site_pipeline(site, db)
        summary = pipeline.run(params)
        pipeline.adapter.close()
    finally:
        db.close()

    print(json.dumps(summary.model_dump(mode="json"), indent=2))
    return 0 if summary.status in (RunStatus.COMPLETED, RunStatus.NO_RECORDS_FOUND) else 1


if __name__ == "__main__":
    sys.exit(main())
