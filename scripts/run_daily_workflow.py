#!/usr/bin/env python3
"""
Run the daily discover-and-enrich workflow without going through HTTP.

For cron hosts that can run Python directly:
    python scripts/run_daily_workflow.py
    python scripts/run_daily_workflow.py --niche "software factories colombia" --max 2
"""
import sys
import os
import argparse
import json

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from leadgen.config import DAILY_CANDIDATES, DATABASE_URL
from leadgen.database import init_db
from leadgen.extensions import build_services
from leadgen.logging_config import configure_logging
from leadgen.pipeline.daily import run_daily_workflow


def main():
    parser = argparse.ArgumentParser(description='Discover and enrich new leads')
    parser.add_argument('--niche', help='Search query (default: random configured niche)')
    parser.add_argument('--max', type=int, default=DAILY_CANDIDATES, help='Max candidates to enrich')
    args = parser.parse_args()

    configure_logging()
    if DATABASE_URL.startswith('sqlite'):
        init_db()
    services = build_services()
    outcome = run_daily_workflow(
        services.store, services.search, services.pipeline,
        niche=args.niche, max_candidates=args.max,
    )
    print(json.dumps(outcome, indent=2))
    failed = [item for item in outcome['leads_processed'] if not item['success']]
    return 1 if failed else 0


if __name__ == '__main__':
    sys.exit(main())
