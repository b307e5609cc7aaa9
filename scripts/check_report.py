"""
Fetch one report from the report API and log its summary.

Usage:
    python scripts/check_report.py 2024-01-01

Exit codes:
- 0: Report fetched
- 1: Invalid date or fetch failed
"""

import sys
import logging
from pathlib import Path
from typing import Optional

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

import config
from charts import earnings_frame, expenses_frame, summary_cards
from report_client import ReportClient, ReportClientError

logger = logging.getLogger(__name__)


def check_report(report_date: str, client: Optional[ReportClient] = None) -> bool:
    """Fetch the report for report_date and log what came back."""
    client = client or ReportClient()
    logger.info(f"📥 Requesting {client.report_url}?date={report_date}")

    try:
        report = client.fetch_report(report_date)
    except ValueError:
        logger.error(f"❌ Not an ISO date: {report_date}")
        return False
    except ReportClientError as e:
        logger.error(f"❌ {e.message}")
        return False

    for label, value in summary_cards(report):
        logger.info(f"  {label}: {value}")

    for title, frame in [("Earnings", earnings_frame(report)), ("Expenses", expenses_frame(report))]:
        logger.info(f"  {title}:")
        for _, row in frame.iterrows():
            logger.info(f"    {row['label']}: {row['amount']} ({row['percentage_label']})")

    logger.info("✅ Report OK")
    return True


def main(argv) -> int:
    if len(argv) != 2:
        print(__doc__)
        return 1
    return 0 if check_report(argv[1]) else 1


if __name__ == "__main__":
    config.configure_logging()
    sys.exit(main(sys.argv))
