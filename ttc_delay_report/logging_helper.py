"""
logging_helper.py

Console logging for the report build. Pipeline modules log through
`logging.getLogger(__name__)`; run_report.main() calls setup_logging()
once so those records (files read, rows dropped, charts written) go to
stdout next to the printed summary.
"""

import logging
import sys


def setup_logging(level=logging.INFO):
    """Send ttc_delay_report log records to stdout at `level` (-v gives DEBUG)."""
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
