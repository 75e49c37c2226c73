"""
Mark Expired Items Script

Flips subscriptions and add-ons whose end date has passed to EXPIRED, then
sends the 7, 3 and 1 day warnings for add-ons about to lapse.
Intended to run from cron.

Usage:
    cd backend
    python scripts/mark_expired_items.py
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config.settings import settings
from app.infrastructure.db.database import close_db
from app.infrastructure.services.expiration_service import ExpirationService

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def main() -> int:
    service = ExpirationService()
    try:
        expired = await service.mark_expired_items()
        warnings = await service.send_warning_emails()
    finally:
        await close_db()

    summary = {
        "success": expired["success"] and warnings["success"],
        "expired": expired,
        "warnings": warnings,
    }
    print(json.dumps(summary, indent=2))
    return 0 if summary["success"] else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
