"""
Seed the school configuration tree: fee schedule, active terms and gateway currency.

Run once after schema_check:
  python -m app.db.seed_config
  python -m app.db.seed_config --term 2025_Term1 --currency-code 924
  python -m app.db.seed_config --force     # overwrite an existing configuration

Existing students are not billed or rebilled by this script.
"""

import argparse
import asyncio
import copy
import logging
from typing import Any, Dict, List, Optional

from app.core.logging import configure_logging
from app.db.session import AsyncSessionLocal
from app.db.store import DocumentStore
from app.fees.school_config import ACTIVE_TERMS_PATH, CURRENCY_CODE_PATH, FEES_PATH

logger = logging.getLogger(__name__)

DEFAULT_FEES: Dict[str, Dict[str, int]] = {
    "dayScholar": {
        "zjc": 200,
        "oLevel": 200,
        "aLevelSciences": 250,
        "aLevelCommercials": 230,
        "aLevelArts": 230,
    },
    "boarder": {
        "zjc": 300,
        "oLevel": 300,
        "aLevelSciences": 350,
        "aLevelCommercials": 330,
        "aLevelArts": 330,
    },
}
DEFAULT_ACTIVE_TERMS: List[str] = ["2025_Term1"]
DEFAULT_CURRENCY_CODE = 840


async def seed_config(
    store: DocumentStore,
    active_terms: Optional[List[str]] = None,
    currency_code: int = DEFAULT_CURRENCY_CODE,
    fees: Optional[Dict[str, Any]] = None,
    force: bool = False,
) -> bool:
    """Write the initial config. Returns False when a configuration already exists and force is off."""
    existing = await store.get(FEES_PATH)
    if existing is not None and not force:
        logger.info("Configuration already initialized; use --force to overwrite")
        return False

    await store.update(
        {
            FEES_PATH: copy.deepcopy(fees or DEFAULT_FEES),
            ACTIVE_TERMS_PATH: list(active_terms or DEFAULT_ACTIVE_TERMS),
            CURRENCY_CODE_PATH: currency_code,
        }
    )
    logger.info("Seeded configuration with active terms %s", active_terms or DEFAULT_ACTIVE_TERMS)
    return True


async def main(args: argparse.Namespace) -> None:
    configure_logging()
    async with AsyncSessionLocal() as session:
        await seed_config(
            DocumentStore(session),
            active_terms=args.term or None,
            currency_code=args.currency_code,
            force=args.force,
        )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the school fee configuration")
    parser.add_argument("--term", action="append", help="Active term key (repeatable)")
    parser.add_argument("--currency-code", type=int, default=DEFAULT_CURRENCY_CODE, help="840 USD, 924 ZWL")
    parser.add_argument("--force", action="store_true", help="Overwrite an existing configuration")
    asyncio.run(main(parser.parse_args()))
