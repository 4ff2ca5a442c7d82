"""Reads of the school-wide configuration subtree (`config/*`)."""

from typing import Any, Dict, List, Optional

from fastapi import status

from app.core.config import settings
from app.core.exceptions import ServiceError
from app.db.store import DocumentStore

ACTIVE_TERMS_PATH = "config/activeTerms"
FEES_PATH = "config/fees"
CURRENCY_CODE_PATH = "config/currencyCode"


async def load_active_terms(store: DocumentStore) -> Optional[List[str]]:
    """Active term keys in activation order; None when never configured."""
    terms = await store.get(ACTIVE_TERMS_PATH)
    if terms is None:
        return None
    return [str(t) for t in terms]


async def load_fee_schedule(store: DocumentStore) -> Dict[str, Any]:
    schedule = await store.get(FEES_PATH)
    if not schedule:
        raise ServiceError("School configuration not found", status.HTTP_400_BAD_REQUEST)
    return schedule


async def load_currency_code(store: DocumentStore) -> int:
    code = await store.get(CURRENCY_CODE_PATH)
    return int(code) if code else settings.default_currency_code
