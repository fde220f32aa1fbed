"""
Settings and ignore-list API routes.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends

from ..dependencies import get_store
from ..errors import ValidationError
from ..store import MemoryStore
from ..store.memory import IgnoreList

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/settings")
async def get_settings(store: MemoryStore = Depends(get_store)) -> Dict[str, Any]:
    """Current settings."""
    return store.get_settings()


@router.post("/settings")
async def update_settings(
    payload: Any = Body(None),
    store: MemoryStore = Depends(get_store),
) -> Dict[str, Any]:
    """Shallow-merge the body into the settings."""
    if not isinstance(payload, dict):
        raise ValidationError("Settings must be a JSON object.")
    logger.info(f"Settings update for sections: {', '.join(payload) or '(none)'}")
    return store.update_settings(payload)


def _ids_from(payload: Any, field: str) -> List[Any]:
    ids = payload.get(field) if isinstance(payload, dict) else None
    if not isinstance(ids, list):
        raise ValidationError(f"{field} must be an array.")
    if not all(isinstance(i, (str, int)) and not isinstance(i, bool) for i in ids):
        raise ValidationError(f"{field} must contain only strings or numbers.")
    return ids


def _ignore_list_routes(path: str, field: str, attr: str) -> None:
    """Register GET/POST/DELETE for one ignore list."""

    def ignore_list(store: MemoryStore) -> IgnoreList:
        return getattr(store, attr)

    @router.get(path, name=f"get_{attr}")
    async def read(store: MemoryStore = Depends(get_store)) -> Dict[str, List[Any]]:
        return {field: ignore_list(store).items()}

    @router.post(path, name=f"add_{attr}")
    async def add(
        payload: Optional[Any] = Body(None),
        store: MemoryStore = Depends(get_store),
    ) -> Dict[str, List[Any]]:
        ids = _ids_from(payload, field)
        return {field: ignore_list(store).add(ids)}

    @router.delete(path, name=f"remove_{attr}")
    async def remove(
        payload: Optional[Any] = Body(None),
        store: MemoryStore = Depends(get_store),
    ) -> Dict[str, List[Any]]:
        ids = _ids_from(payload, field)
        return {field: ignore_list(store).remove(ids)}


_ignore_list_routes("/ignored-suppliers", "supplier_ids", "ignored_suppliers")
_ignore_list_routes("/ignored-categories", "category_ids", "ignored_categories")
