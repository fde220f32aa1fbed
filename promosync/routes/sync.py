"""
WooCommerce connection test and sync job API routes.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ..dependencies import get_runner, get_store
from ..errors import UpstreamError, ValidationError
from ..processor import JobRunner, make_woo_client
from ..store import (
    ApiConfig, Credentials, JobSummary, LogEntry, MarginRules, MemoryStore, WooConfig
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

RULE_KEYS = {"defaultMargin", "conditionalRules"}


class ConnectionTestRequest(BaseModel):
    url: Optional[str] = None
    key: Optional[str] = None
    secret: Optional[str] = None


class StartSyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    kind: Optional[str] = None
    product_codes: Optional[List[str]] = Field(None, alias="productCodes")
    api_config: Optional[ApiConfig] = Field(None, alias="apiConfig")
    woo_config: Optional[WooConfig] = Field(None, alias="wooConfig")
    settings: Optional[Dict[str, Any]] = None


def rules_snapshot(request_settings: Optional[Dict[str, Any]], store: MemoryStore) -> MarginRules:
    """
    Rules the job will use for its whole run.

    Accepts a full settings object (with "rules") or a bare rule set
    (with "defaultMargin" or "conditionalRules"). Anything else falls
    back to the store's rules as they are right now.
    """
    try:
        request_settings = request_settings or {}
        if "rules" in request_settings:
            rules = request_settings["rules"]
        elif RULE_KEYS & request_settings.keys():
            rules = request_settings
        else:
            return store.current_rules()
        if not isinstance(rules, dict):
            raise ValidationError("settings.rules must be an object.")
        return MarginRules.model_validate(rules)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid margin rules: {e.error_count()} error(s)") from e


@router.post("/woo/test")
async def test_connection(payload: ConnectionTestRequest):
    """Check that the store URL and REST keys work."""
    if not payload.url or not payload.key or not payload.secret:
        raise ValidationError("Missing WooCommerce credentials.")

    logger.info(f"Testing WooCommerce connection for: {payload.url}")
    woo = make_woo_client(WooConfig(url=payload.url, key=payload.key, secret=payload.secret))

    try:
        async with woo:
            await woo.test_connection()
    except UpstreamError as e:
        if e.upstream_status is None:
            logger.error(f"Network error during connection test: {e.message}")
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Could not connect to the store URL. Ensure the URL is "
                             f"correct and accessible. Error: {e.message}"
                },
            )
        logger.error(f"Connection test failed: {e.message}")
        return JSONResponse(
            status_code=401,
            content={"error": f'Invalid API credentials or URL. WooCommerce said: "{e.message}"'},
        )

    logger.info("WooCommerce connection test successful")
    return {"success": True}


@router.post("/woo/start-sync", status_code=201, response_model=JobSummary)
async def start_sync(
    payload: StartSyncRequest,
    store: MemoryStore = Depends(get_store),
    runner: JobRunner = Depends(get_runner),
):
    """Create a sync job and run it in the background."""
    api_config, woo_config = payload.api_config, payload.woo_config
    if api_config is None or not api_config.token:
        raise ValidationError("Missing Promodata API configuration.")
    if woo_config is None or not (woo_config.url and woo_config.key and woo_config.secret):
        raise ValidationError("Missing WooCommerce configuration.")
    if not payload.product_codes:
        raise ValidationError("productCodes must be a non-empty array.")

    job = store.create_job(
        kind=payload.kind,
        product_codes=payload.product_codes,
        credentials=Credentials(api_config=api_config, woo_config=woo_config),
        rules=rules_snapshot(payload.settings, store),
    )
    runner.submit(job)

    return job.summary()


@router.get("/jobs/{job_id}", response_model=JobSummary)
async def get_job(job_id: str, store: MemoryStore = Depends(get_store)):
    """Job status without logs."""
    return store.get_job(job_id).summary()


@router.get("/jobs/{job_id}/logs", response_model=List[LogEntry], response_model_by_alias=True)
async def get_job_logs(job_id: str, store: MemoryStore = Depends(get_store)):
    """Per-item log of a job, in processing order."""
    return list(store.get_job(job_id).logs)
