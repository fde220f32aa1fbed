"""
Pydantic models for in-memory entities.
Credentials live on the job only for the duration of the run.
"""

import copy
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


FAILED_ITEMS_MESSAGE = "One or more items failed to sync."

DEFAULT_SETTINGS: Dict[str, Any] = {
    "rules": {
        "defaultMargin": 30,
        "conditionalRules": [],
    },
    "mappings": {
        "categories": [],
        "fields": [],
    },
    "notifications": {
        "email": "",
        "onSuccess": False,
        "onFailure": True,
    },
    "advanced": {
        "requestsPerMinute": 60,
    },
}


def default_settings() -> Dict[str, Any]:
    """Fresh copy of the process-start settings."""
    return copy.deepcopy(DEFAULT_SETTINGS)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class JobStatus(str, Enum):
    """Lifecycle state of a sync job."""
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class LogStatus(str, Enum):
    """Outcome of a single product code."""
    SUCCESS = "success"
    FAILED = "failed"


class RuleField(str, Enum):
    CATEGORY = "category"
    SUPPLIER = "supplier"


class RuleOperator(str, Enum):
    IS = "is"
    IS_NOT = "is_not"
    CONTAINS = "contains"
    DOES_NOT_CONTAIN = "does_not_contain"


class ConditionalRule(BaseModel):
    """A condition on the product that overrides the default margin."""

    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    field: str = RuleField.CATEGORY.value
    operator: str = RuleOperator.IS.value
    value: Optional[str] = None
    margin: Decimal = Decimal("0")


class MarginRules(BaseModel):
    """Ordered conditional rules plus the fallback margin."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    default_margin: Decimal = Field(Decimal("30"), alias="defaultMargin")
    conditional_rules: List[ConditionalRule] = Field(
        default_factory=list, alias="conditionalRules"
    )


class ApiConfig(BaseModel):
    """Promodata credentials."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    token: Optional[str] = None
    base_url: Optional[str] = Field(None, alias="baseUrl")


class WooConfig(BaseModel):
    """WooCommerce REST credentials."""

    model_config = ConfigDict(extra="ignore")

    url: Optional[str] = None
    key: Optional[str] = None
    secret: Optional[str] = None


class Credentials(BaseModel):
    """Both upstream configurations, carried by a job."""

    model_config = ConfigDict(frozen=True)

    api_config: ApiConfig
    woo_config: WooConfig


class LogEntry(BaseModel):
    """Per-item outcome appended to a job's log."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: str = Field(default_factory=utcnow_iso)
    item_id: str = Field(alias="itemId")
    status: LogStatus
    message: str


class JobSummary(BaseModel):
    """Public view of a job: no logs, codes, credentials or rules."""
    id: str
    kind: Optional[str] = None
    status: JobStatus
    total: int
    done: int
    started: str
    ended: Optional[str] = None
    error: Optional[str] = None


class Job(BaseModel):
    """One supplier to storefront synchronization run."""
    id: str
    kind: Optional[str] = None
    status: JobStatus = JobStatus.QUEUED
    total: int = 0
    done: int = 0
    started: str = Field(default_factory=utcnow_iso)
    ended: Optional[str] = None
    error: Optional[str] = None
    logs: List[LogEntry] = Field(default_factory=list)

    # Fixed at creation
    product_codes: List[str] = Field(default_factory=list)
    credentials: Credentials
    rules: MarginRules = Field(default_factory=MarginRules)

    def summary(self) -> JobSummary:
        return JobSummary(
            id=self.id,
            kind=self.kind,
            status=self.status,
            total=self.total,
            done=self.done,
            started=self.started,
            ended=self.ended,
            error=self.error,
        )


IgnoredId = Union[int, str]
