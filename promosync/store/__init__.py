"""
In-memory store package.
"""

from .models import (
    ApiConfig, ConditionalRule, Credentials, Job, JobStatus, JobSummary,
    LogEntry, LogStatus, MarginRules, RuleField, RuleOperator, WooConfig,
    DEFAULT_SETTINGS, FAILED_ITEMS_MESSAGE, default_settings
)
from .memory import IgnoreList, MemoryStore

__all__ = [
    "MemoryStore",
    "IgnoreList",
    "ApiConfig",
    "ConditionalRule",
    "Credentials",
    "Job",
    "JobStatus",
    "JobSummary",
    "LogEntry",
    "LogStatus",
    "MarginRules",
    "RuleField",
    "RuleOperator",
    "WooConfig",
    "DEFAULT_SETTINGS",
    "FAILED_ITEMS_MESSAGE",
    "default_settings",
]
