"""
Type definitions for assistant-cache.
"""

from assistant_cache.types.context import (
    AnalysisMetrics,
    AppInfo,
    ContextPayload,
    ContextSnapshot,
    ContextSummary,
    DealCockpitPayload,
    DealInfo,
    DealLead,
    DealNumbers,
    DealProperty,
    GenericPayload,
    MetricValue,
    MissingInfo,
    NextAction,
    Permissions,
    PropertyDetailPayload,
    PropertyInfo,
    RecentEvent,
    RiskScore,
    ScreenInfo,
    UserInfo,
)

__all__ = [
    "AnalysisMetrics",
    "AppInfo",
    "ContextPayload",
    "ContextSnapshot",
    "ContextSummary",
    "DealCockpitPayload",
    "DealInfo",
    "DealLead",
    "DealNumbers",
    "DealProperty",
    "GenericPayload",
    "MetricValue",
    "MissingInfo",
    "NextAction",
    "Permissions",
    "PropertyDetailPayload",
    "PropertyInfo",
    "RecentEvent",
    "RiskScore",
    "ScreenInfo",
    "UserInfo",
]
