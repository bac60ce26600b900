"""API models for the Foodoscope application."""

from .schemas import (
    AnalysisResult,
    AuditRequest,
    AuditData,
    AuditResponse,
    Recipe,
    KitchenRequest,
    KitchenResponse,
    HealthResponse
)

__all__ = [
    "AnalysisResult",
    "AuditRequest",
    "AuditData",
    "AuditResponse",
    "Recipe",
    "KitchenRequest",
    "KitchenResponse",
    "HealthResponse"
]
