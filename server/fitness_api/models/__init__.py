"""Pydantic models for the fitness sync API."""
from .metric import CanonicalMetric, StoredMetric, MetricInput
from .credential import CredentialInput, CredentialRecord
from .insight import Insight
from .scores import DerivedScores, TrendDeltas
from .sync import SyncRequest, SyncResponse, GoogleFitStatus

__all__ = [
    "CanonicalMetric",
    "StoredMetric",
    "MetricInput",
    "CredentialInput",
    "CredentialRecord",
    "Insight",
    "DerivedScores",
    "TrendDeltas",
    "SyncRequest",
    "SyncResponse",
    "GoogleFitStatus",
]
