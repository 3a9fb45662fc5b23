"""Accuracy history: per-message records, statistics and their service."""

from .models import AccuracyHistory, AccuracyRecord
from .service import AccuracyService

__all__ = ["AccuracyHistory", "AccuracyRecord", "AccuracyService"]
