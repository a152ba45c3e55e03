"""Pydantic models for FRED API payloads."""
from .observations import MISSING_VALUE_TOKEN, Observation, SeriesResponse

__all__ = ["MISSING_VALUE_TOKEN", "Observation", "SeriesResponse"]
