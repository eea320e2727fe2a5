"""Instrument reading sources."""

from sentinel.ingestion.readings import (
    ApiReadingSource,
    MockReadingSource,
    ReadingSource,
    StaticReadingSource,
)

__all__ = ['ApiReadingSource', 'MockReadingSource', 'ReadingSource', 'StaticReadingSource']
