"""Opportunity filters."""

from .base import Filter, FilterResult
from .keyword_filter import KeywordFilter, StageFilter

__all__ = ["Filter", "FilterResult", "KeywordFilter", "StageFilter"]
