"""Mirakl multi-operator adapter package."""

from services.marketplaces.mirakl.adapter import MiraklAdapter
from services.marketplaces.mirakl.client import MiraklClient

__all__ = ["MiraklAdapter", "MiraklClient"]
