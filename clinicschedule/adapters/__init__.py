"""
Adapters layer - External integrations (clinic data store).
"""

from .mock_client import MockDataClient
from .rest_client import RestDataClient

__all__ = ["MockDataClient", "RestDataClient"]
