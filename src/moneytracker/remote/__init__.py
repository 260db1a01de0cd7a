"""Remote store collaborators."""
from moneytracker.remote.base import RemoteStore
from moneytracker.remote.rest import RestStore

__all__ = ["RemoteStore", "RestStore"]
