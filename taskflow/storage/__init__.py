from taskflow.storage.backends import LocalBackend, RemoteBackend, StorageBackend
from taskflow.storage.entities import Entity
from taskflow.storage.gateway import StorageGateway, StoragePolicy


__all__ = [
    "Entity",
    "LocalBackend",
    "RemoteBackend",
    "StorageBackend",
    "StorageGateway",
    "StoragePolicy",
]
