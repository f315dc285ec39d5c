# Fake implementations for testing

from .fake_gateway import InMemoryObjectGateway, StoredObject

__all__ = ["InMemoryObjectGateway", "StoredObject"]
