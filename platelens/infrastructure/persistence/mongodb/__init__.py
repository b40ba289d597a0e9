"""MongoDB persistence implementations."""

from platelens.infrastructure.persistence.mongodb.document_store import MongoDocumentStore

__all__ = ["MongoDocumentStore"]
