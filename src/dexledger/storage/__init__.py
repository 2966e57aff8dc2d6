"""Persistence layer -- atomically rewritten JSON documents."""

from dexledger.storage.document_store import JsonDocumentStore

__all__ = ["JsonDocumentStore"]
