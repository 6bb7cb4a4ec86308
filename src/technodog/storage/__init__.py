"""Document stores — in-memory and Supabase ``documents`` table."""

from technodog.storage.base import DocumentStore
from technodog.storage.factory import available_stores, get_document_store
from technodog.storage.schemas import DocumentRecord

__all__ = ["DocumentRecord", "DocumentStore", "available_stores", "get_document_store"]
