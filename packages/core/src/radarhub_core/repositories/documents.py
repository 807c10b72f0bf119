"""Document metadata under ``document:<id>``; ids from ``document_counter``.

Only the metadata lives here. The file itself is stored elsewhere and
referenced by ``file_url``.
"""
from __future__ import annotations

from typing import Any, List, Mapping

from radarhub_core.models import Document
from radarhub_core.repositories.base import Repository

DOCUMENT_PREFIX = "document:"


def document_key(document_id: int) -> str:
    return f"{DOCUMENT_PREFIX}{document_id}"


class DocumentRepository(Repository[Document]):
    record_type = Document
    entity = "document"
    prefix = DOCUMENT_PREFIX
    updatable = frozenset({"title", "description", "file_url", "file_name", "file_size", "file_type"})

    def _put(self, doc: Document) -> None:
        self.store.put(document_key(doc.id), doc.to_json())

    def create(self, doc: Document) -> Document:
        self._require(doc.title, "title")
        doc.id = self.sequence.next_id()
        self._stamp_new(doc)
        self._put(doc)
        self.log.info("document.create ok id=%s title=%s uploaded_by=%s", doc.id, doc.title, doc.uploaded_by)
        return doc

    def get(self, document_id: int) -> Document:
        return self._load(document_key(document_id), id=document_id)

    def list(self) -> List[Document]:
        return self._all(self._scan())

    def list_by_uploader(self, user_id: int) -> List[Document]:
        return [d for d in self.list() if d.uploaded_by == user_id]

    def update(self, doc: Document) -> Document:
        existing = self.get(doc.id)
        self._require(doc.title, "title")
        doc.created_at = existing.created_at
        doc.updated_at = self.clock()
        self._put(doc)
        return doc

    def update_partial(self, document_id: int, fields: Mapping[str, Any]) -> Document:
        if "title" in fields:
            self._require(fields["title"], "title")
        updated = self._merge(self.get(document_id), fields)
        self._put(updated)
        self.log.info("document.update ok id=%s fields=%s", document_id, sorted(fields))
        return updated

    def delete(self, document_id: int) -> None:
        self.get(document_id)
        self.store.delete(document_key(document_id))
        self.log.info("document.delete ok id=%s", document_id)


__all__ = ["DocumentRepository", "document_key"]
