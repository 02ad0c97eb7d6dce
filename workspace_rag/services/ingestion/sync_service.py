"""Keeps the vector store in step with saved and deleted documents.

Pipeline stages per document: **validate -> delete old chunks -> chunk ->
write**.  Deleting by ``documentId`` before writing makes re-ingestion
idempotent even when the new chunk count differs from the old one.

Ingestion runs as a side effect of a document save, so nothing here raises:
every outcome, including failures, comes back as a :class:`SyncOutcome`.
"""

from __future__ import annotations

import time

import structlog

from workspace_rag.interfaces.vector_store_provider import IVectorStoreProvider
from workspace_rag.models.filters import Equals
from workspace_rag.models.rag import Document, SyncOutcome, SyncStatus
from workspace_rag.services.ingestion.chunker import ChunkingEngine
from workspace_rag.utils.errors import ValidationError

logger = structlog.get_logger(logger_name=__name__)


def validate_document(document: Document) -> None:
    """Raise :class:`ValidationError` if *document* cannot be indexed."""
    if not document.id:
        raise ValidationError("Document has no id")
    if not document.workspace_id:
        raise ValidationError("Document has no workspace id")
    if not document.document_type:
        raise ValidationError("Document has no document type")
    if not document.content or not document.content.strip():
        raise ValidationError("Document has no content")


class SyncService:
    """Indexes and un-indexes documents in their workspace namespace."""

    def __init__(self, chunker: ChunkingEngine, vector_store: IVectorStoreProvider) -> None:
        self._chunker = chunker
        self._store = vector_store

    async def sync(self, document: Document) -> SyncOutcome:
        """Re-index *document*, replacing whatever chunks it had before."""
        start = time.monotonic()
        namespace = document.workspace_id
        log = logger.bind(document_id=document.id, namespace=namespace)

        try:
            validate_document(document)
        except ValidationError as exc:
            log.info("sync_skipped", reason=str(exc))
            return SyncOutcome(
                status=SyncStatus.SKIPPED,
                document_id=document.id,
                namespace=namespace,
                errors=[str(exc)],
                elapsed_seconds=time.monotonic() - start,
            )

        try:
            await self._store.delete_by_metadata([Equals(field="documentId", value=document.id)], namespace)

            chunks = await self._chunker.chunk(document)
            if not chunks:
                log.info("sync_no_chunks", document_type=document.document_type)
                return SyncOutcome(
                    status=SyncStatus.SKIPPED,
                    document_id=document.id,
                    namespace=namespace,
                    elapsed_seconds=time.monotonic() - start,
                )

            result = await self._store.write(chunks, namespace)
        except Exception as exc:
            log.error("sync_failed", error=str(exc), error_type=type(exc).__name__)
            return SyncOutcome(
                status=SyncStatus.FAILED,
                document_id=document.id,
                namespace=namespace,
                errors=[str(exc)],
                elapsed_seconds=time.monotonic() - start,
            )

        elapsed = time.monotonic() - start
        if not result.success:
            log.error(
                "sync_partial_write",
                chunks=len(chunks),
                written=result.documents_written,
                errors=result.errors,
            )
            return SyncOutcome(
                status=SyncStatus.FAILED,
                document_id=document.id,
                namespace=namespace,
                chunks_written=result.documents_written,
                errors=list(result.errors),
                elapsed_seconds=elapsed,
            )

        log.info(
            "sync_complete",
            document_type=document.document_type,
            chunks=result.documents_written,
            elapsed_s=round(elapsed, 3),
        )
        return SyncOutcome(
            status=SyncStatus.INDEXED,
            document_id=document.id,
            namespace=namespace,
            chunks_written=result.documents_written,
            elapsed_seconds=elapsed,
        )

    async def delete(self, document_id: str, namespace: str) -> SyncOutcome:
        """Remove every chunk of *document_id* from *namespace*."""
        start = time.monotonic()
        try:
            await self._store.delete_by_metadata([Equals(field="documentId", value=document_id)], namespace)
        except Exception as exc:
            logger.error(
                "document_delete_failed",
                document_id=document_id,
                namespace=namespace,
                error=str(exc),
            )
            return SyncOutcome(
                status=SyncStatus.FAILED,
                document_id=document_id,
                namespace=namespace,
                errors=[str(exc)],
                elapsed_seconds=time.monotonic() - start,
            )

        logger.info("document_deleted", document_id=document_id, namespace=namespace)
        return SyncOutcome(
            status=SyncStatus.DELETED,
            document_id=document_id,
            namespace=namespace,
            elapsed_seconds=time.monotonic() - start,
        )
