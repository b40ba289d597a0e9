"""Ports (interfaces) implemented by the infrastructure layer."""

from platelens.domain.shared.ports.blob_store import IBlobStore, StoredBlob
from platelens.domain.shared.ports.document_store import IDocumentStore, ITransaction
from platelens.domain.shared.ports.image_transcoder import IImageTranscoder, TranscodedImage
from platelens.domain.shared.ports.job_queue import IJobQueue

__all__ = [
    "IBlobStore",
    "StoredBlob",
    "IDocumentStore",
    "ITransaction",
    "IImageTranscoder",
    "TranscodedImage",
    "IJobQueue",
]
