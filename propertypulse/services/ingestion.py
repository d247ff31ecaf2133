"""Image ingestion: uploads submitted files and returns their durable URLs."""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
import logging

from ..exceptions import IngestionError
from ..storage.object_store import ObjectStore, StoredObject

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmittedImage:
    """One file part from a create or update submission."""
    filename: str
    content: bytes
    content_type: Optional[str] = None


class ImageIngestionPipeline:
    """Uploads a batch of images to the object store with bounded fan-out.

    The first failed upload stops the batch: queued uploads are cancelled
    and an IngestionError reports what was already stored. Nothing is
    rolled back here; see discard().
    """

    def __init__(self, object_store: ObjectStore, folder: str, max_concurrency: int = 4):
        self.object_store = object_store
        self.folder = folder
        self.max_concurrency = max(1, max_concurrency)

    @staticmethod
    def select(files: Sequence[SubmittedImage]) -> List[SubmittedImage]:
        """Drop entries with an empty file name (unset file inputs)."""
        return [f for f in files if f.filename]

    async def ingest(self, files: Sequence[SubmittedImage],
                     timeout: Optional[float] = None) -> List[StoredObject]:
        """Upload every named file, preserving input order in the result.

        Args:
            files: Submitted images
            timeout: Optional deadline in seconds for the whole batch

        Returns:
            List[StoredObject]: One stored object per uploaded file, in input order

        Raises:
            IngestionError: On the first failed upload or when the deadline passes
        """
        entries = self.select(files)
        if not entries:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency)
        aborted = asyncio.Event()
        slots: List[Optional[StoredObject]] = [None] * len(entries)

        async def upload(index: int, entry: SubmittedImage) -> None:
            async with semaphore:
                # A queued upload may acquire the slot freed by a failing one
                if aborted.is_set():
                    return
                try:
                    slots[index] = await self.object_store.upload(entry.content, entry.filename, self.folder)
                except Exception:
                    aborted.set()
                    raise

        tasks: Dict[asyncio.Task, int] = {
            asyncio.ensure_future(upload(i, entry)): i for i, entry in enumerate(entries)
        }

        try:
            done, pending = await asyncio.wait(
                list(tasks), timeout=timeout, return_when=asyncio.FIRST_EXCEPTION
            )
        finally:
            # Also reached when the caller is cancelled mid-batch
            for task in tasks:
                if not task.done():
                    task.cancel()

        failed = sorted(
            ((tasks[task], task.exception()) for task in done if task.exception() is not None),
            key=lambda item: item[0],
        )

        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        stored = [obj for obj in slots if obj is not None]

        if failed:
            index, cause = failed[0]
            filename = entries[index].filename
            logger.error(
                "Image upload %d (%s) failed after %d stored: %s",
                index, filename, len(stored), cause
            )
            raise IngestionError(
                f"Upload of image {index} ({filename}) failed",
                index=index,
                filename=filename,
                stored=stored,
            ) from cause

        if pending:
            index = min(tasks[task] for task in pending)
            filename = entries[index].filename
            logger.error("Image ingestion timed out after %d of %d stored", len(stored), len(entries))
            raise IngestionError(
                f"Image ingestion timed out at image {index} ({filename})",
                index=index,
                filename=filename,
                stored=stored,
            )

        return list(slots)

    async def discard(self, stored: Sequence[StoredObject]) -> List[StoredObject]:
        """Best-effort delete of already stored objects.

        Args:
            stored: Objects to delete

        Returns:
            List[StoredObject]: Objects that could not be deleted (orphans)
        """
        results = await asyncio.gather(
            *(self.object_store.delete(obj.key) for obj in stored),
            return_exceptions=True,
        )
        orphans = []
        for obj, result in zip(stored, results):
            if isinstance(result, Exception):
                logger.warning("Could not delete %s, leaving it orphaned: %s", obj.key, result)
                orphans.append(obj)
        return orphans
