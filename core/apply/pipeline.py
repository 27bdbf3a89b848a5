# Path: core/apply/pipeline.py
# Purpose: Push matched repository images to the external catalog one product at a time.
# Layer: core/apply.
# Details: Emits start/success/error events per item and a final done event; item failures never abort a batch.

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Protocol, Sequence

from core.cache import PRODUCTS_ALL_KEY
from core.catalog import CatalogImageClient
from core.errors import UpstreamError, ValidationError
from core.models.domain import ApplyItem, ImageBlob
from core.repository.imaging import encode_base64
from .events import ProgressEvent

logger = logging.getLogger(__name__)


class BlobSource(Protocol):
    def get_image_blob(self, image_id: int) -> ImageBlob:
        """Return stored image bytes or raise NotFoundError."""


class CacheInvalidator(Protocol):
    def delete(self, key: str) -> None:
        """Drop a cached entry."""


class BulkApplyPipeline:
    """Sequentially apply repository images to catalog products.

    Items run strictly one after another so that event order is deterministic
    and the external catalog only ever sees one request from a batch at a time.
    """

    def __init__(
        self,
        blobs: BlobSource,
        catalog: CatalogImageClient,
        cache: Optional[CacheInvalidator] = None,
    ) -> None:
        self.blobs = blobs
        self.catalog = catalog
        self.cache = cache

    def run(self, items: Optional[Sequence[ApplyItem]]) -> Iterator[ProgressEvent]:
        """Validate the batch and return an iterator producing its progress events.

        Raises ValidationError immediately, before any event exists, when the batch is empty.
        Closing the returned iterator stops the batch after the item in flight.
        """

        if not items:
            raise ValidationError("items array is required")
        return self._iter_events(list(items))

    def _iter_events(self, items: List[ApplyItem]) -> Iterator[ProgressEvent]:
        failed = 0
        try:
            for item in items:
                yield ProgressEvent.start(item.product_id, item.product_name)
                try:
                    result = self._apply_item(item)
                except Exception as exc:  # noqa: BLE001 - reported as the item's error event
                    failed += 1
                    logger.warning("Applying image %s to product %s failed: %s", item.image_id, item.product_id, exc)
                    yield ProgressEvent.failure(item.product_id, item.product_name, str(exc))
                    continue
                yield ProgressEvent.success(item.product_id, item.product_name, result)
        finally:
            # Runs on normal completion and when the consumer closes the stream early.
            self._invalidate_products()

        logger.info("Applied %d of %d repository images", len(items) - failed, len(items))
        yield ProgressEvent.done()

    def _invalidate_products(self) -> None:
        if self.cache is None:
            return
        try:
            self.cache.delete(PRODUCTS_ALL_KEY)
        except Exception as exc:  # noqa: BLE001 - a stale cache must not cut the stream short
            logger.warning("Could not invalidate %s: %s", PRODUCTS_ALL_KEY, exc)

    def _apply_item(self, item: ApplyItem) -> dict:
        """
        Load the item's image and attach it to the product in the external catalog.

        External calls:
        - core/repository/store.py::RuleStore.get_image_blob - loads stored bytes and file name.
        - core/catalog.py::CatalogImageClient.set_image - uploads the encoded image.
        """

        blob = self.blobs.get_image_blob(item.image_id)
        try:
            return self.catalog.set_image(item.product_id, encode_base64(blob.data), blob.file_name)
        except UpstreamError:
            raise
        except Exception as exc:  # noqa: BLE001 - any client failure is an upstream failure
            raise UpstreamError(f"Catalog set-image failed for product {item.product_id}: {exc}") from exc
