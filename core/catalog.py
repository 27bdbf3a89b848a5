# Path: core/catalog.py
# Purpose: Define the contract of the external product catalog used by the apply pipeline.
# Layer: core.
# Details: The concrete point-of-sale HTTP client lives outside this project and is injected by callers.

from __future__ import annotations

from typing import Any, Dict, Protocol


class CatalogImageClient(Protocol):
    """External catalog operation that attaches an image to a product."""

    def set_image(self, product_id: int, base64_image: str, file_name: str) -> Dict[str, Any]:
        """Upload the encoded image for the product and return the catalog's response.

        Implementations raise an exception describing the failure when the
        catalog rejects the request or cannot be reached.
        """
