# Path: core/repository/__init__.py
# Purpose: Package initializer for repository image and rule persistence.
# Layer: core/repository.
# Details: Exposes the SQLite rule store and image payload helpers.

from .imaging import decode_base64, encode_base64, make_thumbnail_data_url, validate_image_payload
from .store import RuleStore

__all__ = [
    "RuleStore",
    "decode_base64",
    "encode_base64",
    "make_thumbnail_data_url",
    "validate_image_payload",
]
