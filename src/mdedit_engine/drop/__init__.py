"""Resolving and committing content dropped onto the editing surface."""

from .payload import (
    DataTransfer,
    DropPayload,
    DroppedFile,
    html_to_plain_text,
    resolve_payload,
)
from .resolver import (
    ConvertedFile,
    DropOutcome,
    DropResolver,
    InsertionIndicator,
    accept_images,
    image_link_converter,
)

__all__ = [
    "ConvertedFile",
    "DataTransfer",
    "DropOutcome",
    "DropPayload",
    "DropResolver",
    "DroppedFile",
    "InsertionIndicator",
    "accept_images",
    "html_to_plain_text",
    "image_link_converter",
    "resolve_payload",
]
