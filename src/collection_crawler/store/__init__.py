"""Store contracts."""

from .checkpoint import (
    CheckpointWriter,
    collection_from_dict,
    collection_to_dict,
    item_to_dict,
    load_checkpoint,
)

__all__ = [
    "CheckpointWriter",
    "collection_from_dict",
    "collection_to_dict",
    "item_to_dict",
    "load_checkpoint",
]
