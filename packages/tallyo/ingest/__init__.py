"""Statement file importers that produce :class:`~tallyo.models.IngestItem` rows."""

from .qfx import (
    ParsedQFX,
    QFXParseError,
    QFXTransaction,
    load_qfx_file,
    parse_qfx,
    to_ingest_item,
)

__all__ = [
    "ParsedQFX",
    "QFXParseError",
    "QFXTransaction",
    "load_qfx_file",
    "parse_qfx",
    "to_ingest_item",
]
