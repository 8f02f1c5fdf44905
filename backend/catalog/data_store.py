from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Sequence

import pandas as pd
from pydantic import BaseModel

from ..storage.document_store import DocumentStore
from .models import Cuisine, Decoration, Studio, Venue

logger = logging.getLogger(__name__)


def to_frame(items: Sequence[BaseModel]) -> pd.DataFrame:
    """Build a per-request DataFrame snapshot.

    Row labels are positions in ``items`` so callers can map a winning row
    back to the original model with ``items[label]``.
    """
    return pd.DataFrame(
        [item.model_dump(mode="json") for item in items],
        index=pd.RangeIndex(len(items)),
    )


def load_catalog(store: DocumentStore, path: Path) -> int:
    """Seed the catalog collections from a JSON file. Returns documents inserted."""
    with path.open(encoding="utf-8") as fh:
        raw = json.load(fh)

    inserted = 0
    for key, model, collection in (
        ("venues", Venue, store.venues),
        ("studios", Studio, store.studios),
        ("cuisines", Cuisine, store.cuisines),
        ("decorations", Decoration, store.decorations),
    ):
        for entry in raw.get(key, []):
            collection.insert(model(**entry))
            inserted += 1

    logger.info("Seeded %d catalog documents from %s", inserted, path)
    return inserted
