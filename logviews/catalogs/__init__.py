"""
Log type catalogs.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from logviews.catalogs.default import default_catalog
from logviews.models.catalog import Catalog

logger = logging.getLogger(__name__)


def load_catalog(path: Optional[Union[str, Path]] = None) -> Catalog:
    """
    Load a catalog from a JSON file, or the bundled catalog when no path is given.
    """
    if path is None:
        return default_catalog()
    catalog = Catalog.model_validate_json(Path(path).read_text(encoding="utf-8"))
    logger.info(
        "Loaded catalog %s with log types %s",
        path,
        sorted(catalog.log_types),
    )
    return catalog
