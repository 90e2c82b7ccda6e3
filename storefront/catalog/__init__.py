from .normalizer import normalize_product, normalize_products
from .pipeline import (
    BACKUP_DATA_WARNING,
    CatalogLoadResult,
    CatalogPipeline,
    CatalogSession,
    SourceCatalog,
    merge_catalogs,
)
from .query import displayable, filter_products, recently_viewed, similar_products, sort_products
from .seed import seed_products
from .synthetic import source_hash, synthetic_products

__all__ = [
    "normalize_product",
    "normalize_products",
    "BACKUP_DATA_WARNING",
    "CatalogLoadResult",
    "CatalogPipeline",
    "CatalogSession",
    "SourceCatalog",
    "merge_catalogs",
    "displayable",
    "filter_products",
    "recently_viewed",
    "similar_products",
    "sort_products",
    "seed_products",
    "source_hash",
    "synthetic_products",
]
