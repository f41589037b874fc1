"""
Taxonomy service: owns the current TaxonomyIndex.

The index is rebuilt wholesale on reload and the reference swapped under a
lock. Matchers created before a reload keep the index they were given.
"""
import threading
from typing import Callable, List, Optional

import structlog
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from product_matching.config.settings import ApplicationSettings
from product_matching.core.exceptions import TaxonomyLoadError
from product_matching.models.domain import TaxonomyRow
from product_matching.pipeline.smart_matcher import SmartProductMatcher
from product_matching.repositories.taxonomy_repository import (
    TaxonomyRepository,
    load_rows_from_file,
)
from product_matching.taxonomy.index import TaxonomyIndex

logger = structlog.get_logger(__name__)

TaxonomyLoader = Callable[[], List[TaxonomyRow]]


def database_loader(database_url: str) -> TaxonomyLoader:
    """Loader reading products_taxonomy through a fresh session per load"""
    engine = create_engine(database_url)

    def load() -> List[TaxonomyRow]:
        with Session(engine) as session:
            return TaxonomyRepository(session).load_rows()

    return load


def file_loader(path) -> TaxonomyLoader:
    def load() -> List[TaxonomyRow]:
        return load_rows_from_file(path)

    return load


class TaxonomyService:
    """
    Holder of the live taxonomy index.

    Example:
        service = TaxonomyService(file_loader("taxonomy.json"))
        service.reload()
        outcome = service.matcher().match_product("פנסיה", "", "הראל")
    """

    def __init__(
        self,
        loader: Optional[TaxonomyLoader] = None,
        threshold: Optional[float] = None,
        default_sub_category: Optional[str] = None,
    ):
        self.loader = loader
        self.threshold = threshold
        self.default_sub_category = default_sub_category
        self._index = TaxonomyIndex.empty()
        self._loaded = False
        self._lock = threading.Lock()
        self.logger = logger.bind(component="taxonomy_service")

    @classmethod
    def from_settings(cls, settings: ApplicationSettings) -> "TaxonomyService":
        """Build a service from the configured taxonomy source (file wins over database)"""
        loader = None
        if settings.taxonomy.source_file is not None:
            loader = file_loader(settings.taxonomy.source_file)
        elif settings.taxonomy.database_url:
            loader = database_loader(settings.taxonomy.database_url)

        return cls(
            loader,
            threshold=settings.matching.match_threshold,
            default_sub_category=settings.matching.default_sub_category,
        )

    @property
    def index(self) -> TaxonomyIndex:
        return self._index

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def reload(self) -> bool:
        """
        Rebuild the index from the loader.

        On failure the previous index stays in place and False is returned.
        """
        if self.loader is None:
            self.logger.warning("No taxonomy source configured, index stays empty")
            return False

        try:
            rows = self.loader()
        except TaxonomyLoadError as e:
            self.logger.error("Taxonomy reload failed, keeping previous index", **e.to_dict())
            return False

        index = TaxonomyIndex.build(rows)
        with self._lock:
            self._index = index
            self._loaded = True

        self.logger.info("Taxonomy index swapped", rows=len(index))
        return True

    def matcher(self, threshold: Optional[float] = None) -> SmartProductMatcher:
        """A matcher bound to the current index"""
        kwargs = {}
        if self.default_sub_category is not None:
            kwargs["default_sub_category"] = self.default_sub_category

        effective = threshold if threshold is not None else self.threshold
        if effective is not None:
            kwargs["threshold"] = effective

        with self._lock:
            index = self._index
        return SmartProductMatcher(index, **kwargs)
