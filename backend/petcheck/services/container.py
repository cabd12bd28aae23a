"""
Service wiring. create_app() builds one Services bundle per app and stores
it on app.extensions; routes fetch it with get_services(). Tests pass their
own bundle to swap in fake sources or an in-memory cache.
"""

from dataclasses import dataclass
from typing import Optional

from flask import current_app

from petcheck.config import Config
from petcheck.services.cache_service import CacheStore, SQLCacheStore
from petcheck.services.catalog.green_book import DrugCatalog
from petcheck.services.interactions.base_source import InteractionDataSource
from petcheck.services.interactions.curated_source import CuratedInteractionSource
from petcheck.services.interactions.engine import InteractionEngine
from petcheck.services.openfda.adverse_events import AdverseEventService
from petcheck.services.openfda.client import OpenFDAClient
from petcheck.services.openfda.recalls import RecallService

EXTENSION_KEY = "petcheck.services"


@dataclass
class Services:
    cache: CacheStore
    catalog: DrugCatalog
    engine: InteractionEngine
    adverse_events: AdverseEventService
    recalls: RecallService


def build_services(cache: Optional[CacheStore] = None, catalog: Optional[DrugCatalog] = None,
                   source: Optional[InteractionDataSource] = None,
                   openfda_client: Optional[OpenFDAClient] = None) -> Services:
    cache = SQLCacheStore() if cache is None else cache
    catalog = DrugCatalog() if catalog is None else catalog
    source = CuratedInteractionSource(catalog) if source is None else source
    client = OpenFDAClient(cache=cache) if openfda_client is None else openfda_client
    return Services(
        cache=cache,
        catalog=catalog,
        engine=InteractionEngine(source, cache=cache, cache_ttl=Config.CACHE_TTL_INTERACTIONS),
        adverse_events=AdverseEventService(client),
        recalls=RecallService(client),
    )


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
