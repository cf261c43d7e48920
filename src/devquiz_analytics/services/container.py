"""Wiring of the store and services from settings."""

import functools
import random
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from devquiz_analytics.analytics.locks import KeyedLock
from devquiz_analytics.analytics.recommender import Recommender
from devquiz_analytics.analytics.team_aggregator import TeamAggregator
from devquiz_analytics.config import Settings, get_settings
from devquiz_analytics.models.common import Timestamp
from devquiz_analytics.services.answer_service import AnswerService
from devquiz_analytics.services.profile_service import ProfileService
from devquiz_analytics.storage.base import StatsStore
from devquiz_analytics.storage.json_store import JsonStatsStore
from devquiz_analytics.storage.memory import InMemoryStatsStore

logger = structlog.get_logger()


@dataclass
class AnalyticsServices:
    store: StatsStore
    profiles: ProfileService
    answers: AnswerService
    recommender: Recommender
    aggregator: TeamAggregator
    locks: KeyedLock = field(default_factory=KeyedLock)


def create_services(
    store: StatsStore,
    rng: random.Random | None = None,
    clock: Callable[[], Timestamp] = Timestamp.now,
) -> AnalyticsServices:
    locks = KeyedLock()
    return AnalyticsServices(
        store=store,
        profiles=ProfileService(store, clock),
        answers=AnswerService(store, locks, clock),
        recommender=Recommender(rng, clock),
        aggregator=TeamAggregator(store, clock),
        locks=locks,
    )


def build_services(settings: Settings) -> AnalyticsServices:
    if settings.storage_backend == "memory":
        store: StatsStore = InMemoryStatsStore()
    else:
        store = JsonStatsStore(settings.resolved_data_dir)
    logger.info("analytics_store_ready", backend=settings.storage_backend)
    return create_services(store, rng=random.Random(settings.random_seed))


@functools.lru_cache
def get_services() -> AnalyticsServices:
    """Get the process-wide services singleton."""
    return build_services(get_settings())
