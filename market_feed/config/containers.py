"""
Dependency Injection Containers

아키텍처:
- CoreContainer: 설정 주입 + 스토어/쿼리 엔진/재연결 정책
- ApplicationContainer: 최상위 컨테이너 (FeedSession)

Settings 주입:
    container.core.stream_config()  # → stream_settings 인스턴스

    # 엔드포인트 오버라이드 (CLI 등)
    container.url.override(providers.Object("ws://10.0.0.5:9000"))
"""

from dependency_injector import containers, providers

from market_feed.application.feed_session import FeedSession
from market_feed.config.settings import stream_settings
from market_feed.core.connection.connection_manager import policy_from_settings
from market_feed.core.query.filter_engine import EventQueryEngine
from market_feed.core.query.formatting import resolve_display_timezone
from market_feed.core.store.event_store import EventStore


# ========================================
# 1. Core Container (수집 코어)
# ========================================
class CoreContainer(containers.DeclarativeContainer):
    """수집 코어 컨테이너

    - 스토어/쿼리 엔진은 싱글톤 (세션 컨텍스트 당 1개)
    - Settings: settings.py 싱글톤 주입 (DI)
    """

    stream_config = providers.Object(stream_settings)

    display_timezone = providers.Callable(
        resolve_display_timezone,
        stream_config.provided.display_timezone,
    )

    event_store = providers.Singleton(
        EventStore,
        capacity=stream_config.provided.store_capacity,
    )

    query_engine = providers.Singleton(
        EventQueryEngine,
        tz=display_timezone,
    )

    connection_policy = providers.Factory(policy_from_settings)


# ========================================
# 2. Application Container (최상위)
# ========================================
class ApplicationContainer(containers.DeclarativeContainer):
    """최상위 컨테이너

    Providers:
        - core: CoreContainer
        - url: 이벤트 소스 엔드포인트 (기본: FEED_URL)
        - feed_session: 소비자용 세션 (싱글톤)
    """

    core = providers.Container(CoreContainer)

    url = providers.Object(stream_settings.url)

    feed_session = providers.Singleton(
        FeedSession,
        store=core.event_store,
        query_engine=core.query_engine,
        url=url,
        policy=core.connection_policy,
    )
