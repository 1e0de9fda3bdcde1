"""통합 Settings 모듈 - 환경변수 기반

이 모듈의 역할:
    1. 코드에 합리적인 기본값 제공 (재시도 5회, 백오프 1s~5s, 스토어 2000건)
    2. 환경변수로 오버라이드 (우선순위 높음)
    3. 타입 안전성 보장 (Pydantic 자동 검증)

설정 우선순위:
    1. 환경변수 (최우선) - export FEED_URL=ws://prod-source:8080
    2. .env 파일 - config/.env
    3. 코드 기본값 (settings.py 내부)

사용 예시:
    # 개발 환경 (기본값 사용)
    python main.py
    # → ws://localhost:8080 접속

    # 다른 소스 + 파일 로깅 비활성화
    export FEED_URL=ws://10.0.0.5:9000
    export LOG_TO_FILE=false
    python main.py
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# 설정 파일 경로
config_dir = Path(__file__).parent.parent.parent / "config"


def env_settings(prefix: str) -> SettingsConfigDict:
    """환경변수 + .env 통합 설정

    Args:
        prefix: 환경변수 접두사 (예: FEED_, LOG_)

    Returns:
        Pydantic 설정 딕셔너리
    """
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=config_dir / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class StreamSettings(BaseSettings):
    """스트림 수집 설정

    환경변수 오버라이드 (타이밍 설정은 초 단위):
        FEED_URL: 이벤트 소스 엔드포인트 (기본: ws://localhost:8080)
        FEED_MAX_RETRIES: 자동 재연결 최대 횟수 (기본: 5)
        FEED_INITIAL_BACKOFF: 첫 재연결 대기 (기본: 1.0초)
        FEED_MAX_BACKOFF: 재연결 대기 상한 (기본: 5.0초)
        FEED_BACKOFF_MULTIPLIER: 지수 배수 (기본: 2.0)
        FEED_JITTER: 지터 비율 (기본: 0.0, 결정적 스케줄)
        FEED_STORE_CAPACITY: 이벤트 스토어 최대 보관 건수 (기본: 2000)
        FEED_DISPLAY_TIMEZONE: 검색용 시각 표기 타임존 (기본: 로컬)
    """

    url: str = "ws://localhost:8080"
    max_retries: int = Field(5, ge=0)
    initial_backoff: float = Field(1.0, gt=0)
    max_backoff: float = Field(5.0, gt=0)
    backoff_multiplier: float = Field(2.0, ge=1.0)
    jitter: float = Field(0.0, ge=0.0, lt=1.0)
    store_capacity: int = Field(2000, ge=1)
    display_timezone: str | None = None

    model_config = env_settings("FEED_")


class LoggingSettings(BaseSettings):
    """로깅 설정

    환경변수 오버라이드:
        LOG_LEVEL: 로깅 레벨 (기본: INFO)
        LOG_TO_FILE: 파일 로깅 여부 (기본: true)
        LOG_DIR: 로그 디렉토리 (기본: logs)
    """

    level: str = "INFO"
    to_file: bool = True
    dir: str = "logs"

    model_config = env_settings("LOG_")


class MockSourceSettings(BaseSettings):
    """개발용 모의 이벤트 소스 설정

    환경변수 오버라이드:
        MOCK_HOST: 바인드 호스트 (기본: localhost)
        MOCK_PORT: 바인드 포트 (기본: 8080)
        MOCK_INTERVAL: 배치 전송 주기 (기본: 0.1초)
        MOCK_BURST: 접속 직후 초기 전송 건수 (기본: 20)
        MOCK_MAX_BATCH: 주기당 최대 전송 건수 (기본: 3)
    """

    host: str = "localhost"
    port: int = 8080
    interval: float = Field(0.1, gt=0)
    burst: int = Field(20, ge=0)
    max_batch: int = Field(3, ge=1)

    model_config = env_settings("MOCK_")


# ========================================
# 설정 인스턴스 (싱글톤)
# ========================================

stream_settings = StreamSettings()
logging_settings = LoggingSettings()
mock_source_settings = MockSourceSettings()
