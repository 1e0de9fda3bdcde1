"""I/O 경계 DTO 기반 클래스 모듈"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# 와이어 수신용 ConfigDict
# - 소스가 보내는 알 수 없는 필드는 무시 (extra="ignore")
# - 숫자 ID는 문자열로 강제 변환
# - 문자열은 트림하지 않음 (id는 소스가 부여한 그대로 중복 제거 키)
INBOUND_CONFIG = ConfigDict(
    extra="ignore",
    validate_default=True,
    coerce_numbers_to_str=True,
    frozen=True,
    arbitrary_types_allowed=False,
)


class BaseInboundDTO(BaseModel):
    """수신 경계용 공통 Pydantic v2 베이스 모델.

    특징:
    - 불변 객체 (frozen=True)
    - 알 수 없는 필드는 무시 (소스 확장에 관대)
    - 문자열 원문 유지
    """

    model_config = INBOUND_CONFIG
