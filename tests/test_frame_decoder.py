from __future__ import annotations

import orjson
import pytest
from pydantic import ValidationError

from market_feed.common.exceptions.exception_rule import FrameShapeError
from market_feed.core.connection.frame_decoder import (
    FRAME_EXCEPTIONS,
    decode_frame,
    validate_shape,
)
from tests.factory_builders import build_event_frame


def test_text_frame_decodes_to_domain() -> None:
    event = decode_frame(build_event_frame(id="t-1", feed="ETH-USD"))

    assert event.id == "t-1"
    assert event.feed == "ETH-USD"


def test_binary_frames_are_accepted() -> None:
    raw = build_event_frame(id="b-1").encode("utf-8")

    assert decode_frame(raw).id == "b-1"
    assert decode_frame(bytearray(raw)).id == "b-1"
    assert decode_frame(memoryview(raw)).id == "b-1"


def test_invalid_json_raises_decode_error() -> None:
    with pytest.raises(orjson.JSONDecodeError):
        decode_frame("{not json")


@pytest.mark.parametrize("frame", ['{"feed": "BTC-USD"}', "[1, 2]", '"text"', "null"])
def test_missing_id_or_non_object_raises_shape_error(frame: str) -> None:
    with pytest.raises(FrameShapeError):
        decode_frame(frame)


def test_invalid_numeric_field_raises_validation_error() -> None:
    with pytest.raises(ValidationError):
        decode_frame(build_event_frame(price="not-a-number"))


def test_every_frame_failure_is_covered_by_frame_exceptions() -> None:
    for frame in ("{not json", "[]", build_event_frame(quantity=-1)):
        with pytest.raises(FRAME_EXCEPTIONS):
            decode_frame(frame)


def test_validate_shape_returns_payload() -> None:
    payload = {"id": "x", "price": 1, "quantity": 1}
    assert validate_shape(payload) is payload
