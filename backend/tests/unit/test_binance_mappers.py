"""Tests for Binance payload mappers."""

from __future__ import annotations

from datetime import date

import pytest

from seasonality.market.binance.mappers import (
    depth_message_to_snapshot,
    kline_to_candle,
    klines_to_candles,
)
from seasonality.market.errors import MalformedPayloadError
from seasonality.market.types import MAX_DEPTH_LEVELS, OrderBookLevel
from seasonality.utils.time import date_to_ms
from tests.factories import make_kline


class TestKlineToCandle:
    def test_maps_fields(self) -> None:
        candle = kline_to_candle(
            make_kline(
                date(2026, 2, 10),
                open="42000.10",
                high="43000.00",
                low="41000.50",
                close="42500.00",
                volume="1234.5678",
            )
        )
        assert candle.time == date_to_ms(date(2026, 2, 10))
        assert candle.open == 42000.10
        assert candle.high == 43000.0
        assert candle.low == 41000.5
        assert candle.close == 42500.0
        assert candle.volume == 1234.5678

    def test_accepts_six_field_row(self) -> None:
        candle = kline_to_candle([0, "1", "2", "0.5", "1.5", "10"])
        assert candle.time == 0
        assert candle.volume == 10.0

    def test_short_row_raises(self) -> None:
        with pytest.raises(MalformedPayloadError, match="5 fields"):
            kline_to_candle([0, "1", "2", "0.5", "1.5"])

    def test_non_numeric_raises(self) -> None:
        with pytest.raises(MalformedPayloadError, match="Invalid kline"):
            kline_to_candle([0, "abc", "2", "0.5", "1.5", "10"])

    def test_non_finite_raises(self) -> None:
        with pytest.raises(MalformedPayloadError):
            kline_to_candle([0, "NaN", "2", "0.5", "1.5", "10"])


class TestKlinesToCandles:
    def test_sorted_by_time(self) -> None:
        payload = [
            make_kline(date(2026, 2, 11)),
            make_kline(date(2026, 2, 9)),
            make_kline(date(2026, 2, 10)),
        ]
        candles = klines_to_candles(payload)
        assert [c.timestamp.date().day for c in candles] == [9, 10, 11]

    def test_empty_list(self) -> None:
        assert klines_to_candles([]) == []

    def test_rejects_non_list(self) -> None:
        with pytest.raises(MalformedPayloadError, match="dict"):
            klines_to_candles({"code": -1121, "msg": "Invalid symbol."})

    def test_one_bad_row_fails_whole_payload(self) -> None:
        with pytest.raises(MalformedPayloadError):
            klines_to_candles([make_kline(date(2026, 2, 9)), [1, 2]])


class TestPartialDepthPayload:
    def test_maps_bids_and_asks(self) -> None:
        message = {
            "lastUpdateId": 160,
            "bids": [["0.0024", "10"]],
            "asks": [["0.0026", "100"], ["0.0027", "5"]],
        }
        snapshot = depth_message_to_snapshot(message, "bnbbtc")
        assert snapshot is not None
        assert snapshot.symbol == "BNBBTC"
        assert snapshot.bids == (OrderBookLevel(0.0024, 10.0),)
        assert snapshot.asks == (
            OrderBookLevel(0.0026, 100.0),
            OrderBookLevel(0.0027, 5.0),
        )
        assert snapshot.last_update_id == 160

    def test_levels_keep_source_order(self) -> None:
        message = {"bids": [["1", "1"], ["3", "1"], ["2", "1"]], "asks": []}
        snapshot = depth_message_to_snapshot(message, "BTCUSDT")
        assert snapshot is not None
        assert [lvl.price for lvl in snapshot.bids] == [1.0, 3.0, 2.0]

    def test_truncates_to_max_levels(self) -> None:
        levels = [[str(100 + i), "1"] for i in range(30)]
        snapshot = depth_message_to_snapshot(
            {"bids": levels, "asks": levels},
            "BTCUSDT",
        )
        assert snapshot is not None
        assert len(snapshot.bids) == MAX_DEPTH_LEVELS
        assert len(snapshot.asks) == MAX_DEPTH_LEVELS

    def test_bad_level_raises(self) -> None:
        with pytest.raises(MalformedPayloadError):
            depth_message_to_snapshot({"bids": [["x", "1"]], "asks": []}, "BTCUSDT")

    def test_levels_not_a_list_raises(self) -> None:
        with pytest.raises(MalformedPayloadError):
            depth_message_to_snapshot({"bids": "oops", "asks": []}, "BTCUSDT")


class TestDepthUpdateEvent:
    def test_uses_event_symbol_and_update_id(self) -> None:
        message = {
            "e": "depthUpdate",
            "E": 1672515782136,
            "s": "ethusdt",
            "U": 157,
            "u": 160,
            "b": [["0.0024", "10"]],
            "a": [["0.0026", "100"]],
        }
        snapshot = depth_message_to_snapshot(message, "BTCUSDT")
        assert snapshot is not None
        assert snapshot.symbol == "ETHUSDT"
        assert snapshot.last_update_id == 160
        assert snapshot.bids[0] == OrderBookLevel(0.0024, 10.0)

    def test_missing_sides_are_empty(self) -> None:
        snapshot = depth_message_to_snapshot({"e": "depthUpdate"}, "BTCUSDT")
        assert snapshot is not None
        assert snapshot.is_empty
        assert snapshot.symbol == "BTCUSDT"


class TestEnvelopesAndOtherFrames:
    def test_combined_stream_envelope(self) -> None:
        message = {
            "stream": "btcusdt@depth20@100ms",
            "data": {"lastUpdateId": 7, "bids": [], "asks": [["1", "2"]]},
        }
        snapshot = depth_message_to_snapshot(message, "BTCUSDT")
        assert snapshot is not None
        assert snapshot.last_update_id == 7
        assert snapshot.asks == (OrderBookLevel(1.0, 2.0),)

    @pytest.mark.parametrize(
        "message",
        [
            {"result": None, "id": 1},
            {"e": "trade", "s": "BTCUSDT"},
            [],
            "pong",
            None,
        ],
    )
    def test_non_depth_frames_return_none(self, message: object) -> None:
        assert depth_message_to_snapshot(message, "BTCUSDT") is None
