"""StreamStats 테스트
Property: 갭 레코드 필드 완전성
통계 JSON 직렬화 가능
"""

import json

from hypothesis import given, strategies as st, settings

from poloniex_api.stream_stats import StreamStats


class TestGapCompleteness:

    @given(
        pair=st.sampled_from(["BTC_ETH", "USDT_BTC", "BTC_XMR"]),
        expected_seq=st.integers(min_value=1, max_value=10**12),
        actual_seq=st.integers(min_value=1, max_value=10**12),
        timestamp=st.floats(min_value=1.0, max_value=2e10),
    )
    @settings(max_examples=100)
    def test_gap_has_all_fields(self, pair, expected_seq, actual_seq, timestamp):
        stats = StreamStats()
        stats.record_gap(pair, expected_seq, actual_seq, timestamp)
        gap = stats.get_stats()["gaps"][-1]
        assert gap == {
            "timestamp": timestamp,
            "pair": pair,
            "expected_seq": expected_seq,
            "actual_seq": actual_seq,
        }

    def test_gap_buffer_bounded(self):
        stats = StreamStats()
        for i in range(StreamStats.MAX_GAP_BUFFER + 1):
            stats.record_gap("BTC_ETH", i, i + 2, float(i))
        assert stats.gap_count <= StreamStats.MAX_GAP_BUFFER
        assert stats.get_stats()["gaps"][-1]["expected_seq"] == StreamStats.MAX_GAP_BUFFER


class TestCounters:

    def test_counts(self):
        stats = StreamStats()
        stats.increment_message_count("1002")
        stats.increment_message_count("1002")
        stats.increment_message_count("148")
        stats.record_drop("json")
        stats.record_reconnect(1700000000.0, "connection refused")

        snap = stats.get_stats()
        assert snap["message_counts"] == {"1002": 2, "148": 1}
        assert snap["drops"] == {"json": 1}
        assert snap["reconnect_count"] == 1
        assert stats.reconnect_count == 1

    def test_snapshot_serializable(self):
        stats = StreamStats()
        stats.record_gap("BTC_ETH", 3, 5, 1700000000.0)
        stats.record_drop("parse")
        restored = json.loads(json.dumps(stats.get_stats()))
        assert restored["gap_count"] == 1
        assert restored["drops"] == {"parse": 1}

    def test_reset(self):
        stats = StreamStats()
        stats.record_gap("BTC_ETH", 3, 5, 1.0)
        stats.record_reconnect(1.0, "x")
        stats.record_drop("shape")
        stats.increment_message_count("1010")
        stats.reset()
        snap = stats.get_stats()
        assert snap["gap_count"] == 0
        assert snap["reconnect_count"] == 0
        assert snap["drops"] == {}
        assert snap["message_counts"] == {}
