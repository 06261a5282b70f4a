"""Unit tests for time-ordered id generation."""

import pytest

from objstash.services.ids import IdGenerator, id_timestamp


class FakeClock:
    """Clock returning a fixed, manually advanced millisecond time."""

    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


class TestIdGenerator:
    """Tests for IdGenerator."""

    def test_id_layout(self) -> None:
        generator = IdGenerator("c" * 64, clock=FakeClock(1_500_000_000_000))

        object_id = generator.next_id()

        assert len(object_id) == 80
        assert object_id.startswith(f"{1_500_000_000_000:012x}")
        assert object_id[12:76] == "c" * 64
        assert object_id.endswith("0000")

    def test_ids_sort_in_creation_order(self) -> None:
        clock = FakeClock(1_000)
        generator = IdGenerator("client", clock=clock)

        ids = [generator() for _ in range(3)]
        clock.now = 2_000
        ids.append(generator())

        assert ids == sorted(ids)
        assert len(set(ids)) == 4

    def test_counter_wraps_at_four_hex_digits(self) -> None:
        generator = IdGenerator("client", clock=FakeClock(0))
        generator._counter = 0xFFFF

        assert generator.next_id().endswith("ffff")
        assert generator.next_id().endswith("0000")

    def test_generators_are_independent(self) -> None:
        first = IdGenerator("a", clock=FakeClock(0))
        second = IdGenerator("b", clock=FakeClock(0))
        first.next_id()

        assert second.next_id().endswith("0000")

    def test_empty_client_id_rejected(self) -> None:
        with pytest.raises(ValueError, match="client_id cannot be empty"):
            IdGenerator("")

    def test_overlong_client_id_rejected(self) -> None:
        with pytest.raises(ValueError, match="at most 64 characters"):
            IdGenerator("c" * 65)


class TestIdTimestamp:
    """Tests for extracting creation time from ids."""

    def test_round_trips_generated_id(self) -> None:
        generator = IdGenerator("c" * 64, clock=FakeClock(1_712_345_678_901))

        assert id_timestamp(generator.next_id()) == 1_712_345_678_901

    def test_legacy_id_uses_seconds(self) -> None:
        assert id_timestamp("5a0b7e8c" + "0" * 16) == 0x5A0B7E8C * 1000

    def test_unexpected_length_rejected(self) -> None:
        with pytest.raises(ValueError, match="bad id given"):
            id_timestamp("short")
