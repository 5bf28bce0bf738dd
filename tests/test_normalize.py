"""Tests for platform record normalization."""

from datetime import UTC, datetime

import pytest

from scanweave.scanner.models import Band, InformationElement
from scanweave.scanner.normalize import NormalizationError, PlatformCapabilities, normalize


class TestNormalize:
    def test_core_fields(self, make_record):
        record = normalize(make_record())
        assert record.ssid == "TestNetwork"
        assert record.bssid == "00:11:22:33:44:55"
        assert record.level == -50
        assert record.frequency == 2437
        assert record.timestamp == datetime.fromtimestamp(1_700_000_000, tz=UTC)

    @pytest.mark.parametrize(
        ("frequency", "channel", "band"),
        [
            (2437, 6, Band.ghz_2_4),
            (5180, 36, Band.ghz_5),
            (5955, 2, Band.ghz_6),
            (1000, -1, Band.unknown),
        ],
    )
    def test_frequency_classification(self, frequency, channel, band, make_record):
        record = normalize(make_record(frequency=frequency))
        assert record.channel == channel
        assert record.band is band

    def test_missing_strings_default_to_empty(self, make_record):
        raw = make_record()
        del raw["ssid"]
        raw["bssid"] = None
        record = normalize(raw)
        assert record.ssid == ""
        assert record.bssid == ""

    def test_missing_timestamp_uses_now(self, make_record):
        raw = make_record()
        del raw["timestamp_us"]
        before = datetime.now(UTC)
        record = normalize(raw)
        assert record.timestamp >= before

    def test_extended_fields(self, make_record):
        record = normalize(
            make_record(
                channel_width=80,
                center_freq0=5210,
                is_80211mc_responder=True,
                is_passpoint_network=False,
                operator_friendly_name="Operator",
                venue_name="Station",
            )
        )
        assert record.channel_width == 80
        assert record.center_freq0 == 5210
        assert record.center_freq1 is None
        assert record.is_80211mc_responder is True
        assert record.is_passpoint_network is False
        assert record.operator_friendly_name == "Operator"
        assert record.venue_name == "Station"

    def test_unsupported_fields_resolved_to_none(self, make_record):
        raw = make_record(channel_width=80, is_passpoint_network=True, venue_name="Station")
        caps = PlatformCapabilities(channel_info=False, extended_info=False)
        record = normalize(raw, caps)
        assert record.channel_width is None
        assert record.is_passpoint_network is None
        assert record.venue_name is None

    def test_information_elements_keep_order(self, make_record):
        record = normalize(
            make_record(
                information_elements=[
                    (0, b"TestNetwork"),
                    {"id": 221, "data": bytearray(b"\x00\x50\xf2")},
                ]
            )
        )
        assert record.information_elements == (
            InformationElement(0, b"TestNetwork"),
            InformationElement(221, b"\x00\x50\xf2"),
        )


class TestMalformedRecords:
    @pytest.mark.parametrize("level", [None, "loud", -50.5, True])
    def test_invalid_level(self, level, make_record):
        with pytest.raises(NormalizationError):
            normalize(make_record(level=level))

    def test_missing_level(self, make_record):
        raw = make_record()
        del raw["level"]
        with pytest.raises(NormalizationError):
            normalize(raw)

    def test_not_a_mapping(self):
        with pytest.raises(NormalizationError):
            normalize(["not", "a", "record"])  # type: ignore[arg-type]

    def test_bad_frequency(self, make_record):
        with pytest.raises(NormalizationError):
            normalize(make_record(frequency="fast"))

    @pytest.mark.parametrize("element", [(1,), ("x", b"\x00"), (1, "text"), 7])
    def test_bad_information_element(self, element, make_record):
        with pytest.raises(NormalizationError):
            normalize(make_record(information_elements=[element]))

    def test_bad_timestamp(self, make_record):
        with pytest.raises(NormalizationError):
            normalize(make_record(timestamp_us="yesterday"))

    def test_is_value_error(self):
        assert issubclass(NormalizationError, ValueError)
