from datetime import datetime, timedelta, timezone

import pytest

from examdesk_app.utils.time_utils import isoformat_utc, parse_timestamp


@pytest.mark.parametrize('text, microsecond', [
    ('2030-01-01T10:00:00.5Z', 500000),
    ('2030-01-01T10:00:00.12Z', 120000),
    ('2030-01-01T10:00:00.1234Z', 123400),
    ('2030-01-01T10:00:00.123456789Z', 123456),
    ('2030-01-01T10:00:00Z', 0),
])
def test_any_fraction_length_is_accepted(text, microsecond):
    parsed = parse_timestamp(text)

    assert parsed.replace(microsecond=0) == datetime(2030, 1, 1, 10, 0, 0)
    assert parsed.microsecond == microsecond


def test_offsets_are_normalised_to_naive_utc():
    assert parse_timestamp('2030-01-01T15:30:00.25+05:30') == datetime(2030, 1, 1, 10, 0, 0, 250000)
    aware = datetime(2030, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert parse_timestamp(aware) == datetime(2030, 1, 1, 10, 0)


@pytest.mark.parametrize('value', ['', None, 'tomorrow', '2030-13-01T00:00:00Z'])
def test_invalid_timestamps_raise(value):
    with pytest.raises(ValueError):
        parse_timestamp(value)


def test_emitted_timestamps_parse_back():
    stamp = datetime(2030, 5, 1, 9, 0, 0, 123000)

    assert isoformat_utc(stamp) == '2030-05-01T09:00:00.123Z'
    assert parse_timestamp(isoformat_utc(stamp)) == stamp
