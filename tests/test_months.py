from datetime import date

import pytest

from months import YearMonth


def test_parse_and_format():
    month = YearMonth.parse('2024-05')

    assert month == YearMonth(2024, 5)
    assert str(month) == '2024-05'
    assert month.label == 'May 2024'


@pytest.mark.parametrize('value', ['2024-13', '2024-00', '2024-5', 'May 2024', '', '0000-05', '9999-12'])
def test_parse_rejects_bad_values(value):
    with pytest.raises(ValueError):
        YearMonth.parse(value)


def test_interval_is_half_open():
    month = YearMonth(2024, 12)

    assert month.start == date(2024, 12, 1)
    assert month.next_start == date(2025, 1, 1)
    assert month.contains(date(2024, 12, 1))
    assert month.contains(date(2024, 12, 31))
    assert not month.contains(date(2025, 1, 1))
    assert not month.contains(date(2024, 11, 30))


def test_navigation_crosses_years():
    assert YearMonth(2024, 1).previous() == YearMonth(2023, 12)
    assert YearMonth(2024, 12).next() == YearMonth(2025, 1)
    assert YearMonth(2024, 3).shift(-15) == YearMonth(2022, 12)


def test_months_since_and_day():
    month = YearMonth(2024, 4)

    assert month.months_since(date(2023, 11, 30)) == 5
    assert month.day(30) == date(2024, 4, 30)
    assert month.day(31) is None
    assert YearMonth(2023, 2).days_in_month == 28


def test_current_uses_given_day():
    assert YearMonth.current(date(2024, 7, 19)) == YearMonth(2024, 7)
