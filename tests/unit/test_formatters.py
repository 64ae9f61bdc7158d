"""
Unit tests for display formatters.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from dealquote.utils.formatters import format_currency, format_date, format_percentage


class TestFormatCurrency:

    @pytest.mark.parametrize('value,expected', [
        (1500, '$1,500.00'),
        (Decimal('5700'), '$5,700.00'),
        ('1234567.891', '$1,234,567.89'),
        (Decimal('-1234.5'), '-$1,234.50'),
        (0, '$0.00'),
        (0.1, '$0.10'),
    ])
    def test_formats_amounts(self, value, expected):
        assert format_currency(value) == expected

    def test_zero_decimals(self):
        assert format_currency(Decimal('99.5'), decimals=0) == '$100'

    def test_custom_symbol(self):
        assert format_currency(10, symbol='€') == '€10.00'

    @pytest.mark.parametrize('value', [None, '', 'abc', True, float('nan')])
    def test_invalid_values(self, value):
        assert format_currency(value) == '-'


class TestFormatPercentage:

    def test_two_decimals(self):
        assert format_percentage(12.5) == '12.50%'

    def test_custom_decimals(self):
        assert format_percentage(Decimal('33.333'), decimals=1) == '33.3%'

    def test_missing_value(self):
        assert format_percentage(None) == 'N/A'


class TestFormatDate:

    def test_date(self):
        assert format_date(date(2024, 1, 8)) == '2024-01-08'

    def test_datetime(self):
        assert format_date(datetime(2024, 3, 8, 15, 30)) == '2024-03-08'

    def test_iso_string(self):
        assert format_date('2024-02-07T00:00:00') == '2024-02-07'

    @pytest.mark.parametrize('value', [None, 'tomorrow', 42])
    def test_invalid(self, value):
        assert format_date(value) == '-'
