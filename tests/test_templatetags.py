"""Tests for the contract template filters."""
from datetime import date
from decimal import Decimal

from clm.templatetags.contract_filters import (
    dict_label, display_date, division_color, expiry_badge_class,
    get_item, number_format, rupiah, status_badge,
)


class TestNumberFormat:

    def test_thousands_use_dots(self):
        assert number_format(1500000) == '1.500.000'
        assert number_format(Decimal('900000000.00')) == '900.000.000'

    def test_decimals_use_a_comma(self):
        assert number_format(Decimal('1500000.5')) == '1.500.000,50'

    def test_negative_amounts(self):
        assert number_format(Decimal('-25000')) == '-25.000'

    def test_free_text_amounts(self):
        assert number_format('1.250.000') == '1.250.000'

    def test_missing_amount_is_zero(self):
        assert number_format(None) == '0'
        assert rupiah(None) == 'IDR 0'

    def test_rupiah(self):
        assert rupiah(2500000) == 'IDR 2.500.000'


class TestDisplayFilters:

    def test_display_date(self):
        assert display_date(date(2025, 1, 5)) == '05 Jan 2025'
        assert display_date('2025-03-31') == '31 Mar 2025'
        assert display_date(None) == '-'
        assert display_date('2025-02-30') == '-'

    def test_status_badge(self):
        assert status_badge('Active') == 'bg-success'
        assert status_badge('Expired') == 'bg-danger'
        assert status_badge('Ready to Finalize') == 'bg-info text-dark'
        assert status_badge('Archived') == 'bg-secondary'
        assert status_badge(None) == 'bg-secondary'

    def test_expiry_badge_class(self):
        assert expiry_badge_class('destructive') == 'bg-danger'
        assert expiry_badge_class('secondary') == 'bg-secondary'

    def test_division_color(self):
        assert division_color('HRGA') == '#ec4899'
        assert division_color('UNKNOWN') == '#6b7280'

    def test_get_item_and_dict_label(self):
        assert get_item({'active': 3}, 'active') == 3
        assert get_item(None, 'active') == ''
        assert dict_label('rent', [('rent', 'Rent')]) == 'Rent'
        assert dict_label('other', [('rent', 'Rent')]) == 'other'
