"""Tests for contract progress derivation (clm.progress)."""
from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
import uuid

from clm.models import Contract, ContractVendor
from clm.progress import (
    CURRENT_STEP_COMPLETED, CURRENT_STEP_INITIATED, DisplayStatus, StepName,
    aggregate_step_dates, appoint_vendor, appointed_vendor, build_timeline,
    canonical_step, contract_amount, cost_saving, days_until_expiry,
    derive_step_status, expiry_badge, is_active_display, is_vendor_dependent_step,
    milestones_done, parse_amount, price_difference, resolve_current_step,
    resolve_display_status, sort_agenda, step_duration_days, step_position,
    timeline_bounds, to_date,
)


# =========================================================================
# STEP CATALOG
# =========================================================================
class TestStepCatalog:

    def test_canonical_step_ignores_case_and_spacing(self):
        assert canonical_step('  kyc ') == StepName.KYC
        assert canonical_step('appointed   VENDOR') == StepName.APPOINTED_VENDOR

    def test_unknown_step_has_no_canonical_name(self):
        assert canonical_step('Site Visit') is None
        assert canonical_step('') is None
        assert canonical_step(None) is None

    def test_unknown_step_sorts_last(self):
        assert step_position('Site Visit') > step_position(StepName.VENDOR_SIGNATURE)
        assert step_position(StepName.KYC) < step_position(StepName.PRICE)

    def test_vendor_dependent_steps(self):
        for name in ('KYC', 'Technical Evaluation', 'Price', 'Revised Price', 'Clarification'):
            assert is_vendor_dependent_step(name)
        assert not is_vendor_dependent_step('Vendor Findings')
        assert not is_vendor_dependent_step('Negotiation')


# =========================================================================
# DATE HELPERS
# =========================================================================
class TestDateHelpers:

    def test_to_date_accepts_dates_datetimes_and_iso_strings(self):
        assert to_date(date(2025, 2, 1)) == date(2025, 2, 1)
        assert to_date(datetime(2025, 2, 1, 13, 30)) == date(2025, 2, 1)
        assert to_date('2025-02-01') == date(2025, 2, 1)

    def test_malformed_dates_count_as_missing(self):
        assert to_date('2024-02-30') is None
        assert to_date('next tuesday') is None
        assert to_date('') is None
        assert to_date(20250201) is None

    def test_step_duration_is_inclusive(self):
        assert step_duration_days(date(2025, 1, 1), date(2025, 1, 1)) == 1
        assert step_duration_days('2025-01-01', '2025-01-10') == 10

    def test_step_duration_without_both_dates_is_zero(self):
        assert step_duration_days(date(2025, 1, 1), None) == 0
        assert step_duration_days(None, 'garbage') == 0

    def test_days_until_expiry(self, today):
        assert days_until_expiry(today + timedelta(days=10), today) == 10
        assert days_until_expiry(today - timedelta(days=2), today) == -2
        assert days_until_expiry(None, today) is None

    def test_expiry_badge_thresholds(self):
        assert expiry_badge(-5) == 'destructive'
        assert expiry_badge(29) == 'destructive'
        assert expiry_badge(30) == 'default'
        assert expiry_badge(59) == 'default'
        assert expiry_badge(60) == 'secondary'
        assert expiry_badge(None) == 'secondary'


# =========================================================================
# STEP DATE AGGREGATION
# =========================================================================
class TestAggregateStepDates:

    def test_plain_step_keeps_its_own_dates(self, make_item, make_step_date):
        step = make_item('Vendor Findings', start=date(2025, 1, 6), end=date(2025, 1, 10))
        rows = [make_step_date(step, date(2025, 1, 1), date(2025, 1, 30))]

        assert aggregate_step_dates(step, rows) == (date(2025, 1, 6), date(2025, 1, 10))

    def test_vendor_dependent_step_spans_vendor_dates(self, make_item, make_step_date):
        step = make_item('KYC', start=date(2025, 2, 10), end=date(2025, 2, 11))
        rows = [
            make_step_date(step, date(2025, 2, 3), date(2025, 2, 7)),
            make_step_date(step, date(2025, 2, 1), date(2025, 2, 5)),
            make_step_date(step, None, date(2025, 2, 12)),
        ]

        assert aggregate_step_dates(step, rows) == (date(2025, 2, 1), date(2025, 2, 12))

    def test_rows_of_other_steps_are_ignored(self, make_item, make_step_date):
        kyc = make_item('KYC')
        price = make_item('Price')
        rows = [make_step_date(price, date(2025, 3, 1), date(2025, 3, 4))]

        assert aggregate_step_dates(kyc, rows) == (None, None)

    def test_dependent_step_without_vendor_rows_falls_back_to_own_dates(self, make_item):
        step = make_item('Price', start=date(2025, 3, 1), end=date(2025, 3, 2))

        assert aggregate_step_dates(step, []) == (date(2025, 3, 1), date(2025, 3, 2))

    def test_plain_step_fills_missing_own_date_from_vendors(self, make_item, make_step_date):
        step = make_item('Negotiation', start=date(2025, 4, 1))
        rows = [make_step_date(step, date(2025, 4, 2), date(2025, 4, 9))]

        assert aggregate_step_dates(step, rows) == (date(2025, 4, 1), date(2025, 4, 9))

    def test_malformed_vendor_dates_are_skipped(self, make_item, make_step_date):
        step = make_item('KYC')
        rows = [
            make_step_date(step, '2025-02-30', 'soon'),
            make_step_date(step, '2025-02-03', '2025-02-04'),
        ]

        assert aggregate_step_dates(step, rows) == (date(2025, 2, 3), date(2025, 2, 4))


class TestDeriveStepStatus:

    def test_both_dates_complete_the_step(self):
        assert derive_step_status(date(2025, 1, 1), date(2025, 1, 3)) == 'Completed'

    def test_start_only_is_in_progress(self):
        assert derive_step_status(date(2025, 1, 1), None) == 'In Progress'

    def test_no_dates_is_pending(self):
        assert derive_step_status(None, None, current='Completed') == 'Pending'

    def test_end_only_keeps_current_status(self):
        assert derive_step_status(None, date(2025, 1, 3), current='In Progress') == 'In Progress'


# =========================================================================
# DISPLAY STATUS
# =========================================================================
class TestDisplayStatus:

    def signed_agenda(self, make_item):
        return [
            make_item(StepName.INTERNAL_SIGNATURE, start=date(2025, 3, 1), end=date(2025, 3, 3)),
            make_item(StepName.VENDOR_SIGNATURE, start=date(2025, 3, 4), end=date(2025, 3, 6)),
        ]

    def test_expiry_overrides_every_stored_status(self, today):
        for status in ('Active', 'Completed', 'On Progress'):
            contract = Contract(status=status, expiry_date=today - timedelta(days=1))
            assert resolve_display_status(contract, [], today=today) == DisplayStatus.EXPIRED

    def test_contract_is_valid_on_its_expiry_day(self, today):
        contract = Contract(status='Active', expiry_date=today)

        assert resolve_display_status(contract, [], today=today) == DisplayStatus.ACTIVE

    def test_signed_statuses_pass_through(self, today, make_item):
        for status in ('Active', 'Completed'):
            contract = Contract(status=status, expiry_date=today + timedelta(days=90))
            assert resolve_display_status(contract, [], today=today) == status

    def test_ready_to_finalize_once_both_signatures_are_done(self, today, make_item):
        contract = Contract(status='On Progress')

        status = resolve_display_status(contract, self.signed_agenda(make_item), today=today)

        assert status == DisplayStatus.READY_TO_FINALIZE

    def test_missing_signature_end_date_keeps_contract_in_progress(self, today, make_item):
        contract = Contract(status='On Progress')
        agenda = self.signed_agenda(make_item)
        agenda[1].end_date = None

        assert resolve_display_status(contract, agenda, today=today) == DisplayStatus.ON_PROGRESS

    def test_missing_signature_step_keeps_contract_in_progress(self, today, make_item):
        contract = Contract(status='On Progress')
        agenda = self.signed_agenda(make_item)[:1]

        assert resolve_display_status(contract, agenda, today=today) == DisplayStatus.ON_PROGRESS

    def test_signature_dates_from_vendor_rows_count(self, make_item, make_step_date):
        internal = make_item(StepName.INTERNAL_SIGNATURE, start=date(2025, 3, 1), end=date(2025, 3, 3))
        vendor_sig = make_item(StepName.VENDOR_SIGNATURE)
        rows = [make_step_date(vendor_sig, date(2025, 3, 4), date(2025, 3, 8))]

        assert milestones_done([internal, vendor_sig], rows)
        assert not milestones_done([internal, vendor_sig], [])

    def test_signed_display_statuses(self):
        assert is_active_display(DisplayStatus.EXPIRED)
        assert is_active_display(DisplayStatus.ACTIVE)
        assert not is_active_display(DisplayStatus.READY_TO_FINALIZE)


# =========================================================================
# CURRENT STEP
# =========================================================================
class TestCurrentStep:

    def test_empty_agenda_is_initiated(self):
        assert resolve_current_step([], step_dates=[]) == CURRENT_STEP_INITIATED

    def test_explicit_in_progress_step_wins(self, make_item):
        agenda = [
            make_item('Vendor Findings', status='Pending', start=date(2025, 5, 1)),
            make_item('KYC', status='In Progress'),
        ]

        assert resolve_current_step(agenda, step_dates=[]) == 'KYC'

    def test_legacy_on_progress_label_counts_as_in_progress(self, make_item):
        agenda = [make_item('Vendor Findings', status='Completed'), make_item('Price', status='On Progress')]

        assert resolve_current_step(agenda, step_dates=[]) == 'Price'

    def test_most_recently_touched_open_step(self, make_item):
        agenda = [
            make_item('Vendor Findings', status='Completed', start=date(2025, 6, 1), end=date(2025, 6, 2)),
            make_item('KYC', status='Pending', start=date(2025, 1, 1)),
            make_item('Price', status='Pending', start=date(2025, 2, 1)),
        ]

        assert resolve_current_step(agenda, step_dates=[]) == 'Price'

    def test_vendor_activity_counts_towards_recency(self, make_item, make_step_date):
        kyc = make_item('KYC', status='Pending', start=date(2025, 1, 1))
        price = make_item('Price', status='Pending')
        rows = [make_step_date(price, date(2025, 1, 20), None)]

        assert resolve_current_step([kyc, price], step_dates=rows) == 'Price'

    def test_equal_activity_goes_to_the_later_created_step(self, make_item):
        agenda = [
            make_item('Clarification', status='Pending', start=date(2025, 2, 1), created=5),
            make_item('KYC', status='Pending', start=date(2025, 2, 1), created=1),
        ]

        assert resolve_current_step(agenda, step_dates=[]) == 'Clarification'

    def test_first_pending_step_in_catalog_order(self, make_item):
        agenda = [make_item('Price'), make_item('Site Visit'), make_item('KYC')]

        assert resolve_current_step(agenda, step_dates=[]) == 'KYC'

    def test_completed_agenda(self, make_item):
        agenda = [make_item('KYC', status='Completed'), make_item('Price', status='Completed')]

        assert resolve_current_step(agenda, step_dates=[]) == CURRENT_STEP_COMPLETED

    def test_unrecognised_statuses_fall_back_to_first_step(self, make_item):
        agenda = [make_item('Price', status='Completed'), make_item('KYC', status='Cancelled')]

        assert resolve_current_step(agenda, step_dates=[]) == 'KYC'

    def test_resolution_is_repeatable(self, make_item):
        agenda = [
            make_item('KYC', status='Pending', start=date(2025, 1, 1)),
            make_item('Price', status='Pending'),
        ]
        first = resolve_current_step(agenda, step_dates=[])

        assert resolve_current_step(agenda, step_dates=[]) == first
        assert [item.status for item in agenda] == ['Pending', 'Pending']

    def test_sort_agenda_uses_catalog_order(self, make_item):
        agenda = [make_item('Vendor Signature'), make_item('Price'), make_item('Drafting Amendment')]

        assert [item.step_name for item in sort_agenda(agenda)] == [
            'Drafting Amendment', 'Price', 'Vendor Signature',
        ]


# =========================================================================
# VENDORS AND PRICES
# =========================================================================
class TestAppointVendor:

    def vendors(self, *names):
        return [ContractVendor(vendor_name=name, is_appointed=True) for name in names]

    def test_appoints_exactly_one_vendor(self):
        vendors = appoint_vendor(self.vendors('PT Alpha', 'PT Beta', 'PT Gamma'), 'PT Beta')

        assert [v.is_appointed for v in vendors] == [False, True, False]
        assert appointed_vendor(vendors).vendor_name == 'PT Beta'

    def test_duplicate_names_appoint_only_the_first(self):
        vendors = appoint_vendor(self.vendors('PT Alpha', 'PT Alpha'), 'PT Alpha')

        assert [v.is_appointed for v in vendors] == [True, False]

    def test_unknown_or_blank_name_clears_appointment(self):
        assert appointed_vendor(appoint_vendor(self.vendors('PT Alpha'), 'PT Zeta')) is None
        assert appointed_vendor(appoint_vendor(self.vendors('PT Alpha'), '')) is None


class TestPrices:

    def test_parse_amount_reads_dotted_thousands(self):
        assert parse_amount('1.500.000') == Decimal('1500000')
        assert parse_amount('IDR 2.000') == Decimal('2000')
        assert parse_amount('1.500.000,50') == Decimal('1500000.50')
        assert parse_amount(750) == Decimal('750')

    def test_parse_amount_defaults_to_zero(self):
        assert parse_amount(None) == 0
        assert parse_amount('tbd') == 0
        assert parse_amount('1,2,3') == 0

    def test_price_difference(self):
        diff = price_difference('1.000.000', '900.000')

        assert diff.difference == Decimal('100000')
        assert diff.percentage == Decimal('10')
        assert diff.is_saving

    def test_no_revision_means_no_change(self):
        diff = price_difference('1.000.000', None)

        assert diff.difference == 0
        assert not diff.is_saving

    def test_zero_original_has_no_percentage(self):
        assert price_difference('0', '100').percentage == 0

    def test_amount_and_saving_count_appointed_vendors_only(self):
        vendors = [
            ContractVendor(vendor_name='PT Alpha', price_note='1.000.000', revised_price_note='800.000', is_appointed=True),
            ContractVendor(vendor_name='PT Beta', price_note='500.000', is_appointed=False),
        ]

        assert contract_amount(vendors) == Decimal('800000')
        assert cost_saving(vendors) == Decimal('200000')


# =========================================================================
# TIMELINE
# =========================================================================
class TestTimeline:

    def vendor(self, name, *step_dates):
        return SimpleNamespace(id=uuid.uuid4(), vendor_name=name, step_dates=list(step_dates))

    def test_vendor_rows_replace_the_step_row(self, make_item, make_step_date):
        kyc = make_item('KYC', start=date(2025, 2, 1), end=date(2025, 2, 9))
        alpha = self.vendor('PT Alpha', make_step_date(kyc, date(2025, 2, 1), date(2025, 2, 4)))
        beta = self.vendor('PT Beta', make_step_date(kyc, date(2025, 2, 2), None))

        rows = build_timeline([kyc], [alpha, beta])

        assert [row.label for row in rows] == ['KYC: PT Alpha']
        assert rows[0].kind == 'vendor'

    def test_steps_need_both_dates(self, make_item):
        findings = make_item('Vendor Findings', start=date(2025, 1, 6), end=date(2025, 1, 10))
        price = make_item('Price', start=date(2025, 1, 12))

        rows = build_timeline([findings, price], [])

        assert [(row.label, row.kind) for row in rows] == [('Vendor Findings', 'step')]

    def test_bounds_cover_all_rows(self, make_item):
        rows = build_timeline([
            make_item('Vendor Findings', start=date(2025, 1, 6), end=date(2025, 1, 10)),
            make_item('Negotiation', start=date(2025, 1, 20), end=date(2025, 1, 25)),
        ], [])

        assert timeline_bounds(rows) == (date(2025, 1, 6), date(2025, 1, 25), 20)
        assert timeline_bounds([]) == (None, None, 0)
