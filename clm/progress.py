"""
Contract progress derivation.

Pure functions over already-loaded contract, agenda and vendor records. They
never touch the database and never raise on bad data: malformed dates count
as missing and unknown step names sort last.

Records are read by attribute, so model instances (saved or not) work as well
as any object exposing the same field names.
"""
from collections import namedtuple
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
import re

from django.db import models
from django.utils import timezone
from django.utils.dateparse import parse_date


# ============================================================================
# STEP CATALOG
# ============================================================================

class StepName(models.TextChoices):
    """Canonical bid agenda steps, in procurement order"""
    DRAFTING_AMENDMENT = 'Drafting Amendment'
    REVIEW_AMENDMENT = 'Review Amendment'
    VENDOR_FINDINGS = 'Vendor Findings'
    KYC = 'KYC'
    TECHNICAL_EVALUATION = 'Technical Evaluation'
    PRICE = 'Price'
    CLARIFICATION = 'Clarification'
    REVISED_PRICE = 'Revised Price'
    PRICE_COMPARISON = 'Price Comparison'
    APPOINTED_VENDOR = 'Appointed Vendor'
    NEGOTIATION = 'Negotiation'
    PROCUREMENT_SUMMARY = 'Procurement Summary'
    CONTRACT_DRAFTING = 'Contract Drafting'
    INTERNAL_SIGNATURE = 'Internal Contract Signature Process'
    VENDOR_SIGNATURE = 'Vendor Contract Signature Process'


class DisplayStatus(models.TextChoices):
    ON_PROGRESS = 'On Progress'
    READY_TO_FINALIZE = 'Ready to Finalize'
    ACTIVE = 'Active'
    COMPLETED = 'Completed'
    EXPIRED = 'Expired'


VENDOR_DEPENDENT_STEPS = frozenset([
    StepName.KYC,
    StepName.TECHNICAL_EVALUATION,
    StepName.PRICE,
    StepName.REVISED_PRICE,
    StepName.CLARIFICATION,
])

MILESTONE_STEPS = (StepName.INTERNAL_SIGNATURE, StepName.VENDOR_SIGNATURE)

AMENDMENT_DEFAULT_STEPS = (
    StepName.DRAFTING_AMENDMENT,
    StepName.REVIEW_AMENDMENT,
    StepName.INTERNAL_SIGNATURE,
    StepName.VENDOR_SIGNATURE,
)

STEP_PENDING = 'Pending'
STEP_IN_PROGRESS = 'In Progress'
STEP_COMPLETED = 'Completed'
# Older rows carry the contract-level label instead of the step one
IN_PROGRESS_LABELS = (STEP_IN_PROGRESS, 'On Progress')

CURRENT_STEP_INITIATED = 'Initiated'
CURRENT_STEP_COMPLETED = 'Contract Completed'

_STEP_ORDER = {step: position for position, step in enumerate(StepName)}
_STEP_LOOKUP = {' '.join(step.value.lower().split()): step for step in StepName}


def canonical_step(step_name):
    """Return the StepName matching ``step_name`` ignoring case and spacing, or None"""
    if not step_name:
        return None
    return _STEP_LOOKUP.get(' '.join(str(step_name).lower().split()))


def step_position(step_name):
    """Catalog position of a step; unknown names sort after every known one"""
    step = canonical_step(step_name)
    if step is None:
        return len(_STEP_ORDER)
    return _STEP_ORDER[step]


def is_vendor_dependent_step(step_name):
    return canonical_step(step_name) in VENDOR_DEPENDENT_STEPS


def is_milestone_step(step_name):
    return canonical_step(step_name) in MILESTONE_STEPS


def is_appointed_vendor_step(step_name):
    return canonical_step(step_name) == StepName.APPOINTED_VENDOR


def is_vendor_findings_step(step_name):
    return canonical_step(step_name) == StepName.VENDOR_FINDINGS


# ============================================================================
# DATE HELPERS
# ============================================================================

def to_date(value):
    """
    Coerce a stored or submitted value to a calendar date.

    Accepts dates, datetimes and ISO ``yyyy-mm-dd`` strings. Anything else,
    including impossible dates like ``2024-02-30``, gives None.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return parse_date(value.strip())
        except ValueError:
            return None
    return None


def step_duration_days(start, end):
    """Inclusive number of days between two dates, 0 when either is missing"""
    start, end = to_date(start), to_date(end)
    if start is None or end is None:
        return 0
    return abs((end - start).days) + 1


def days_until_expiry(expiry_date, today=None):
    expiry = to_date(expiry_date)
    if expiry is None:
        return None
    today = today or timezone.localdate()
    return (expiry - today).days


def expiry_badge(days):
    """Badge variant for a days-until-expiry value"""
    if days is None:
        return 'secondary'
    if days < 30:
        return 'destructive'
    if days < 60:
        return 'default'
    return 'secondary'


# ============================================================================
# STEP DATE AGGREGATION
# ============================================================================

StepDates = namedtuple('StepDates', ['start', 'end'])


def collect_step_dates(vendors):
    """Flatten the step-date rows carried by a list of vendors"""
    rows = []
    for vendor in vendors:
        step_dates = getattr(vendor, 'step_dates', None)
        if step_dates is None:
            continue
        if hasattr(step_dates, 'all'):
            step_dates = step_dates.all()
        rows.extend(step_dates)
    return rows


def _step_dates_for(step, vendor_step_dates):
    return [row for row in vendor_step_dates if getattr(row, 'agenda_step_id', None) == step.id]


def aggregate_step_dates(step, vendor_step_dates=()):
    """
    Effective start/end dates of an agenda step.

    Steps that are not vendor dependent keep their own dates. Vendor
    dependent steps, and any missing own date, take the earliest vendor start
    and the latest vendor end recorded for the step.
    """
    own_start = to_date(step.start_date)
    own_end = to_date(step.end_date)
    dependent = is_vendor_dependent_step(step.step_name)

    if not dependent and own_start and own_end:
        return StepDates(own_start, own_end)

    rows = _step_dates_for(step, vendor_step_dates)
    starts = [d for d in (to_date(row.start_date) for row in rows) if d is not None]
    ends = [d for d in (to_date(row.end_date) for row in rows) if d is not None]
    vendor_start = min(starts) if starts else None
    vendor_end = max(ends) if ends else None

    if dependent:
        return StepDates(vendor_start or own_start, vendor_end or own_end)
    return StepDates(own_start or vendor_start, own_end or vendor_end)


def latest_step_activity(step, vendor_step_dates=()):
    """Most recent start date touching a step, from its own or any vendor's dates"""
    candidates = [to_date(step.start_date)]
    candidates.extend(to_date(row.start_date) for row in _step_dates_for(step, vendor_step_dates))
    candidates = [d for d in candidates if d is not None]
    return max(candidates) if candidates else None


def derive_step_status(start_date, end_date, current=STEP_PENDING):
    """Step status implied by its dates; an end date alone leaves ``current`` as is"""
    start, end = to_date(start_date), to_date(end_date)
    if start and end:
        return STEP_COMPLETED
    if start:
        return STEP_IN_PROGRESS
    if end:
        return current
    return STEP_PENDING


# ============================================================================
# DISPLAY STATUS
# ============================================================================

def _find_step(agenda_items, step_name):
    for item in agenda_items:
        if canonical_step(item.step_name) == step_name:
            return item
    return None


def milestones_done(agenda_items, vendor_step_dates=()):
    """True when both signature steps exist and have effective start and end dates"""
    for milestone in MILESTONE_STEPS:
        item = _find_step(agenda_items, milestone)
        if item is None:
            return False
        dates = aggregate_step_dates(item, vendor_step_dates)
        if dates.start is None or dates.end is None:
            return False
    return True


def resolve_display_status(contract, agenda_items, vendor_step_dates=(), today=None):
    """
    Human facing status of a contract.

    Expiry overrides the stored status, so an Active contract past its expiry
    date shows as Expired. A contract still in progress becomes Ready to
    Finalize once both signature steps are done.
    """
    today = today or timezone.localdate()
    expiry = to_date(contract.expiry_date)
    if expiry is not None and expiry < today:
        return DisplayStatus.EXPIRED

    if contract.status in (DisplayStatus.ACTIVE, DisplayStatus.COMPLETED):
        return DisplayStatus(contract.status)

    if milestones_done(agenda_items, vendor_step_dates):
        return DisplayStatus.READY_TO_FINALIZE

    return DisplayStatus.ON_PROGRESS


def is_active_display(display_status):
    """Statuses under which a contract counts as signed"""
    return display_status in (DisplayStatus.ACTIVE, DisplayStatus.COMPLETED, DisplayStatus.EXPIRED)


# ============================================================================
# CURRENT STEP
# ============================================================================

def _created_key(item):
    created = getattr(item, 'created_at', None)
    if isinstance(created, datetime):
        return created.timestamp()
    created = to_date(created)
    return created.toordinal() if created else 0


def sort_agenda(agenda_items):
    """Agenda in catalog order, unknown steps last, creation time breaking ties"""
    return sorted(agenda_items, key=lambda item: (step_position(item.step_name), _created_key(item)))


def resolve_current_step(agenda_items, vendors=(), step_dates=None):
    """
    Label of the step a contract is currently at.

    An explicit In Progress step wins. Otherwise the open step touched most
    recently, then the first pending step in catalog order. A fully completed
    agenda gives "Contract Completed" and an empty one "Initiated".
    """
    agenda_items = list(agenda_items)
    if not agenda_items:
        return CURRENT_STEP_INITIATED

    vendor_step_dates = list(step_dates) if step_dates is not None else collect_step_dates(vendors)

    for item in agenda_items:
        if item.status in IN_PROGRESS_LABELS:
            return item.step_name

    latest_item = None
    latest_key = None
    for item in agenda_items:
        if item.status == STEP_COMPLETED:
            continue
        activity = latest_step_activity(item, vendor_step_dates)
        if activity is None:
            continue
        key = (activity, _created_key(item))
        if latest_key is None or key > latest_key:
            latest_item, latest_key = item, key
    if latest_item is not None:
        return latest_item.step_name

    ordered = sort_agenda(agenda_items)
    for item in ordered:
        if item.status == STEP_PENDING:
            return item.step_name

    if all(item.status == STEP_COMPLETED for item in agenda_items):
        return CURRENT_STEP_COMPLETED

    return ordered[0].step_name


# ============================================================================
# VENDORS
# ============================================================================

def appoint_vendor(vendors, vendor_name):
    """
    Mark the vendor called ``vendor_name`` as appointed and every other one
    as not. Mutates and returns the list.
    """
    appointed = False
    for vendor in vendors:
        is_match = not appointed and bool(vendor_name) and vendor.vendor_name == vendor_name
        vendor.is_appointed = is_match
        appointed = appointed or is_match
    return vendors


def appointed_vendor(vendors):
    for vendor in vendors:
        if vendor.is_appointed:
            return vendor
    return None


def parse_amount(value):
    """Read a free-text numeric string; dots are thousands separators"""
    if value is None:
        return Decimal('0')
    if isinstance(value, (int, float, Decimal)):
        return Decimal(str(value))
    cleaned = re.sub(r'[^\d,\-]', '', str(value)).replace(',', '.')
    if not cleaned:
        return Decimal('0')
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return Decimal('0')


PriceDifference = namedtuple('PriceDifference', ['difference', 'percentage', 'is_saving'])


def price_difference(original_price, revised_price):
    """Saving between an original and revised quote; no revision means no change"""
    original = parse_amount(original_price)
    revised = parse_amount(revised_price) if revised_price else original
    difference = original - revised
    percentage = (difference / original * 100) if original > 0 else Decimal('0')
    return PriceDifference(difference, percentage, difference > 0)


def contract_amount(vendors):
    """Sum of the final (revised, else original) price of appointed vendors"""
    total = Decimal('0')
    for vendor in vendors:
        if vendor.is_appointed:
            total += parse_amount(vendor.revised_price_note or vendor.price_note)
    return total


def cost_saving(vendors):
    total = Decimal('0')
    for vendor in vendors:
        if vendor.is_appointed:
            total += price_difference(vendor.price_note, vendor.revised_price_note).difference
    return total


# ============================================================================
# TIMELINE
# ============================================================================

TimelineRow = namedtuple('TimelineRow', ['key', 'label', 'start', 'end', 'kind', 'step_id'])


def build_timeline(agenda_items, vendors):
    """
    Gantt rows for the bid timeline.

    A step with dated vendor rows gets one row per vendor, labelled
    "Step: Vendor"; a step without them gets a single row when it has both of
    its own dates.
    """
    rows = []
    vendors = list(vendors)
    for step in agenda_items:
        vendor_rows = []
        for vendor in vendors:
            for step_date in collect_step_dates([vendor]):
                if step_date.agenda_step_id != step.id:
                    continue
                start, end = to_date(step_date.start_date), to_date(step_date.end_date)
                if start and end:
                    vendor_rows.append(TimelineRow(
                        f"{vendor.id}-{step.id}",
                        f"{step.step_name}: {vendor.vendor_name}",
                        start, end, 'vendor', step.id,
                    ))
        if vendor_rows:
            rows.extend(vendor_rows)
            continue

        start, end = to_date(step.start_date), to_date(step.end_date)
        if start and end:
            rows.append(TimelineRow(f"step-{step.id}", step.step_name, start, end, 'step', step.id))
    return rows


def timeline_bounds(rows):
    if not rows:
        return None, None, 0
    first = min(row.start for row in rows)
    last = max(row.end for row in rows)
    return first, last, (last - first).days + 1


# ============================================================================
# SUMMARY
# ============================================================================

def contract_progress(contract, agenda_items, vendors, today=None):
    """Everything the detail page and the progress API show about a contract"""
    agenda_items = list(agenda_items)
    vendors = list(vendors)
    vendor_step_dates = collect_step_dates(vendors)

    display_status = resolve_display_status(contract, agenda_items, vendor_step_dates, today=today)
    steps = []
    for item in agenda_items:
        dates = aggregate_step_dates(item, vendor_step_dates)
        steps.append({
            'item': item,
            'start': dates.start,
            'end': dates.end,
            'duration_days': step_duration_days(dates.start, dates.end),
            'is_vendor_dependent': is_vendor_dependent_step(item.step_name),
            'is_appointed_step': is_appointed_vendor_step(item.step_name),
            'is_findings_step': is_vendor_findings_step(item.step_name),
        })

    return {
        'display_status': display_status,
        'current_step': resolve_current_step(agenda_items, step_dates=vendor_step_dates),
        'is_active': is_active_display(display_status),
        'is_ready_to_finalize': display_status == DisplayStatus.READY_TO_FINALIZE,
        'days_until_expiry': days_until_expiry(contract.expiry_date, today),
        'steps': steps,
        'timeline': build_timeline(agenda_items, vendors),
    }
