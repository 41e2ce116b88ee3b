"""
Contract lifecycle operations.

Views call these instead of touching several models themselves. Rule
violations raise ContractActionError with a message meant for the user.
"""
import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from .models import AgendaItem, AuditLog, Contract, ContractAmendment, ContractVendor, VendorStepDate
from .progress import (
    AMENDMENT_DEFAULT_STEPS, CURRENT_STEP_INITIATED, DisplayStatus, StepName,
    aggregate_step_dates, appoint_vendor, appointed_vendor, canonical_step, collect_step_dates, contract_amount,
    contract_progress, cost_saving, derive_step_status, is_active_display,
    is_appointed_vendor_step, resolve_current_step, resolve_display_status, to_date,
)

logger = logging.getLogger(__name__)


class ContractActionError(Exception):
    """A lifecycle operation was refused; the message is shown to the user"""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


HEADER_FIELDS = [
    'title', 'category', 'division', 'department', 'pt', 'contract_type',
    'effective_date', 'expiry_date', 'is_cr', 'is_on_hold', 'is_anticipated',
]

VENDOR_EVALUATION_FIELDS = [
    'kyc_result', 'kyc_note', 'tech_eval_score', 'tech_eval_note',
    'tech_eval_remarks', 'price_note', 'revised_price_note',
]


# ============================================================================
# AUDIT TRAIL
# ============================================================================

def _jsonable(value):
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def snapshot(instance, fields):
    return {field: _jsonable(getattr(instance, field)) for field in fields}


def diff_changes(old, new):
    """Field-level diff between two snapshots, ``{field: {'old': .., 'new': ..}}``"""
    changes = {}
    for key, value in new.items():
        if key == 'updated_at':
            continue
        if old.get(key) != value:
            changes[key] = {'old': old.get(key), 'new': value}
    return changes


def record_audit(user, action, instance, changes=None, ip_address=None):
    if user is not None and not getattr(user, 'is_authenticated', False):
        user = None
    return AuditLog.objects.create(
        user=user,
        action=action,
        model_name=instance.__class__.__name__,
        object_id=str(instance.pk),
        object_repr=str(instance)[:500],
        changes=changes,
        ip_address=ip_address,
    )


# ============================================================================
# LOADING
# ============================================================================

def load_agenda(contract):
    return list(contract.agenda_items.order_by('created_at'))


def load_vendors(contract):
    return list(contract.vendors.prefetch_related('step_dates').order_by('created_at'))


def get_contract_progress(contract, today=None):
    """Derived status, current step and effective step dates for a stored contract"""
    return contract_progress(contract, load_agenda(contract), load_vendors(contract), today=today)


def get_display_status(contract, today=None):
    agenda = load_agenda(contract)
    step_dates = collect_step_dates(load_vendors(contract))
    return resolve_display_status(contract, agenda, step_dates, today=today)


def has_amendment_in_progress(contract):
    return contract.amendments.filter(status='On Progress').exists()


def refresh_current_step(contract):
    """Recompute the current step from stored rows and persist it"""
    current_step = resolve_current_step(load_agenda(contract), load_vendors(contract))
    if contract.current_step != current_step:
        contract.current_step = current_step
        contract.save(update_fields=['current_step', 'updated_at'])
    return current_step


# ============================================================================
# CONTRACT HEADER
# ============================================================================

def create_contract(user, **fields):
    contract = Contract(created_by=user, **fields)
    contract.status = fields.get('status') or 'On Progress'
    contract.current_step = CURRENT_STEP_INITIATED
    contract.save()
    record_audit(user, 'CREATE', contract, {'initial_state': snapshot(contract, HEADER_FIELDS + ['status'])})
    logger.info("Contract %s created by %s", contract.pk, user)
    return contract


def update_contract_header(contract, data, user, allow_dates=None):
    """
    Apply header edits. Effective and expiry dates only change once the
    contract is signed (Active, Completed or Expired).
    """
    if allow_dates is None:
        allow_dates = is_active_display(get_display_status(contract))

    before = snapshot(contract, HEADER_FIELDS)
    for field in HEADER_FIELDS:
        if field in ('effective_date', 'expiry_date') and not allow_dates:
            continue
        if field in data:
            setattr(contract, field, data[field])

    effective, expiry = to_date(contract.effective_date), to_date(contract.expiry_date)
    if effective and expiry and expiry <= effective:
        raise ContractActionError('Expiry Date must be AFTER the Effective Date.')

    contract.save()
    changes = diff_changes(before, snapshot(contract, HEADER_FIELDS))
    if changes:
        record_audit(user, 'UPDATE', contract, changes)
    return contract


def delete_contract(contract, user):
    if not user.is_contract_admin:
        raise ContractActionError('Only administrators can delete contracts.')
    record_audit(user, 'DELETE', contract, {'initial_state': snapshot(contract, HEADER_FIELDS + ['status'])})
    logger.info("Contract %s deleted by %s", contract.pk, user)
    contract.delete()


# ============================================================================
# AGENDA & VENDORS
# ============================================================================

def add_step(contract, step_name, user):
    step_name = (step_name or '').strip()
    if not step_name:
        raise ContractActionError('Step name is required.')
    canonical = canonical_step(step_name)
    item = AgendaItem.objects.create(
        contract=contract,
        step_name=canonical.value if canonical else step_name,
        status='Pending',
    )
    record_audit(user, 'CREATE', item)
    return item


@transaction.atomic
def delete_step(item, user):
    """
    Delete an agenda step. Its vendor step dates go with it; deleting the
    Appointed Vendor step also withdraws the appointment.
    """
    contract = item.contract
    if is_appointed_vendor_step(item.step_name):
        contract.vendors.update(is_appointed=False)
        contract.appointed_vendor = ''
        contract.save(update_fields=['appointed_vendor', 'updated_at'])

    record_audit(user, 'DELETE', item)
    item.delete()
    refresh_current_step(contract)


def add_vendor(contract, vendor_name, user, agenda_step=None):
    vendor_name = (vendor_name or '').strip()
    if not vendor_name:
        raise ContractActionError('Vendor name is required.')
    if agenda_step is not None and agenda_step.contract_id != contract.pk:
        raise ContractActionError('That step belongs to another contract.')
    vendor = ContractVendor.objects.create(contract=contract, vendor_name=vendor_name, agenda_step=agenda_step)
    record_audit(user, 'CREATE', vendor)
    return vendor


@transaction.atomic
def delete_vendor(vendor, user):
    contract = vendor.contract
    if vendor.is_appointed or contract.appointed_vendor == vendor.vendor_name:
        contract.appointed_vendor = ''
        contract.save(update_fields=['appointed_vendor', 'updated_at'])
    record_audit(user, 'DELETE', vendor)
    vendor.delete()


def _sync_appointed_step(contract, vendor_name):
    contract.agenda_items.filter(step_name=StepName.APPOINTED_VENDOR).update(
        remarks=vendor_name or None, updated_at=timezone.now()
    )


@transaction.atomic
def set_appointed_vendor(contract, vendor_name, user):
    """Appoint one vendor by name; an unknown or empty name clears the appointment"""
    vendors = list(contract.vendors.all())
    appoint_vendor(vendors, vendor_name)
    ContractVendor.objects.bulk_update(vendors, ['is_appointed'])

    winner = appointed_vendor(vendors)
    before = contract.appointed_vendor
    contract.appointed_vendor = winner.vendor_name if winner else ''
    contract.save(update_fields=['appointed_vendor', 'updated_at'])
    _sync_appointed_step(contract, contract.appointed_vendor)

    record_audit(user, 'APPOINT', contract, diff_changes(
        {'appointed_vendor': before}, {'appointed_vendor': contract.appointed_vendor}
    ))
    return winner


def save_agenda(contract, user, agenda_updates=None, vendor_updates=None, step_date_updates=None,
                appointed_vendor_name=None):
    """
    Bulk save of the agenda editor.

    ``agenda_updates`` maps step id to its new dates, remarks and (optional)
    status; ``vendor_updates`` maps vendor id to evaluation fields;
    ``step_date_updates`` maps ``(vendor_id, step_id)`` to that vendor's dates
    for the step. Changes are applied to the loaded rows first and written in
    one transaction, so a failure leaves the stored contract untouched. The
    current step is recomputed and stored afterwards.
    """
    agenda_updates = agenda_updates or {}
    vendor_updates = vendor_updates or {}
    step_date_updates = step_date_updates or {}

    with transaction.atomic():
        agenda = {str(item.pk): item for item in load_agenda(contract)}
        vendors = {str(vendor.pk): vendor for vendor in contract.vendors.order_by('created_at')}

        valid_statuses = {value for value, _ in AgendaItem.STATUS_CHOICES}
        explicit_status = set()
        dates_changed = set()
        for item_id, values in agenda_updates.items():
            item = agenda.get(str(item_id))
            if item is None:
                continue
            own_dates = (item.start_date, item.end_date)
            if 'start_date' in values:
                item.start_date = to_date(values['start_date'])
            if 'end_date' in values:
                item.end_date = to_date(values['end_date'])
            if (item.start_date, item.end_date) != own_dates:
                dates_changed.add(item.pk)
            if 'remarks' in values:
                item.remarks = values.get('remarks') or None
            status = values.get('status')
            if status and status not in valid_statuses:
                raise ContractActionError(f'"{status}" is not a valid step status.')
            if status and status != item.status:
                item.status = status
                explicit_status.add(item.pk)

        for vendor_id, values in vendor_updates.items():
            vendor = vendors.get(str(vendor_id))
            if vendor is None:
                continue
            for field in VENDOR_EVALUATION_FIELDS:
                if field in values:
                    setattr(vendor, field, values[field] if values[field] != '' else None)

        if appointed_vendor_name is not None:
            appoint_vendor(list(vendors.values()), appointed_vendor_name)
            winner = appointed_vendor(vendors.values())
            contract.appointed_vendor = winner.vendor_name if winner else ''
            for item in agenda.values():
                if is_appointed_vendor_step(item.step_name):
                    item.remarks = contract.appointed_vendor or None

        for vendor in vendors.values():
            vendor.save(update_fields=VENDOR_EVALUATION_FIELDS + ['is_appointed'])

        for (vendor_id, step_id), values in step_date_updates.items():
            vendor = vendors.get(str(vendor_id))
            item = agenda.get(str(step_id))
            if vendor is None or item is None:
                continue
            start, end = to_date(values.get('start_date')), to_date(values.get('end_date'))
            remarks = values.get('remarks') or None
            existing = VendorStepDate.objects.filter(vendor=vendor, agenda_step=item).first()
            if existing is None and not (start or end or remarks):
                continue
            if existing is None or (existing.start_date, existing.end_date) != (start, end):
                dates_changed.add(item.pk)
            VendorStepDate.objects.update_or_create(
                vendor=vendor, agenda_step=item,
                defaults={'start_date': start, 'end_date': end, 'remarks': remarks},
            )

        # A status set by hand stays until the step's dates move
        fresh_vendors = load_vendors(contract)
        step_dates = collect_step_dates(fresh_vendors)
        for item in agenda.values():
            recompute = item.pk in dates_changed or item.status == 'Pending'
            if recompute and item.pk not in explicit_status:
                dates = aggregate_step_dates(item, step_dates)
                item.status = derive_step_status(dates.start, dates.end, item.status)
            item.save(update_fields=['start_date', 'end_date', 'remarks', 'status', 'updated_at'])

        contract.current_step = resolve_current_step(list(agenda.values()), step_dates=step_dates)
        if appointed_vendor(fresh_vendors):
            contract.final_contract_amount = contract_amount(fresh_vendors)
            contract.cost_saving = cost_saving(fresh_vendors)
        contract.save()

    record_audit(user, 'UPDATE', contract, {
        'agenda_items': len(agenda_updates),
        'vendors': len(vendor_updates),
        'vendor_step_dates': len(step_date_updates),
        'current_step': contract.current_step,
    })
    logger.info("Agenda of contract %s saved, current step %r", contract.pk, contract.current_step)
    return contract


# ============================================================================
# LIFECYCLE
# ============================================================================

def finalize_contract(contract, user, contract_number, effective_date=None, expiry_date=None,
                      contract_summary='', reference_contract_number='', today=None):
    """
    Finish a contract. A contract in progress becomes Active once both
    signature steps are done; an Active (or expired) one becomes Completed.
    Returns the new stored status.
    """
    progress = get_contract_progress(contract, today=today)
    display_status = progress['display_status']

    if contract.status == 'Active' or display_status == DisplayStatus.EXPIRED:
        target_status = 'Completed'
    elif display_status == DisplayStatus.READY_TO_FINALIZE:
        target_status = 'Active'
    else:
        raise ContractActionError(
            'Both the internal and vendor contract signature steps must be completed before finalizing.'
        )

    if not (contract_number or '').strip():
        raise ContractActionError('Contract number is required.')

    # Dates left blank keep their stored values
    effective = to_date(effective_date) or to_date(contract.effective_date)
    expiry = to_date(expiry_date) or to_date(contract.expiry_date)
    if effective and expiry and expiry <= effective:
        raise ContractActionError('Expiry Date must be AFTER the Effective Date.')

    before = snapshot(contract, ['status', 'contract_number', 'effective_date', 'expiry_date', 'appointed_vendor'])

    vendors = load_vendors(contract)
    appointed_step = next(
        (step['item'] for step in progress['steps'] if step['is_appointed_step'] and step['item'].remarks), None
    )
    winner = appointed_vendor(vendors)
    contract.appointed_vendor = (
        (winner.vendor_name if winner else '')
        or (appointed_step.remarks if appointed_step else '')
        or contract.appointed_vendor
    )

    contract.contract_number = contract_number.strip()
    contract.effective_date = effective
    contract.expiry_date = expiry
    contract.status = target_status
    if contract_summary:
        contract.contract_summary = contract_summary
    if reference_contract_number:
        contract.reference_contract_number = reference_contract_number
    if winner:
        contract.final_contract_amount = contract_amount(vendors)
        contract.cost_saving = cost_saving(vendors)
    contract.save()

    changes = diff_changes(before, snapshot(
        contract, ['status', 'contract_number', 'effective_date', 'expiry_date', 'appointed_vendor']
    ))
    record_audit(user, 'FINALIZE', contract, changes)
    logger.info("Contract %s finalized as %s", contract.pk, target_status)
    return target_status


def extend_contract(contract, user, new_expiry_date):
    new_expiry = to_date(new_expiry_date)
    if new_expiry is None:
        raise ContractActionError('A valid new expiry date is required.')
    effective = to_date(contract.effective_date)
    if effective and new_expiry <= effective:
        raise ContractActionError('Expiry Date must be AFTER the Effective Date.')
    current = to_date(contract.expiry_date)
    if current and new_expiry <= current:
        raise ContractActionError('The new expiry date must be later than the current one.')

    before = snapshot(contract, ['expiry_date'])
    contract.expiry_date = new_expiry
    contract.save(update_fields=['expiry_date', 'updated_at'])
    record_audit(user, 'EXTEND', contract, diff_changes(before, snapshot(contract, ['expiry_date'])))
    logger.info("Contract %s extended to %s", contract.pk, new_expiry)
    return contract


@transaction.atomic
def create_amendment(contract, user, amendment_type, amendment_reason):
    """
    Start a new version of a signed contract. Vendor candidates are carried
    over without their evaluation results and the agenda is seeded with the
    default amendment steps.
    """
    if contract.status not in ('Active', 'Completed'):
        raise ContractActionError('Only signed contracts can be amended.')
    if has_amendment_in_progress(contract):
        raise ContractActionError('An amendment for this contract is already in progress.')
    if not (amendment_reason or '').strip():
        raise ContractActionError('Please provide an amendment reason.')

    new_version = (contract.version or 1) + 1
    amendment = Contract.objects.create(
        title=f"{contract.title} - Amendment {new_version}",
        contract_number=contract.contract_number,
        category=contract.category,
        division=contract.division,
        department=contract.department,
        pt=contract.pt,
        contract_type=contract.contract_type,
        status='On Progress',
        current_step=CURRENT_STEP_INITIATED,
        version=new_version,
        parent_contract=contract,
        reference_contract_number=contract.contract_number or '',
        contract_summary=f"Amendment Reason: {amendment_reason.strip()}",
        is_cr=contract.is_cr,
        is_on_hold=contract.is_on_hold,
        is_anticipated=contract.is_anticipated,
        created_by=user,
    )

    ContractVendor.objects.bulk_create([
        ContractVendor(contract=amendment, vendor_name=vendor.vendor_name)
        for vendor in contract.vendors.order_by('created_at')
    ])

    for step_name in AMENDMENT_DEFAULT_STEPS:
        AgendaItem.objects.create(contract=amendment, step_name=step_name, status='Pending')

    ContractAmendment.objects.create(
        contract=amendment,
        parent_contract=contract,
        amendment_version=new_version,
        amendment_type=amendment_type,
        amendment_reason=amendment_reason.strip(),
        previous_expiry_date=contract.expiry_date,
        previous_amount=contract.final_contract_amount,
    )

    amendment.current_step = resolve_current_step(load_agenda(amendment))
    amendment.save(update_fields=['current_step', 'updated_at'])

    record_audit(user, 'AMEND', amendment, {
        'parent_contract': str(contract.pk),
        'version': new_version,
        'amendment_type': amendment_type,
    })
    logger.info("Amendment %s (v%s) created from contract %s", amendment.pk, new_version, contract.pk)
    return amendment


def revert_contract(contract, user):
    """Put a signed contract back into progress so it can be edited again"""
    if not user.is_contract_admin:
        raise ContractActionError('Only administrators can revert contracts.')
    if contract.status not in ('Active', 'Completed'):
        raise ContractActionError('Only Active or Completed contracts can be reverted.')

    before = snapshot(contract, ['status'])
    contract.status = 'On Progress'
    contract.save(update_fields=['status', 'updated_at'])
    record_audit(user, 'REVERT', contract, diff_changes(before, snapshot(contract, ['status'])))
    logger.info("Contract %s reverted to On Progress by %s", contract.pk, user)
    return contract
