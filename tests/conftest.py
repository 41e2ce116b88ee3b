"""Shared fixtures for the contract MIS test suite."""
from datetime import date, datetime, timedelta, timezone as dt_timezone

import pytest
from django.utils import timezone

from clm.models import AgendaItem, Contract, ContractVendor, User, VendorStepDate
from clm.progress import StepName


# =========================================================================
# PURE FACTORIES (no database)
# =========================================================================
@pytest.fixture
def make_item():
    """Build an unsaved agenda item; ``created`` orders items created in the same test."""
    def _make(step_name, status='Pending', start=None, end=None, created=None, remarks=None):
        item = AgendaItem(step_name=step_name, status=status, start_date=start, end_date=end, remarks=remarks)
        if created is not None:
            item.created_at = datetime(2025, 1, 1, tzinfo=dt_timezone.utc) + timedelta(minutes=created)
        return item
    return _make


@pytest.fixture
def make_step_date():
    def _make(item, start=None, end=None, vendor_id=None):
        return VendorStepDate(agenda_step_id=item.id, vendor_id=vendor_id, start_date=start, end_date=end)
    return _make


@pytest.fixture
def today():
    return date(2025, 6, 15)


# =========================================================================
# USERS
# =========================================================================
@pytest.fixture
def admin_officer(db):
    return User.objects.create_user(username='rina', password='secret-pass-123', role='ADMIN', full_name='Rina Wulandari')


@pytest.fixture
def analyst(db):
    return User.objects.create_user(username='bayu', password='secret-pass-123', role='ANALYST')


@pytest.fixture
def procurement_officer(db):
    return User.objects.create_user(username='dewi', password='secret-pass-123', role='PROCUREMENT', full_name='Dewi Lestari')


@pytest.fixture
def viewer(db):
    return User.objects.create_user(username='agus', password='secret-pass-123', role='VIEWER')


@pytest.fixture
def procurement_client(client, procurement_officer):
    client.force_login(procurement_officer)
    return client


@pytest.fixture
def admin_officer_client(client, admin_officer):
    client.force_login(admin_officer)
    return client


@pytest.fixture
def viewer_client(client, viewer):
    client.force_login(viewer)
    return client


# =========================================================================
# CONTRACTS
# =========================================================================
def _add_steps(contract, step_names):
    return {name: AgendaItem.objects.create(contract=contract, step_name=name) for name in step_names}


@pytest.fixture
def contract(procurement_officer):
    """A contract in the middle of its bid: findings done, KYC running, two vendors"""
    contract = Contract.objects.create(
        title='Office Building Lease',
        category='rent',
        division='HRGA',
        status='On Progress',
        created_by=procurement_officer,
    )
    steps = _add_steps(contract, [
        StepName.VENDOR_FINDINGS,
        StepName.KYC,
        StepName.PRICE,
        StepName.APPOINTED_VENDOR,
        StepName.INTERNAL_SIGNATURE,
        StepName.VENDOR_SIGNATURE,
    ])
    findings = steps[StepName.VENDOR_FINDINGS]
    findings.start_date = date(2025, 1, 6)
    findings.end_date = date(2025, 1, 10)
    findings.status = 'Completed'
    findings.save()

    ContractVendor.objects.create(contract=contract, vendor_name='PT Mitra Teknik', agenda_step=findings,
                                  price_note='1.000.000.000', revised_price_note='900.000.000')
    ContractVendor.objects.create(contract=contract, vendor_name='CV Sinar Jaya', agenda_step=findings,
                                  price_note='1.100.000.000')
    return contract


@pytest.fixture
def ready_contract(contract):
    """Both signature steps dated, so the contract is ready to finalize"""
    for name in (StepName.INTERNAL_SIGNATURE, StepName.VENDOR_SIGNATURE):
        item = contract.agenda_items.get(step_name=name)
        item.start_date = date(2025, 3, 1)
        item.end_date = date(2025, 3, 5)
        item.status = 'Completed'
        item.save()
    winner = contract.vendors.get(vendor_name='PT Mitra Teknik')
    winner.is_appointed = True
    winner.save()
    return contract


@pytest.fixture
def active_contract(procurement_officer):
    today = timezone.localdate()
    contract = Contract.objects.create(
        title='Fleet Rental',
        contract_number='CTR/2025/0001',
        division='OPS',
        status='Active',
        effective_date=today - timedelta(days=200),
        expiry_date=today + timedelta(days=45),
        final_contract_amount=500000000,
        created_by=procurement_officer,
    )
    findings = AgendaItem.objects.create(contract=contract, step_name=StepName.VENDOR_FINDINGS, status='Completed')
    ContractVendor.objects.create(contract=contract, vendor_name='PT Sentosa Logistik', agenda_step=findings,
                                  kyc_result='Pass', tech_eval_score=88, price_note='500000000', is_appointed=True)
    return contract


@pytest.fixture
def expired_contract(procurement_officer):
    today = timezone.localdate()
    return Contract.objects.create(
        title='Warehouse Rental',
        contract_number='CTR/2023/0042',
        status='Active',
        effective_date=today - timedelta(days=400),
        expiry_date=today - timedelta(days=3),
        created_by=procurement_officer,
    )
