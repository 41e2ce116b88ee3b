"""Tests for the seed_contracts management command."""
from io import StringIO

import pytest
from django.core.management import call_command
from django.db.models import Count, Q

from clm.models import Contract, ContractVendor, User
from clm.services import get_display_status

pytestmark = pytest.mark.django_db


class TestSeedContracts:

    def seed(self, count=8):
        out = StringIO()
        call_command('seed_contracts', count=count, seed=42, stdout=out)
        return out.getvalue()

    def test_seeds_users_and_contracts(self):
        output = self.seed()

        assert Contract.objects.count() == 8
        assert set(User.objects.values_list('role', flat=True)) == {'ADMIN', 'ANALYST', 'PROCUREMENT', 'VIEWER'}
        assert 'Created 8 contracts' in output

    def test_rerun_reuses_users(self):
        self.seed(count=2)
        self.seed(count=2)

        assert User.objects.count() == 4
        assert Contract.objects.count() == 4

    def test_seeded_contracts_are_consistent(self):
        self.seed(count=12)

        appointed = Contract.objects.annotate(
            winners=Count('vendors', filter=Q(vendors__is_appointed=True))
        )
        assert all(contract.winners <= 1 for contract in appointed)
        for contract in Contract.objects.all():
            assert contract.current_step
            if contract.effective_date and contract.expiry_date:
                assert contract.expiry_date > contract.effective_date
            if contract.status in ('Active', 'Completed'):
                assert contract.contract_number
                assert str(get_display_status(contract)) in ('Active', 'Completed', 'Expired')
        assert not ContractVendor.objects.filter(contract__isnull=True).exists()
