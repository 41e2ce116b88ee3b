"""
Django management command to seed contracts with bid agendas and vendors
File location: clm/management/commands/seed_contracts.py

Usage: python manage.py seed_contracts --count 30
"""
import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from clm.models import PT, AgendaItem, Contract, ContractType, ContractVendor, VendorStepDate
from clm.progress import (
    StepName, appoint_vendor, contract_amount, cost_saving,
    is_vendor_dependent_step, resolve_current_step,
)

User = get_user_model()

USERS_DATA = [
    {'username': 'admin', 'full_name': 'Rina Wulandari', 'role': 'ADMIN', 'email': 'admin@clm.local'},
    {'username': 'analyst', 'full_name': 'Bayu Pratama', 'role': 'ANALYST', 'email': 'analyst@clm.local'},
    {'username': 'procurement', 'full_name': 'Dewi Lestari', 'role': 'PROCUREMENT', 'email': 'procurement@clm.local'},
    {'username': 'viewer', 'full_name': 'Agus Santoso', 'role': 'VIEWER', 'email': 'viewer@clm.local'},
]

PT_DATA = [
    ('PT Nusantara Energi', 'NE'),
    ('PT Sumber Daya Mineral', 'SDM'),
    ('PT Borneo Eksplorasi', 'BE'),
]

CONTRACT_TYPES = ['Service Agreement', 'Lease Agreement', 'Consulting Agreement', 'Framework Agreement']

CONTRACT_TITLES = [
    'Office Building Lease', 'Seismic Survey Services', 'Fleet Rental', 'IT Managed Services',
    'Security Services', 'Catering Services', 'Drilling Consultancy', 'Legal Advisory Retainer',
    'Warehouse Rental', 'Environmental Impact Study', 'Cleaning Services', 'Network Maintenance',
]

VENDOR_NAMES = [
    'PT Mitra Teknik', 'PT Cahaya Abadi', 'CV Sinar Jaya', 'PT Andalan Solusi',
    'PT Geo Survey Indonesia', 'PT Prima Layanan', 'PT Sentosa Logistik', 'CV Karya Mandiri',
]

BID_STEPS = [
    StepName.VENDOR_FINDINGS,
    StepName.KYC,
    StepName.TECHNICAL_EVALUATION,
    StepName.PRICE,
    StepName.CLARIFICATION,
    StepName.REVISED_PRICE,
    StepName.APPOINTED_VENDOR,
    StepName.NEGOTIATION,
    StepName.CONTRACT_DRAFTING,
    StepName.INTERNAL_SIGNATURE,
    StepName.VENDOR_SIGNATURE,
]


class Command(BaseCommand):
    help = 'Seeds users, lookups and contracts at every stage of the lifecycle'

    def add_arguments(self, parser):
        parser.add_argument('--count', type=int, default=20, help='Number of contracts to create')
        parser.add_argument('--password', default='password123', help='Password for seeded users')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for repeatable data')

    @transaction.atomic
    def handle(self, *args, **options):
        rng = random.Random(options['seed'])

        self.stdout.write("=" * 70)
        self.stdout.write(self.style.SUCCESS("SEEDING CONTRACTS"))
        self.stdout.write("=" * 70)

        users = self.seed_users(options['password'])
        pts = [PT.objects.get_or_create(name=name, defaults={'abbreviation': abbr})[0] for name, abbr in PT_DATA]
        contract_types = [ContractType.objects.get_or_create(name=name)[0] for name in CONTRACT_TYPES]
        self.stdout.write(f"✓ {len(pts)} PTs, {len(contract_types)} contract types")

        today = timezone.localdate()
        stages = {'ongoing': 0, 'ready': 0, 'active': 0, 'expired': 0, 'completed': 0}

        for index in range(options['count']):
            stage = rng.choice(list(stages))
            stages[stage] += 1
            self.seed_contract(rng, index, stage, today, users, pts, contract_types)

        self.stdout.write(self.style.SUCCESS(
            f"✅ Created {options['count']} contracts: "
            + ", ".join(f"{count} {stage}" for stage, count in stages.items())
        ))

    def seed_users(self, password):
        users = []
        for user_data in USERS_DATA:
            user, created = User.objects.get_or_create(
                username=user_data['username'],
                defaults={
                    'email': user_data['email'],
                    'full_name': user_data['full_name'],
                    'role': user_data['role'],
                    'is_staff': user_data['role'] in ('ADMIN', 'ANALYST'),
                    'is_superuser': user_data['role'] == 'ADMIN',
                }
            )
            if created:
                user.set_password(password)
                user.save()
                self.stdout.write(f"  ✓ Created user {user.username} ({user.role})")
            users.append(user)
        return users

    def seed_contract(self, rng, index, stage, today, users, pts, contract_types):
        started = today - timedelta(days=rng.randint(30, 400))
        contract = Contract.objects.create(
            title=f"{rng.choice(CONTRACT_TITLES)} {today.year}-{index + 1:03d}",
            category=rng.choice(Contract.CATEGORY_CHOICES)[0],
            division=rng.choice(Contract.DIVISION_CHOICES)[0],
            department='Procurement',
            pt=rng.choice(pts),
            contract_type=rng.choice(contract_types),
            status='On Progress',
            created_by=rng.choice(users),
        )

        # How far down the agenda this contract has got
        if stage == 'ongoing':
            reached = rng.randint(1, len(BID_STEPS) - 2)
        else:
            reached = len(BID_STEPS) + 1

        vendors = [
            ContractVendor.objects.create(contract=contract, vendor_name=name)
            for name in rng.sample(VENDOR_NAMES, rng.randint(2, 4))
        ]

        agenda = []
        step_start = started
        for position, step_name in enumerate(BID_STEPS):
            duration = rng.randint(2, 10)
            done = position < reached - 1
            current = position == reached - 1
            item = AgendaItem.objects.create(
                contract=contract,
                step_name=step_name,
                status='Completed' if done else ('In Progress' if current else 'Pending'),
                start_date=step_start if (done or current) else None,
                end_date=step_start + timedelta(days=duration) if done else None,
            )
            agenda.append(item)

            if step_name == StepName.VENDOR_FINDINGS:
                for vendor in vendors:
                    vendor.agenda_step = item

            if is_vendor_dependent_step(step_name) and (done or current):
                for vendor in vendors:
                    offset = rng.randint(0, 2)
                    VendorStepDate.objects.create(
                        vendor=vendor,
                        agenda_step=item,
                        start_date=step_start + timedelta(days=offset),
                        end_date=step_start + timedelta(days=duration + offset) if done else None,
                    )

            if done or current:
                step_start = step_start + timedelta(days=duration + 1)

        for vendor in vendors:
            price = Decimal(rng.randint(50, 900)) * Decimal('1000000')
            vendor.kyc_result = 'Pass' if rng.random() > 0.15 else 'Fail'
            vendor.tech_eval_score = Decimal(rng.randint(55, 98))
            vendor.price_note = str(int(price))
            vendor.revised_price_note = str(int(price * Decimal('0.93'))) if rng.random() > 0.4 else None

        if reached > BID_STEPS.index(StepName.APPOINTED_VENDOR):
            passed = [v for v in vendors if v.kyc_result == 'Pass'] or vendors
            winner = max(passed, key=lambda v: v.tech_eval_score)
            appoint_vendor(vendors, winner.vendor_name)
            contract.appointed_vendor = winner.vendor_name
            AgendaItem.objects.filter(contract=contract, step_name=StepName.APPOINTED_VENDOR).update(
                remarks=winner.vendor_name
            )
            contract.final_contract_amount = contract_amount(vendors)
            contract.cost_saving = cost_saving(vendors)

        for vendor in vendors:
            vendor.save()

        if stage in ('active', 'expired', 'completed'):
            contract.contract_number = f"CTR/{today.year}/{index + 1:04d}"
            contract.effective_date = today - timedelta(days=rng.randint(10, 300))
            contract.status = 'Completed' if stage == 'completed' else 'Active'
            if stage == 'expired':
                contract.effective_date = today - timedelta(days=rng.randint(400, 700))
                contract.expiry_date = today - timedelta(days=rng.randint(1, 60))
            else:
                contract.expiry_date = today + timedelta(days=rng.choice([20, 45, 90, 200, 365]))

        contract.current_step = resolve_current_step(
            agenda, step_dates=VendorStepDate.objects.filter(agenda_step__contract=contract)
        )
        contract.save()
        return contract
