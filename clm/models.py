from django.db import models
from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator, MaxValueValidator
import uuid


# ============================================================================
# 1. USER & AUDIT
# ============================================================================

class User(AbstractUser):
    """Extended User model with contract-management roles"""
    ROLE_CHOICES = [
        ('ADMIN', 'System Administrator'),
        ('ANALYST', 'Data & System Analyst'),
        ('PROCUREMENT', 'Procurement Officer'),
        ('VIEWER', 'Viewer'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='PROCUREMENT')
    full_name = models.CharField(max_length=200, blank=True)
    phone_number = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.display_name} ({self.get_role_display()})"

    @property
    def display_name(self):
        return self.full_name or self.get_full_name() or self.username

    @property
    def is_contract_admin(self):
        """Admins and analysts may revert, delete and override contracts"""
        return self.is_superuser or self.role in ('ADMIN', 'ANALYST')


class AuditLog(models.Model):
    """Contract audit trail"""
    ACTION_TYPES = [
        ('CREATE', 'Created'),
        ('UPDATE', 'Updated'),
        ('DELETE', 'Deleted'),
        ('FINALIZE', 'Finalized'),
        ('AMEND', 'Amendment Created'),
        ('EXTEND', 'Extended'),
        ('REVERT', 'Reverted'),
        ('APPOINT', 'Vendor Appointed'),
        ('LOGIN', 'Logged In'),
        ('LOGOUT', 'Logged Out'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=20, choices=ACTION_TYPES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=255)
    object_repr = models.CharField(max_length=500)
    changes = models.JSONField(null=True, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['-timestamp'], name='audit_logs_timestamp_idx'),
            models.Index(fields=['model_name', 'object_id'], name='audit_logs_object_idx'),
        ]

    def __str__(self):
        return f"{self.user} - {self.action} - {self.model_name} at {self.timestamp}"


# ============================================================================
# 2. LOOKUPS
# ============================================================================

class PT(models.Model):
    """Legal entity (PT) that signs the contract"""
    name = models.CharField(max_length=200, unique=True)
    abbreviation = models.CharField(max_length=20, blank=True)

    class Meta:
        db_table = 'pt'
        verbose_name = 'PT'
        verbose_name_plural = 'PTs'
        ordering = ['name']

    def __str__(self):
        return self.name


class ContractType(models.Model):
    name = models.CharField(max_length=200, unique=True)

    class Meta:
        db_table = 'contract_types'
        ordering = ['name']

    def __str__(self):
        return self.name


# ============================================================================
# 3. CONTRACTS
# ============================================================================

class Contract(models.Model):
    """
    One version of a contract. Amendments are new rows pointing at the
    version they amend through ``parent_contract``.
    """
    STATUS_CHOICES = [
        ('Draft', 'Draft'),
        ('On Progress', 'On Progress'),
        ('Active', 'Active'),
        ('Completed', 'Completed'),
    ]

    DIVISION_CHOICES = [
        ('HRGA', 'HRGA'),
        ('TECH', 'TECH'),
        ('EXT', 'EXT'),
        ('OPS', 'OPS'),
        ('PROC', 'PROC'),
        ('LGL', 'LGL'),
        ('FIN', 'FIN'),
        ('PLNT', 'PLNT'),
        ('MGMT', 'MGMT'),
    ]

    CATEGORY_CHOICES = [
        ('rent', 'Rent'),
        ('exploration', 'Exploration'),
        ('general_services', 'General Services'),
        ('consulting', 'Consulting'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    contract_number = models.CharField(max_length=50, null=True, blank=True)
    title = models.CharField(max_length=300)

    category = models.CharField(max_length=100, blank=True)
    division = models.CharField(max_length=20, choices=DIVISION_CHOICES, blank=True)
    department = models.CharField(max_length=200, blank=True)
    pt = models.ForeignKey(PT, on_delete=models.SET_NULL, null=True, blank=True, related_name='contracts')
    contract_type = models.ForeignKey(
        ContractType, on_delete=models.SET_NULL, null=True, blank=True, related_name='contracts'
    )

    effective_date = models.DateField(null=True, blank=True)
    expiry_date = models.DateField(null=True, blank=True)

    # Stored status is an open set; the displayed status is derived in clm.progress
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='On Progress')
    current_step = models.CharField(max_length=200, default='Initiated', blank=True)

    # Versioning
    version = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    parent_contract = models.ForeignKey(
        'self', on_delete=models.SET_NULL, null=True, blank=True, related_name='amendments'
    )
    reference_contract_number = models.CharField(max_length=50, blank=True)

    appointed_vendor = models.CharField(max_length=300, blank=True)
    contract_summary = models.TextField(blank=True)
    final_contract_amount = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)
    cost_saving = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)

    # Status markers
    is_cr = models.BooleanField(default=False, help_text="Contract Requisition")
    is_on_hold = models.BooleanField(default=False)
    is_anticipated = models.BooleanField(default=False)

    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='contracts_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'contracts'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='contracts_status_idx'),
            models.Index(fields=['expiry_date'], name='contracts_expiry_idx'),
        ]

    def __str__(self):
        if self.contract_number:
            return f"{self.contract_number} - {self.title}"
        return self.title

    @property
    def is_amendment(self):
        type_name = self.contract_type.name if self.contract_type_id else ''
        return (
            (self.version or 1) > 1
            or 'amendment' in type_name.lower()
            or 'amendment' in (self.title or '').lower()
        )

    def version_family(self):
        """All versions sharing this contract's root, oldest first"""
        root = self
        seen = {root.pk}
        while root.parent_contract_id and root.parent_contract_id not in seen:
            root = root.parent_contract
            seen.add(root.pk)

        family = [root]
        frontier = [root]
        while frontier:
            children = list(Contract.objects.filter(parent_contract__in=frontier))
            children = [c for c in children if c.pk not in seen]
            seen.update(c.pk for c in children)
            family.extend(children)
            frontier = children
        return sorted(family, key=lambda c: (c.version, c.created_at))


class AgendaItem(models.Model):
    """One step in a contract's bid agenda"""
    STATUS_CHOICES = [
        ('Pending', 'Pending'),
        ('In Progress', 'In Progress'),
        ('Completed', 'Completed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    contract = models.ForeignKey(Contract, on_delete=models.CASCADE, related_name='agenda_items')
    step_name = models.CharField(max_length=200)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Pending')
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    remarks = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'contract_bid_agenda'
        ordering = ['contract', 'created_at']

    def __str__(self):
        return f"{self.contract.title} - {self.step_name}"


class ContractVendor(models.Model):
    """Vendor candidate and its evaluation results for one contract"""
    KYC_CHOICES = [
        ('Pass', 'Pass'),
        ('Fail', 'Fail'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    contract = models.ForeignKey(Contract, on_delete=models.CASCADE, related_name='vendors')
    agenda_step = models.ForeignKey(
        AgendaItem, on_delete=models.SET_NULL, null=True, blank=True, related_name='found_vendors',
        help_text="Vendor Findings step this candidate was found under"
    )
    vendor_name = models.CharField(max_length=300)

    kyc_result = models.CharField(max_length=10, choices=KYC_CHOICES, null=True, blank=True)
    kyc_note = models.TextField(blank=True, null=True)

    tech_eval_score = models.DecimalField(
        max_digits=5, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    tech_eval_note = models.TextField(blank=True, null=True)
    tech_eval_remarks = models.TextField(blank=True, null=True)

    # Stored as entered (digits only), parsed when compared
    price_note = models.CharField(max_length=50, blank=True, null=True)
    revised_price_note = models.CharField(max_length=50, blank=True, null=True)

    is_appointed = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'contract_vendors'
        ordering = ['contract', 'created_at']

    def __str__(self):
        return self.vendor_name


class VendorStepDate(models.Model):
    """A vendor's own dates for one agenda step"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vendor = models.ForeignKey(ContractVendor, on_delete=models.CASCADE, related_name='step_dates')
    agenda_step = models.ForeignKey(AgendaItem, on_delete=models.CASCADE, related_name='vendor_dates')
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    remarks = models.TextField(blank=True, null=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'vendor_step_dates'
        constraints = [
            models.UniqueConstraint(fields=['vendor', 'agenda_step'], name='unique_vendor_step_date'),
        ]

    def __str__(self):
        return f"{self.vendor.vendor_name} - {self.agenda_step.step_name}"


class ContractAmendment(models.Model):
    """Why and from what an amendment version was created"""
    AMENDMENT_TYPES = [
        ('extension', 'Contract Extension'),
        ('value_modification', 'Value Modification'),
        ('scope_change', 'Changing Scope'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    contract = models.OneToOneField(Contract, on_delete=models.CASCADE, related_name='amendment_detail')
    parent_contract = models.ForeignKey(Contract, on_delete=models.CASCADE, related_name='amendment_records')
    amendment_version = models.PositiveIntegerField()
    amendment_type = models.CharField(max_length=30, choices=AMENDMENT_TYPES)
    amendment_reason = models.TextField()
    previous_expiry_date = models.DateField(null=True, blank=True)
    previous_amount = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'contract_amendments'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.parent_contract} - Amendment {self.amendment_version}"
