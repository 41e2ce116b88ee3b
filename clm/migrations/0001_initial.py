import uuid

import django.contrib.auth.models
import django.contrib.auth.validators
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('role', models.CharField(choices=[('ADMIN', 'System Administrator'), ('ANALYST', 'Data & System Analyst'), ('PROCUREMENT', 'Procurement Officer'), ('VIEWER', 'Viewer')], default='PROCUREMENT', max_length=20)),
                ('full_name', models.CharField(blank=True, max_length=200)),
                ('phone_number', models.CharField(blank=True, max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'db_table': 'users',
                'ordering': ['-created_at'],
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='ContractType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, unique=True)),
            ],
            options={
                'db_table': 'contract_types',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='PT',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, unique=True)),
                ('abbreviation', models.CharField(blank=True, max_length=20)),
            ],
            options={
                'verbose_name': 'PT',
                'verbose_name_plural': 'PTs',
                'db_table': 'pt',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Contract',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('contract_number', models.CharField(blank=True, max_length=50, null=True)),
                ('title', models.CharField(max_length=300)),
                ('category', models.CharField(blank=True, max_length=100)),
                ('division', models.CharField(blank=True, choices=[('HRGA', 'HRGA'), ('TECH', 'TECH'), ('EXT', 'EXT'), ('OPS', 'OPS'), ('PROC', 'PROC'), ('LGL', 'LGL'), ('FIN', 'FIN'), ('PLNT', 'PLNT'), ('MGMT', 'MGMT')], max_length=20)),
                ('department', models.CharField(blank=True, max_length=200)),
                ('effective_date', models.DateField(blank=True, null=True)),
                ('expiry_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=[('Draft', 'Draft'), ('On Progress', 'On Progress'), ('Active', 'Active'), ('Completed', 'Completed')], default='On Progress', max_length=30)),
                ('current_step', models.CharField(blank=True, default='Initiated', max_length=200)),
                ('version', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ('reference_contract_number', models.CharField(blank=True, max_length=50)),
                ('appointed_vendor', models.CharField(blank=True, max_length=300)),
                ('contract_summary', models.TextField(blank=True)),
                ('final_contract_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ('cost_saving', models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ('is_cr', models.BooleanField(default=False, help_text='Contract Requisition')),
                ('is_on_hold', models.BooleanField(default=False)),
                ('is_anticipated', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('contract_type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='contracts', to='clm.contracttype')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='contracts_created', to=settings.AUTH_USER_MODEL)),
                ('parent_contract', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='amendments', to='clm.contract')),
                ('pt', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='contracts', to='clm.pt')),
            ],
            options={
                'db_table': 'contracts',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='contracts_status_idx'),
                    models.Index(fields=['expiry_date'], name='contracts_expiry_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AgendaItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('step_name', models.CharField(max_length=200)),
                ('status', models.CharField(choices=[('Pending', 'Pending'), ('In Progress', 'In Progress'), ('Completed', 'Completed')], default='Pending', max_length=20)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('remarks', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('contract', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='agenda_items', to='clm.contract')),
            ],
            options={
                'db_table': 'contract_bid_agenda',
                'ordering': ['contract', 'created_at'],
            },
        ),
        migrations.CreateModel(
            name='ContractVendor',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('vendor_name', models.CharField(max_length=300)),
                ('kyc_result', models.CharField(blank=True, choices=[('Pass', 'Pass'), ('Fail', 'Fail')], max_length=10, null=True)),
                ('kyc_note', models.TextField(blank=True, null=True)),
                ('tech_eval_score', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('tech_eval_note', models.TextField(blank=True, null=True)),
                ('tech_eval_remarks', models.TextField(blank=True, null=True)),
                ('price_note', models.CharField(blank=True, max_length=50, null=True)),
                ('revised_price_note', models.CharField(blank=True, max_length=50, null=True)),
                ('is_appointed', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('agenda_step', models.ForeignKey(blank=True, help_text='Vendor Findings step this candidate was found under', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='found_vendors', to='clm.agendaitem')),
                ('contract', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='vendors', to='clm.contract')),
            ],
            options={
                'db_table': 'contract_vendors',
                'ordering': ['contract', 'created_at'],
            },
        ),
        migrations.CreateModel(
            name='VendorStepDate',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('remarks', models.TextField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('agenda_step', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='vendor_dates', to='clm.agendaitem')),
                ('vendor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='step_dates', to='clm.contractvendor')),
            ],
            options={
                'db_table': 'vendor_step_dates',
                'constraints': [
                    models.UniqueConstraint(fields=('vendor', 'agenda_step'), name='unique_vendor_step_date'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ContractAmendment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amendment_version', models.PositiveIntegerField()),
                ('amendment_type', models.CharField(choices=[('extension', 'Contract Extension'), ('value_modification', 'Value Modification'), ('scope_change', 'Changing Scope')], max_length=30)),
                ('amendment_reason', models.TextField()),
                ('previous_expiry_date', models.DateField(blank=True, null=True)),
                ('previous_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('contract', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='amendment_detail', to='clm.contract')),
                ('parent_contract', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='amendment_records', to='clm.contract')),
            ],
            options={
                'db_table': 'contract_amendments',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('action', models.CharField(choices=[('CREATE', 'Created'), ('UPDATE', 'Updated'), ('DELETE', 'Deleted'), ('FINALIZE', 'Finalized'), ('AMEND', 'Amendment Created'), ('EXTEND', 'Extended'), ('REVERT', 'Reverted'), ('APPOINT', 'Vendor Appointed'), ('LOGIN', 'Logged In'), ('LOGOUT', 'Logged Out')], max_length=20)),
                ('model_name', models.CharField(max_length=100)),
                ('object_id', models.CharField(max_length=255)),
                ('object_repr', models.CharField(max_length=500)),
                ('changes', models.JSONField(blank=True, null=True)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('timestamp', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'audit_logs',
                'ordering': ['-timestamp'],
                'indexes': [
                    models.Index(fields=['-timestamp'], name='audit_logs_timestamp_idx'),
                    models.Index(fields=['model_name', 'object_id'], name='audit_logs_object_idx'),
                ],
            },
        ),
    ]
