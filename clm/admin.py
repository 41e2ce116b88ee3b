from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html

from .models import (
    User, AuditLog,
    PT, ContractType,
    Contract, AgendaItem, ContractVendor, VendorStepDate, ContractAmendment,
)
from .progress import DisplayStatus


# ============================================================================
# 1. USER & AUDIT
# ============================================================================

@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'full_name', 'role', 'is_active', 'created_at']
    list_filter = ['role', 'is_active', 'is_staff', 'created_at']
    search_fields = ['username', 'email', 'first_name', 'last_name', 'full_name']
    ordering = ['-created_at']

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Contract Management', {
            'fields': ('role', 'full_name', 'phone_number')
        }),
    )

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Contract Management', {
            'fields': ('role', 'full_name', 'email')
        }),
    )


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['user', 'action', 'model_name', 'object_repr', 'ip_address', 'timestamp']
    list_filter = ['action', 'model_name', 'timestamp']
    search_fields = ['user__username', 'object_repr', 'object_id', 'ip_address']
    readonly_fields = ['user', 'action', 'model_name', 'object_id', 'object_repr', 'changes', 'ip_address', 'timestamp']
    ordering = ['-timestamp']
    date_hierarchy = 'timestamp'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================================
# 2. LOOKUPS
# ============================================================================

@admin.register(PT)
class PTAdmin(admin.ModelAdmin):
    list_display = ['name', 'abbreviation']
    search_fields = ['name', 'abbreviation']


@admin.register(ContractType)
class ContractTypeAdmin(admin.ModelAdmin):
    list_display = ['name']
    search_fields = ['name']


# ============================================================================
# 3. CONTRACTS
# ============================================================================

class AgendaItemInline(admin.TabularInline):
    model = AgendaItem
    extra = 0
    fields = ['step_name', 'status', 'start_date', 'end_date', 'remarks']


class ContractVendorInline(admin.TabularInline):
    model = ContractVendor
    extra = 0
    fields = ['vendor_name', 'kyc_result', 'tech_eval_score', 'price_note', 'revised_price_note', 'is_appointed']


@admin.register(Contract)
class ContractAdmin(admin.ModelAdmin):
    list_display = ['contract_number', 'title', 'version', 'division', 'pt', 'status_badge', 'current_step', 'expiry_date']
    list_filter = ['status', 'division', 'category', 'pt', 'contract_type', 'created_at']
    search_fields = ['contract_number', 'title', 'appointed_vendor', 'reference_contract_number']
    ordering = ['-created_at']
    readonly_fields = ['current_step', 'created_by', 'created_at', 'updated_at']
    inlines = [AgendaItemInline, ContractVendorInline]
    raw_id_fields = ['parent_contract']

    fieldsets = (
        ('Contract Information', {
            'fields': ('contract_number', 'title', 'category', 'division', 'department', 'pt', 'contract_type')
        }),
        ('Dates & Status', {
            'fields': ('effective_date', 'expiry_date', 'status', 'current_step', 'is_cr', 'is_on_hold', 'is_anticipated')
        }),
        ('Versioning', {
            'fields': ('version', 'parent_contract', 'reference_contract_number')
        }),
        ('Award', {
            'fields': ('appointed_vendor', 'final_contract_amount', 'cost_saving', 'contract_summary')
        }),
        ('Metadata', {
            'fields': ('created_by', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def status_badge(self, obj):
        colors = {
            'Draft': '#6B7280',
            DisplayStatus.ON_PROGRESS: '#2563EB',
            DisplayStatus.ACTIVE: '#16A34A',
            DisplayStatus.COMPLETED: '#7C3AED',
        }
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.status, '#6B7280'), obj.status
        )
    status_badge.short_description = 'Status'


@admin.register(ContractVendor)
class ContractVendorAdmin(admin.ModelAdmin):
    list_display = ['vendor_name', 'contract', 'kyc_result', 'tech_eval_score', 'price_note', 'revised_price_note', 'is_appointed']
    list_filter = ['is_appointed', 'kyc_result']
    search_fields = ['vendor_name', 'contract__title', 'contract__contract_number']


@admin.register(VendorStepDate)
class VendorStepDateAdmin(admin.ModelAdmin):
    list_display = ['vendor', 'agenda_step', 'start_date', 'end_date', 'updated_at']
    search_fields = ['vendor__vendor_name', 'agenda_step__step_name']


@admin.register(ContractAmendment)
class ContractAmendmentAdmin(admin.ModelAdmin):
    list_display = ['contract', 'parent_contract', 'amendment_version', 'amendment_type', 'previous_expiry_date', 'created_at']
    list_filter = ['amendment_type', 'created_at']
    search_fields = ['contract__title', 'parent_contract__title', 'amendment_reason']
    readonly_fields = ['created_at']
