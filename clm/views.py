import json
import logging
from datetime import timedelta
from decimal import Decimal
from io import BytesIO

import openpyxl
from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.contrib import messages
from django.contrib.auth import authenticate, login, logout
from django.contrib.auth.decorators import login_required
from django.core.paginator import Paginator
from django.db import DatabaseError
from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncMonth
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.utils import timezone
from django.utils.html import escape
from django.views.decorators.http import require_http_methods
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from . import services
from .forms import (
    AgendaPayloadForm, AgendaStepForm, AmendmentForm, ContractForm, ExtendContractForm,
    FinalizeContractForm, VendorForm,
)
from .models import AgendaItem, AuditLog, Contract, ContractVendor, PT
from .progress import (
    collect_step_dates, contract_progress, days_until_expiry, expiry_badge,
    is_active_display, is_vendor_findings_step, resolve_display_status, timeline_bounds,
)
from .services import ContractActionError

logger = logging.getLogger(__name__)

CONTRACT_TABS = [
    ('ongoing', 'On Going'),
    ('active', 'Active'),
    ('expiring', 'Expiring'),
    ('expired', 'Expired'),
    ('finished', 'Finished'),
]


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def get_client_ip(request):
    """Get client IP address"""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0]
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip


def check_edit_permission(user):
    """Viewers can look but not change anything"""
    return user.is_superuser or user.role != 'VIEWER'


def filter_contracts_by_tab(queryset, tab, today=None):
    """
    Narrow a contract queryset to one list tab.

    Expired wins over every stored status, so the other tabs leave out
    contracts whose expiry date has passed.
    """
    today = today or timezone.localdate()
    window_end = today + timedelta(days=settings.CLM_EXPIRING_WINDOW_DAYS)
    not_expired = Q(expiry_date__isnull=True) | Q(expiry_date__gte=today)

    if tab == 'active':
        return queryset.filter(not_expired, status='Active')
    if tab == 'expiring':
        return queryset.filter(status='Active', expiry_date__gte=today, expiry_date__lte=window_end)
    if tab == 'expired':
        return queryset.filter(expiry_date__lt=today)
    if tab == 'finished':
        return queryset.filter(not_expired, status='Completed')
    return queryset.filter(not_expired, status__in=['Draft', 'On Progress'])


def attach_display_status(contracts, today=None):
    """Set display_status, days_left and expiry_badge on each contract of a prefetched page"""
    today = today or timezone.localdate()
    for contract in contracts:
        agenda = list(contract.agenda_items.all())
        step_dates = collect_step_dates(contract.vendors.all())
        contract.display_status = resolve_display_status(contract, agenda, step_dates, today=today)
        contract.days_left = days_until_expiry(contract.expiry_date, today)
        contract.expiry_badge = expiry_badge(contract.days_left)
    return contracts


def contract_queryset():
    return Contract.objects.select_related('pt', 'contract_type', 'created_by').prefetch_related(
        'agenda_items', 'vendors__step_dates'
    )


def custom_404(request, exception):
    return render(request, 'errors/404.html', status=404)


def custom_500(request):
    return render(request, 'errors/500.html', status=500)


# ============================================================================
# AUTHENTICATION
# ============================================================================

def login_view(request):
    """Authenticate and send the user to the dashboard"""
    if request.user.is_authenticated:
        return redirect('dashboard')

    if request.method == 'POST':
        username = request.POST.get('username')
        password = request.POST.get('password')
        remember_me = request.POST.get('remember_me')

        user = authenticate(request, username=username, password=password)

        if user is not None:
            login(request, user)

            if not remember_me:
                request.session.set_expiry(0)
            else:
                request.session.set_expiry(1209600)  # 2 weeks

            services.record_audit(user, 'LOGIN', user, ip_address=get_client_ip(request))
            messages.success(request, f'Welcome back, {user.display_name}!')

            next_url = request.GET.get('next')
            if next_url:
                return redirect(next_url)
            return redirect('dashboard')
        messages.error(request, 'Invalid username or password.')

    return render(request, 'auth/login.html')


def logout_view(request):
    if request.user.is_authenticated:
        services.record_audit(request.user, 'LOGOUT', request.user, ip_address=get_client_ip(request))

    logout(request)
    messages.success(request, 'You have been logged out successfully.')
    return redirect('login')


# ============================================================================
# DASHBOARD
# ============================================================================

@login_required
def dashboard_view(request):
    """Contract portfolio overview"""
    today = timezone.localdate()
    contracts = Contract.objects.all()

    # ==================== Tab counts ====================
    tab_counts = {
        tab: filter_contracts_by_tab(contracts, tab, today).count()
        for tab, _label in CONTRACT_TABS
    }

    expiring_soon = attach_display_status(
        filter_contracts_by_tab(contract_queryset(), 'expiring', today).order_by('expiry_date')[:10],
        today,
    )

    # ==================== Financials ====================
    totals = contracts.filter(status__in=['Active', 'Completed']).aggregate(
        total_amount=Sum('final_contract_amount'),
        total_saving=Sum('cost_saving'),
    )

    # ==================== Monthly trend (last 12 months) ====================
    first_month = (today - relativedelta(months=11)).replace(day=1)
    monthly_data = contracts.filter(
        created_at__date__gte=first_month
    ).annotate(
        month=TruncMonth('created_at')
    ).values('month').annotate(
        total=Count('id')
    ).order_by('month')
    monthly_dict = {item['month'].strftime('%Y-%m'): item['total'] for item in monthly_data}

    trend_labels = []
    trend_values = []
    current_date = first_month
    for _ in range(12):
        trend_labels.append(current_date.strftime('%b %Y'))
        trend_values.append(monthly_dict.get(current_date.strftime('%Y-%m'), 0))
        current_date = current_date + relativedelta(months=1)

    # ==================== Breakdown ====================
    by_division = contracts.exclude(division='').values('division').annotate(
        count=Count('id')
    ).order_by('-count')
    by_step = contracts.filter(status__in=['Draft', 'On Progress']).values('current_step').annotate(
        count=Count('id')
    ).order_by('-count')[:10]

    recent_activity = AuditLog.objects.select_related('user').exclude(
        action__in=['LOGIN', 'LOGOUT']
    )[:10]

    context = {
        'tab_counts': tab_counts,
        'contract_tabs': CONTRACT_TABS,
        'total_contracts': contracts.count(),
        'expiring_soon': expiring_soon,
        'total_amount': totals['total_amount'] or Decimal('0'),
        'total_saving': totals['total_saving'] or Decimal('0'),
        'trend_labels': json.dumps(trend_labels),
        'trend_values': json.dumps(trend_values),
        'division_labels': json.dumps([item['division'] for item in by_division]),
        'division_values': json.dumps([item['count'] for item in by_division]),
        'by_step': by_step,
        'recent_activity': recent_activity,
        'expiring_window': settings.CLM_EXPIRING_WINDOW_DAYS,
    }
    return render(request, 'dashboard.html', context)


# ============================================================================
# CONTRACTS
# ============================================================================

@login_required
def contract_list(request):
    """Contracts of one tab with search and filters"""
    tab = request.GET.get('tab', 'ongoing')
    if tab not in dict(CONTRACT_TABS):
        tab = 'ongoing'

    search_query = request.GET.get('search', '')
    division_filter = request.GET.get('division', '')
    category_filter = request.GET.get('category', '')
    pt_filter = request.GET.get('pt', '')

    contracts = filter_contracts_by_tab(contract_queryset(), tab)

    if search_query:
        contracts = contracts.filter(
            Q(contract_number__icontains=search_query) |
            Q(title__icontains=search_query) |
            Q(appointed_vendor__icontains=search_query) |
            Q(department__icontains=search_query)
        )
    if division_filter:
        contracts = contracts.filter(division=division_filter)
    if category_filter:
        contracts = contracts.filter(category=category_filter)
    if pt_filter:
        contracts = contracts.filter(pt_id=pt_filter)

    ordering = 'expiry_date' if tab in ('expiring', 'expired') else '-created_at'

    paginator = Paginator(contracts.order_by(ordering), settings.CLM_CONTRACTS_PER_PAGE)
    page_obj = paginator.get_page(request.GET.get('page', 1))
    attach_display_status(page_obj.object_list)

    context = {
        'contracts': page_obj,
        'page_obj': page_obj,
        'tab': tab,
        'contract_tabs': CONTRACT_TABS,
        'search_query': search_query,
        'division_filter': division_filter,
        'category_filter': category_filter,
        'pt_filter': pt_filter,
        'division_choices': Contract.DIVISION_CHOICES,
        'category_choices': Contract.CATEGORY_CHOICES,
        'pts': PT.objects.all(),
        'total_count': paginator.count,
    }
    return render(request, 'contracts/contract_list.html', context)


@login_required
def contract_create(request):
    if not check_edit_permission(request.user):
        messages.error(request, 'You do not have permission to create contracts.')
        return redirect('contract_list')

    if request.method == 'POST':
        form = ContractForm(request.POST)
        if form.is_valid():
            contract = services.create_contract(request.user, **form.cleaned_data)
            messages.success(request, f'Contract "{contract.title}" created successfully.')
            return redirect('contract_detail', pk=contract.pk)
        messages.error(request, 'Please correct the errors below.')
    else:
        form = ContractForm()

    return render(request, 'contracts/contract_form.html', {'form': form, 'title': 'Create Contract'})


@login_required
def contract_detail(request, pk):
    """Contract header, bid agenda editor, vendors and timeline"""
    contract = get_object_or_404(Contract.objects.select_related('pt', 'contract_type', 'parent_contract'), pk=pk)
    agenda = services.load_agenda(contract)
    vendors = services.load_vendors(contract)
    progress = contract_progress(contract, agenda, vendors)
    first_day, last_day, total_days = timeline_bounds(progress['timeline'])

    step_dates = {
        (step_date.vendor_id, step_date.agenda_step_id): step_date
        for step_date in collect_step_dates(vendors)
    }
    vendor_grid = [
        {
            'step': step,
            'rows': [{'vendor': vendor, 'dates': step_dates.get((vendor.pk, step['item'].pk))} for vendor in vendors],
        }
        for step in progress['steps']
        if step['is_vendor_dependent']
    ]
    findings_step = next((item for item in agenda if is_vendor_findings_step(item.step_name)), None)

    context = {
        'contract': contract,
        'progress': progress,
        'agenda': agenda,
        'vendors': vendors,
        'vendor_grid': vendor_grid,
        'findings_step': findings_step,
        'timeline_start': first_day,
        'timeline_end': last_day,
        'timeline_days': total_days,
        'step_form': AgendaStepForm(),
        'vendor_form': VendorForm(),
        'can_edit': check_edit_permission(request.user),
        'is_admin': request.user.is_contract_admin,
        'amendment_in_progress': services.has_amendment_in_progress(contract),
        'audit_logs': AuditLog.objects.filter(model_name='Contract', object_id=str(contract.pk)).select_related('user')[:20],
    }
    return render(request, 'contracts/contract_detail.html', context)


@login_required
def contract_update(request, pk):
    contract = get_object_or_404(Contract, pk=pk)
    if not check_edit_permission(request.user):
        messages.error(request, 'You do not have permission to edit contracts.')
        return redirect('contract_detail', pk=pk)

    allow_dates = is_active_display(services.get_display_status(contract))

    if request.method == 'POST':
        form = ContractForm(request.POST, instance=Contract.objects.get(pk=pk), allow_dates=allow_dates)
        if form.is_valid():
            try:
                services.update_contract_header(contract, form.cleaned_data, request.user, allow_dates=allow_dates)
                messages.success(request, 'Contract updated successfully.')
                return redirect('contract_detail', pk=pk)
            except ContractActionError as e:
                messages.error(request, e.message)
        else:
            messages.error(request, 'Please correct the errors below.')
    else:
        form = ContractForm(instance=contract, allow_dates=allow_dates)

    return render(request, 'contracts/contract_form.html', {
        'form': form,
        'contract': contract,
        'title': 'Edit Contract',
    })


@login_required
def contract_delete(request, pk):
    contract = get_object_or_404(Contract, pk=pk)

    if request.method == 'POST':
        try:
            title = contract.title
            services.delete_contract(contract, request.user)
            messages.success(request, f'Contract "{title}" deleted.')
            return redirect('contract_list')
        except ContractActionError as e:
            messages.error(request, e.message)

    return redirect('contract_detail', pk=pk)


@login_required
def contract_versions(request, pk):
    """All versions of a contract, original first"""
    contract = get_object_or_404(Contract, pk=pk)
    versions = attach_display_status(
        contract_queryset().filter(pk__in=[c.pk for c in contract.version_family()]).order_by('version', 'created_at')
    )
    return render(request, 'contracts/contract_versions.html', {
        'contract': contract,
        'versions': versions,
    })


# ============================================================================
# BID AGENDA & VENDORS
# ============================================================================

@login_required
@require_http_methods(["POST"])
def step_add(request, pk):
    contract = get_object_or_404(Contract, pk=pk)
    if not check_edit_permission(request.user):
        messages.error(request, 'You do not have permission to edit contracts.')
        return redirect('contract_detail', pk=pk)

    form = AgendaStepForm(request.POST)
    if form.is_valid():
        try:
            item = services.add_step(contract, form.cleaned_data['step_name'], request.user)
            messages.success(request, f'Step "{item.step_name}" added.')
        except ContractActionError as e:
            messages.error(request, e.message)
    else:
        messages.error(request, 'Step name is required.')
    return redirect('contract_detail', pk=pk)


@login_required
@require_http_methods(["POST"])
def step_delete(request, step_id):
    item = get_object_or_404(AgendaItem, pk=step_id)
    contract_id = item.contract_id
    if not check_edit_permission(request.user):
        messages.error(request, 'You do not have permission to edit contracts.')
        return redirect('contract_detail', pk=contract_id)

    step_name = item.step_name
    services.delete_step(item, request.user)
    messages.success(request, f'Step "{step_name}" deleted.')
    return redirect('contract_detail', pk=contract_id)


@login_required
@require_http_methods(["POST"])
def agenda_save(request, pk):
    """Save every edited step, vendor evaluation and vendor step date at once"""
    contract = get_object_or_404(Contract, pk=pk)
    if not check_edit_permission(request.user):
        messages.error(request, 'You do not have permission to edit contracts.')
        return redirect('contract_detail', pk=pk)

    payload = AgendaPayloadForm(request.POST)
    if not payload.is_valid():
        for errors in payload.errors.values():
            for error in errors:
                messages.error(request, f'The agenda was not saved. {error}')
        return redirect('contract_detail', pk=pk)

    try:
        services.save_agenda(
            contract,
            request.user,
            agenda_updates=payload.cleaned_data['agenda_json'],
            vendor_updates=payload.cleaned_data['vendors_json'],
            step_date_updates=payload.cleaned_data['step_dates_json'],
            appointed_vendor_name=request.POST.get('appointed_vendor'),
        )
        messages.success(request, 'Bid agenda saved successfully.')
    except ContractActionError as e:
        messages.error(request, e.message)
    except DatabaseError:
        logger.exception("Saving agenda of contract %s failed", pk)
        messages.error(request, 'Saving the agenda failed; no changes were stored.')

    return redirect('contract_detail', pk=pk)


@login_required
@require_http_methods(["POST"])
def vendor_add(request, pk):
    contract = get_object_or_404(Contract, pk=pk)
    if not check_edit_permission(request.user):
        messages.error(request, 'You do not have permission to edit contracts.')
        return redirect('contract_detail', pk=pk)

    form = VendorForm(request.POST)
    step_id = request.POST.get('agenda_step')
    agenda_step = get_object_or_404(AgendaItem, pk=step_id, contract=contract) if step_id else None

    if form.is_valid():
        try:
            vendor = services.add_vendor(contract, form.cleaned_data['vendor_name'], request.user, agenda_step=agenda_step)
            messages.success(request, f'Vendor "{vendor.vendor_name}" added.')
        except ContractActionError as e:
            messages.error(request, e.message)
    else:
        messages.error(request, 'Vendor name is required.')
    return redirect('contract_detail', pk=pk)


@login_required
@require_http_methods(["POST"])
def vendor_delete(request, vendor_id):
    vendor = get_object_or_404(ContractVendor, pk=vendor_id)
    contract_id = vendor.contract_id
    if not check_edit_permission(request.user):
        messages.error(request, 'You do not have permission to edit contracts.')
        return redirect('contract_detail', pk=contract_id)

    vendor_name = vendor.vendor_name
    services.delete_vendor(vendor, request.user)
    messages.success(request, f'Vendor "{vendor_name}" removed.')
    return redirect('contract_detail', pk=contract_id)


# ============================================================================
# LIFECYCLE ACTIONS
# ============================================================================

@login_required
def contract_finalize(request, pk):
    contract = get_object_or_404(Contract, pk=pk)
    if not check_edit_permission(request.user):
        messages.error(request, 'You do not have permission to finalize contracts.')
        return redirect('contract_detail', pk=pk)

    if request.method == 'POST':
        form = FinalizeContractForm(request.POST)
        if form.is_valid():
            try:
                status = services.finalize_contract(contract, request.user, **form.cleaned_data)
                messages.success(request, f'Contract finalized. Status is now {status}.')
                return redirect('contract_detail', pk=pk)
            except ContractActionError as e:
                messages.error(request, e.message)
        else:
            messages.error(request, 'Please correct the errors below.')
    else:
        form = FinalizeContractForm(initial={
            'contract_number': contract.contract_number,
            'effective_date': contract.effective_date,
            'expiry_date': contract.expiry_date,
            'reference_contract_number': contract.reference_contract_number,
            'contract_summary': contract.contract_summary,
        })

    return render(request, 'contracts/contract_action.html', {
        'form': form,
        'contract': contract,
        'title': 'Finalize Contract',
        'submit_label': 'Finalize',
    })


@login_required
def contract_extend(request, pk):
    contract = get_object_or_404(Contract, pk=pk)
    if not check_edit_permission(request.user):
        messages.error(request, 'You do not have permission to extend contracts.')
        return redirect('contract_detail', pk=pk)

    if request.method == 'POST':
        form = ExtendContractForm(request.POST, contract=contract)
        if form.is_valid():
            try:
                services.extend_contract(contract, request.user, form.cleaned_data['new_expiry_date'])
                messages.success(request, f'Contract extended until {contract.expiry_date:%d %b %Y}.')
                return redirect('contract_detail', pk=pk)
            except ContractActionError as e:
                messages.error(request, e.message)
    else:
        form = ExtendContractForm(contract=contract)

    return render(request, 'contracts/contract_action.html', {
        'form': form,
        'contract': contract,
        'title': 'Extend Contract',
        'submit_label': 'Extend',
    })


@login_required
def contract_amend(request, pk):
    contract = get_object_or_404(Contract, pk=pk)
    if not check_edit_permission(request.user):
        messages.error(request, 'You do not have permission to amend contracts.')
        return redirect('contract_detail', pk=pk)

    if request.method == 'POST':
        form = AmendmentForm(request.POST)
        if form.is_valid():
            try:
                amendment = services.create_amendment(
                    contract, request.user,
                    form.cleaned_data['amendment_type'],
                    form.cleaned_data['amendment_reason'],
                )
                messages.success(request, f'Amendment {amendment.version} created.')
                return redirect('contract_detail', pk=amendment.pk)
            except ContractActionError as e:
                messages.error(request, e.message)
    else:
        form = AmendmentForm()

    return render(request, 'contracts/contract_action.html', {
        'form': form,
        'contract': contract,
        'title': 'Amend Contract',
        'submit_label': 'Create Amendment',
    })


@login_required
@require_http_methods(["POST"])
def contract_revert(request, pk):
    contract = get_object_or_404(Contract, pk=pk)
    try:
        services.revert_contract(contract, request.user)
        messages.success(request, 'Contract reverted to On Progress.')
    except ContractActionError as e:
        messages.error(request, e.message)
    return redirect('contract_detail', pk=pk)


# ============================================================================
# API ENDPOINTS
# ============================================================================

def _iso(value):
    return value.isoformat() if value else None


@login_required
@require_http_methods(["GET"])
def api_contract_progress(request, pk):
    """API: derived status, current step and effective step dates"""
    try:
        contract = Contract.objects.get(pk=pk)
    except Contract.DoesNotExist:
        return JsonResponse({'success': False, 'error': 'Contract not found'}, status=404)

    progress = services.get_contract_progress(contract)
    return JsonResponse({
        'success': True,
        'data': {
            'id': str(contract.pk),
            'title': contract.title,
            'status': contract.status,
            'display_status': str(progress['display_status']),
            'current_step': progress['current_step'],
            'is_active': progress['is_active'],
            'is_ready_to_finalize': progress['is_ready_to_finalize'],
            'days_until_expiry': progress['days_until_expiry'],
            'steps': [
                {
                    'id': str(step['item'].pk),
                    'step_name': step['item'].step_name,
                    'status': step['item'].status,
                    'start_date': _iso(step['start']),
                    'end_date': _iso(step['end']),
                    'duration_days': step['duration_days'],
                    'is_vendor_dependent': step['is_vendor_dependent'],
                }
                for step in progress['steps']
            ],
            'timeline': [
                {
                    'label': row.label,
                    'start_date': _iso(row.start),
                    'end_date': _iso(row.end),
                    'kind': row.kind,
                }
                for row in progress['timeline']
            ],
        }
    })


@login_required
@require_http_methods(["POST"])
def api_appoint_vendor(request, pk):
    """API: appoint one vendor of a contract by name"""
    try:
        contract = Contract.objects.get(pk=pk)
    except Contract.DoesNotExist:
        return JsonResponse({'success': False, 'error': 'Contract not found'}, status=404)

    if not check_edit_permission(request.user):
        return JsonResponse({'success': False, 'error': 'Permission denied'}, status=403)

    if request.content_type == 'application/json':
        try:
            payload = json.loads(request.body or b'{}')
        except ValueError:
            return JsonResponse({'success': False, 'error': 'Invalid JSON body'}, status=400)
    else:
        payload = request.POST

    vendor_name = (payload.get('vendor_name') or '').strip()
    if vendor_name and not contract.vendors.filter(vendor_name=vendor_name).exists():
        return JsonResponse({'success': False, 'error': f'Vendor "{vendor_name}" not found'}, status=400)

    winner = services.set_appointed_vendor(contract, vendor_name, request.user)
    return JsonResponse({
        'success': True,
        'data': {
            'appointed_vendor': winner.vendor_name if winner else None,
            'vendors': [
                {'id': str(vendor.pk), 'vendor_name': vendor.vendor_name, 'is_appointed': vendor.is_appointed}
                for vendor in contract.vendors.order_by('created_at')
            ],
        }
    })


# ============================================================================
# EXPORTS
# ============================================================================

@login_required
def export_contracts_excel(request):
    """Export the contracts of one tab to Excel"""
    tab = request.GET.get('tab', 'ongoing')
    if tab not in dict(CONTRACT_TABS):
        tab = 'ongoing'

    contracts = filter_contracts_by_tab(contract_queryset(), tab).order_by('-created_at')
    attach_display_status(contracts)

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = f'{dict(CONTRACT_TABS)[tab]} Contracts'

    header_fill = PatternFill(start_color='2563EB', end_color='2563EB', fill_type='solid')
    header_font = Font(bold=True, color='FFFFFF', size=12)
    border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    headers = ['Contract Number', 'Title', 'Version', 'Division', 'Category', 'PT',
               'Status', 'Current Step', 'Appointed Vendor', 'Effective Date',
               'Expiry Date', 'Days Left', 'Contract Amount', 'Cost Saving']
    ws.append(headers)

    for col_num, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col_num)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal='center', vertical='center')
        cell.border = border

    category_labels = dict(Contract.CATEGORY_CHOICES)
    for contract in contracts:
        ws.append([
            contract.contract_number or '',
            contract.title,
            contract.version,
            contract.division,
            category_labels.get(contract.category, contract.category),
            contract.pt.name if contract.pt else '',
            str(contract.display_status),
            contract.current_step,
            contract.appointed_vendor,
            contract.effective_date.strftime('%Y-%m-%d') if contract.effective_date else '',
            contract.expiry_date.strftime('%Y-%m-%d') if contract.expiry_date else '',
            contract.days_left if contract.days_left is not None else '',
            float(contract.final_contract_amount) if contract.final_contract_amount is not None else '',
            float(contract.cost_saving) if contract.cost_saving is not None else '',
        ])

    for col in ws.columns:
        max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in col)
        ws.column_dimensions[col[0].column_letter].width = min(max_length + 2, 50)

    response = HttpResponse(
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
    filename = f"contracts_{tab}_{timezone.localdate():%Y%m%d}.xlsx"
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    wb.save(response)
    return response


@login_required
def contract_timeline_pdf(request, pk):
    """Bid timeline of one contract as a PDF table"""
    contract = get_object_or_404(Contract, pk=pk)
    progress = services.get_contract_progress(contract)
    first_day, last_day, total_days = timeline_bounds(progress['timeline'])

    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=landscape(A4), title=f'Bid Timeline - {contract.title}')
    styles = getSampleStyleSheet()

    elements = [
        Paragraph(f'Bid Timeline: {escape(contract)}', styles['Title']),
        Paragraph(
            f'Status: {progress["display_status"]} &nbsp;&nbsp; Current step: {escape(progress["current_step"])}',
            styles['Normal']
        ),
    ]
    if first_day:
        elements.append(Paragraph(
            f'{first_day:%d %b %Y} to {last_day:%d %b %Y} ({total_days} days)', styles['Normal']
        ))
    elements.append(Spacer(1, 12))

    data = [['Step', 'Start', 'End', 'Days']]
    for row in progress['timeline']:
        data.append([
            Paragraph(escape(row.label), styles['Normal']),
            row.start.strftime('%d %b %Y'),
            row.end.strftime('%d %b %Y'),
            str((row.end - row.start).days + 1),
        ])
    if len(data) == 1:
        data.append(['No dated steps yet', '', '', ''])

    table = Table(data, colWidths=[330, 110, 110, 60], repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#2563EB')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#F1F5F9')]),
    ]))
    elements.append(table)

    doc.build(elements)

    response = HttpResponse(buffer.getvalue(), content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="timeline_{contract.pk}.pdf"'
    return response
