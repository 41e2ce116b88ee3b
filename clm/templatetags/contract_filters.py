from decimal import Decimal, InvalidOperation

from django import template

from clm.progress import parse_amount, to_date

register = template.Library()

STATUS_BADGE_CLASSES = {
    'active': 'bg-success',
    'expired': 'bg-danger',
    'completed': 'bg-dark',
    'finished': 'bg-dark',
    'on progress': 'bg-primary',
    'draft': 'bg-primary',
    'ready to finalize': 'bg-info text-dark',
}

DIVISION_COLORS = {
    'TECH': '#3b82f6',
    'HRGA': '#ec4899',
    'FIN': '#10b981',
    'LGL': '#a855f7',
    'PROC': '#f97316',
    'OPS': '#06b6d4',
    'EXT': '#84cc16',
    'PLNT': '#f59e0b',
    'MGMT': '#6366f1',
}

EXPIRY_BADGE_CLASSES = {
    'destructive': 'bg-danger',
    'default': 'bg-warning text-dark',
    'secondary': 'bg-secondary',
}


@register.filter
def get_item(dictionary, key):
    if dictionary:
        return dictionary.get(key, '')
    return ''


@register.filter
def status_badge(status):
    """Bootstrap badge class for a contract status"""
    return STATUS_BADGE_CLASSES.get(str(status or '').lower(), 'bg-secondary')


@register.filter
def division_color(division):
    return DIVISION_COLORS.get(division, '#6b7280')


@register.filter
def expiry_badge_class(badge):
    return EXPIRY_BADGE_CLASSES.get(badge, 'bg-secondary')


@register.filter
def number_format(value):
    """
    Thousands separated with dots, decimals only when present
    Usage: {{ 1500000|number_format }} -> 1.500.000
    """
    if value is None or value == '':
        return '0'
    try:
        amount = Decimal(value) if not isinstance(value, str) else parse_amount(value)
    except (TypeError, InvalidOperation):
        return value

    sign = '-' if amount < 0 else ''
    amount = abs(amount)
    whole = int(amount)
    fraction = amount - whole
    formatted = f'{whole:,}'.replace(',', '.')
    if fraction:
        formatted += ',' + f'{fraction:.2f}'[2:]
    return sign + formatted


@register.filter
def rupiah(value):
    return f'IDR {number_format(value)}'


@register.filter
def display_date(value):
    """Date as 05 Jan 2025, a dash when missing"""
    parsed = to_date(value)
    if parsed is None:
        return '-'
    return parsed.strftime('%d %b %Y')


@register.filter
def dict_label(value, choices):
    """Human label of a choices key: {{ contract.category|dict_label:category_choices }}"""
    try:
        return dict(choices).get(value, value)
    except (TypeError, ValueError):
        return value
