from django import template

from ..store_utils import format_money

register = template.Library()


@register.filter
def money(value, currency=None):
    return format_money(value, currency)


@register.filter
def line_total(item):
    return format_money(item.subtotal)
