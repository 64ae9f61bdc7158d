"""Editable price quote draft and its validation."""
from dataclasses import dataclass, field, fields, replace
from decimal import Decimal
from typing import Any, Dict, Optional

from dealquote.exceptions import ValidationError
from dealquote.models.price_quote import QuoteStatus
from dealquote.services.cost_ledger import AdditionalCostLedger
from dealquote.services.invoice_schedule_service import MAX_DAY_OFFSET, MAX_INSTALLMENTS
from dealquote.utils.number_format import (
    parse_money,
    parse_non_negative_int,
    parse_percentage,
)

# Editable fields copied between a persisted quote and a draft
EDITABLE_FIELDS = (
    'name',
    'status',
    'base_minimum_price_mp',
    'target_markup_percentage',
    'final_offer_price_fop',
    'overall_discount_percentage',
    'upfront_payment_percentage',
    'upfront_payment_due_days',
    'subsequent_installments_count',
    'subsequent_installments_interval_days',
    'additional_costs',
)


def _parse_name(value) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError('name', 'must be a string')
    return value.strip() or None


def _parse_status(value) -> Optional[str]:
    if value is None or value == '':
        return None
    if isinstance(value, QuoteStatus):
        return value.value
    normalized = str(value).strip().lower()
    if normalized not in QuoteStatus.values():
        raise ValidationError('status', f"unknown status '{value}'")
    return normalized


_PARSERS = {
    'name': _parse_name,
    'status': _parse_status,
    'base_minimum_price_mp': lambda v: parse_money(v, 'base_minimum_price_mp'),
    'target_markup_percentage': lambda v: parse_percentage(v, 'target_markup_percentage', bounded=False),
    'final_offer_price_fop': lambda v: parse_money(v, 'final_offer_price_fop'),
    'overall_discount_percentage': lambda v: parse_percentage(v, 'overall_discount_percentage'),
    'upfront_payment_percentage': lambda v: parse_percentage(v, 'upfront_payment_percentage'),
    'upfront_payment_due_days': lambda v: parse_non_negative_int(v, 'upfront_payment_due_days', MAX_DAY_OFFSET),
    'subsequent_installments_count': lambda v: parse_non_negative_int(v, 'subsequent_installments_count', MAX_INSTALLMENTS),
    'subsequent_installments_interval_days': lambda v: parse_non_negative_int(
        v, 'subsequent_installments_interval_days', MAX_DAY_OFFSET),
    'additional_costs': AdditionalCostLedger.from_items,
}


@dataclass
class PriceQuoteInput:
    """
    The mutable draft of a quote.

    Values are validated on construction: negative prices, percentages
    outside their bounds, fractional day counts and values with more decimals
    than their column stores (two for money, four for percentages) raise
    ``ValidationError`` naming the field. Nothing is rounded, so a draft
    rebuilt from a saved quote calculates to the same result. Missing numbers
    default to zero.
    """
    name: Optional[str] = None
    status: Optional[str] = None
    base_minimum_price_mp: Decimal = Decimal('0')
    target_markup_percentage: Decimal = Decimal('0')
    final_offer_price_fop: Decimal = Decimal('0')
    overall_discount_percentage: Decimal = Decimal('0')
    upfront_payment_percentage: Decimal = Decimal('0')
    upfront_payment_due_days: int = 0
    subsequent_installments_count: int = 0
    subsequent_installments_interval_days: int = 0
    additional_costs: AdditionalCostLedger = field(default_factory=AdditionalCostLedger)

    def __post_init__(self):
        for f in fields(self):
            setattr(self, f.name, _PARSERS[f.name](getattr(self, f.name)))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'PriceQuoteInput':
        """Build a draft from a JSON payload, ignoring unknown keys."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValidationError('input', 'must be an object')
        return cls(**{name: data[name] for name in EDITABLE_FIELDS if name in data})

    @classmethod
    def from_quote(cls, quote) -> 'PriceQuoteInput':
        """Copy only the editable fields of a persisted quote."""
        values = {name: getattr(quote, name, None) for name in EDITABLE_FIELDS}
        values['additional_costs'] = list(getattr(quote, 'additional_costs', None) or [])
        return cls(**values)

    def merged_with(self, changes: Dict[str, Any]) -> 'PriceQuoteInput':
        """Return a new draft with ``changes`` applied on top of this one."""
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(sorted(unknown)[0], 'is not an editable field')
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = {name: getattr(self, name) for name in EDITABLE_FIELDS}
        data['additional_costs'] = self.additional_costs.to_list()
        return data
