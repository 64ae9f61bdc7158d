"""Invoice schedule generation for price quotes."""
import enum
import logging
from datetime import date, timedelta
from decimal import Decimal, ROUND_DOWN
from typing import Any, Dict, List, Optional

from dealquote.exceptions import ConfigurationError, ValidationError
from dealquote.utils.number_format import (
    CENT,
    HUNDRED,
    MAX_MONEY,
    parse_non_negative_decimal,
    parse_non_negative_int,
    parse_percentage,
    quantize_money,
)

logger = logging.getLogger(__name__)

# Longest day offset any date can be moved by and still be a valid date
MAX_DAY_OFFSET = (date.max - date.min).days
MAX_INSTALLMENTS = 1200


class EntryType(enum.Enum):
    """Invoice schedule entry type."""
    UPFRONT = "upfront"
    INSTALLMENT = "installment"


class RemainderPolicy(enum.Enum):
    """What to do with an unpaid remainder when no installments are configured."""
    LUMP_SUM = "lump_sum"
    REJECT = "reject"

    @classmethod
    def parse(cls, value) -> 'RemainderPolicy':
        if isinstance(value, cls):
            return value
        if value is None or not str(value).strip():
            raise ConfigurationError('INSTALLMENT_REMAINDER_POLICY', 'is not configured')
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ', '.join(p.value for p in cls)
            raise ConfigurationError('INSTALLMENT_REMAINDER_POLICY', f"'{value}' is not one of: {allowed}")


class ScheduleParams:
    """Timing parameters of a quote's payment plan."""

    __slots__ = (
        'upfront_payment_percentage', 'upfront_payment_due_days',
        'subsequent_installments_count', 'subsequent_installments_interval_days',
    )

    def __init__(self, upfront_payment_percentage=0, upfront_payment_due_days=0,
                 subsequent_installments_count=0, subsequent_installments_interval_days=0):
        self.upfront_payment_percentage = parse_percentage(upfront_payment_percentage, 'upfront_payment_percentage')
        self.upfront_payment_due_days = parse_non_negative_int(
            upfront_payment_due_days, 'upfront_payment_due_days', MAX_DAY_OFFSET)
        self.subsequent_installments_count = parse_non_negative_int(
            subsequent_installments_count, 'subsequent_installments_count', MAX_INSTALLMENTS)
        self.subsequent_installments_interval_days = parse_non_negative_int(
            subsequent_installments_interval_days, 'subsequent_installments_interval_days', MAX_DAY_OFFSET)

    @classmethod
    def from_input(cls, quote_input) -> 'ScheduleParams':
        return cls(
            quote_input.upfront_payment_percentage,
            quote_input.upfront_payment_due_days,
            quote_input.subsequent_installments_count,
            quote_input.subsequent_installments_interval_days,
        )


class InvoiceScheduleEntryData:
    """A generated, not yet persisted, payment obligation."""

    __slots__ = ('entry_type', 'due_date', 'amount_due', 'description')

    def __init__(self, entry_type: EntryType, due_date: date, amount_due: Decimal, description: Optional[str] = None):
        self.entry_type = entry_type
        self.due_date = due_date
        self.amount_due = amount_due
        self.description = description

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entry_type': self.entry_type.value,
            'due_date': self.due_date.isoformat(),
            'amount_due': self.amount_due,
            'description': self.description,
        }

    def __eq__(self, other):
        if not isinstance(other, InvoiceScheduleEntryData):
            return NotImplemented
        return (self.entry_type, self.due_date, self.amount_due, self.description) == \
            (other.entry_type, other.due_date, other.amount_due, other.description)

    def __repr__(self):
        return f"<InvoiceScheduleEntryData({self.entry_type.value}, due={self.due_date}, amount={self.amount_due})>"


def _check_within_calendar(start: date, days: int, field: str) -> None:
    if start.toordinal() + days > date.max.toordinal():
        raise ValidationError(field, f'moves a due date past {date.max.isoformat()}')


class InvoiceScheduleGenerator:
    """
    Builds the upfront payment and equal subsequent installments for an
    offer price.

    Installments are rounded down to the cent and the last one absorbs the
    remainder, so the entries always sum to the offer price exactly.
    """

    def __init__(self, remainder_policy=RemainderPolicy.LUMP_SUM):
        self.remainder_policy = RemainderPolicy.parse(remainder_policy)

    def generate(self, offer_price, params: ScheduleParams, agreement_date: date) -> List[InvoiceScheduleEntryData]:
        offer_price = parse_non_negative_decimal(offer_price, 'offer_price')
        if offer_price > MAX_MONEY:
            raise ValidationError('offer_price', f'must not exceed {MAX_MONEY}')
        offer_price = quantize_money(offer_price)
        if not isinstance(params, ScheduleParams):
            raise ValidationError('schedule', 'expected ScheduleParams')
        if not isinstance(agreement_date, date):
            raise ValidationError('agreement_date', 'must be a date')

        entries: List[InvoiceScheduleEntryData] = []
        if offer_price == 0:
            return entries

        _check_within_calendar(agreement_date, params.upfront_payment_due_days, 'upfront_payment_due_days')
        upfront_due = agreement_date + timedelta(days=params.upfront_payment_due_days)
        upfront_amount = quantize_money(offer_price * params.upfront_payment_percentage / HUNDRED)
        if params.upfront_payment_percentage > 0:
            entries.append(InvoiceScheduleEntryData(
                EntryType.UPFRONT, upfront_due, upfront_amount,
                f"Upfront payment ({params.upfront_payment_percentage.normalize():f}%)",
            ))

        remaining = offer_price - upfront_amount
        if remaining <= 0:
            return entries

        count = params.subsequent_installments_count
        if count == 0:
            if self.remainder_policy is RemainderPolicy.REJECT:
                raise ConfigurationError(
                    'INSTALLMENT_REMAINDER_POLICY',
                    f'{remaining} remains unscheduled and no subsequent installments are configured',
                )
            entries.append(InvoiceScheduleEntryData(
                EntryType.INSTALLMENT, upfront_due, remaining, "Final payment (remaining balance)",
            ))
            return entries

        _check_within_calendar(
            upfront_due, count * params.subsequent_installments_interval_days,
            'subsequent_installments_interval_days',
        )
        # Fewer cents than installments leaves leading 0.00 entries; the count is kept as configured
        base_amount = (remaining / count).quantize(CENT, rounding=ROUND_DOWN)
        due_date = upfront_due
        for number in range(1, count + 1):
            due_date = due_date + timedelta(days=params.subsequent_installments_interval_days)
            amount = base_amount if number < count else remaining - base_amount * (count - 1)
            entries.append(InvoiceScheduleEntryData(
                EntryType.INSTALLMENT, due_date, amount, f"Installment {number} of {count}",
            ))

        logger.debug(f"[SCHEDULE] {len(entries)} entries for offer price {offer_price}")
        return entries
