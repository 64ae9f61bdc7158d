"""Combined price quote calculation: pricing plus invoice schedule."""
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Mapping

from dealquote.services.invoice_schedule_service import (
    InvoiceScheduleEntryData,
    InvoiceScheduleGenerator,
    ScheduleParams,
)
from dealquote.services.pricing_calculator import PricingCalculator, PricingResult
from dealquote.services.quote_input import PriceQuoteInput

logger = logging.getLogger(__name__)


class PricingSettings:
    """Business policy inputs of the calculation, read from app config."""

    def __init__(self, warning_band_percentage, remainder_policy):
        self.calculator = PricingCalculator(warning_band_percentage)
        self.schedule_generator = InvoiceScheduleGenerator(remainder_policy)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'PricingSettings':
        return cls(
            config.get('ESCALATION_WARNING_BAND_PERCENTAGE'),
            config.get('INSTALLMENT_REMAINDER_POLICY'),
        )


class PriceQuoteCalculationResult:
    """Pricing fields of a quote together with its generated invoice schedule."""

    def __init__(self, pricing: PricingResult, invoice_schedule: List[InvoiceScheduleEntryData]):
        self.pricing = pricing
        self.invoice_schedule = invoice_schedule

    def __getattr__(self, name):
        # Expose pricing fields directly (result.discounted_offer_price, ...)
        if name in PricingResult.__slots__:
            return getattr(self.pricing, name)
        raise AttributeError(name)

    @property
    def schedule_total(self):
        return sum((entry.amount_due for entry in self.invoice_schedule), Decimal('0'))

    def to_dict(self) -> Dict[str, Any]:
        data = self.pricing.to_dict()
        data['invoice_schedule'] = [entry.to_dict() for entry in self.invoice_schedule]
        return data

    def __eq__(self, other):
        if not isinstance(other, PriceQuoteCalculationResult):
            return NotImplemented
        return self.pricing == other.pricing and self.invoice_schedule == other.invoice_schedule


def calculate_price_quote(quote_input: PriceQuoteInput, agreement_date: date,
                          settings: PricingSettings) -> PriceQuoteCalculationResult:
    """
    Calculate every derived field of a quote.

    The invoice schedule is generated on the discounted offer price. Invalid
    input raises before anything is computed.
    """
    params = ScheduleParams.from_input(quote_input)
    pricing = settings.calculator.calculate(quote_input)
    schedule = settings.schedule_generator.generate(pricing.discounted_offer_price, params, agreement_date)
    logger.debug(
        f"[PRICING] offer={pricing.discounted_offer_price} status={pricing.escalation_status.value} "
        f"entries={len(schedule)}"
    )
    return PriceQuoteCalculationResult(pricing, schedule)
