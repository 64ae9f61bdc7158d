"""
Pricing calculator for deal price quotes.

Derives the reference prices of a quote draft and its escalation status:

  total direct cost   = MP + sum(additional costs)
  target price (TP)   = MP * (1 + markup / 100)
  full target (FTP)   = TP + sum(additional costs)
  discounted offer    = FOP * (1 - discount / 100)
  effective markup    = (FOP - MP) / MP * 100, None when MP is zero

All arithmetic is Decimal; results are rounded to cents.
"""
import enum
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from dealquote.exceptions import ConfigurationError, ValidationError
from dealquote.services.quote_input import PriceQuoteInput
from dealquote.utils.number_format import HUNDRED, quantize_money

logger = logging.getLogger(__name__)


class EscalationStatus(enum.Enum):
    """Escalation outcome of a quote's final offer price."""
    OK = "ok"
    WARNING = "warning"
    BLOCKED = "blocked"


class PricingResult:
    """Computed monetary fields of a quote draft."""

    __slots__ = (
        'total_direct_cost', 'target_price', 'full_target_price',
        'discounted_offer_price', 'effective_markup_percent',
        'escalation_status', 'escalation_details',
    )

    def __init__(self, total_direct_cost, target_price, full_target_price,
                 discounted_offer_price, effective_markup_percent,
                 escalation_status, escalation_details):
        self.total_direct_cost = total_direct_cost
        self.target_price = target_price
        self.full_target_price = full_target_price
        self.discounted_offer_price = discounted_offer_price
        self.effective_markup_percent = effective_markup_percent
        self.escalation_status = escalation_status
        self.escalation_details = escalation_details

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_direct_cost': self.total_direct_cost,
            'target_price': self.target_price,
            'full_target_price': self.full_target_price,
            'discounted_offer_price': self.discounted_offer_price,
            'effective_markup_percent': self.effective_markup_percent,
            'escalation_status': self.escalation_status.value,
            'escalation_details': self.escalation_details,
        }

    def __eq__(self, other):
        if not isinstance(other, PricingResult):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"<PricingResult(discounted_offer_price={self.discounted_offer_price}, "
                f"escalation_status='{self.escalation_status.value}')>")


def parse_warning_band(value) -> Decimal:
    """
    Validate the escalation warning band (percent of MP below the floor that
    still counts as a warning rather than a block).
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ConfigurationError('ESCALATION_WARNING_BAND_PERCENTAGE', 'is not configured')
    try:
        band = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ConfigurationError('ESCALATION_WARNING_BAND_PERCENTAGE', f"'{value}' is not a number")
    if not band.is_finite() or band < 0 or band > HUNDRED:
        raise ConfigurationError('ESCALATION_WARNING_BAND_PERCENTAGE', 'must be between 0 and 100')
    return band


class PricingCalculator:
    """
    Stateless calculator; one instance can serve concurrent callers.

    Args:
        warning_band_percentage: how far below MP (as a percent of MP) a final
            offer price may fall and still be a ``warning``. Offers below that
            floor are ``blocked``.
    """

    def __init__(self, warning_band_percentage):
        self.warning_band_percentage = parse_warning_band(warning_band_percentage)

    def calculate(self, quote_input: PriceQuoteInput) -> PricingResult:
        if not isinstance(quote_input, PriceQuoteInput):
            raise ValidationError('input', 'expected a PriceQuoteInput')

        mp = quote_input.base_minimum_price_mp
        fop = quote_input.final_offer_price_fop
        costs_total = quote_input.additional_costs.total()

        total_direct_cost = mp + costs_total
        target_price = mp * (1 + quote_input.target_markup_percentage / HUNDRED)
        full_target_price = target_price + costs_total
        discounted_offer_price = fop * (1 - quote_input.overall_discount_percentage / HUNDRED)

        effective_markup = None
        if mp > 0:
            effective_markup = quantize_money((fop - mp) / mp * HUNDRED)

        status, details = self.determine_escalation(fop, mp, total_direct_cost)

        return PricingResult(
            total_direct_cost=quantize_money(total_direct_cost),
            target_price=quantize_money(target_price),
            full_target_price=quantize_money(full_target_price),
            discounted_offer_price=quantize_money(discounted_offer_price),
            effective_markup_percent=effective_markup,
            escalation_status=status,
            escalation_details=details,
        )

    def determine_escalation(self, fop: Decimal, mp: Decimal, total_direct_cost: Decimal):
        """
        Classify the final offer price against the MP floor.

        Returns:
            Tuple of (EscalationStatus, details dict).
        """
        warning_floor = quantize_money(mp * (1 - self.warning_band_percentage / HUNDRED))
        details: Dict[str, Any] = {
            'base_minimum_price_mp': quantize_money(mp),
            'final_offer_price_fop': quantize_money(fop),
            'warning_floor': warning_floor,
            'warning_band_percentage': self.warning_band_percentage,
            'fop_below_mp': fop < mp,
            'fop_below_total_direct_cost': fop < total_direct_cost,
            'shortfall': quantize_money(max(mp - fop, Decimal('0'))),
            'reason': None,
        }

        if fop >= mp:
            status = EscalationStatus.OK
        elif fop >= warning_floor:
            status = EscalationStatus.WARNING
            details['reason'] = 'Final offer price is below the base minimum price.'
        else:
            status = EscalationStatus.BLOCKED
            details['reason'] = 'Final offer price is below the escalation floor and needs managerial approval.'

        if status is not EscalationStatus.OK:
            logger.info(f"[PRICING] Escalation {status.value}: FOP={fop} MP={mp} floor={warning_floor}")
        return status, details
