"""Price quote service: versioned persistence of calculated deal quotes."""
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dealquote.exceptions import (
    BusinessLogicError, NotFoundError, PersistenceError, ValidationError
)
from dealquote.models import PriceQuote, QuoteAdditionalCost, QuoteInvoiceScheduleEntry, QuoteStatus
from dealquote.services.cache_service import CacheService
from dealquote.services.price_quote_calculation import (
    PriceQuoteCalculationResult, PricingSettings, calculate_price_quote
)
from dealquote.services.quote_input import PriceQuoteInput

logger = logging.getLogger(__name__)

CACHE_MODULE = 'price_quotes'

# Input fields mapped 1:1 onto PriceQuote columns
_NUMERIC_INPUT_FIELDS = (
    'base_minimum_price_mp',
    'target_markup_percentage',
    'final_offer_price_fop',
    'overall_discount_percentage',
    'upfront_payment_percentage',
    'upfront_payment_due_days',
    'subsequent_installments_count',
    'subsequent_installments_interval_days',
)


def _json_safe(value: Any) -> Any:
    """Convert Decimals inside escalation details for the JSON column."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def _require_id(value, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(field, 'is required')
    return str(value).strip()


def _deal_cache_key(deal_id: str) -> str:
    return f"deal:{deal_id}"


def _invalidate_deal(cache: Optional[CacheService], deal_id: str) -> None:
    if cache is not None:
        cache.delete(CACHE_MODULE, _deal_cache_key(deal_id))


def _apply_calculation(quote: PriceQuote, quote_input: PriceQuoteInput,
                       result: PriceQuoteCalculationResult) -> None:
    """Copy inputs, calculated snapshot, costs and schedule onto the model."""
    quote.name = quote_input.name
    if quote_input.status:
        quote.status = quote_input.status
    for name in _NUMERIC_INPUT_FIELDS:
        setattr(quote, name, getattr(quote_input, name))

    quote.calculated_total_direct_cost = result.total_direct_cost
    quote.calculated_target_price_tp = result.target_price
    quote.calculated_full_target_price_ftp = result.full_target_price
    quote.calculated_discounted_offer_price = result.discounted_offer_price
    quote.calculated_effective_markup_fop_over_mp = result.effective_markup_percent
    quote.escalation_status = result.escalation_status.value
    quote.escalation_details = _json_safe(result.escalation_details)

    # Children are replaced wholesale; delete-orphan removes the old rows
    quote.additional_costs = [
        QuoteAdditionalCost(position=position, description=cost.description, amount=cost.amount)
        for position, cost in enumerate(quote_input.additional_costs)
    ]
    quote.invoice_schedule_entries = [
        QuoteInvoiceScheduleEntry(
            position=position,
            entry_type=entry.entry_type.value,
            due_date=entry.due_date,
            amount_due=entry.amount_due,
            description=entry.description,
        )
        for position, entry in enumerate(result.invoice_schedule)
    ]


def _next_version_number(session: Session, deal_id: str) -> int:
    current = session.query(func.max(PriceQuote.version_number)).filter(
        PriceQuote.deal_id == deal_id
    ).scalar()
    return (current or 0) + 1


def preview_price_quote(quote_input: PriceQuoteInput, settings: PricingSettings,
                        agreement_date: Optional[date] = None) -> PriceQuoteCalculationResult:
    """Calculate a draft without persisting it."""
    return calculate_price_quote(quote_input, agreement_date or date.today(), settings)


def create_price_quote(session: Session, deal_id: str, user_id: str, quote_input: PriceQuoteInput,
                       settings: PricingSettings, agreement_date: Optional[date] = None,
                       cache: Optional[CacheService] = None) -> PriceQuote:
    """
    Calculate and persist a new quote version for a deal.

    The version number is one above the highest existing version of the
    deal. Status defaults to ``draft``.

    Raises:
        ValidationError: invalid ids or input
        ConfigurationError: pricing policy not configured
        PersistenceError: the database rejected the insert
    """
    deal_id = _require_id(deal_id, 'deal_id')
    user_id = _require_id(user_id, 'user_id')
    result = calculate_price_quote(quote_input, agreement_date or date.today(), settings)

    try:
        quote = PriceQuote(
            deal_id=deal_id,
            user_id=user_id,
            version_number=_next_version_number(session, deal_id),
            status=QuoteStatus.DRAFT.value,
        )
        _apply_calculation(quote, quote_input, result)
        session.add(quote)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"[PRICE_QUOTE] Create failed for deal {deal_id}: {e}")
        raise PersistenceError(f'Could not save price quote for deal {deal_id}.') from e

    _invalidate_deal(cache, deal_id)
    logger.info(
        f"[PRICE_QUOTE] Created {quote.id} v{quote.version_number} for deal {deal_id} "
        f"({quote.escalation_status})"
    )
    return quote


def get_price_quote(session: Session, quote_id: str) -> PriceQuote:
    """Fetch one quote. Raises NotFoundError for unknown ids."""
    quote_id = _require_id(quote_id, 'quote_id')
    try:
        quote = session.query(PriceQuote).filter(PriceQuote.id == quote_id).first()
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError('Could not load price quote.') from e
    if not quote:
        raise NotFoundError(f'Price quote {quote_id} not found.')
    return quote


def update_price_quote(session: Session, quote_id: str, quote_input: PriceQuoteInput,
                       settings: PricingSettings, agreement_date: Optional[date] = None,
                       cache: Optional[CacheService] = None) -> PriceQuote:
    """
    Recalculate an existing quote in place.

    Id and version number are kept; additional costs and the invoice
    schedule are replaced. Accepted and superseded quotes are read-only.
    """
    result = calculate_price_quote(quote_input, agreement_date or date.today(), settings)
    quote = get_price_quote(session, quote_id)
    if not quote.is_editable:
        raise BusinessLogicError(f'Price quote {quote.id} is {quote.status} and cannot be edited.')

    try:
        _apply_calculation(quote, quote_input, result)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"[PRICE_QUOTE] Update failed for {quote_id}: {e}")
        raise PersistenceError(f'Could not update price quote {quote_id}.') from e

    _invalidate_deal(cache, quote.deal_id)
    logger.info(f"[PRICE_QUOTE] Updated {quote.id} v{quote.version_number} ({quote.escalation_status})")
    return quote


def delete_price_quote(session: Session, quote_id: str, cache: Optional[CacheService] = None) -> str:
    """Delete a quote and its costs and schedule. Returns the deleted id."""
    quote = get_price_quote(session, quote_id)
    deal_id = quote.deal_id
    try:
        session.delete(quote)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"[PRICE_QUOTE] Delete failed for {quote_id}: {e}")
        raise PersistenceError(f'Could not delete price quote {quote_id}.') from e

    _invalidate_deal(cache, deal_id)
    logger.info(f"[PRICE_QUOTE] Deleted {quote_id} from deal {deal_id}")
    return quote_id


def list_price_quotes_for_deal(session: Session, deal_id: str) -> List[PriceQuote]:
    """All quote versions of a deal, newest first."""
    deal_id = _require_id(deal_id, 'deal_id')
    try:
        return session.query(PriceQuote).filter(
            PriceQuote.deal_id == deal_id
        ).order_by(PriceQuote.version_number.desc()).all()
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError(f'Could not list price quotes for deal {deal_id}.') from e


def list_price_quote_dicts_for_deal(session: Session, deal_id: str,
                                    cache: Optional[CacheService] = None) -> List[Dict[str, Any]]:
    """Serialized quote list for the API, cached per deal."""
    deal_id = _require_id(deal_id, 'deal_id')

    def loader():
        return [quote.to_dict() for quote in list_price_quotes_for_deal(session, deal_id)]

    if cache is None:
        return loader()
    return cache.memoize(CACHE_MODULE, _deal_cache_key(deal_id), loader)


class PriceQuoteRepository:
    """
    Persistence collaborator bound to a session and acting user.

    Exposes the operations the quote editor needs and nothing else.
    """

    def __init__(self, session: Session, user_id: str, settings: PricingSettings,
                 cache: Optional[CacheService] = None):
        self.session = session
        self.user_id = user_id
        self.settings = settings
        self.cache = cache

    def create_quote(self, deal_id: str, quote_input: PriceQuoteInput,
                     agreement_date: Optional[date] = None) -> PriceQuote:
        return create_price_quote(self.session, deal_id, self.user_id, quote_input,
                                  self.settings, agreement_date, self.cache)

    def update_quote(self, quote_id: str, quote_input: PriceQuoteInput,
                     agreement_date: Optional[date] = None) -> PriceQuote:
        return update_price_quote(self.session, quote_id, quote_input, self.settings, agreement_date, self.cache)

    def delete_quote(self, quote_id: str) -> str:
        return delete_price_quote(self.session, quote_id, self.cache)

    def get_quotes_for_deal(self, deal_id: str) -> List[PriceQuote]:
        return list_price_quotes_for_deal(self.session, deal_id)

    def get_quote_by_id(self, quote_id: str) -> PriceQuote:
        return get_price_quote(self.session, quote_id)
