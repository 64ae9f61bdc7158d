"""Draft selection and submission of price quotes for one editing session."""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional, Union

from dealquote.exceptions import ValidationError
from dealquote.services.cost_ledger import AdditionalCost
from dealquote.services.price_quote_calculation import (
    PriceQuoteCalculationResult, PricingSettings, calculate_price_quote
)
from dealquote.services.quote_input import PriceQuoteInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoSelection:
    """The draft is a new quote; submitting creates a version."""


@dataclass(frozen=True)
class Editing:
    """The draft was loaded from ``quote_id``; submitting updates it in place."""
    quote_id: str


EditorState = Union[NoSelection, Editing]


class QuoteEditor:
    """
    Owns the draft of one quote form.

    The repository is any object with ``create_quote``, ``update_quote``,
    ``delete_quote`` and ``get_quote_by_id``. Repository errors propagate
    and leave the draft and selection as they were.
    """

    def __init__(self, repository, settings: PricingSettings, today: Callable[[], date] = date.today):
        self.repository = repository
        self.settings = settings
        self._today = today
        self.state: EditorState = NoSelection()
        self.draft = PriceQuoteInput()
        self._preview: Optional[PriceQuoteCalculationResult] = None

    @property
    def selected_quote_id(self) -> Optional[str]:
        return self.state.quote_id if isinstance(self.state, Editing) else None

    @property
    def last_preview(self) -> Optional[PriceQuoteCalculationResult]:
        """Preview of the current draft, or None once the draft changed."""
        return self._preview

    def select_quote_to_edit(self, quote_id: str) -> PriceQuoteInput:
        """Load a persisted quote into the draft, discarding unsaved changes."""
        quote = self.repository.get_quote_by_id(quote_id)
        draft = PriceQuoteInput.from_quote(quote)
        self.draft = draft
        self.state = Editing(quote.id)
        self._preview = None
        logger.debug(f"[EDITOR] Editing quote {quote.id}")
        return draft

    def reset_form(self) -> None:
        self.state = NoSelection()
        self.draft = PriceQuoteInput()
        self._preview = None

    def update_draft_value(self, field: str, value: Any) -> PriceQuoteInput:
        """Set one editable field. Invalid values raise and leave the draft unchanged."""
        self.draft = self.draft.merged_with({field: value})
        self._preview = None
        return self.draft

    def add_additional_cost(self, description: str, amount) -> int:
        ledger = self.draft.additional_costs.copy()
        index = ledger.add(AdditionalCost(description, amount))
        self.update_draft_value('additional_costs', ledger)
        return index

    def remove_additional_cost(self, index: int) -> AdditionalCost:
        ledger = self.draft.additional_costs.copy()
        removed = ledger.remove(index)
        self.update_draft_value('additional_costs', ledger)
        return removed

    def preview(self, agreement_date: Optional[date] = None) -> PriceQuoteCalculationResult:
        self._preview = calculate_price_quote(self.draft, agreement_date or self._today(), self.settings)
        return self._preview

    def submit(self, deal_id: Optional[str] = None, agreement_date: Optional[date] = None):
        """
        Persist the draft and return to ``NoSelection``.

        Creates a new version when nothing is selected; otherwise updates the
        selected quote in place, keeping its id and version number.
        """
        if isinstance(self.state, Editing):
            quote = self.repository.update_quote(self.state.quote_id, self.draft, agreement_date)
        else:
            if not deal_id:
                raise ValidationError('deal_id', 'is required to create a quote')
            quote = self.repository.create_quote(deal_id, self.draft, agreement_date)
        self.reset_form()
        return quote

    def delete(self, quote_id: str) -> None:
        self.repository.delete_quote(quote_id)
        if self.selected_quote_id == quote_id:
            self.reset_form()
