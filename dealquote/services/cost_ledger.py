"""Additional cost line items attached to a price quote."""
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from dealquote.exceptions import ValidationError
from dealquote.utils.number_format import MAX_MONEY, parse_money

FIELD = 'additional_costs'


class AdditionalCost:
    """A named cost with a non-negative amount. Identity is positional only."""

    __slots__ = ('description', 'amount')

    def __init__(self, description: str, amount):
        if description is None or not str(description).strip():
            raise ValidationError(f'{FIELD}.description', 'is required')
        self.description = str(description).strip()
        self.amount = parse_money(amount, f'{FIELD}.amount')

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AdditionalCost':
        if not isinstance(data, dict):
            raise ValidationError(FIELD, 'each cost must be an object with description and amount')
        return cls(data.get('description'), data.get('amount'))

    def to_dict(self) -> Dict[str, Any]:
        return {'description': self.description, 'amount': self.amount}

    def __eq__(self, other):
        if not isinstance(other, AdditionalCost):
            return NotImplemented
        return self.description == other.description and self.amount == other.amount

    def __hash__(self):
        return hash((self.description, self.amount))

    def __repr__(self):
        return f"<AdditionalCost(description='{self.description}', amount={self.amount})>"


def _check_total(costs) -> None:
    if sum((cost.amount for cost in costs), Decimal('0')) > MAX_MONEY:
        raise ValidationError(FIELD, f'total must not exceed {MAX_MONEY}')


class AdditionalCostLedger:
    """
    Ordered, in-memory list of additional costs for a quote draft.

    ``add`` follows the quote form's guard: a description is required and the
    amount must be positive. ``remove`` with an index outside the ledger
    raises ``ValidationError``. The total is capped at ``MAX_MONEY``.
    """

    def __init__(self, costs: Iterable[AdditionalCost] = ()):
        self._costs: List[AdditionalCost] = list(costs)
        _check_total(self._costs)

    @classmethod
    def from_items(cls, items) -> 'AdditionalCostLedger':
        """Build a ledger from persisted or submitted cost dicts/objects."""
        if items is None:
            return cls()
        if isinstance(items, AdditionalCostLedger):
            return items.copy()
        if not isinstance(items, (list, tuple)):
            raise ValidationError(FIELD, 'must be a list')
        costs = []
        for item in items:
            if isinstance(item, AdditionalCost):
                costs.append(item)
            elif isinstance(item, dict):
                costs.append(AdditionalCost.from_dict(item))
            else:
                costs.append(AdditionalCost(getattr(item, 'description', None), getattr(item, 'amount', None)))
        return cls(costs)

    def add(self, cost: AdditionalCost) -> int:
        """Append a cost and return its index."""
        if not isinstance(cost, AdditionalCost):
            raise ValidationError(FIELD, 'expected an AdditionalCost')
        if cost.amount <= 0:
            raise ValidationError(f'{FIELD}.amount', 'must be greater than zero')
        _check_total(self._costs + [cost])
        self._costs.append(cost)
        return len(self._costs) - 1

    def remove(self, index: int) -> AdditionalCost:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._costs):
            raise ValidationError(FIELD, f'no cost at index {index}')
        return self._costs.pop(index)

    def list(self) -> Tuple[AdditionalCost, ...]:
        return tuple(self._costs)

    def total(self) -> Decimal:
        return sum((cost.amount for cost in self._costs), Decimal('0'))

    def copy(self) -> 'AdditionalCostLedger':
        return AdditionalCostLedger(self._costs)

    def to_list(self) -> List[Dict[str, Any]]:
        return [cost.to_dict() for cost in self._costs]

    def __len__(self):
        return len(self._costs)

    def __iter__(self) -> Iterator[AdditionalCost]:
        return iter(tuple(self._costs))

    def __eq__(self, other):
        if not isinstance(other, AdditionalCostLedger):
            return NotImplemented
        return self._costs == other._costs

    def __repr__(self):
        return f"<AdditionalCostLedger(items={len(self._costs)}, total={self.total()})>"
