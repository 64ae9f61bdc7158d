"""Typed custom field values and their create/update processing."""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Tuple, Union

from dealquote.exceptions import ValidationError
from dealquote.models.custom_field_definition import CustomFieldEntityType, CustomFieldType
from dealquote.utils.number_format import parse_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextValue:
    field_name: str
    value: str
    kind: ClassVar[str] = 'text'

    def to_storage(self):
        return self.value


@dataclass(frozen=True)
class NumberValue:
    field_name: str
    value: Decimal
    kind: ClassVar[str] = 'number'

    def to_storage(self):
        # Whole numbers stay ints; fractions keep full Decimal precision as text
        if self.value == self.value.to_integral_value():
            return int(self.value)
        return str(self.value)


@dataclass(frozen=True)
class BooleanValue:
    field_name: str
    value: bool
    kind: ClassVar[str] = 'boolean'

    def to_storage(self):
        return self.value


@dataclass(frozen=True)
class DateValue:
    field_name: str
    value: date
    kind: ClassVar[str] = 'date'

    def to_storage(self):
        return self.value.isoformat()


@dataclass(frozen=True)
class MultiSelectValue:
    field_name: str
    value: Tuple[str, ...]
    kind: ClassVar[str] = 'multi_select'

    def to_storage(self):
        return list(self.value)


CustomFieldValue = Union[TextValue, NumberValue, BooleanValue, DateValue, MultiSelectValue]


def _text(definition, raw) -> TextValue:
    if not isinstance(raw, (str, int, Decimal)) or isinstance(raw, bool):
        raise ValidationError(definition.field_name, 'must be text')
    return TextValue(definition.field_name, str(raw))


def _dropdown(definition, raw) -> TextValue:
    value = _text(definition, raw)
    if value.value not in definition.option_values:
        raise ValidationError(definition.field_name, f"'{value.value}' is not a defined option")
    return value


def _number(definition, raw) -> NumberValue:
    return NumberValue(definition.field_name, parse_decimal(raw, definition.field_name))


def _boolean(definition, raw) -> BooleanValue:
    if isinstance(raw, bool):
        return BooleanValue(definition.field_name, raw)
    if isinstance(raw, str) and raw.strip().lower() in ('true', 'false'):
        return BooleanValue(definition.field_name, raw.strip().lower() == 'true')
    raise ValidationError(definition.field_name, 'must be true or false')


def _date(definition, raw) -> DateValue:
    if isinstance(raw, datetime):
        return DateValue(definition.field_name, raw.date())
    if isinstance(raw, date):
        return DateValue(definition.field_name, raw)
    if isinstance(raw, str):
        try:
            return DateValue(definition.field_name, date.fromisoformat(raw.strip()[:10]))
        except ValueError:
            pass
    raise ValidationError(definition.field_name, 'must be an ISO date (YYYY-MM-DD)')


def _multi_select(definition, raw) -> MultiSelectValue:
    if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
        raise ValidationError(definition.field_name, 'must be a list of options')
    selected = tuple(str(item) for item in raw)
    unknown = [item for item in selected if item not in definition.option_values]
    if unknown:
        raise ValidationError(definition.field_name, f"'{unknown[0]}' is not a defined option")
    return MultiSelectValue(definition.field_name, selected)


# Field type -> variant constructor
VALUE_BUILDERS = {
    CustomFieldType.TEXT: _text,
    CustomFieldType.TEXT_AREA: _text,
    CustomFieldType.NUMBER: _number,
    CustomFieldType.BOOLEAN: _boolean,
    CustomFieldType.DATE: _date,
    CustomFieldType.DROPDOWN: _dropdown,
    CustomFieldType.MULTI_SELECT: _multi_select,
}


def _is_empty(raw) -> bool:
    # False is a value; empty text and empty selections are not
    if raw is None:
        return True
    if isinstance(raw, str):
        return raw == ''
    if isinstance(raw, (list, tuple)):
        return len(raw) == 0
    return False


def build_value(definition, raw) -> Optional[CustomFieldValue]:
    """
    Convert raw input into the variant for the definition's field type.

    Returns None for empty input. Invalid input raises ``ValidationError``
    naming the field.
    """
    if _is_empty(raw):
        return None
    field_type = CustomFieldType.parse(definition.field_type, definition.field_name)
    return VALUE_BUILDERS[field_type](definition, raw)


def _usable_definitions(inputs: Iterable[Dict[str, Any]], definitions, entity_type, caller: str):
    """Yield (definition, input) pairs for active definitions of the entity."""
    entity = CustomFieldEntityType.parse(entity_type).value
    by_id = {definition.id: definition for definition in definitions}

    for item in inputs:
        definition_id = item.get('definition_id')
        definition = by_id.get(definition_id)
        if definition is None:
            logger.warning(f"[CUSTOM_FIELDS] {caller}: definition {definition_id} not found. Skipping.")
            continue
        if definition.entity_type != entity or not definition.is_active:
            logger.warning(
                f"[CUSTOM_FIELDS] {caller}: definition {definition_id} ({definition.field_name}) "
                f"is not for {entity} or not active. Skipping."
            )
            continue
        yield definition, item


def process_custom_fields_for_create(inputs: Optional[List[Dict[str, Any]]], definitions,
                                     entity_type) -> Optional[Dict[str, Any]]:
    """
    Build the stored custom field values of a new entity.

    Each input is ``{'definition_id': ..., 'value': ...}``. Empty values are
    skipped. Returns None when nothing is stored.
    """
    if not inputs:
        return None

    stored: Dict[str, Any] = {}
    for definition, item in _usable_definitions(inputs, definitions, entity_type, 'create'):
        value = build_value(definition, item.get('value'))
        if value is None:
            logger.debug(f"[CUSTOM_FIELDS] No value for {definition.field_name}, skipping.")
            continue
        stored[definition.field_name] = value.to_storage()

    return stored or None


def process_custom_fields_for_update(current: Optional[Dict[str, Any]], inputs: Optional[List[Dict[str, Any]]],
                                     definitions, entity_type) -> Dict[str, Any]:
    """
    Merge input values over the entity's current values.

    An empty or missing value clears the field (stored as None).
    """
    final = dict(current or {})
    if not inputs:
        return final

    for definition, item in _usable_definitions(inputs, definitions, entity_type, 'update'):
        value = build_value(definition, item.get('value'))
        final[definition.field_name] = value.to_storage() if value is not None else None

    return final
