"""Custom field definition service."""
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dealquote.exceptions import BusinessLogicError, NotFoundError, PersistenceError, ValidationError
from dealquote.models import CustomFieldDefinition, CustomFieldEntityType, CustomFieldType
from dealquote.services.definition_cache import DefinitionCache
from dealquote.utils.number_format import parse_non_negative_int

logger = logging.getLogger(__name__)

FIELD_NAME_PATTERN = re.compile(r'^[A-Za-z][A-Za-z0-9_]{0,99}$')


def _parse_label(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError('field_label', 'is required')
    return value.strip()[:255]


def _parse_bool(value, field: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(field, 'must be true or false')
    return value


def _parse_options(value) -> List[Dict[str, str]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError('dropdown_options', 'must be a list')
    options = []
    seen = set()
    for opt in value:
        if not isinstance(opt, dict):
            raise ValidationError('dropdown_options', 'each option needs a value and a label')
        opt_value = str(opt.get('value') or '').strip()
        opt_label = str(opt.get('label') or '').strip()
        if not opt_value or not opt_label:
            raise ValidationError('dropdown_options', 'each option needs a value and a label')
        if opt_value in seen:
            raise ValidationError('dropdown_options', f"duplicate option '{opt_value}'")
        seen.add(opt_value)
        options.append({'value': opt_value, 'label': opt_label})
    return options


def _invalidate(definition_cache: Optional[DefinitionCache], entity_type: str) -> None:
    if definition_cache is not None:
        definition_cache.invalidate(entity_type)


def _commit(session: Session, action: str) -> None:
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"[CUSTOM_FIELDS] {action} failed: {e}")
        raise PersistenceError(f'Could not {action} custom field definition.') from e


def get_definition(session: Session, definition_id: str) -> CustomFieldDefinition:
    definition = session.query(CustomFieldDefinition).filter(
        CustomFieldDefinition.id == definition_id
    ).first()
    if not definition:
        raise NotFoundError(f'Custom field definition {definition_id} not found.')
    return definition


def list_definitions(session: Session, entity_type, include_inactive: bool = False) -> List[CustomFieldDefinition]:
    """Definitions of one entity type ordered by display order."""
    entity = CustomFieldEntityType.parse(entity_type)
    query = session.query(CustomFieldDefinition).filter(CustomFieldDefinition.entity_type == entity.value)
    if not include_inactive:
        query = query.filter(CustomFieldDefinition.is_active.is_(True))
    return query.order_by(CustomFieldDefinition.display_order, CustomFieldDefinition.field_label).all()


def get_definitions_by_ids(session: Session, definition_ids: Iterable[str]) -> List[CustomFieldDefinition]:
    ids = [i for i in dict.fromkeys(definition_ids) if i]
    if not ids:
        return []
    return session.query(CustomFieldDefinition).filter(CustomFieldDefinition.id.in_(ids)).all()


def create_definition(session: Session, data: Dict[str, Any],
                      definition_cache: Optional[DefinitionCache] = None) -> CustomFieldDefinition:
    """
    Create a definition.

    Dropdown options are kept only for DROPDOWN and MULTI_SELECT fields.
    A field name already used by the entity type raises BusinessLogicError.
    """
    entity = CustomFieldEntityType.parse(data.get('entity_type'))
    field_type = CustomFieldType.parse(data.get('field_type'))
    field_name = str(data.get('field_name') or '').strip()
    if not FIELD_NAME_PATTERN.match(field_name):
        raise ValidationError('field_name', 'must start with a letter and contain only letters, digits and _')

    options = _parse_options(data.get('dropdown_options')) if field_type.has_options else None

    exists = session.query(CustomFieldDefinition.id).filter(
        CustomFieldDefinition.entity_type == entity.value,
        CustomFieldDefinition.field_name == field_name,
    ).first()
    if exists:
        raise BusinessLogicError(f"Field '{field_name}' already exists for {entity.value}.", status_code=409)

    definition = CustomFieldDefinition(
        entity_type=entity.value,
        field_name=field_name,
        field_label=_parse_label(data.get('field_label')),
        field_type=field_type.value,
        is_required=_parse_bool(data.get('is_required', False), 'is_required'),
        is_active=True,
        display_order=parse_non_negative_int(data.get('display_order'), 'display_order'),
        dropdown_options=options,
    )
    session.add(definition)
    _commit(session, 'create')

    _invalidate(definition_cache, entity.value)
    logger.info(f"[CUSTOM_FIELDS] Created {entity.value}.{field_name} ({field_type.value})")
    return definition


def update_definition(session: Session, definition_id: str, data: Dict[str, Any],
                      definition_cache: Optional[DefinitionCache] = None) -> CustomFieldDefinition:
    """Update label, required flag, display order and options. Name and type are fixed."""
    definition = get_definition(session, definition_id)

    if 'field_name' in data and data['field_name'] != definition.field_name:
        raise ValidationError('field_name', 'cannot be changed')
    if 'field_type' in data and CustomFieldType.parse(data['field_type']).value != definition.field_type:
        raise ValidationError('field_type', 'cannot be changed')

    if 'field_label' in data:
        definition.field_label = _parse_label(data['field_label'])
    if data.get('is_required') is not None:
        definition.is_required = _parse_bool(data['is_required'], 'is_required')
    if data.get('display_order') is not None:
        definition.display_order = parse_non_negative_int(data['display_order'], 'display_order')
    if CustomFieldType(definition.field_type).has_options:
        if 'dropdown_options' in data:
            definition.dropdown_options = _parse_options(data['dropdown_options'])
    else:
        definition.dropdown_options = None

    _commit(session, 'update')
    _invalidate(definition_cache, definition.entity_type)
    return definition


def set_definition_active(session: Session, definition_id: str, is_active: bool,
                          definition_cache: Optional[DefinitionCache] = None) -> CustomFieldDefinition:
    """Activate or deactivate a definition. Stored values are kept."""
    definition = get_definition(session, definition_id)
    definition.is_active = _parse_bool(is_active, 'is_active')
    _commit(session, 'update')
    _invalidate(definition_cache, definition.entity_type)
    logger.info(f"[CUSTOM_FIELDS] {definition.entity_type}.{definition.field_name} active={definition.is_active}")
    return definition


def make_definition_loader(session_factory):
    """Loader for a DefinitionCache keyed by entity type value; yields plain dicts."""
    def load(entity_type: str) -> List[Dict[str, Any]]:
        session = session_factory()
        return [definition.to_dict() for definition in list_definitions(session, entity_type)]
    return load
