"""Custom fields blueprint: JSON API for custom field definitions."""
from flask import Blueprint, current_app, jsonify, request

from dealquote.database import get_session
from dealquote.exceptions import ValidationError
from dealquote.models import CustomFieldEntityType
from dealquote.services.custom_field_service import (
    create_definition,
    list_definitions,
    set_definition_active,
    update_definition,
)

custom_fields_bp = Blueprint('custom_fields', __name__, url_prefix='/api/custom-fields')


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('body', 'must be a JSON object')
    return data


def _definition_cache():
    return current_app.extensions.get('definition_cache')


@custom_fields_bp.route('/<entity_type>', methods=['GET'])
def list_for_entity(entity_type):
    """Active definitions come from the in-process cache; ?include_inactive=true reads the database."""
    entity = CustomFieldEntityType.parse(entity_type)
    include_inactive = request.args.get('include_inactive', '').lower() in ('1', 'true', 'yes')
    cache = _definition_cache()

    if include_inactive or cache is None:
        definitions = [d.to_dict() for d in list_definitions(get_session(), entity, include_inactive)]
    else:
        definitions = cache.get(entity.value)
    return jsonify({'entity_type': entity.value, 'definitions': definitions})


@custom_fields_bp.route('', methods=['POST'])
def create():
    definition = create_definition(get_session(), _json_body(), _definition_cache())
    return jsonify(definition.to_dict()), 201


@custom_fields_bp.route('/<definition_id>', methods=['PUT'])
def update(definition_id):
    definition = update_definition(get_session(), definition_id, _json_body(), _definition_cache())
    return jsonify(definition.to_dict())


@custom_fields_bp.route('/<definition_id>/active', methods=['POST'])
def set_active(definition_id):
    data = _json_body()
    if 'is_active' not in data:
        raise ValidationError('is_active', 'is required')
    definition = set_definition_active(get_session(), definition_id, data['is_active'], _definition_cache())
    return jsonify(definition.to_dict())
