"""Price quotes blueprint: JSON API for quote preview and versioned CRUD."""
from datetime import date

from flask import Blueprint, current_app, jsonify, request, send_file

from dealquote.blueprints.metrics import record_quote_calculation
from dealquote.database import get_session
from dealquote.exceptions import ValidationError
from dealquote.services.price_quote_calculation import PricingSettings
from dealquote.services.price_quote_pdf import generate_price_quote_pdf
from dealquote.services.price_quote_service import (
    create_price_quote,
    delete_price_quote,
    get_price_quote,
    list_price_quote_dicts_for_deal,
    preview_price_quote,
    update_price_quote,
)
from dealquote.services.quote_input import EDITABLE_FIELDS, PriceQuoteInput

price_quotes_bp = Blueprint('price_quotes', __name__, url_prefix='/api/price-quotes')


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('body', 'must be a JSON object')
    return data


def _agreement_date(data):
    raw = data.get('agreement_date')
    if raw in (None, ''):
        return None
    try:
        return date.fromisoformat(str(raw))
    except ValueError:
        raise ValidationError('agreement_date', 'must be an ISO date (YYYY-MM-DD)')


def _user_id():
    user_id = request.headers.get('X-User-Id', '').strip()
    if not user_id:
        raise ValidationError('X-User-Id', 'header is required')
    return user_id


def _settings():
    return PricingSettings.from_config(current_app.config)


def _cache():
    return current_app.extensions.get('cache')


def _business_info():
    config = current_app.config
    return {
        'name': config.get('BUSINESS_NAME'),
        'address': config.get('BUSINESS_ADDRESS'),
        'phone': config.get('BUSINESS_PHONE'),
        'email': config.get('BUSINESS_EMAIL'),
        'currency_symbol': config.get('CURRENCY_SYMBOL', '$'),
    }


@price_quotes_bp.route('/preview', methods=['POST'])
def preview():
    """Calculate a draft without saving it."""
    data = _json_body()
    result = preview_price_quote(PriceQuoteInput.from_dict(data), _settings(), _agreement_date(data))
    record_quote_calculation('preview', result.escalation_status.value)
    return jsonify(result.to_dict())


@price_quotes_bp.route('/deal/<deal_id>', methods=['GET'])
def list_for_deal(deal_id):
    """All versions of a deal's quotes, newest first."""
    quotes = list_price_quote_dicts_for_deal(get_session(), deal_id, _cache())
    return jsonify({'deal_id': deal_id, 'price_quotes': quotes})


@price_quotes_bp.route('/deal/<deal_id>', methods=['POST'])
def create_for_deal(deal_id):
    data = _json_body()
    quote = create_price_quote(
        get_session(), deal_id, _user_id(), PriceQuoteInput.from_dict(data),
        _settings(), _agreement_date(data), _cache(),
    )
    record_quote_calculation('create', quote.escalation_status)
    return jsonify(quote.to_dict()), 201


@price_quotes_bp.route('/<quote_id>', methods=['GET'])
def get_quote(quote_id):
    return jsonify(get_price_quote(get_session(), quote_id).to_dict())


@price_quotes_bp.route('/<quote_id>', methods=['PUT'])
def update_quote(quote_id):
    """Recalculate a quote in place. Fields missing from the body keep their stored value."""
    data = _json_body()
    session = get_session()
    current = get_price_quote(session, quote_id)
    changes = {name: data[name] for name in EDITABLE_FIELDS if name in data}
    quote_input = PriceQuoteInput.from_quote(current).merged_with(changes)

    quote = update_price_quote(session, quote_id, quote_input, _settings(), _agreement_date(data), _cache())
    record_quote_calculation('update', quote.escalation_status)
    return jsonify(quote.to_dict())


@price_quotes_bp.route('/<quote_id>', methods=['DELETE'])
def delete_quote(quote_id):
    deleted_id = delete_price_quote(get_session(), quote_id, _cache())
    return jsonify({'status': 'ok', 'id': deleted_id})


@price_quotes_bp.route('/<quote_id>/pdf', methods=['GET'])
def quote_pdf(quote_id):
    quote = get_price_quote(get_session(), quote_id)
    pdf_buffer = generate_price_quote_pdf(quote, _business_info())
    filename = f"price_quote_{quote.deal_id}_v{quote.version_number}.pdf"
    return send_file(
        pdf_buffer,
        mimetype='application/pdf',
        as_attachment=True,
        download_name=filename
    )
