"""
Integration tests for the JSON API.
"""

import pytest

HEADERS = {'X-User-Id': 'user-1'}

SCENARIO = {
    'name': 'Initial offer',
    'base_minimum_price_mp': '5000',
    'target_markup_percentage': '20',
    'final_offer_price_fop': '6000',
    'overall_discount_percentage': '5',
    'upfront_payment_percentage': '50',
    'upfront_payment_due_days': 7,
    'subsequent_installments_count': 2,
    'subsequent_installments_interval_days': 30,
    'additional_costs': [{'description': 'Travel', 'amount': '100'}],
    'agreement_date': '2024-01-01',
}


@pytest.fixture
def quote_id(client, session):
    response = client.post('/api/price-quotes/deal/deal-1', json=SCENARIO, headers=HEADERS)
    assert response.status_code == 201
    return response.get_json()['id']


class TestPreviewEndpoint:
    """POST /api/price-quotes/preview"""

    def test_preview_calculates_without_saving(self, client, session):
        response = client.post('/api/price-quotes/preview', json=SCENARIO)

        assert response.status_code == 200
        data = response.get_json()
        assert data['total_direct_cost'] == '5100.00'
        assert data['discounted_offer_price'] == '5700.00'
        assert data['escalation_status'] == 'ok'
        assert [entry['due_date'] for entry in data['invoice_schedule']] == [
            '2024-01-08', '2024-02-07', '2024-03-08'
        ]
        assert client.get('/api/price-quotes/deal/deal-1').get_json()['price_quotes'] == []

    def test_invalid_field_is_400(self, client):
        response = client.post('/api/price-quotes/preview', json=dict(SCENARIO, overall_discount_percentage='150'))

        assert response.status_code == 400
        data = response.get_json()
        assert data['status'] == 'error'
        assert data['field'] == 'overall_discount_percentage'

    def test_bad_agreement_date(self, client):
        response = client.post('/api/price-quotes/preview', json=dict(SCENARIO, agreement_date='01/01/2024'))
        assert response.status_code == 400
        assert response.get_json()['field'] == 'agreement_date'

    @pytest.mark.parametrize('changes,field', [
        ({'upfront_payment_due_days': 4000000}, 'upfront_payment_due_days'),
        ({'subsequent_installments_interval_days': 3000000}, 'subsequent_installments_interval_days'),
        ({'base_minimum_price_mp': '1e27'}, 'base_minimum_price_mp'),
        ({'final_offer_price_fop': '6000.005'}, 'final_offer_price_fop'),
        ({'overall_discount_percentage': '33.33333'}, 'overall_discount_percentage'),
    ])
    def test_out_of_range_input_is_400(self, client, changes, field):
        response = client.post('/api/price-quotes/preview', json=dict(SCENARIO, **changes))

        assert response.status_code == 400
        assert response.get_json()['field'] == field

    def test_missing_policy_is_configuration_error(self, app, client, monkeypatch):
        monkeypatch.setitem(app.config, 'ESCALATION_WARNING_BAND_PERCENTAGE', None)

        response = client.post('/api/price-quotes/preview', json=SCENARIO)

        assert response.status_code == 500
        assert response.get_json()['setting'] == 'ESCALATION_WARNING_BAND_PERCENTAGE'

    def test_reject_policy_refuses_unscheduled_balance(self, app, client, monkeypatch):
        monkeypatch.setitem(app.config, 'INSTALLMENT_REMAINDER_POLICY', 'reject')

        response = client.post('/api/price-quotes/preview', json=dict(
            SCENARIO, upfront_payment_percentage='50', subsequent_installments_count=0,
        ))

        assert response.status_code == 500
        assert response.get_json()['setting'] == 'INSTALLMENT_REMAINDER_POLICY'


class TestPriceQuoteCrud:
    """Create, list, update and delete through the API."""

    def test_create_requires_user_header(self, client, session):
        response = client.post('/api/price-quotes/deal/deal-1', json=SCENARIO)

        assert response.status_code == 400
        assert response.get_json()['field'] == 'X-User-Id'

    def test_create_and_list_versions(self, client, quote_id):
        second = client.post('/api/price-quotes/deal/deal-1', json=SCENARIO, headers=HEADERS)
        assert second.get_json()['version_number'] == 2

        data = client.get('/api/price-quotes/deal/deal-1').get_json()
        assert data['deal_id'] == 'deal-1'
        assert [q['version_number'] for q in data['price_quotes']] == [2, 1]
        assert data['price_quotes'][1]['id'] == quote_id

    def test_get_quote(self, client, quote_id):
        data = client.get(f'/api/price-quotes/{quote_id}').get_json()

        assert data['status'] == 'draft'
        assert data['user_id'] == 'user-1'
        assert data['escalation_status'] == 'ok'
        assert [c['description'] for c in data['additional_costs']] == ['Travel']
        assert len(data['invoice_schedule_entries']) == 3

    def test_partial_update_recalculates_in_place(self, client, quote_id):
        response = client.put(
            f'/api/price-quotes/{quote_id}',
            json={'final_offer_price_fop': '4400', 'agreement_date': '2024-01-01'},
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data['id'] == quote_id
        assert data['version_number'] == 1
        assert data['name'] == 'Initial offer'
        assert data['escalation_status'] == 'blocked'
        assert data['calculated_discounted_offer_price'] == '4180.00'

    def test_name_only_update_keeps_calculation(self, client, session):
        """Stored inputs recalculate to the stored snapshot."""
        created = client.post('/api/price-quotes/deal/deal-9', headers=HEADERS, json=dict(
            SCENARIO, base_minimum_price_mp='100.01', final_offer_price_fop='1000000',
            overall_discount_percentage='33.3333',
        )).get_json()

        renamed = client.put(
            f"/api/price-quotes/{created['id']}",
            json={'name': 'renamed', 'agreement_date': '2024-01-01'},
        ).get_json()

        assert renamed['name'] == 'renamed'
        for key in (
            'base_minimum_price_mp', 'overall_discount_percentage',
            'calculated_discounted_offer_price', 'calculated_effective_markup_fop_over_mp',
        ):
            assert renamed[key] == created[key], key
        assert [(e['due_date'], e['amount_due']) for e in renamed['invoice_schedule_entries']] == [
            (e['due_date'], e['amount_due']) for e in created['invoice_schedule_entries']
        ]
        assert created['calculated_discounted_offer_price'] == '666667.00'

    def test_accepted_quote_cannot_change(self, client, quote_id):
        assert client.put(f'/api/price-quotes/{quote_id}', json={'status': 'accepted'}).status_code == 200

        response = client.put(f'/api/price-quotes/{quote_id}', json={'name': 'Renamed'})

        assert response.status_code == 400
        assert response.get_json()['status'] == 'error'

    def test_calculated_fields_cannot_be_written(self, client, quote_id):
        response = client.put(f'/api/price-quotes/{quote_id}', json={'calculated_total_direct_cost': '1'})

        assert response.status_code == 200
        assert response.get_json()['calculated_total_direct_cost'] == '5100.00'

    def test_delete(self, client, quote_id):
        response = client.delete(f'/api/price-quotes/{quote_id}')
        assert response.get_json() == {'status': 'ok', 'id': quote_id}

        missing = client.get(f'/api/price-quotes/{quote_id}')
        assert missing.status_code == 404
        assert missing.get_json()['status'] == 'error'

    def test_pdf_download(self, client, quote_id):
        response = client.get(f'/api/price-quotes/{quote_id}/pdf')

        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data.startswith(b'%PDF')
        assert 'price_quote_deal-1_v1.pdf' in response.headers['Content-Disposition']

    def test_unknown_route_is_json_404(self, client):
        response = client.get('/api/nothing-here')
        assert response.status_code == 404
        assert response.get_json()['status'] == 'error'


class TestCustomFieldsApi:
    """/api/custom-fields"""

    def _create(self, client, **overrides):
        body = {
            'entity_type': 'DEAL',
            'field_name': 'region',
            'field_label': 'Region',
            'field_type': 'DROPDOWN',
            'dropdown_options': [{'value': 'emea', 'label': 'EMEA'}],
        }
        body.update(overrides)
        return client.post('/api/custom-fields', json=body)

    def test_create_and_list(self, client, session):
        response = self._create(client)
        assert response.status_code == 201

        data = client.get('/api/custom-fields/deal').get_json()
        assert data['entity_type'] == 'DEAL'
        assert [d['field_name'] for d in data['definitions']] == ['region']

    def test_duplicate_is_conflict(self, client, session):
        self._create(client)
        assert self._create(client).status_code == 409

    def test_deactivate_hides_from_default_listing(self, client, session):
        definition_id = self._create(client).get_json()['id']
        client.get('/api/custom-fields/DEAL')  # warm the cache

        response = client.post(f'/api/custom-fields/{definition_id}/active', json={'is_active': False})
        assert response.get_json()['is_active'] is False

        assert client.get('/api/custom-fields/DEAL').get_json()['definitions'] == []
        everything = client.get('/api/custom-fields/DEAL?include_inactive=true').get_json()
        assert [d['id'] for d in everything['definitions']] == [definition_id]

    def test_active_flag_required(self, client, session):
        definition_id = self._create(client).get_json()['id']
        response = client.post(f'/api/custom-fields/{definition_id}/active', json={})
        assert response.status_code == 400

    def test_type_change_rejected(self, client, session):
        definition_id = self._create(client).get_json()['id']

        response = client.put(f'/api/custom-fields/{definition_id}', json={'field_type': 'TEXT'})

        assert response.status_code == 400
        assert response.get_json()['field'] == 'field_type'

    def test_unknown_entity_type(self, client):
        response = client.get('/api/custom-fields/spaceship')
        assert response.status_code == 400
        assert response.get_json()['field'] == 'entity_type'


class TestMetricsEndpoint:

    def test_exposes_quote_counter(self, client, session):
        client.post('/api/price-quotes/preview', json=SCENARIO)

        response = client.get('/metrics')

        assert response.status_code == 200
        body = response.get_data(as_text=True)
        assert 'price_quote_calculations_total' in body
        assert 'http_requests_total' in body
