"""
Unit tests for pricing and escalation.
"""

import pytest
from decimal import Decimal

from dealquote.exceptions import ConfigurationError, ValidationError
from dealquote.services.pricing_calculator import EscalationStatus, PricingCalculator
from dealquote.services.quote_input import PriceQuoteInput


@pytest.fixture
def calculator():
    return PricingCalculator('10')


class TestPricingCalculation:
    """Tests for the derived prices."""

    def test_reference_quote(self, calculator, scenario_input):
        """MP 5000, 20% markup, FOP 6000, 5% discount, one 100 cost."""
        result = calculator.calculate(scenario_input)

        assert result.total_direct_cost == Decimal('5100.00')
        assert result.target_price == Decimal('6000.00')
        assert result.full_target_price == Decimal('6100.00')
        assert result.discounted_offer_price == Decimal('5700.00')
        assert result.effective_markup_percent == Decimal('20.00')
        assert result.escalation_status is EscalationStatus.OK

    def test_zero_mp_has_no_effective_markup(self, calculator):
        """MP of zero yields no effective markup instead of dividing by zero."""
        result = calculator.calculate(PriceQuoteInput(base_minimum_price_mp=0, final_offer_price_fop='1000'))

        assert result.effective_markup_percent is None
        assert result.escalation_status is EscalationStatus.OK

    def test_missing_fields_default_to_zero(self, calculator):
        result = calculator.calculate(PriceQuoteInput())

        assert result.total_direct_cost == Decimal('0.00')
        assert result.discounted_offer_price == Decimal('0.00')
        assert result.effective_markup_percent is None

    def test_results_rounded_half_up_to_cents(self, calculator):
        result = calculator.calculate(PriceQuoteInput(
            base_minimum_price_mp='100', target_markup_percentage='12.345',
            final_offer_price_fop='99.99', overall_discount_percentage='33.333',
        ))

        assert result.target_price == Decimal('112.35')
        assert result.discounted_offer_price == Decimal('66.66')

    def test_calculation_is_idempotent(self, calculator, scenario_input):
        assert calculator.calculate(scenario_input) == calculator.calculate(scenario_input)

    def test_discount_is_monotonic(self, calculator):
        """Raising the discount never raises the discounted offer price."""
        previous = None
        for discount in range(0, 101, 5):
            result = calculator.calculate(PriceQuoteInput(
                final_offer_price_fop='1234.56', overall_discount_percentage=discount
            ))
            if previous is not None:
                assert result.discounted_offer_price <= previous
            previous = result.discounted_offer_price
        assert previous == Decimal('0.00')


class TestEscalation:
    """Tests for ok / warning / blocked classification."""

    def test_fop_equal_to_mp_is_ok(self, calculator):
        result = calculator.calculate(PriceQuoteInput(base_minimum_price_mp='5000', final_offer_price_fop='5000'))
        assert result.escalation_status is EscalationStatus.OK
        assert result.escalation_details['fop_below_mp'] is False

    def test_fop_one_cent_below_mp_is_not_ok(self, calculator):
        result = calculator.calculate(PriceQuoteInput(base_minimum_price_mp='5000', final_offer_price_fop='4999.99'))
        assert result.escalation_status is EscalationStatus.WARNING
        assert result.escalation_details['shortfall'] == Decimal('0.01')

    def test_fop_at_warning_floor_is_warning(self, calculator):
        result = calculator.calculate(PriceQuoteInput(base_minimum_price_mp='5000', final_offer_price_fop='4500'))
        assert result.escalation_status is EscalationStatus.WARNING
        assert result.escalation_details['warning_floor'] == Decimal('4500.00')

    def test_fop_below_warning_floor_is_blocked(self, calculator):
        result = calculator.calculate(PriceQuoteInput(base_minimum_price_mp='5000', final_offer_price_fop='4499.99'))
        assert result.escalation_status is EscalationStatus.BLOCKED
        assert result.escalation_details['reason']

    def test_zero_band_blocks_anything_below_mp(self):
        calculator = PricingCalculator(0)
        result = calculator.calculate(PriceQuoteInput(base_minimum_price_mp='100', final_offer_price_fop='99.99'))
        assert result.escalation_status is EscalationStatus.BLOCKED

    def test_details_flag_fop_below_total_direct_cost(self, calculator):
        result = calculator.calculate(PriceQuoteInput(
            base_minimum_price_mp='1000', final_offer_price_fop='1050',
            additional_costs=[{'description': 'Install', 'amount': '100'}],
        ))
        assert result.escalation_status is EscalationStatus.OK
        assert result.escalation_details['fop_below_total_direct_cost'] is True

    def test_escalation_ignores_discount(self, calculator):
        """Escalation compares the undiscounted FOP with MP."""
        result = calculator.calculate(PriceQuoteInput(
            base_minimum_price_mp='1000', final_offer_price_fop='1000', overall_discount_percentage='50'
        ))
        assert result.escalation_status is EscalationStatus.OK


class TestPricingValidation:
    """Invalid input and policy errors."""

    @pytest.mark.parametrize('field,value', [
        ('base_minimum_price_mp', '-1'),
        ('final_offer_price_fop', 'abc'),
        ('target_markup_percentage', '-5'),
        ('overall_discount_percentage', '100.01'),
        ('upfront_payment_percentage', '101'),
        ('upfront_payment_due_days', '1.5'),
        ('subsequent_installments_count', -1),
        ('final_offer_price_fop', 'NaN'),
    ])
    def test_invalid_input_names_the_field(self, field, value):
        with pytest.raises(ValidationError) as exc:
            PriceQuoteInput(**{field: value})
        assert exc.value.field == field
        assert exc.value.status_code == 400

    def test_markup_above_hundred_allowed(self, calculator):
        result = calculator.calculate(PriceQuoteInput(base_minimum_price_mp='100', target_markup_percentage='250'))
        assert result.target_price == Decimal('350.00')

    @pytest.mark.parametrize('band', [None, '', 'ten', '-1', '101'])
    def test_invalid_warning_band_is_configuration_error(self, band):
        with pytest.raises(ConfigurationError) as exc:
            PricingCalculator(band)
        assert exc.value.setting == 'ESCALATION_WARNING_BAND_PERCENTAGE'
        assert exc.value.status_code == 500

    def test_calculate_requires_quote_input(self, calculator):
        with pytest.raises(ValidationError):
            calculator.calculate({'base_minimum_price_mp': 1})
