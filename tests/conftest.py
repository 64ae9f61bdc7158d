import pytest
from datetime import date

from dealquote import create_app
from dealquote.database import Base, create_all, get_session
from dealquote.services.price_quote_calculation import PricingSettings
from dealquote.services.quote_input import PriceQuoteInput


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite, no Redis)."""
    app = create_app('config.TestConfig')
    create_all()
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session; every table is emptied after the test."""
    session = get_session()
    yield session
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()
    app.extensions['definition_cache'].clear()


@pytest.fixture
def settings():
    """Pricing policy matching TestConfig: 10% warning band, lump-sum remainder."""
    return PricingSettings('10', 'lump_sum')


@pytest.fixture
def agreement_date():
    return date(2024, 1, 1)


@pytest.fixture
def scenario_input():
    """MP 5000, 20% markup, FOP 6000 with 5% off and one travel cost."""
    return PriceQuoteInput(
        name='Initial offer',
        base_minimum_price_mp='5000',
        target_markup_percentage='20',
        final_offer_price_fop='6000',
        overall_discount_percentage='5',
        upfront_payment_percentage='50',
        upfront_payment_due_days=7,
        subsequent_installments_count=2,
        subsequent_installments_interval_days=30,
        additional_costs=[{'description': 'Travel', 'amount': '100'}],
    )
