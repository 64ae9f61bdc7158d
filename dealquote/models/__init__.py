"""Models package - exports all SQLAlchemy models."""
# Pricing Models
from dealquote.models.price_quote import PriceQuote, QuoteStatus
from dealquote.models.quote_additional_cost import QuoteAdditionalCost
from dealquote.models.quote_invoice_schedule_entry import QuoteInvoiceScheduleEntry

# Custom Fields
from dealquote.models.custom_field_definition import (
    CustomFieldDefinition, CustomFieldEntityType, CustomFieldType
)

__all__ = [
    # Pricing
    'PriceQuote', 'QuoteStatus', 'QuoteAdditionalCost', 'QuoteInvoiceScheduleEntry',
    # Custom Fields
    'CustomFieldDefinition', 'CustomFieldEntityType', 'CustomFieldType',
]
