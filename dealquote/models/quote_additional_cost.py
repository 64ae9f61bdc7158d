"""QuoteAdditionalCost model for cost line items of a price quote."""
import uuid
from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from dealquote.database import Base


class QuoteAdditionalCost(Base):
    """
    Additional cost (travel, licences, ...) added on top of the base minimum
    price. ``position`` keeps the insertion order of the quote's ledger.
    """

    __tablename__ = 'quote_additional_cost'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    price_quote_id = Column(String(36), ForeignKey('price_quote.id', ondelete='CASCADE'), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    price_quote = relationship('PriceQuote', back_populates='additional_costs')

    def __repr__(self):
        return f"<QuoteAdditionalCost(id='{self.id}', description='{self.description}', amount={self.amount})>"

    def to_dict(self):
        return {
            'id': self.id,
            'description': self.description,
            'amount': self.amount,
        }
