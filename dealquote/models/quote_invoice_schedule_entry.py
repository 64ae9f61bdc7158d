"""QuoteInvoiceScheduleEntry model for generated payment obligations."""
import uuid
from sqlalchemy import Column, String, Integer, Numeric, Date, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from dealquote.database import Base


class QuoteInvoiceScheduleEntry(Base):
    """
    Invoice schedule entry (upfront payment or installment).

    Entries are regenerated on every calculation and replace the previous
    schedule as a whole; they are never edited individually.
    """

    __tablename__ = 'quote_invoice_schedule_entry'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    price_quote_id = Column(String(36), ForeignKey('price_quote.id', ondelete='CASCADE'), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    entry_type = Column(String(20), nullable=False)  # upfront, installment
    due_date = Column(Date, nullable=False)
    amount_due = Column(Numeric(14, 2), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    price_quote = relationship('PriceQuote', back_populates='invoice_schedule_entries')

    def __repr__(self):
        return f"<QuoteInvoiceScheduleEntry(id='{self.id}', type='{self.entry_type}', due={self.due_date}, amount={self.amount_due})>"

    def to_dict(self):
        return {
            'id': self.id,
            'entry_type': self.entry_type,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'amount_due': self.amount_due,
            'description': self.description,
        }
