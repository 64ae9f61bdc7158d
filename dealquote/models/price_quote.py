"""PriceQuote model for versioned deal price quotes."""
import enum
import uuid
from sqlalchemy import Column, String, Integer, Numeric, DateTime, JSON, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from dealquote.database import Base


class QuoteStatus(enum.Enum):
    """Quote status enum."""
    DRAFT = "draft"
    PROPOSED = "proposed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    SUPERSEDED = "superseded"

    @classmethod
    def values(cls):
        return {status.value for status in cls}


def new_uuid():
    return str(uuid.uuid4())


class PriceQuote(Base):
    """
    Price quote for a deal.

    Each deal holds a series of quotes numbered by ``version_number``. The
    calculated_* columns and the escalation fields are a snapshot of the
    last calculation and are never edited directly.
    """

    __tablename__ = 'price_quote'
    __table_args__ = (
        UniqueConstraint('deal_id', 'version_number', name='uq_price_quote_deal_version'),
        Index('ix_price_quote_deal_id', 'deal_id'),
    )

    id = Column(String(36), primary_key=True, default=new_uuid)
    deal_id = Column(String(64), nullable=False)
    user_id = Column(String(64), nullable=False)
    version_number = Column(Integer, nullable=False, default=1)
    name = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=QuoteStatus.DRAFT.value)

    # Inputs
    base_minimum_price_mp = Column(Numeric(14, 2), nullable=False, default=0)
    target_markup_percentage = Column(Numeric(9, 4), nullable=False, default=0)
    final_offer_price_fop = Column(Numeric(14, 2), nullable=False, default=0)
    overall_discount_percentage = Column(Numeric(7, 4), nullable=False, default=0)
    upfront_payment_percentage = Column(Numeric(7, 4), nullable=False, default=0)
    upfront_payment_due_days = Column(Integer, nullable=False, default=0)
    subsequent_installments_count = Column(Integer, nullable=False, default=0)
    subsequent_installments_interval_days = Column(Integer, nullable=False, default=0)

    # Calculated snapshot. Wider than the inputs: target price scales with a
    # markup of up to 99999.9999% and effective markup divides by an MP as small as 0.01
    calculated_total_direct_cost = Column(Numeric(20, 2), nullable=True)
    calculated_target_price_tp = Column(Numeric(20, 2), nullable=True)
    calculated_full_target_price_ftp = Column(Numeric(20, 2), nullable=True)
    calculated_discounted_offer_price = Column(Numeric(20, 2), nullable=True)
    calculated_effective_markup_fop_over_mp = Column(Numeric(20, 2), nullable=True)
    escalation_status = Column(String(20), nullable=True)
    escalation_details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    additional_costs = relationship(
        'QuoteAdditionalCost', back_populates='price_quote',
        cascade='all, delete-orphan', order_by='QuoteAdditionalCost.position',
    )
    invoice_schedule_entries = relationship(
        'QuoteInvoiceScheduleEntry', back_populates='price_quote',
        cascade='all, delete-orphan', order_by='QuoteInvoiceScheduleEntry.position',
    )

    def __repr__(self):
        return (f"<PriceQuote(id='{self.id}', deal='{self.deal_id}', v{self.version_number}, "
                f"status='{self.status}', offer={self.calculated_discounted_offer_price})>")

    @property
    def is_editable(self):
        """Accepted and superseded quotes are kept for history only."""
        return self.status not in (QuoteStatus.ACCEPTED.value, QuoteStatus.SUPERSEDED.value)

    def to_dict(self):
        return {
            'id': self.id,
            'deal_id': self.deal_id,
            'user_id': self.user_id,
            'version_number': self.version_number,
            'name': self.name,
            'status': self.status,
            'base_minimum_price_mp': self.base_minimum_price_mp,
            'target_markup_percentage': self.target_markup_percentage,
            'final_offer_price_fop': self.final_offer_price_fop,
            'overall_discount_percentage': self.overall_discount_percentage,
            'upfront_payment_percentage': self.upfront_payment_percentage,
            'upfront_payment_due_days': self.upfront_payment_due_days,
            'subsequent_installments_count': self.subsequent_installments_count,
            'subsequent_installments_interval_days': self.subsequent_installments_interval_days,
            'calculated_total_direct_cost': self.calculated_total_direct_cost,
            'calculated_target_price_tp': self.calculated_target_price_tp,
            'calculated_full_target_price_ftp': self.calculated_full_target_price_ftp,
            'calculated_discounted_offer_price': self.calculated_discounted_offer_price,
            'calculated_effective_markup_fop_over_mp': self.calculated_effective_markup_fop_over_mp,
            'escalation_status': self.escalation_status,
            'escalation_details': self.escalation_details,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'additional_costs': [cost.to_dict() for cost in self.additional_costs],
            'invoice_schedule_entries': [entry.to_dict() for entry in self.invoice_schedule_entries],
        }
