"""
Database entity for the cycle payment ledger.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType, MoneyType


class CyclePaymentEntity(Base):
    """
    Append-only ledger row.

    Rows are never updated or deleted; corrections are new rows.
    """

    __tablename__ = "cycle_payments"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    cycle_id = Column(
        BigIntegerType,
        ForeignKey("subscription_cycles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    kind = Column(
        String(32), nullable=False
    )  # PAYMENT, SURCHARGE, CREDIT_TRANSFER, CREDIT_APPLICATION
    payment_date = Column(DateTime(timezone=True), nullable=False)
    amount = Column(MoneyType, nullable=False)
    payment_method = Column(String(50), nullable=True)
    reference = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(BigIntegerType, nullable=True)
    source_cycle_id = Column(
        BigIntegerType,
        ForeignKey("subscription_cycles.id", ondelete="RESTRICT"),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_cycle_payment_cycle_date", "cycle_id", "payment_date"),
        Index("idx_cycle_payment_reference", "reference"),
    )
