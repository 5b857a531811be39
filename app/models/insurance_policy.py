import uuid
from datetime import date

from sqlalchemy import Date, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import SoftDeleteMixin, TimestampMixin, UUIDMixin

class InsurancePolicy(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "insurance_policies"
    organization_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    patient_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    policy_number: Mapped[str] = mapped_column(String(80), nullable=False)
    payer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    group_number: Mapped[str | None] = mapped_column(String(80), nullable=True)
    plan_type: Mapped[str] = mapped_column(String(40), nullable=False)
    policy_status: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    coverage_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    coverage_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
