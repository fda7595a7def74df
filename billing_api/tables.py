# billing_api/tables.py
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

PROFILE_TYPES = ("client", "contractor", "admin")
CONTRACT_STATUSES = ("new", "in_progress", "terminated")

MONEY = Numeric(12, 2)


def utcnow() -> datetime:
    # naive UTC; SQLite has no timezone-aware DATETIME
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Profile(Base):
    __tablename__ = "Profiles"

    id = Column(Integer, primary_key=True)
    first_name = Column("firstName", String(255), nullable=False)
    last_name = Column("lastName", String(255), nullable=False)
    profession = Column(String(255), nullable=False, default="")
    balance = Column(MONEY, nullable=False, default=0)
    type = Column(Enum(*PROFILE_TYPES, name="profile_type", native_enum=False), nullable=False)
    created_at = Column("createdAt", DateTime, nullable=False, default=utcnow)
    updated_at = Column("updatedAt", DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    client_contracts = relationship(
        "Contract", back_populates="client", foreign_keys="Contract.client_id"
    )
    contractor_contracts = relationship(
        "Contract", back_populates="contractor", foreign_keys="Contract.contractor_id"
    )

    def __repr__(self) -> str:
        return f"<Profile id={self.id} type={self.type} balance={self.balance}>"


class Contract(Base):
    __tablename__ = "Contracts"

    id = Column(Integer, primary_key=True)
    terms = Column(Text, nullable=False, default="")
    status = Column(
        Enum(*CONTRACT_STATUSES, name="contract_status", native_enum=False),
        nullable=False,
        default="new",
    )
    client_id = Column("ClientId", Integer, ForeignKey("Profiles.id"), nullable=False, index=True)
    contractor_id = Column(
        "ContractorId", Integer, ForeignKey("Profiles.id"), nullable=False, index=True
    )
    created_at = Column("createdAt", DateTime, nullable=False, default=utcnow)
    updated_at = Column("updatedAt", DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    client = relationship("Profile", back_populates="client_contracts", foreign_keys=[client_id])
    contractor = relationship(
        "Profile", back_populates="contractor_contracts", foreign_keys=[contractor_id]
    )
    jobs = relationship("Job", back_populates="contract")

    def __repr__(self) -> str:
        return f"<Contract id={self.id} status={self.status}>"


class Job(Base):
    __tablename__ = "Jobs"

    id = Column(Integer, primary_key=True)
    description = Column(Text, nullable=False, default="")
    price = Column(MONEY, nullable=False)
    # NULL and False both mean unpaid
    paid = Column(Boolean, nullable=True, default=None)
    payment_date = Column("paymentDate", DateTime, nullable=True)
    contract_id = Column("ContractId", Integer, ForeignKey("Contracts.id"), nullable=False, index=True)
    created_at = Column("createdAt", DateTime, nullable=False, default=utcnow)
    updated_at = Column("updatedAt", DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    contract = relationship("Contract", back_populates="jobs")

    def __repr__(self) -> str:
        return f"<Job id={self.id} price={self.price} paid={self.paid}>"
