"""SQLAlchemy ORM models for the users/{uid} document tree"""

import uuid
from sqlalchemy import Column, String, Numeric, Float, DateTime, Date, Integer, ForeignKey, Text, Boolean
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

# Enough scale to keep per-installment fractions until presentation
Money = Numeric(18, 6)


def new_id() -> str:
    return str(uuid.uuid4())


class UserAccount(Base):
    """users/{uid}: profile plus the financials, balances and credit maps"""

    __tablename__ = "user_account"

    uid = Column(Text, primary_key=True)
    email = Column(Text, nullable=True)
    display_name = Column(Text, nullable=True)

    # financials
    monthly_income = Column(Money, nullable=False, default=0)
    monthly_expenses = Column(Money, nullable=False, default=0)
    monthly_budget = Column(Money, nullable=False, default=0)
    budget_spent = Column(Money, nullable=False, default=0)
    net_after_expenses = Column(Money, nullable=True)

    # balances (NULL = never initialised)
    current_balance = Column(Money, nullable=True)
    emergency_fund_balance = Column(Money, nullable=True)
    emergency_fund_goal = Column(Money, nullable=True)

    # credit
    credit_limit = Column(Money, nullable=False, default=0)
    credit_used = Column(Money, nullable=False, default=0)
    credit_apr = Column(Money, nullable=True)
    credit_score = Column(Money, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    categories = relationship("CategoryRecord", back_populates="user", cascade="all, delete-orphan")


class CategoryRecord(Base):
    """users/{uid}/categories/{id}"""

    __tablename__ = "category"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, ForeignKey("user_account.uid", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    color_hex = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("UserAccount", back_populates="categories")
    items = relationship("ItemRecord", back_populates="category", cascade="all, delete-orphan")


class ItemRecord(Base):
    """users/{uid}/categories/{id}/items/{id}"""

    __tablename__ = "item"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("category.id", ondelete="CASCADE"), nullable=False, index=True)
    category_name = Column(Text, nullable=True)

    title = Column(Text, nullable=False)
    amount = Column(Money, nullable=False)
    date = Column(Date, nullable=False)
    payment_method = Column(Text, nullable=False)
    status = Column(Text, nullable=False)
    untracked = Column(Boolean, nullable=False, default=False)

    # Credit plan
    installments = Column(Integer, nullable=True)
    interest_monthly_rate = Column(Money, nullable=True)
    interest_total = Column(Money, nullable=True)
    total_payable = Column(Money, nullable=True)
    per_installment = Column(Money, nullable=True)

    # Wallet+Credit split
    wallet_paid = Column(Money, nullable=True)
    credit_principal = Column(Money, nullable=True)
    credit_installments = Column(Integer, nullable=True)
    credit_interest_rate = Column(Money, nullable=True)
    credit_interest_total = Column(Money, nullable=True)
    credit_total_payable = Column(Money, nullable=True)
    credit_per_installment = Column(Money, nullable=True)

    # Details
    description = Column(Text, nullable=True)
    note = Column(Text, nullable=True)
    location_name = Column(Text, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    warranty_exp = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    category = relationship("CategoryRecord", back_populates="items")
    dues = relationship("DueRecord", back_populates="item", cascade="all, delete-orphan")


class DueRecord(Base):
    """users/{uid}/dues/{id}"""

    __tablename__ = "due"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)
    item_id = Column(String(36), ForeignKey("item.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(String(36), nullable=False)
    item_title = Column(Text, nullable=False)
    installment_index = Column(Integer, nullable=False)
    installments = Column(Integer, nullable=False)
    amount = Column(Money, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    status = Column(Text, nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    paid_at = Column(DateTime(timezone=True), nullable=True)

    item = relationship("ItemRecord", back_populates="dues")
