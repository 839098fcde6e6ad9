"""
Database models -- SQLAlchemy ORM definitions.
orders (reservation header) 1-N services (line items) 1-N transfers (stopover legs).
Compatible with both PostgreSQL and SQLite.
"""

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Order(Base):
    """
    Reservation header. One row per booking.
    (channel, identifier) is the idempotency key; the unique constraint is the
    backstop for concurrent creates racing past the duplicate pre-check.
    """
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("channel", "identifier", name="uq_orders_channel_identifier"),
    )

    id = Column(Integer, primary_key=True, index=True)
    created = Column(DateTime, nullable=False)
    updated = Column(DateTime)
    imported = Column(DateTime)
    expiration = Column(DateTime)
    confirmation = Column(DateTime)

    channel = Column(String(64), nullable=False, index=True)
    identifier = Column(String(128), nullable=False)
    hash = Column(String(32), nullable=False, unique=True)
    version = Column(Integer, nullable=False, default=1)

    language = Column(String(8))
    status = Column(String(32), index=True)
    type = Column(String(32))
    start_date = Column(DateTime)
    end_date = Column(DateTime)
    sales_channel = Column(String(128))
    locator = Column(String(64))
    currency = Column(String(3))
    source = Column(String(16))

    # Denormalized identity snapshots
    company_id = Column(Integer)
    company = Column(String(255))
    client_id = Column(Integer)
    client = Column(String(255))
    agent_id = Column(Integer)
    agent = Column(String(255))
    manager_id = Column(Integer)
    manager = Column(String(255))
    attendant_id = Column(Integer)
    attendant = Column(String(255))
    user_id = Column(Integer)
    user_name = Column(String(255))
    customer_id = Column(Integer)
    customer = Column(String(255))

    # Financial snapshot
    price = Column(Float, default=0.0)
    discount = Column(Float, default=0.0)
    taxes = Column(Float, default=0.0)
    markup = Column(Float, default=0.0)
    commission = Column(Float, default=0.0)
    cost = Column(Float, default=0.0)
    rav = Column(Float, default=0.0)
    total = Column(Float, default=0.0)

    information = Column(Text)
    notes = Column(Text)

    services = relationship("Service", back_populates="order")


class Service(Base):
    """
    Booking line item (room, transfer, ticket, rental, tour, insurance,
    flight, meeting, note). (identifier, order_id) is unique.
    """
    __tablename__ = "services"
    __table_args__ = (
        UniqueConstraint("identifier", "order_id", name="uq_services_identifier_order"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    created = Column(DateTime, nullable=False)
    updated = Column(DateTime)
    expiration = Column(DateTime)
    confirmation = Column(Date)

    identifier = Column(String(128), nullable=False)
    status = Column(Integer, default=0)
    type = Column(String(16), nullable=False, index=True)
    code = Column(Integer, default=0)
    description = Column(Text)
    source = Column(String(16))

    attendant_id = Column(Integer)
    attendant = Column(String(255))
    user_id = Column(Integer)
    user_name = Column(String(255))
    supplier_id = Column(Integer)
    supplier = Column(String(255))
    connector = Column(Text)
    locator = Column(String(64))

    start_location = Column(Text)
    end_location = Column(Text)
    start_date = Column(Date)
    end_date = Column(Date)

    people = Column(Text)
    infant = Column(Integer, default=0)
    child = Column(Integer, default=0)
    adult = Column(Integer, default=0)
    senior = Column(Integer, default=0)

    information = Column(Text)
    room = Column(String(255))
    break_type = Column(String(64))
    break_price = Column(Float, default=0.0)

    price = Column(Float, default=0.0)
    taxes = Column(Float, default=0.0)
    markup_info = Column(Text)
    taxes_info = Column(Text)
    commission_info = Column(Text)
    discount = Column(Float, default=0.0)
    rebate = Column(Float, default=0.0)
    cost = Column(Float, default=0.0)
    bonification = Column(Float, default=0.0)
    extra = Column(Float, default=0.0)
    total = Column(Float, default=0.0)
    price_source = Column(Float, default=0.0)
    currency = Column(String(3))
    exchange = Column(Text)

    options = Column(Text)
    extra_data = Column(Text)

    order = relationship("Order", back_populates="services")
    stopovers = relationship("Transfer", back_populates="service")


class Transfer(Base):
    """
    One leg (stopover) of a transfer service.
    Identifier is synthesized as {service identifier}-T{n}-S{m}.
    """
    __tablename__ = "transfers"
    __table_args__ = (
        UniqueConstraint("service_id", "identifier", name="uq_transfers_service_identifier"),
    )

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    created = Column(DateTime, nullable=False)
    perimeter_id = Column(Integer, default=0)
    identifier = Column(String(160), nullable=False)
    estimated = Column(Text)
    driver = Column(Text)
    number = Column(String(64))
    origin = Column(Text)
    destination = Column(Text)
    vehicle = Column(Text)
    people = Column(Text)
    mode = Column(String(32))
    includes = Column(Text)

    service = relationship("Service", back_populates="stopovers")
