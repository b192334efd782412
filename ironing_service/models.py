import enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    JSON,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Text,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Role(str, enum.Enum):
    USER = "USER"
    DELIVERY_PERSON = "DELIVERY_PERSON"
    FLOOR_MANAGER = "FLOOR_MANAGER"
    CENTER_OPERATOR = "CENTER_OPERATOR"
    ADMIN = "ADMIN"


class OrderStatus(str, enum.Enum):
    PLACED = "PLACED"
    ASSIGNED_FOR_PICKUP = "ASSIGNED_FOR_PICKUP"
    PICKED_UP = "PICKED_UP"
    AT_CENTER = "AT_CENTER"
    PROCESSING = "PROCESSING"
    QC = "QC"
    READY_FOR_DELIVERY = "READY_FOR_DELIVERY"
    ASSIGNED_FOR_DELIVERY = "ASSIGNED_FOR_DELIVERY"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    PICKUP_FAILED = "PICKUP_FAILED"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    REFUND_REQUESTED = "REFUND_REQUESTED"


class TripType(str, enum.Enum):
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"


class TripStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


# Stored as VARCHAR so SQLite and PostgreSQL share one schema
def _enum_column(enum_cls, name):
    return Enum(enum_cls, name=name, native_enum=False, length=32)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    phone = Column(String, nullable=True)
    role = Column(_enum_column(Role, "user_role"), nullable=False, default=Role.USER)
    api_token_hash = Column(String(64), unique=True, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    wallet = relationship("Wallet", back_populates="user", uselist=False, cascade="all, delete-orphan")
    addresses = relationship("Address", back_populates="user", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="user")


class Wallet(Base):
    __tablename__ = "wallets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    balance_cents = Column(Integer, nullable=False, default=0)

    user = relationship("User", back_populates="wallet")


class Address(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String, nullable=True)  # e.g. "Home", "Office"
    line1 = Column(String, nullable=False)
    city = Column(String, nullable=False)
    pincode = Column(String, nullable=False)

    user = relationship("User", back_populates="addresses")


class Center(Base):
    __tablename__ = "centers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    timeslots = relationship("Timeslot", back_populates="center", cascade="all, delete-orphan")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)  # 'Shirt', 'Pants', 'Dress', ...
    base_price_cents = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class Timeslot(Base):
    """A bounded-capacity pickup window at a processing center."""
    __tablename__ = "timeslots"

    id = Column(Integer, primary_key=True, index=True)
    center_id = Column(Integer, ForeignKey("centers.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # "09:00"
    end_time = Column(String(5), nullable=False)
    capacity = Column(Integer, nullable=False)
    remaining_capacity = Column(Integer, nullable=False)

    center = relationship("Center", back_populates="timeslots")


class Trip(Base):
    """A delivery person's batch pickup or delivery run."""
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    delivery_person_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(_enum_column(TripType, "trip_type"), nullable=False)
    status = Column(_enum_column(TripStatus, "trip_status"), nullable=False, default=TripStatus.PENDING)
    scheduled_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    delivery_person = relationship("User")
    pickup_orders = relationship("Order", back_populates="pickup_trip", foreign_keys="Order.pickup_trip_id")
    delivery_orders = relationship("Order", back_populates="delivery_trip", foreign_keys="Order.delivery_trip_id")

    @property
    def orders(self):
        if self.type == TripType.PICKUP:
            return self.pickup_orders
        return self.delivery_orders


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    address_id = Column(Integer, ForeignKey("addresses.id"), nullable=False)
    center_id = Column(Integer, ForeignKey("centers.id"), nullable=True, index=True)
    timeslot_id = Column(Integer, ForeignKey("timeslots.id"), nullable=False)
    pickup_trip_id = Column(Integer, ForeignKey("trips.id"), nullable=True, index=True)
    delivery_trip_id = Column(Integer, ForeignKey("trips.id"), nullable=True, index=True)

    status = Column(_enum_column(OrderStatus, "order_status"), nullable=False, default=OrderStatus.PLACED)
    delivery_type = Column(String(16), nullable=False, default="STANDARD")  # STANDARD / PREMIUM
    delivery_charge_cents = Column(Integer, nullable=False, default=0)
    estimated_delivery_time = Column(DateTime(timezone=True), nullable=True)
    total_cents = Column(Integer, nullable=False, default=0)
    payment_method = Column(String(16), nullable=False, default="WALLET")

    cancellation_reason = Column(Text, nullable=True)
    pickup_failure_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Optimistic concurrency: every UPDATE checks and bumps this
    version = Column(Integer, nullable=False, default=1)

    user = relationship("User", back_populates="orders")
    address = relationship("Address")
    center = relationship("Center")
    timeslot = relationship("Timeslot")
    pickup_trip = relationship("Trip", back_populates="pickup_orders", foreign_keys=[pickup_trip_id])
    delivery_trip = relationship("Trip", back_populates="delivery_orders", foreign_keys=[delivery_trip_id])
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    logs = relationship(
        "OrderLog",
        back_populates="order",
        order_by="OrderLog.id",
        passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": version}

    # Composite index for the center dashboard: orders at a center in a stage
    __table_args__ = (
        Index("ix_orders_center_id_status", "center_id", "status"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    name = Column(String, nullable=False)  # service name at time of ordering
    quantity = Column(Integer, nullable=False)
    price_cents = Column(Integer, nullable=False)  # unit price at time of ordering

    order = relationship("Order", back_populates="items")
    service = relationship("Service")


class OrderLog(Base):
    """Append-only audit record, one row per status transition."""
    __tablename__ = "order_logs"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    from_status = Column(_enum_column(OrderStatus, "order_status"), nullable=True)  # null only for the initial PLACED
    to_status = Column(_enum_column(OrderStatus, "order_status"), nullable=False)
    actor_id = Column(Integer, nullable=False)
    actor_role = Column(_enum_column(Role, "user_role"), nullable=False)
    log_metadata = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="logs")


class OTP(Base):
    __tablename__ = "otps"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    action = Column(String(16), nullable=False)  # 'pickup' or 'delivery'
    code_hash = Column(String(64), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_otps_order_id_action", "order_id", "action"),
    )
