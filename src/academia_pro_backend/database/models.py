from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, ForeignKeyConstraint, Index, Integer, Numeric, PrimaryKeyConstraint, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
import datetime
import decimal
import uuid

from .db_enums import UserRole, ServiceCategoryEnum, OrderStatusEnum, PaymentStatusEnum, PaymentMethodEnum


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Base(DeclarativeBase):
    pass


class Users(Base):
    __tablename__ = 'users'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='users_pkey'),
        UniqueConstraint('email', name='users_email_key')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255))
    password: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(Enum(*UserRole.get_all_names(), name='user_role'), default=UserRole.STUDENT.value)
    full_name: Mapped[Optional[str]] = mapped_column(Text)
    bio: Mapped[Optional[str]] = mapped_column(Text)
    avatar_url: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # Bumped on logout / password change; tokens carrying an older value are rejected.
    token_version: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, server_default=func.now())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, onupdate=_utcnow, server_default=func.now())

    services: Mapped[list['Services']] = relationship('Services', back_populates='tutor')


class Services(Base):
    __tablename__ = 'services'
    __table_args__ = (
        ForeignKeyConstraint(['tutor_id'], ['users.id'], ondelete='CASCADE', name='services_tutor_id_fkey'),
        PrimaryKeyConstraint('id', name='services_pkey'),
        CheckConstraint('delivery_days >= 1', name='services_delivery_days_check'),
        CheckConstraint('price >= 0', name='services_price_check'),
        Index('idx_services_category', 'category'),
        Index('idx_services_tutor', 'tutor_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tutor_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    title: Mapped[str] = mapped_column(Text)
    description: Mapped[str] = mapped_column(Text)
    price: Mapped[decimal.Decimal] = mapped_column(Numeric(10, 2))
    delivery_days: Mapped[int] = mapped_column(Integer)
    category: Mapped[str] = mapped_column(Enum(*ServiceCategoryEnum.get_all_names(), name='service_category_enum'))
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    rating: Mapped[decimal.Decimal] = mapped_column(Numeric(2, 1), default=decimal.Decimal('0.0'))
    total_reviews: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, server_default=func.now())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, onupdate=_utcnow, server_default=func.now())

    tutor: Mapped['Users'] = relationship('Users', back_populates='services')
    orders: Mapped[list['Orders']] = relationship('Orders', back_populates='service')


class Orders(Base):
    __tablename__ = 'orders'
    __table_args__ = (
        ForeignKeyConstraint(['student_id'], ['users.id'], ondelete='CASCADE', name='orders_student_id_fkey'),
        ForeignKeyConstraint(['tutor_id'], ['users.id'], ondelete='CASCADE', name='orders_tutor_id_fkey'),
        ForeignKeyConstraint(['service_id'], ['services.id'], ondelete='CASCADE', name='orders_service_id_fkey'),
        PrimaryKeyConstraint('id', name='orders_pkey'),
        Index('idx_orders_student', 'student_id'),
        Index('idx_orders_tutor', 'tutor_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    service_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    tutor_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    title: Mapped[str] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[decimal.Decimal] = mapped_column(Numeric(10, 2))
    status: Mapped[str] = mapped_column(Enum(*OrderStatusEnum.get_all_names(), name='order_status_enum'), default=OrderStatusEnum.PENDING.value)
    delivery_date: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True))
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, server_default=func.now())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, onupdate=_utcnow, server_default=func.now())

    service: Mapped['Services'] = relationship('Services', back_populates='orders')
    student: Mapped['Users'] = relationship('Users', foreign_keys=[student_id])
    tutor: Mapped['Users'] = relationship('Users', foreign_keys=[tutor_id])
    payments: Mapped[list['Payments']] = relationship('Payments', back_populates='order')
    messages: Mapped[list['Messages']] = relationship('Messages', back_populates='order', order_by='Messages.created_at')
    review: Mapped[Optional['Reviews']] = relationship('Reviews', back_populates='order', uselist=False)


class Payments(Base):
    __tablename__ = 'payments'
    __table_args__ = (
        ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE', name='payments_order_id_fkey'),
        ForeignKeyConstraint(['student_id'], ['users.id'], ondelete='CASCADE', name='payments_student_id_fkey'),
        PrimaryKeyConstraint('id', name='payments_pkey')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    amount: Mapped[decimal.Decimal] = mapped_column(Numeric(10, 2))
    payment_method: Mapped[str] = mapped_column(Enum(*PaymentMethodEnum.get_all_names(), name='payment_method_enum'))
    status: Mapped[str] = mapped_column(Enum(*PaymentStatusEnum.get_all_names(), name='payment_status_enum'), default=PaymentStatusEnum.PENDING.value)
    transaction_reference: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, server_default=func.now())

    order: Mapped['Orders'] = relationship('Orders', back_populates='payments')


class Messages(Base):
    __tablename__ = 'messages'
    __table_args__ = (
        ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE', name='messages_order_id_fkey'),
        ForeignKeyConstraint(['sender_id'], ['users.id'], ondelete='CASCADE', name='messages_sender_id_fkey'),
        ForeignKeyConstraint(['receiver_id'], ['users.id'], ondelete='CASCADE', name='messages_receiver_id_fkey'),
        PrimaryKeyConstraint('id', name='messages_pkey'),
        Index('idx_messages_order_created', 'order_id', 'created_at')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    sender_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    receiver_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    message_text: Mapped[str] = mapped_column(Text)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, server_default=func.now())

    order: Mapped['Orders'] = relationship('Orders', back_populates='messages')
    sender: Mapped['Users'] = relationship('Users', foreign_keys=[sender_id])


class Reviews(Base):
    __tablename__ = 'reviews'
    __table_args__ = (
        ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE', name='reviews_order_id_fkey'),
        ForeignKeyConstraint(['service_id'], ['services.id'], ondelete='CASCADE', name='reviews_service_id_fkey'),
        ForeignKeyConstraint(['student_id'], ['users.id'], ondelete='CASCADE', name='reviews_student_id_fkey'),
        ForeignKeyConstraint(['tutor_id'], ['users.id'], ondelete='CASCADE', name='reviews_tutor_id_fkey'),
        PrimaryKeyConstraint('id', name='reviews_pkey'),
        UniqueConstraint('order_id', name='reviews_order_id_key'),
        CheckConstraint('rating >= 1 AND rating <= 5', name='reviews_rating_check'),
        Index('idx_reviews_tutor', 'tutor_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    service_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    tutor_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    rating: Mapped[int] = mapped_column(Integer)
    comment: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, server_default=func.now())

    order: Mapped['Orders'] = relationship('Orders', back_populates='review')
    student: Mapped['Users'] = relationship('Users', foreign_keys=[student_id])
