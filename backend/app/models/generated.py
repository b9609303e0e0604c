from sqlalchemy import Column, DateTime, Enum, Float, ForeignKey, Index, Integer, Text, UniqueConstraint, func, text

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Users(Base):
    __tablename__ = 'users'

    external_id = Column(Text, nullable=False, unique=True)
    email = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    role = Column(Enum('ADMIN', 'USER', name='user_role'), nullable=False, server_default=text("'USER'"))
    id = Column(Integer, primary_key=True)
    phone = Column(Text)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'), onupdate=func.now())

    subscription = relationship('Subscriptions', back_populates='user', uselist=False)
    ebook_access = relationship('UserEbookAccess', back_populates='user')
    appointments = relationship('Appointments', back_populates='user')


class Subscriptions(Base):
    __tablename__ = 'subscriptions'

    user_id = Column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    status = Column(
        Enum('ACTIVE', 'INACTIVE', 'CANCELLED', 'EXPIRED', name='subscription_status'),
        nullable=False,
        server_default=text("'INACTIVE'"),
    )
    plan_name = Column(Text, nullable=False, server_default=text("'premium'"))
    id = Column(Integer, primary_key=True)
    preapproval_id = Column(Text, unique=True)
    start_date = Column(DateTime)
    end_date = Column(DateTime)
    next_billing_date = Column(DateTime)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'), onupdate=func.now())

    user = relationship('Users', back_populates='subscription')


class BusinessHours(Base):
    __tablename__ = 'business_hours'

    start_time = Column(Text, nullable=False, server_default=text("'08:00'"))
    end_time = Column(Text, nullable=False, server_default=text("'18:00'"))
    lunch_start = Column(Text, nullable=False, server_default=text("'12:00'"))
    lunch_end = Column(Text, nullable=False, server_default=text("'13:00'"))
    consultation_duration = Column(Integer, nullable=False, server_default=text('30'))
    interval_between = Column(Integer, nullable=False, server_default=text('15'))
    enable_lunch_break = Column(Integer, nullable=False, server_default=text('1'))
    allow_weekends = Column(Integer, nullable=False, server_default=text('0'))
    # JSON list of weekday names: ["monday", "tuesday", ...]
    available_days = Column(Text, nullable=False, server_default=text("'[]'"))
    id = Column(Integer, primary_key=True)
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'), onupdate=func.now())


class EbookCategories(Base):
    __tablename__ = 'ebook_categories'

    name = Column(Text, nullable=False, unique=True)
    id = Column(Integer, primary_key=True)
    description = Column(Text)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'), onupdate=func.now())

    ebooks = relationship('Ebooks', back_populates='category')


class Ebooks(Base):
    __tablename__ = 'ebooks'

    category_id = Column(ForeignKey('ebook_categories.id', ondelete='RESTRICT'), nullable=False)
    title = Column(Text, nullable=False)
    author = Column(Text, nullable=False)
    file_url = Column(Text, nullable=False)
    file_type = Column(Enum('pdf', 'epub', 'mobi', name='ebook_file_type'), nullable=False)
    is_premium = Column(Integer, nullable=False, server_default=text('0'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    download_count = Column(Integer, nullable=False, server_default=text('0'))
    view_count = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    description = Column(Text)
    cover_image = Column(Text)
    price = Column(Float)
    file_size = Column(Integer)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'), onupdate=func.now())

    category = relationship('EbookCategories', back_populates='ebooks')
    user_access = relationship('UserEbookAccess', back_populates='ebook', cascade='all, delete-orphan')


class UserEbookAccess(Base):
    __tablename__ = 'user_ebook_access'
    __table_args__ = (
        UniqueConstraint('user_id', 'ebook_id'),
    )

    user_id = Column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    ebook_id = Column(ForeignKey('ebooks.id', ondelete='CASCADE'), nullable=False)
    download_count = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    last_download = Column(DateTime)
    first_access = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))
    last_access = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'), onupdate=func.now())

    user = relationship('Users', back_populates='ebook_access')
    ebook = relationship('Ebooks', back_populates='user_access')


class Appointments(Base):
    __tablename__ = 'appointments'
    __table_args__ = (
        # One live appointment per slot; cancelled rows may repeat
        Index(
            'uq_appointments_active_slot', 'date', 'time',
            unique=True,
            sqlite_where=text("status != 'CANCELLED'"),
            postgresql_where=text("status != 'CANCELLED'"),
        ),
    )

    user_id = Column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    date = Column(Text, nullable=False)  # YYYY-MM-DD
    time = Column(Text, nullable=False)  # HH:MM
    status = Column(
        Enum('PENDING', 'CONFIRMED', 'CANCELLED', 'COMPLETED', name='appointment_status'),
        nullable=False,
        server_default=text("'PENDING'"),
    )
    id = Column(Integer, primary_key=True)
    consultation_type = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'), onupdate=func.now())

    user = relationship('Users', back_populates='appointments')
