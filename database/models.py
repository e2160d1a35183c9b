"""
Database models for the course administration system.
"""
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Text, Numeric,
    ForeignKey, JSON, Index, TypeDecorator, text
)
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import relationship
import enum

from core.clock import utcnow

Base = declarative_base()


# ============================================================================
# Custom Type Decorator for Enum Values
# ============================================================================

class EnumValue(TypeDecorator):
    """Type decorator to ensure enum values (not names) are stored."""
    impl = String
    cache_ok = True

    def __init__(self, enum_class, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.enum_class = enum_class

    def process_bind_param(self, value, dialect):
        """Convert enum to its value when writing to database."""
        if value is None:
            return None
        if isinstance(value, enum.Enum):
            return value.value
        return value

    def process_result_value(self, value, dialect):
        """Convert database value back to enum when reading."""
        if value is None:
            return None
        if isinstance(value, str):
            try:
                return self.enum_class(value)
            except ValueError:
                return value
        return value


# ============================================================================
# Enums - Must be defined before models that use them
# ============================================================================

class UserRole(str, enum.Enum):
    """User roles for authorization."""
    SUPER_ADMIN = "SuperAdmin"
    ADMIN = "Admin"
    SITE_ADMIN = "SiteAdmin"
    TEACHER = "Teacher"
    STAFF = "Staff"
    GUEST = "Guest"  # Unauthenticated / unknown role, never stored on a user


class StudentStatus(str, enum.Enum):
    """Student enrolment status."""
    PENDING = "Pending"
    TRIAL = "Trial"
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    GRADUATED = "Graduated"


class AuditAction(str, enum.Enum):
    """Audit trail actions."""
    INSERT = "Insert"
    UPDATE = "Update"
    DELETE = "Delete"


# ============================================================================
# Tenants
# ============================================================================

class Company(Base):
    """Company (tenant). A head office may own direct child companies."""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    parent_company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True)
    code = Column(String(10), nullable=False)
    name = Column(String(100), nullable=False)
    address = Column(String(500), nullable=True)
    city = Column(String(50), nullable=True)
    province = Column(String(50), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(100), nullable=True)
    is_head_office = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_date = Column(DateTime, default=utcnow, nullable=False)
    created_by = Column(Integer, nullable=True)
    updated_date = Column(DateTime, nullable=True)
    updated_by = Column(Integer, nullable=True)

    # Relationships
    parent_company = relationship("Company", remote_side=[id], back_populates="child_companies")
    child_companies = relationship("Company", back_populates="parent_company")
    sites = relationship("Site", back_populates="company")

    __table_args__ = (
        Index('uq_company_code', 'code', unique=True),
        Index('idx_company_parent', 'parent_company_id'),
        Index('idx_company_active', 'is_active'),
    )


class Site(Base):
    """Physical branch of a company."""
    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    code = Column(String(10), nullable=False)
    name = Column(String(100), nullable=False)
    address = Column(String(500), nullable=True)
    city = Column(String(50), nullable=True)
    province = Column(String(50), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(100), nullable=True)
    manager_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_date = Column(DateTime, default=utcnow, nullable=False)
    created_by = Column(Integer, nullable=True)
    updated_date = Column(DateTime, nullable=True)
    updated_by = Column(Integer, nullable=True)

    # Relationships
    company = relationship("Company", back_populates="sites")

    __table_args__ = (
        Index('uq_site_company_code', 'company_id', 'code', unique=True),
        Index('idx_site_company', 'company_id'),
    )


class User(Base):
    """Login account. Role is carried into the access token claims."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    site_id = Column(Integer, ForeignKey("sites.id", ondelete="SET NULL"), nullable=True)
    username = Column(String(50), nullable=False)
    email = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(EnumValue(UserRole), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_date = Column(DateTime, nullable=True)
    created_date = Column(DateTime, default=utcnow, nullable=False)
    created_by = Column(Integer, nullable=True)
    updated_date = Column(DateTime, nullable=True)
    updated_by = Column(Integer, nullable=True)

    __table_args__ = (
        Index('uq_user_username', 'username', unique=True),
        Index('uq_user_email', 'email', unique=True),
        Index('idx_user_company', 'company_id'),
        Index('idx_user_site', 'site_id'),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# ============================================================================
# Catalogue
# ============================================================================

class Grade(Base):
    """Course level offered by a company."""
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    code = Column(String(10), nullable=False)
    name = Column(String(50), nullable=False)
    description = Column(String(255), nullable=True)
    duration = Column(Integer, nullable=True)  # weeks
    sort_order = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_date = Column(DateTime, default=utcnow, nullable=False)
    created_by = Column(Integer, nullable=True)
    updated_date = Column(DateTime, nullable=True)
    updated_by = Column(Integer, nullable=True)

    __table_args__ = (
        Index('uq_grade_company_code', 'company_id', 'code', unique=True),
        Index('idx_grade_company', 'company_id'),
    )


class Book(Base):
    """Teaching material in a company's catalogue."""
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    code = Column(String(20), nullable=False)
    title = Column(String(200), nullable=False)
    author = Column(String(100), nullable=True)
    publisher = Column(String(100), nullable=True)
    isbn = Column(String(20), nullable=True)
    category = Column(String(50), nullable=True)
    description = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_date = Column(DateTime, default=utcnow, nullable=False)
    created_by = Column(Integer, nullable=True)
    updated_date = Column(DateTime, nullable=True)
    updated_by = Column(Integer, nullable=True)

    __table_args__ = (
        Index('uq_book_company_code', 'company_id', 'code', unique=True),
        Index('idx_book_company', 'company_id'),
    )


class GradeBook(Base):
    """Books required by a grade."""
    __tablename__ = "grade_books"

    id = Column(Integer, primary_key=True, index=True)
    grade_id = Column(Integer, ForeignKey("grades.id", ondelete="RESTRICT"), nullable=False)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="RESTRICT"), nullable=False)
    is_required = Column(Boolean, default=True, nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    sort_order = Column(Integer, nullable=True)
    created_date = Column(DateTime, default=utcnow, nullable=False)
    created_by = Column(Integer, nullable=True)

    __table_args__ = (
        Index('uq_grade_book', 'grade_id', 'book_id', unique=True),
    )


class Inventory(Base):
    """Book stock held by a site."""
    __tablename__ = "inventories"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    site_id = Column(Integer, ForeignKey("sites.id", ondelete="RESTRICT"), nullable=False)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="RESTRICT"), nullable=False)
    current_stock = Column(Integer, default=0, nullable=False)
    minimum_stock = Column(Integer, default=5, nullable=False)
    maximum_stock = Column(Integer, default=100, nullable=False)
    reorder_level = Column(Integer, default=10, nullable=False)
    last_updated = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_inventory_book', 'book_id'),
        Index('idx_inventory_site', 'site_id'),
    )


# ============================================================================
# People
# ============================================================================

class Teacher(Base):
    """Teaching profile bound to exactly one user account."""
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    site_id = Column(Integer, ForeignKey("sites.id", ondelete="RESTRICT"), nullable=False)
    code = Column(String(20), nullable=False)
    specialization = Column(String(100), nullable=True)
    experience_years = Column(Integer, nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    max_students_per_day = Column(Integer, default=8, nullable=False)
    is_available_for_trial = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_date = Column(DateTime, default=utcnow, nullable=False)
    created_by = Column(Integer, nullable=True)
    updated_date = Column(DateTime, nullable=True)
    updated_by = Column(Integer, nullable=True)

    __table_args__ = (
        Index('uq_teacher_company_code', 'company_id', 'code', unique=True),
        # One active teacher profile per user account
        Index(
            'uq_teacher_active_user', 'user_id', unique=True,
            postgresql_where=text('is_active'),
            sqlite_where=text('is_active = 1'),
        ),
        Index('idx_teacher_site', 'site_id'),
    )


class Student(Base):
    """Enrolled (or prospective) student."""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    site_id = Column(Integer, ForeignKey("sites.id", ondelete="RESTRICT"), nullable=False)
    code = Column(String(20), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    full_name = Column(String(101), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(1), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(100), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(50), nullable=True)
    parent_name = Column(String(100), nullable=False)
    parent_phone = Column(String(20), nullable=True)
    parent_email = Column(String(100), nullable=True)
    registration_date = Column(Date, nullable=False)
    status = Column(EnumValue(StudentStatus), default=StudentStatus.PENDING, nullable=False)
    current_grade_id = Column(Integer, ForeignKey("grades.id", ondelete="SET NULL"), nullable=True)
    assigned_teacher_id = Column(Integer, ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True)
    notes = Column(String(1000), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_date = Column(DateTime, default=utcnow, nullable=False)
    created_by = Column(Integer, nullable=True)
    updated_date = Column(DateTime, nullable=True)
    updated_by = Column(Integer, nullable=True)

    __table_args__ = (
        Index('uq_student_company_code', 'company_id', 'code', unique=True),
        Index('idx_student_site', 'site_id'),
        Index('idx_student_grade', 'current_grade_id'),
        Index('idx_student_teacher', 'assigned_teacher_id'),
    )


# ============================================================================
# Operations (only scanned for delete dependencies here)
# ============================================================================

class ClassSchedule(Base):
    """Scheduled lesson."""
    __tablename__ = "class_schedules"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    site_id = Column(Integer, ForeignKey("sites.id", ondelete="RESTRICT"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="RESTRICT"), nullable=False)
    teacher_id = Column(Integer, ForeignKey("teachers.id", ondelete="RESTRICT"), nullable=False)
    grade_id = Column(Integer, ForeignKey("grades.id", ondelete="RESTRICT"), nullable=False)
    schedule_date = Column(Date, nullable=False)
    duration = Column(Integer, default=60, nullable=False)  # minutes
    schedule_type = Column(String(20), default="Regular", nullable=False)
    status = Column(String(20), default="Scheduled", nullable=False)
    room = Column(String(50), nullable=True)
    notes = Column(String(500), nullable=True)
    created_date = Column(DateTime, default=utcnow, nullable=False)
    created_by = Column(Integer, nullable=True)

    __table_args__ = (
        Index('idx_schedule_teacher_date', 'teacher_id', 'schedule_date'),
        Index('idx_schedule_student', 'student_id'),
    )


class Attendance(Base):
    """Attendance record for a scheduled lesson."""
    __tablename__ = "attendances"

    id = Column(Integer, primary_key=True, index=True)
    class_schedule_id = Column(Integer, ForeignKey("class_schedules.id", ondelete="RESTRICT"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="RESTRICT"), nullable=False)
    teacher_id = Column(Integer, ForeignKey("teachers.id", ondelete="RESTRICT"), nullable=False)
    attendance_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False)  # Present, Absent, Late, Excused
    lesson_topic = Column(String(200), nullable=True)
    teacher_notes = Column(Text, nullable=True)
    created_date = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_attendance_student', 'student_id'),
    )


class Registration(Base):
    """Registration / trial request of a student."""
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    site_id = Column(Integer, ForeignKey("sites.id", ondelete="RESTRICT"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="RESTRICT"), nullable=False)
    code = Column(String(20), nullable=False)
    registration_date = Column(Date, nullable=False)
    requested_grade_id = Column(Integer, ForeignKey("grades.id", ondelete="RESTRICT"), nullable=False)
    status = Column(String(20), default="Pending", nullable=False)
    created_date = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_registration_student', 'student_id'),
    )


# ============================================================================
# Audit
# ============================================================================

class AuditLog(Base):
    """Append-only audit trail of entity mutations."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False)
    user_id = Column(Integer, nullable=False)
    table_name = Column(String(50), nullable=False)  # e.g. "Companies", "Students"
    record_id = Column(Integer, nullable=False)
    action = Column(EnumValue(AuditAction), nullable=False)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)  # IPv6 compatible
    user_agent = Column(String(500), nullable=True)
    action_date = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_audit_company_date', 'company_id', 'action_date'),
        Index('idx_audit_record', 'table_name', 'record_id'),
        Index('idx_audit_user', 'user_id'),
    )
