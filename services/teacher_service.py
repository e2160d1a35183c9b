"""
Teacher management.

A teacher is a teaching profile bound to one user account; an account can
back at most one active teacher.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from auth.principal import Principal
from database.models import Company, Site, Student, Teacher, User, ClassSchedule
from services.errors import Blocked, UserAlreadyAssigned
from services.repository import EntityRepository, DeleteMode, paginate
from services.tenant_scope import TenantScope, allowed_company_ids
from services.validation import FieldRules, clean_str
from core.logger import logger


@dataclass(frozen=True)
class TeacherView:
    """Teacher joined with its user account and site."""
    teacher: Teacher
    first_name: str
    last_name: str
    email: str
    site_name: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class TeacherService(EntityRepository):
    model = Teacher
    entity_name = "Teacher"
    table_name = "Teachers"
    search_columns = (Teacher.code, Teacher.specialization)

    def order_by(self) -> List:
        return [Teacher.code]

    def check_fields(self, values: Dict[str, Any], rules: FieldRules):
        rules.required("user_id", values.get("user_id"), "User")
        rules.required("company_id", values.get("company_id"), "Company")
        rules.required("site_id", values.get("site_id"), "Site")
        rules.length("code", values.get("code"), "Teacher code", 20, 3, required=True)
        rules.length("specialization", values.get("specialization"), "Specialization", 100)
        rules.int_range("experience_years", values.get("experience_years"), "Experience (years)", 0, 50)
        rules.decimal_range("hourly_rate", values.get("hourly_rate"), "Hourly rate",
                            Decimal("0"), Decimal("9999999.99"))
        rules.int_range("max_students_per_day", values.get("max_students_per_day"),
                        "Max students per day", 1, 20, required=True)

    def check_references(self, db: Session, scope: TenantScope,
                         values: Dict[str, Any], rules: FieldRules, existing=None):
        company_id = values.get("company_id")
        if company_id is not None and db.get(Company, company_id) is None:
            rules.add("company_id", "Company not found")

        if values.get("site_id") is not None:
            site = db.get(Site, values["site_id"])
            if site is None or (company_id is not None and site.company_id != company_id):
                rules.add("site_id", "Site does not belong to the selected company")

        if values.get("user_id") is not None:
            user = db.get(User, values["user_id"])
            if user is None or not user.is_active or not scope.contains(user.company_id):
                rules.add("user_id", "User not found")

    def check_conflicts(self, db: Session, values: Dict[str, Any], exclude_id: Optional[int] = None):
        super().check_conflicts(db, values, exclude_id)
        if not values.get("is_active", True):
            return
        query = db.query(Teacher.id).filter(
            Teacher.user_id == values["user_id"], Teacher.is_active.is_(True)
        )
        if exclude_id is not None:
            query = query.filter(Teacher.id != exclude_id)
        if query.first() is not None:
            raise UserAlreadyAssigned(values["user_id"])

    def delete_mode(self, db: Session, entity: Teacher) -> DeleteMode:
        reasons = []
        today = self.clock().date()
        upcoming = db.query(ClassSchedule).filter(
            ClassSchedule.teacher_id == entity.id, ClassSchedule.schedule_date >= today
        ).count()
        if upcoming:
            reasons.append(f"{upcoming} upcoming class schedule(s)")
        students = db.query(Student).filter(
            Student.assigned_teacher_id == entity.id, Student.is_active.is_(True)
        ).count()
        if students:
            reasons.append(f"{students} active assigned student(s)")
        if reasons:
            logger.warning(f"Delete of teacher {entity.code} blocked: {', '.join(reasons)}")
            raise Blocked(self.entity_name, reasons)
        return DeleteMode.SOFT

    def list_with_user(self, db: Session, principal: Principal, search: Optional[str] = None,
                       page: int = 1, limit: int = 20) -> Tuple[List[TeacherView], int]:
        """Page of teachers flattened with user name, email and site name."""
        scope = allowed_company_ids(db, principal)
        query = (
            db.query(Teacher, User.first_name, User.last_name, User.email, Site.name)
            .join(User, Teacher.user_id == User.id)
            .join(Site, Teacher.site_id == Site.id)
        )
        query = scope.filter(query, Teacher.company_id)
        search = clean_str(search)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Teacher.code.ilike(pattern),
                Teacher.specialization.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
            ))
        total = query.count()
        rows = paginate(query.order_by(Teacher.code), page, limit).all()
        return [TeacherView(*row) for row in rows], total

    def available_users(self, db: Session, principal: Principal,
                        teacher_id: Optional[int] = None) -> List[User]:
        """
        Active users in scope not bound to an active teacher.

        When editing, pass the teacher's id so its own user stays selectable.
        """
        scope = allowed_company_ids(db, principal)
        bound = select(Teacher.user_id).where(Teacher.is_active.is_(True))
        if teacher_id is not None:
            bound = bound.where(Teacher.id != teacher_id)
        query = scope.filter(db.query(User), User.company_id)
        return (
            query.filter(User.is_active.is_(True), User.id.notin_(bound))
            .order_by(User.first_name, User.last_name)
            .all()
        )


teacher_service = TeacherService()
