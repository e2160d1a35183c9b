"""
Student management.

Students are never removed; delete deactivates them so attendance,
schedules and billing history keep their references.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, aliased

from auth.principal import Principal
from database.models import Company, Grade, Site, Student, StudentStatus, Teacher, User
from services.repository import EntityRepository, DeleteMode, paginate
from services.tenant_scope import TenantScope, allowed_company_ids
from services.validation import FieldRules, clean_str


@dataclass(frozen=True)
class StudentView:
    """Student joined with site, current grade and assigned teacher."""
    student: Student
    site_name: str
    grade_name: Optional[str]
    teacher_code: Optional[str]
    teacher_first_name: Optional[str]
    teacher_last_name: Optional[str]

    @property
    def teacher_name(self) -> Optional[str]:
        if self.teacher_code is None:
            return None
        return f"{self.teacher_first_name or ''} {self.teacher_last_name or ''}".strip()


class StudentService(EntityRepository):
    model = Student
    entity_name = "Student"
    table_name = "Students"
    search_columns = (Student.code, Student.full_name, Student.parent_name, Student.phone, Student.email)

    def order_by(self) -> List:
        return [Student.code]

    def normalize(self, values: Dict[str, Any]) -> Dict[str, Any]:
        values = super().normalize(values)
        if values.get("gender"):
            values["gender"] = values["gender"].upper()
        values["full_name"] = f"{values.get('first_name') or ''} {values.get('last_name') or ''}".strip()
        return values

    def check_fields(self, values: Dict[str, Any], rules: FieldRules):
        rules.required("company_id", values.get("company_id"), "Company")
        rules.required("site_id", values.get("site_id"), "Site")
        rules.length("code", values.get("code"), "Student code", 20, 5, required=True)
        rules.length("first_name", values.get("first_name"), "First name", 50, required=True)
        rules.length("last_name", values.get("last_name"), "Last name", 50, required=True)
        rules.length("gender", values.get("gender"), "Gender", 1)
        rules.length("phone", values.get("phone"), "Phone", 20)
        rules.email("email", values.get("email"), "Email")
        rules.length("address", values.get("address"), "Address", 500)
        rules.length("city", values.get("city"), "City", 50)
        rules.length("parent_name", values.get("parent_name"), "Parent name", 100, required=True)
        rules.length("parent_phone", values.get("parent_phone"), "Parent phone", 20)
        rules.email("parent_email", values.get("parent_email"), "Parent email")
        rules.required("registration_date", values.get("registration_date"), "Registration date")
        if rules.required("status", values.get("status"), "Status"):
            rules.one_of("status", values.get("status"), "Status", [s.value for s in StudentStatus])
        rules.length("notes", values.get("notes"), "Notes", 1000)

    def check_references(self, db: Session, scope: TenantScope,
                         values: Dict[str, Any], rules: FieldRules, existing=None):
        company_id = values.get("company_id")
        if company_id is not None and db.get(Company, company_id) is None:
            rules.add("company_id", "Company not found")

        if values.get("site_id") is not None:
            site = db.get(Site, values["site_id"])
            if site is None or (company_id is not None and site.company_id != company_id):
                rules.add("site_id", "Site does not belong to the selected company")

        grade_id = values.get("current_grade_id")
        if grade_id is not None:
            grade = db.get(Grade, grade_id)
            if grade is None or not scope.contains(grade.company_id):
                rules.add("current_grade_id", "Grade not found")

        teacher_id = values.get("assigned_teacher_id")
        if teacher_id is not None:
            teacher = db.get(Teacher, teacher_id)
            if teacher is None or not teacher.is_active or not scope.contains(teacher.company_id):
                rules.add("assigned_teacher_id", "Teacher not found")

    def delete_mode(self, db: Session, entity: Student) -> DeleteMode:
        return DeleteMode.SOFT

    def list_with_refs(self, db: Session, principal: Principal, search: Optional[str] = None,
                       status: Optional[str] = None, page: int = 1,
                       limit: int = 20) -> Tuple[List[StudentView], int]:
        """Page of students flattened with site, grade and teacher names."""
        scope = allowed_company_ids(db, principal)
        teacher_user = aliased(User)
        query = (
            db.query(
                Student, Site.name, Grade.name,
                Teacher.code, teacher_user.first_name, teacher_user.last_name
            )
            .join(Site, Student.site_id == Site.id)
            .outerjoin(Grade, Student.current_grade_id == Grade.id)
            .outerjoin(Teacher, Student.assigned_teacher_id == Teacher.id)
            .outerjoin(teacher_user, Teacher.user_id == teacher_user.id)
        )
        query = scope.filter(query, Student.company_id)
        if status:
            query = query.filter(Student.status == status)
        search = clean_str(search)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(*(column.ilike(pattern) for column in self.search_columns)))
        total = query.count()
        rows = paginate(query.order_by(Student.code), page, limit).all()
        return [StudentView(*row) for row in rows], total


student_service = StudentService()
