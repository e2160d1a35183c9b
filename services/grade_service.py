"""
Grade (course level) management.
"""
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from database.models import Company, Grade, GradeBook, Student, ClassSchedule, Registration
from services.errors import Blocked
from services.repository import EntityRepository, DeleteMode
from services.tenant_scope import TenantScope
from services.validation import FieldRules
from core.logger import logger


class GradeService(EntityRepository):
    model = Grade
    entity_name = "Grade"
    table_name = "Grades"
    search_columns = (Grade.code, Grade.name, Grade.description)

    def order_by(self) -> List:
        return [Grade.sort_order, Grade.name]

    def check_fields(self, values: Dict[str, Any], rules: FieldRules):
        rules.required("company_id", values.get("company_id"), "Company")
        rules.length("code", values.get("code"), "Grade code", 10, 1, required=True)
        rules.length("name", values.get("name"), "Grade name", 50, required=True)
        rules.length("description", values.get("description"), "Description", 255)
        rules.int_range("duration", values.get("duration"), "Duration (weeks)", 1, 104)
        rules.int_range("sort_order", values.get("sort_order"), "Sort order", 1, 100)

    def check_references(self, db: Session, scope: TenantScope,
                         values: Dict[str, Any], rules: FieldRules, existing=None):
        company_id = values.get("company_id")
        if company_id is not None and db.get(Company, company_id) is None:
            rules.add("company_id", "Company not found")

    def delete_mode(self, db: Session, entity: Grade) -> DeleteMode:
        reasons = []
        students = db.query(Student).filter(Student.current_grade_id == entity.id).count()
        if students:
            reasons.append(f"{students} student(s) in this grade")
        books = db.query(GradeBook).filter(GradeBook.grade_id == entity.id).count()
        if books:
            reasons.append(f"{books} book assignment(s)")
        schedules = db.query(ClassSchedule).filter(ClassSchedule.grade_id == entity.id).count()
        if schedules:
            reasons.append(f"{schedules} class schedule(s)")
        registrations = db.query(Registration).filter(Registration.requested_grade_id == entity.id).count()
        if registrations:
            reasons.append(f"{registrations} registration(s)")
        if reasons:
            logger.warning(f"Delete of grade {entity.code} blocked: {', '.join(reasons)}")
            raise Blocked(self.entity_name, reasons)
        return DeleteMode.HARD


grade_service = GradeService()
