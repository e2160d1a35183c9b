import pytest

from database.models import Book, Grade, GradeBook, Inventory, Student
from schemas.drafts import BookDraft, GradeDraft
from services.book_service import book_service
from services.grade_service import grade_service
from services.repository import DeleteMode
from services.errors import Blocked, DuplicateCode, ValidationError


@pytest.fixture
def grade(db, tenants, principals):
    return grade_service.create(
        db, principals.admin,
        GradeDraft(company_id=tenants.head.id, code="g1", name="Grade One", duration=12, sort_order=1)
    )


@pytest.fixture
def book(db, tenants, principals):
    return book_service.create(
        db, principals.admin,
        BookDraft(company_id=tenants.head.id, code="bk-01", title="Starter Book", author="A. Writer")
    )


def test_grade_create_normalizes_code(grade, principals):
    assert grade.code == "G1"
    assert grade.created_by == principals.admin.user_id


def test_grade_ranges_are_checked(db, tenants, principals):
    draft = GradeDraft(company_id=tenants.head.id, code="G2", name="Two", duration=0, sort_order=101)
    with pytest.raises(ValidationError) as excinfo:
        grade_service.create(db, principals.admin, draft)
    assert {e.field for e in excinfo.value.errors} == {"duration", "sort_order"}


def test_grade_duplicate_code(db, tenants, principals, grade):
    with pytest.raises(DuplicateCode):
        grade_service.create(db, principals.admin, GradeDraft(company_id=tenants.head.id, code="G1", name="Again"))


def test_grades_ordered_by_sort_order(db, tenants, principals, grade):
    grade_service.create(db, principals.admin,
                         GradeDraft(company_id=tenants.head.id, code="G0", name="Zero", sort_order=1))
    grade_service.create(db, principals.admin,
                         GradeDraft(company_id=tenants.head.id, code="G5", name="Five", sort_order=5))
    codes = [g.code for g in grade_service.list(db, principals.admin)]
    assert codes.index("G5") > codes.index("G1")


def test_unused_grade_is_removed(db, principals, grade):
    grade_id = grade.id
    assert grade_service.delete(db, principals.admin, grade_id).mode == DeleteMode.HARD
    assert db.get(Grade, grade_id) is None


def test_grade_with_books_cannot_be_deleted(db, principals, grade, book):
    db.add(GradeBook(grade_id=grade.id, book_id=book.id))
    db.commit()
    with pytest.raises(Blocked) as excinfo:
        grade_service.delete(db, principals.admin, grade.id)
    assert excinfo.value.reasons == ["1 book assignment(s)"]


def test_grade_with_students_cannot_be_deleted(db, tenants, principals, grade):
    db.add(Student(
        company_id=tenants.head.id, site_id=tenants.head_site.id, code="STU01",
        first_name="Ann", last_name="Lee", full_name="Ann Lee", parent_name="Pat Lee",
        registration_date=grade.created_date.date(), current_grade_id=grade.id,
    ))
    db.commit()
    with pytest.raises(Blocked):
        grade_service.delete(db, principals.admin, grade.id)


def test_book_title_length(db, tenants, principals):
    with pytest.raises(ValidationError) as excinfo:
        book_service.create(db, principals.admin, BookDraft(company_id=tenants.head.id, code="B2", title="Hi"))
    assert [e.field for e in excinfo.value.errors] == ["title"]


def test_unreferenced_book_is_removed(db, principals, book):
    book_id = book.id
    assert book_service.delete(db, principals.admin, book_id).mode == DeleteMode.HARD
    assert db.get(Book, book_id) is None


def test_book_in_inventory_is_deactivated(db, tenants, principals, book):
    db.add(Inventory(company_id=tenants.head.id, site_id=tenants.head_site.id, book_id=book.id, current_stock=3))
    db.commit()

    result = book_service.delete(db, principals.admin, book.id)
    assert result.soft
    assert db.get(Book, book.id).is_active is False


def test_book_toggle_status(db, principals, book):
    assert book_service.toggle_status(db, principals.admin, book.id).is_active is False
    assert book_service.toggle_status(db, principals.admin, book.id).is_active is True


def test_book_search(db, tenants, principals, book):
    book_service.create(db, principals.admin,
                        BookDraft(company_id=tenants.head.id, code="BK-02", title="Advanced Grammar"))
    rows, total = book_service.list_page(db, principals.admin, search="grammar")
    assert total == 1
    assert rows[0].code == "BK-02"
