"""
Book catalogue management.

Books still referenced by a grade or by site inventory are deactivated
instead of removed.
"""
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from auth.principal import Principal
from database.models import Book, Company, GradeBook, Inventory
from services.repository import EntityRepository, DeleteMode
from services.tenant_scope import TenantScope
from services.validation import FieldRules


class BookService(EntityRepository):
    model = Book
    entity_name = "Book"
    table_name = "Books"
    search_columns = (Book.code, Book.title, Book.author, Book.isbn, Book.category)

    def order_by(self) -> List:
        return [Book.code, Book.title]

    def check_fields(self, values: Dict[str, Any], rules: FieldRules):
        rules.required("company_id", values.get("company_id"), "Company")
        rules.length("code", values.get("code"), "Book code", 20, 2, required=True)
        rules.length("title", values.get("title"), "Book title", 200, 3, required=True)
        rules.length("author", values.get("author"), "Author", 100)
        rules.length("publisher", values.get("publisher"), "Publisher", 100)
        rules.length("isbn", values.get("isbn"), "ISBN", 20)
        rules.length("category", values.get("category"), "Category", 50)
        rules.length("description", values.get("description"), "Description", 500)

    def check_references(self, db: Session, scope: TenantScope,
                         values: Dict[str, Any], rules: FieldRules, existing=None):
        company_id = values.get("company_id")
        if company_id is not None and db.get(Company, company_id) is None:
            rules.add("company_id", "Company not found")

    def delete_mode(self, db: Session, entity: Book) -> DeleteMode:
        in_grades = db.query(GradeBook.id).filter(GradeBook.book_id == entity.id).first()
        in_stock = db.query(Inventory.id).filter(Inventory.book_id == entity.id).first()
        if in_grades is not None or in_stock is not None:
            return DeleteMode.SOFT
        return DeleteMode.HARD

    def toggle_status(self, db: Session, principal: Principal, book_id: int) -> Book:
        """Flip a book between active and inactive."""
        book = self.get_by_id(db, principal, book_id)
        return self.set_active(db, principal, book_id, not book.is_active)


book_service = BookService()
