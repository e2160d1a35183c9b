"""
Book Catalogue APIs.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional, List

from auth.dependencies import get_db_session, require_principal, require_site_admin
from auth.principal import Principal
from database.models import Book
from schemas.drafts import BookDraft
from services.book_service import book_service
from services.company_service import company_service
import config


router = APIRouter(prefix="/api/books", tags=["books"])


class BookListResponse(BaseModel):
    """Book list response."""
    data: List[dict]
    total: int
    page: int
    limit: int


def _book_to_dict(book: Book, company_name: Optional[str] = None) -> dict:
    return {
        "id": book.id,
        "companyId": book.company_id,
        "companyName": company_name,
        "code": book.code,
        "title": book.title,
        "author": book.author,
        "publisher": book.publisher,
        "isbn": book.isbn,
        "category": book.category,
        "description": book.description,
        "isActive": book.is_active,
        "createdDate": book.created_date.isoformat() if book.created_date else None,
        "updatedDate": book.updated_date.isoformat() if book.updated_date else None,
    }


@router.get("", response_model=BookListResponse)
async def list_books(
    search: Optional[str] = Query(None),
    active_only: bool = Query(False, alias="activeOnly"),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """List books by code, then title."""
    books, total = book_service.list_page(db, principal, page, limit, search, active_only)
    names = company_service.names_for(db, (b.company_id for b in books))
    return BookListResponse(
        data=[_book_to_dict(b, names.get(b.company_id)) for b in books],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/{book_id}")
async def get_book(
    book_id: int,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """Get book by ID."""
    book = book_service.get_by_id(db, principal, book_id)
    names = company_service.names_for(db, [book.company_id])
    return {"success": True, "data": _book_to_dict(book, names.get(book.company_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_book(
    draft: BookDraft,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """Create book."""
    book = book_service.create(db, principal, draft)
    return {"success": True, "message": "Book created successfully", "data": _book_to_dict(book)}


@router.put("/{book_id}")
async def update_book(
    book_id: int,
    draft: BookDraft,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """Update book."""
    book = book_service.update(db, principal, book_id, draft)
    return {"success": True, "message": "Book updated successfully", "data": _book_to_dict(book)}


@router.patch("/{book_id}/toggle-status")
async def toggle_book_status(
    book_id: int,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """Activate or deactivate book."""
    book = book_service.toggle_status(db, principal, book_id)
    state = "activated" if book.is_active else "deactivated"
    return {"success": True, "message": f"Book {state} successfully", "data": _book_to_dict(book)}


@router.delete("/{book_id}")
async def delete_book(
    book_id: int,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """
    Delete book.
    Books used by a grade or held in inventory are deactivated instead.
    """
    result = book_service.delete(db, principal, book_id)
    message = "Book deactivated (still in use)" if result.soft else "Book deleted successfully"
    return {"success": True, "message": message, "mode": result.mode.value}
