"""
Tenant scope resolution.

A caller may see its own company and the companies whose parent is its
company (one level only). SuperAdmin is unbounded.
"""
from dataclasses import dataclass
from typing import FrozenSet, Optional

from sqlalchemy import false
from sqlalchemy.orm import Session, Query

from auth.principal import Principal
from database.models import Company


@dataclass(frozen=True)
class TenantScope:
    """Set of company ids a principal may read and write."""
    company_ids: Optional[FrozenSet[int]] = None  # None means every company

    @classmethod
    def everything(cls) -> "TenantScope":
        return cls(None)

    @classmethod
    def nothing(cls) -> "TenantScope":
        return cls(frozenset())

    @property
    def is_unbounded(self) -> bool:
        return self.company_ids is None

    @property
    def is_empty(self) -> bool:
        return self.company_ids is not None and not self.company_ids

    def contains(self, company_id: Optional[int]) -> bool:
        if company_id is None:
            return False
        if self.company_ids is None:
            return True
        return company_id in self.company_ids

    def filter(self, query: Query, column) -> Query:
        """Restrict a query to rows whose `column` is inside the scope."""
        if self.company_ids is None:
            return query
        if not self.company_ids:
            return query.filter(false())
        return query.filter(column.in_(self.company_ids))


def allowed_company_ids(db: Session, principal: Principal) -> TenantScope:
    """
    Compute the companies visible to a principal.

    Args:
        db: Database session
        principal: Caller

    Returns:
        TenantScope for the caller
    """
    if principal.is_super_admin:
        return TenantScope.everything()

    if principal.is_guest or not principal.company_id:
        return TenantScope.nothing()

    child_ids = db.query(Company.id).filter(
        Company.parent_company_id == principal.company_id
    ).all()
    return TenantScope(frozenset({principal.company_id, *(row[0] for row in child_ids)}))
