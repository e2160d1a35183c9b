import pytest

from auth.principal import Principal
from database.models import Company, Site, UserRole
from schemas.drafts import CompanyDraft, SiteDraft
from services.company_service import company_service
from services.tenant_scope import allowed_company_ids
from services.site_service import site_service
from services.repository import DeleteMode
from services.errors import AccessDenied, Blocked, DuplicateCode, NotFound, ValidationError


def _fields(excinfo):
    return {e.field for e in excinfo.value.errors}


# ----------------------------------------------------------------------
# Companies
# ----------------------------------------------------------------------

def test_admin_creates_child_company(db, tenants, principals):
    draft = CompanyDraft(parent_company_id=tenants.head.id, code=" br2 ", name="  Branch Two ")
    company = company_service.create(db, principals.admin, draft)

    assert company.code == "BR2"
    assert company.name == "Branch Two"
    assert company.created_by == principals.admin.user_id
    assert company.created_date is not None


def test_company_code_is_unique_across_tenants(db, tenants, principals):
    draft = CompanyDraft(parent_company_id=tenants.other.id, code="br1", name="Clash")
    with pytest.raises(DuplicateCode):
        company_service.create(db, principals.outsider, draft)


def test_admin_cannot_create_company_under_foreign_parent(db, tenants, principals):
    draft = CompanyDraft(parent_company_id=tenants.other.id, code="ZZ", name="Foreign")
    with pytest.raises(AccessDenied):
        company_service.create(db, principals.admin, draft)
    assert db.query(Company).filter(Company.code == "ZZ").first() is None


def test_update_keeping_own_code_is_not_a_duplicate(db, tenants, principals):
    draft = CompanyDraft(parent_company_id=tenants.head.id, code="BR1", name="Branch One Renamed",
                         email="branch@example.com")
    company = company_service.update(db, principals.admin, tenants.branch.id, draft)
    assert company.name == "Branch One Renamed"
    assert company.updated_by == principals.admin.user_id
    assert company.created_date is not None


def test_company_cannot_be_its_own_parent(db, tenants, principals):
    draft = CompanyDraft(parent_company_id=tenants.branch.id, code="BR1", name="Branch One")
    with pytest.raises(ValidationError) as excinfo:
        company_service.update(db, principals.root, tenants.branch.id, draft)
    assert _fields(excinfo) == {"parent_company_id"}


def test_company_cannot_move_under_its_own_child(db, tenants, principals):
    draft = CompanyDraft(parent_company_id=tenants.branch.id, code="HO", name="Head Office", is_head_office=True)
    with pytest.raises(ValidationError) as excinfo:
        company_service.update(db, principals.root, tenants.head.id, draft)
    assert _fields(excinfo) == {"parent_company_id"}

    deeper = CompanyDraft(parent_company_id=tenants.grandchild.id, code="HO", name="Head Office")
    with pytest.raises(ValidationError):
        company_service.update(db, principals.root, tenants.head.id, deeper)

    db.expire_all()
    assert db.get(Company, tenants.head.id).parent_company_id is None


def test_admin_cannot_reparent_own_company(db, tenants, principals):
    draft = CompanyDraft(parent_company_id=tenants.branch.id, code="HO", name="Head Office")
    with pytest.raises(ValidationError) as excinfo:
        company_service.update(db, principals.admin, tenants.head.id, draft)
    assert _fields(excinfo) == {"parent_company_id"}

    branch_admin = Principal(user_id=principals.site_admin.user_id, company_id=tenants.branch.id,
                             role=UserRole.ADMIN)
    assert not allowed_company_ids(db, branch_admin).contains(tenants.head.id)


def test_super_admin_can_move_company_to_another_tree(db, tenants, principals):
    draft = CompanyDraft(parent_company_id=tenants.other.id, code="BR1", name="Branch One")
    company = company_service.update(db, principals.root, tenants.branch.id, draft)
    assert company.parent_company_id == tenants.other.id


@pytest.fixture
def branch_admin(tenants):
    return Principal(user_id=tenants.users.site_admin.id, company_id=tenants.branch.id, role=UserRole.ADMIN)


def test_admin_saves_own_company_with_parent_unchanged(db, tenants, branch_admin):
    draft = CompanyDraft(parent_company_id=tenants.head.id, code="BR1", name="Branch One Ltd")
    company = company_service.update(db, branch_admin, tenants.branch.id, draft)
    assert company.name == "Branch One Ltd"
    assert company.parent_company_id == tenants.head.id


def test_admin_cannot_detach_own_company(db, tenants, principals, branch_admin):
    draft = CompanyDraft(parent_company_id=None, code="BR1", name="Branch One")
    with pytest.raises(ValidationError) as excinfo:
        company_service.update(db, branch_admin, tenants.branch.id, draft)
    assert _fields(excinfo) == {"parent_company_id"}

    db.expire_all()
    assert db.get(Company, tenants.branch.id).parent_company_id == tenants.head.id
    assert allowed_company_ids(db, principals.admin).contains(tenants.branch.id)


def test_company_field_rules_reported_together(db, tenants, principals):
    draft = CompanyDraft(parent_company_id=tenants.head.id, code="X", name="", email="bad")
    with pytest.raises(ValidationError) as excinfo:
        company_service.create(db, principals.admin, draft)
    assert _fields(excinfo) == {"code", "name", "email"}


def test_company_read_outside_scope_is_denied(db, tenants, principals):
    with pytest.raises(AccessDenied):
        company_service.get_by_id(db, principals.admin, tenants.grandchild.id)
    with pytest.raises(NotFound):
        company_service.get_by_id(db, principals.admin, 9999)
    assert company_service.get_by_id(db, principals.root, tenants.grandchild.id).code == "GC"


def test_company_list_is_scoped(db, tenants, principals):
    assert [c.code for c in company_service.list(db, principals.admin)] == ["BR1", "HO"]
    rows, total = company_service.list_page(db, principals.root, page=1, limit=2)
    assert total == 4
    assert len(rows) == 2


def test_company_delete_is_blocked_by_dependents(db, tenants, principals):
    with pytest.raises(Blocked) as excinfo:
        company_service.delete(db, principals.root, tenants.head.id)
    reasons = " ".join(excinfo.value.reasons)
    assert "child compan" in reasons
    assert "site" in reasons
    assert "user" in reasons


def test_company_delete_deactivates(db, tenants, principals):
    result = company_service.delete(db, principals.root, tenants.grandchild.id)
    assert result.mode == DeleteMode.SOFT
    company = db.get(Company, tenants.grandchild.id)
    assert company is not None
    assert company.is_active is False


def test_parent_options_exclude_self(db, tenants, principals):
    options = company_service.parent_options(db, principals.admin, exclude_id=tenants.branch.id)
    assert [c.code for c in options] == ["HO"]


# ----------------------------------------------------------------------
# Sites
# ----------------------------------------------------------------------

def test_site_code_unique_per_company(db, tenants, principals):
    # Same code in another company is fine
    site = site_service.create(db, principals.admin, SiteDraft(company_id=tenants.branch.id, code="hs", name="Second"))
    assert site.code == "HS"

    with pytest.raises(DuplicateCode):
        site_service.create(db, principals.admin, SiteDraft(company_id=tenants.head.id, code="Hs", name="Dup"))


def test_site_validation_collects_all_fields(db, tenants, principals):
    with pytest.raises(ValidationError) as excinfo:
        site_service.create(db, principals.admin, SiteDraft(company_id=None, code="X", name=""))
    assert _fields(excinfo) == {"company_id", "code", "name"}


def test_site_write_into_foreign_company_is_denied(db, tenants, principals):
    with pytest.raises(AccessDenied):
        site_service.create(db, principals.admin, SiteDraft(company_id=tenants.other.id, code="NEW", name="New"))


def test_site_update_cannot_move_out_of_scope(db, tenants, principals):
    draft = SiteDraft(company_id=tenants.other.id, code="HS", name="Moved")
    with pytest.raises(AccessDenied):
        site_service.update(db, principals.admin, tenants.head_site.id, draft)
    db.expire_all()
    assert db.get(Site, tenants.head_site.id).company_id == tenants.head.id


def test_site_list_is_scoped(db, tenants, principals):
    assert {s.code for s in site_service.list(db, principals.admin)} == {"HS", "BS"}
    assert {s.code for s in site_service.list(db, principals.outsider)} == {"OS"}


def test_site_list_by_company(db, tenants, principals):
    sites = site_service.list_by_company(db, principals.admin, tenants.branch.id)
    assert [s.code for s in sites] == ["BS"]
    with pytest.raises(AccessDenied):
        site_service.list_by_company(db, principals.admin, tenants.other.id)


def test_site_delete_blocked_by_users(db, tenants, principals):
    with pytest.raises(Blocked) as excinfo:
        site_service.delete(db, principals.admin, tenants.branch_site.id)
    assert any("user" in reason for reason in excinfo.value.reasons)


def test_unused_site_is_removed(db, tenants, principals):
    site = site_service.create(db, principals.admin, SiteDraft(company_id=tenants.head.id, code="TMP", name="Temp"))
    site_id = site.id
    result = site_service.delete(db, principals.admin, site_id)
    assert result.mode == DeleteMode.HARD
    assert db.get(Site, site_id) is None
