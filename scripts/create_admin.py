#!/usr/bin/env python3
"""
Script to seed the head office company and its SuperAdmin user.
"""
import sys
from pathlib import Path

# Add parent directory to the system path
sys.path.insert(0, str(Path(__file__).parent.parent))

from database.connection import Database
from database.models import Company, UserRole
from services.auth_service import AuthService
from core.clock import utcnow
import config


def get_or_create_head_office(db, code: str, name: str) -> Company:
    """Return the company with this code, creating it as a head office if missing."""
    company = db.query(Company).filter(Company.code == code).first()
    if company:
        print(f"Using existing company {company.code} - {company.name}")
        return company

    company = Company(
        code=code,
        name=name,
        is_head_office=True,
        is_active=True,
        created_date=utcnow(),
    )
    db.add(company)
    db.commit()
    db.refresh(company)
    print(f"Created head office {company.code} - {company.name}")
    return company


def create_admin():
    """Create the head office and a SuperAdmin user."""
    # Initialize database
    config.db = Database(
        database_url=config.DATABASE_URL,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW
    )
    config.db.create_tables()

    print("Creating SuperAdmin user...")
    print("=" * 50)

    # Get user input
    company_code = (input("Head office code [HO]: ").strip() or "HO").upper()
    company_name = input("Head office name [Head Office]: ").strip() or "Head Office"
    username = input("Username: ").strip()
    email = input("Email: ").strip()
    password = input("Password: ").strip()
    first_name = input("First name: ").strip() or "Super"
    last_name = input("Last name: ").strip() or "Admin"

    if not username or not email or not password:
        print("Error: Username, email, and password are required")
        sys.exit(1)

    try:
        with config.db.get_session() as db:
            company = get_or_create_head_office(db, company_code, company_name)
            user = AuthService.create_user(
                db=db,
                username=username,
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                role=UserRole.SUPER_ADMIN,
                company_id=company.id,
            )
            print(f"\n✓ SuperAdmin user created successfully!")
            print(f"  Username: {user.username}")
            print(f"  Email: {user.email}")
            print(f"  Company: {company.code}")
            print(f"  Role: {user.role.value}")
    except ValueError as e:
        print(f"\n✗ Error: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"\n✗ Unexpected error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    create_admin()
