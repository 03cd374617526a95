#!/usr/bin/env python3
"""
Admin Seed Data Script

Creates the base roles and an initial admin account for the Busify backend,
then prints a bearer token for that admin so the review endpoints can be
exercised locally.

Usage:
    python seed_admin_data.py
"""

import os
import sys
from datetime import timedelta

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sqlalchemy.orm import Session

from src import models  # noqa: F401
from src.auth.utils import create_access_token, get_password_hash
from src.database import Base, SessionLocal, engine
from src.models import Role, User, UserHasRole

ROLES = ["admin", "operator", "customer", "customer_service"]

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@busify.com")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "Admin123!")

def create_roles(db: Session):
    """Create the base roles"""
    print("🔧 Creating roles...")

    for name in ROLES:
        if db.query(Role).filter(Role.name == name).first():
            print(f"✅ Role '{name}' already exists, skipping...")
            continue
        db.add(Role(name=name))
        print(f"✅ Created role '{name}'")

    db.commit()

def create_admin_user(db: Session) -> User:
    """Create the initial admin account"""
    print("🔧 Creating admin user...")

    admin = db.query(User).filter(User.email == ADMIN_EMAIL).first()
    if admin:
        print("✅ Admin user already exists, skipping...")
        return admin

    admin = User(
        name="Busify Administrator",
        email=ADMIN_EMAIL,
        password=get_password_hash(ADMIN_PASSWORD)
    )
    db.add(admin)
    db.flush()

    admin_role = db.query(Role).filter(Role.name == "admin").first()
    db.add(UserHasRole(user_id=admin.id, role_id=admin_role.id))
    db.commit()

    print(f"✅ Created admin user {ADMIN_EMAIL}")
    return admin

def main():
    print("🚌 Seeding Busify admin data...")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        create_roles(db)
        admin = create_admin_user(db)

        token = create_access_token(
            {"sub": str(admin.id), "email": admin.email, "roles": ["admin"]},
            expires_delta=timedelta(days=1)
        )
        print("\n🎉 Seeding complete!")
        print(f"   Admin login: {ADMIN_EMAIL} / {ADMIN_PASSWORD}")
        print(f"   Bearer token (24h): {token}")
    except Exception as e:
        print(f"❌ Error seeding admin data: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    main()
