#!/usr/bin/env python3
"""
Database Seed Script

Populates both service databases with sample data for development.

USAGE:
    # From the project root with the venv activated
    python scripts/seed_data.py

    # Keep existing rows
    python scripts/seed_data.py --keep

This script:
1. Connects to each database using the service settings
   (USER_SERVICE_DATABASE_URL / BOOK_SERVICE_DATABASE_URL)
2. Clears existing data (unless --keep)
3. Creates sample members in the User Service database
4. Creates sample books in the Book Service database
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from book_service import database as book_database
from book_service.models import Book
from user_service import database as user_database
from user_service.models import MembershipStatus, MembershipType, User
from user_service.utils import utcnow

USERS = [
    ("John Doe", "john.doe@example.com", "5551234567", MembershipType.PREMIUM),
    ("Jane Smith", "jane.smith@example.com", "5559876543", MembershipType.REGULAR),
    ("Sam Student", "sam.student@example.edu", "5550001111", MembershipType.STUDENT),
    ("Ann Archive", "ann.archive@example.com", None, MembershipType.REGULAR),
]

BOOKS = [
    ("9780134685991", "Effective Java", "Joshua Bloch", 5),
    ("9780132350884", "Clean Code", "Robert C. Martin", 3),
    ("9780201633610", "Design Patterns", "Erich Gamma", 2),
    ("9780596007126", "Head First Design Patterns", "Eric Freeman", 4),
    ("9780321356680", "Java Puzzlers", "Joshua Bloch", 1),
]


def seed_users(db: Session, clear_existing: bool) -> list[User]:
    """Create sample members. The last one has a suspended membership."""
    if clear_existing:
        print("Clearing existing users...")
        db.execute(delete(User))
        db.commit()

    print("Creating users...")
    now = utcnow()
    users = []
    for name, email, phone, membership_type in USERS:
        user = User(
            name=name,
            email=email,
            phone=phone,
            membership_type=membership_type.value,
            membership_status=MembershipStatus.ACTIVE.value,
            borrowed_books_count=0,
            max_books_allowed=membership_type.max_books,
            joined_date=now,
            expiry_date=now + timedelta(days=365),
        )
        db.add(user)
        users.append(user)

    users[-1].membership_status = MembershipStatus.SUSPENDED.value
    db.commit()
    print(f"Created {len(users)} users.")
    return users


def seed_books(db: Session, clear_existing: bool) -> list[Book]:
    """Create sample books with all copies on the shelf."""
    if clear_existing:
        print("Clearing existing books...")
        db.execute(delete(Book))
        db.commit()

    print("Creating books...")
    books = [
        Book(
            isbn=isbn,
            title=title,
            author=author,
            total_copies=copies,
            available_copies=copies,
        )
        for isbn, title, author, copies in BOOKS
    ]
    db.add_all(books)
    db.commit()
    print(f"Created {len(books)} books.")
    return books


def seed_database(clear_existing: bool = True) -> None:
    """
    Seed both databases.

    Args:
        clear_existing: If True, clears existing data before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    user_database.create_tables()
    book_database.create_tables()

    with user_database.SessionLocal() as db:
        users = seed_users(db, clear_existing)

    with book_database.SessionLocal() as db:
        books = seed_books(db, clear_existing)

    print("=" * 60)
    print("Database seeding completed successfully!")
    print("=" * 60)
    print("\nSummary:")
    print(f"  - Users: {len(users)}")
    print(f"  - Books: {len(books)}")
    print("\nUser Service: http://localhost:8081/docs")
    print("Book Service: http://localhost:8080/docs")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the library databases")
    parser.add_argument(
        "--keep",
        action="store_true",
        help="keep existing rows instead of clearing the tables first",
    )
    args = parser.parse_args()
    seed_database(clear_existing=not args.keep)
