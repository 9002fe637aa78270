"""Shared test fixtures.

Provides:
- Environment defaults (must be set before any app import)
- An in-memory Motor-compatible database with the production indexes
- A TestClient whose database dependency points at that database
- Token helpers and document factories
"""

from __future__ import annotations

import os

# Environment defaults: must be set before importing the app, which triggers
# pydantic Settings validation on import.
os.environ.setdefault("SECRET_KEY", "test-secret-key-boot")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("CLIENT_URL", "http://localhost:5173")

import asyncio
from datetime import datetime
from typing import Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.core.auth import create_access_token
from app.core.database import create_indexes, get_database
from app.main import app


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


def make_db():
    db = AsyncMongoMockClient()["micro_loan_test"]
    asyncio.run(create_indexes(db))
    return db


@pytest.fixture
def db():
    return make_db()


@pytest_asyncio.fixture
async def mongo():
    """Database for async service tests."""
    database = AsyncMongoMockClient()["micro_loan_test"]
    await create_indexes(database)
    return database


def seed(db, collection: str, *docs: dict) -> None:
    """Insert documents from synchronous tests."""
    if docs:
        asyncio.run(db[collection].insert_many([dict(doc) for doc in docs]))


def fetch(db, collection: str, query: dict) -> Optional[dict]:
    return asyncio.run(db[collection].find_one(query, {"_id": 0}))


def count(db, collection: str, query: Optional[dict] = None) -> int:
    return asyncio.run(db[collection].count_documents(query or {}))


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest.fixture
def client(db):
    async def override_db():
        return db

    app.dependency_overrides[get_database] = override_db
    # No context manager: the lifespan would try to reach a real MongoDB
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(email: str, **claims) -> dict:
    token = create_access_token({"sub": email, "email": email, **claims})
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Factories (datetimes are naive UTC, as the driver returns them)
# ---------------------------------------------------------------------------


def make_user(email: str, role: str = "user", created_at: Optional[datetime] = None, **extra) -> dict:
    local = email.split("@")[0]
    doc = {
        "userId": f"user_{local}",
        "email": email,
        "role": role,
        "displayName": local.title(),
        "photoURL": None,
        "createdAt": created_at or datetime(2026, 1, 1),
    }
    doc.update(extra)
    return doc


def make_loan(loan_id: str, owner: Optional[str] = None, owner_field: str = "managerEmail", **extra) -> dict:
    doc = {
        "loanId": loan_id,
        "loanTitle": f"Loan {loan_id}",
        "category": "Personal",
        "interestRate": 8.5,
        "maxLoanLimit": 10000,
        "showOnHome": False,
        "createdAt": datetime(2026, 1, 1),
    }
    if owner:
        doc[owner_field] = owner
    doc.update(extra)
    return doc


def make_application(
    application_id: str,
    loan_id: str,
    email: str = "borrower@lendhub.io",
    status: str = "pending",
    loan_amount=1000,
    created_at: Optional[datetime] = None,
    **extra,
) -> dict:
    doc = {
        "applicationId": application_id,
        "loanId": loan_id,
        "loanTitle": f"Loan {loan_id}",
        "email": email,
        "loanAmount": loan_amount,
        "status": status,
        "applicationFeeStatus": "unpaid",
        "createdAt": created_at or datetime(2026, 1, 15),
        "statusUpdatedAt": None,
    }
    doc.update(extra)
    return doc


ADMIN = "admin@lendhub.io"
MANAGER = "manager@lendhub.io"
OTHER_MANAGER = "other.manager@lendhub.io"
BORROWER = "borrower@lendhub.io"


@pytest.fixture
def staff(db):
    """Admin, two managers and a borrower."""
    seed(
        db,
        "users",
        make_user(ADMIN, "admin"),
        make_user(MANAGER, "manager"),
        make_user(OTHER_MANAGER, "manager"),
        make_user(BORROWER, "user"),
    )
    return db
