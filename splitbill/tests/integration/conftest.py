"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - The app is created once per session using create_app("testing").
  - The app is stateless (no database), so no per-test cleanup is needed.
  - TestingConfig caps MAX_LEDGER_RECORDS at 50 so the 413 path is cheap to hit.

Helper functions (not fixtures) are provided for building ledger payloads:
  - expense(payer, amount, **shares)  → expense record dict
  - settlement(paid_by, paid_to, amount) → settlement record dict

These are plain functions so they can be called with arbitrary arguments
in any test without fixture parameterization overhead.
"""

from __future__ import annotations

import pytest

from splitbill.app import create_app


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """Creates the Flask application in 'testing' mode once for the entire test session."""
    return create_app("testing")


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def expense(payer: str, amount: str, **shares: str) -> dict:
    """Returns one expense record as posted to /balances."""
    return {"payer_id": payer, "amount": amount, "shares": shares}


def settlement(paid_by: str, paid_to: str, amount: str) -> dict:
    """Returns one settlement record as posted to /balances."""
    return {"from_user_id": paid_by, "to_user_id": paid_to, "amount": amount}


def error_of(resp) -> dict:
    """Returns the error object of an error envelope response."""
    body = resp.get_json()
    assert "error" in body, f"expected an error envelope, got {body}"
    return body["error"]
