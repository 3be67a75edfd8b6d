"""Sample record generators used to populate simulated payloads.

All values are drawn from the caller's ``random.Random`` and timestamps are
offsets from the caller's clock, so a seeded context yields identical
records.
"""

import random
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List

PEOPLE = ["John Smith", "Sarah Johnson", "Mike Chen", "Emma Davis", "Alex Kim"]
COMPANIES = ["Tech Corp", "Global Inc", "StartupXYZ", "Enterprise Co"]
PRODUCTS = ["Widget Pro", "Super Suite", "Basic Pack", "Enterprise"]

_ALNUM = "abcdefghijklmnopqrstuvwxyz0123456789"


def _token(rng: random.Random, length: int) -> str:
    return "".join(rng.choice(_ALNUM) for _ in range(length))


def _ago(now: datetime, rng: random.Random, days: int) -> str:
    return (now - timedelta(seconds=rng.random() * 86400 * days)).isoformat()


def _user(rng: random.Random, now: datetime, index: int) -> Dict[str, Any]:
    return {
        "_id": f"item_{_token(rng, 8)}",
        "name": rng.choice(PEOPLE),
        "email": f"user_{_token(rng, 6)}@company.com",
        "role": rng.choice(["admin", "user", "manager", "viewer"]),
        "status": rng.choice(["active", "pending", "inactive"]),
        "lastLogin": _ago(now, rng, 30),
        "score": rng.randint(0, 99),
    }


def _order(rng: random.Random, now: datetime, index: int) -> Dict[str, Any]:
    return {
        "_id": f"item_{_token(rng, 8)}",
        "orderId": f"ORD-{_token(rng, 8).upper()}",
        "customer": rng.choice(PEOPLE[:3]),
        "product": rng.choice(PRODUCTS),
        "price": round(rng.random() * 500 + 10, 2),
        "quantity": rng.randint(1, 10),
        "status": rng.choice(["pending", "shipped", "delivered", "cancelled"]),
        "createdAt": _ago(now, rng, 14),
    }


def _lead(rng: random.Random, now: datetime, index: int) -> Dict[str, Any]:
    return {
        "_id": f"item_{_token(rng, 8)}",
        "name": rng.choice(COMPANIES),
        "email": f"lead_{_token(rng, 6)}@business.com",
        "phone": f"+1{rng.randint(1000000000, 9999999999)}",
        "source": rng.choice(["website", "referral", "ads", "organic"]),
        "value": rng.randint(1000, 50999),
        "stage": rng.choice(["new", "contacted", "qualified", "proposal", "closed"]),
    }


def _product(rng: random.Random, now: datetime, index: int) -> Dict[str, Any]:
    return {
        "id": index + 1,
        "name": f"Product {chr(ord('A') + index % 26)}",
        "value": rng.randint(50, 500),
        "status": rng.choice(["active", "active", "pending"]),
    }


RECORD_FACTORIES: Dict[str, Callable[[random.Random, datetime, int], Dict[str, Any]]] = {
    "users": _user,
    "orders": _order,
    "leads": _lead,
    "products": _product,
}


def generate_records(
    kind: str,
    count: int,
    rng: random.Random,
    now: datetime,
) -> List[Dict[str, Any]]:
    """Generate ``count`` records of ``kind``; unknown kinds produce orders."""
    factory = RECORD_FACTORIES.get(kind, _order)
    return [factory(rng, now, index) for index in range(max(count, 0))]
