"""Shared fixtures and helpers for the test suite.

pytest discovers conftest.py automatically; fixtures defined here are
available to all test files in this directory without explicit imports.
The dataclasses are importable too (``from conftest import User``).
"""

from dataclasses import dataclass, field
from typing import Any

import pytest

from structval import Validate
from structval.struct_level import ValidationContext


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

@dataclass
class User:
    name: str = ""
    age: int = 0


@dataclass
class Customer:
    email: str = ""


@dataclass
class Order:
    id: int = 0
    customer: Customer = field(default_factory=Customer)


@dataclass
class Address:
    city: str = ""


@dataclass
class Person:
    name: str = ""
    addresses: list[Address] = field(default_factory=list)
    by_label: dict[str, Address] = field(default_factory=dict)


@dataclass
class Box:
    """Pointer-like cell, registered as an indirection where a test needs one."""
    target: Any = None


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def validate() -> Validate:
    return Validate()


@pytest.fixture
def ctx(validate: Validate):
    """A context positioned inside a root User, as a callback would see it."""
    c = ValidationContext(validate, validate.registry, User())
    with c.descend("User"):
        yield c


def error_namespaces(errors) -> list[str]:
    return [e.namespace for e in errors]
