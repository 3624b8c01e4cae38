import uuid
from typing import Optional

import pytest

from models.company import Company


def create_test_company(name: Optional[str] = None, **overrides) -> Company:
    """
    Helper function to create test companies.

    Args:
        name: Company name, generated when omitted
        overrides: Any other Company attribute

    Returns:
        Company: Saved company
    """
    suffix = uuid.uuid4().hex[:8]
    fields = {
        "name": name or f"Test Company {suffix}",
        "email": f"contact_{suffix}@test.com",
        "contact_person_name": "Test Contact",
        "contact_person_phone": "+91 90000 00000",
        "address": "1 Test Road",
    }
    fields.update(overrides)
    return Company(**fields).save()


@pytest.fixture
def test_company():
    """Create a company that owns the bills under test."""
    return create_test_company()


@pytest.fixture
def other_company():
    return create_test_company()
