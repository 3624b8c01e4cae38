"""
Main conftest.py that imports and exposes all fixtures.
Fixtures are organized by module but available globally.
"""

# App and core setup
from tests.unit.fixtures.app import (  # noqa: F401
    minimal_app,
    minimal_client,
    bill_store,
    bill_service,
    company_service,
)
from tests.unit.fixtures.auth import (  # noqa: F401
    admin_user,
    company_user,
    outsider_user,
    admin_headers,
    company_headers,
    outsider_headers,
)
from tests.unit.fixtures.database import (  # noqa: F401
    setup_default_connection,
    clean_collections,
)

# Models
from tests.unit.fixtures.models.company import test_company, other_company  # noqa: F401
from tests.unit.fixtures.models.bill import sample_fields, march_bill  # noqa: F401


def pytest_configure(config):
    """Configure pytest for the test suite"""
    config.addinivalue_line("markers", "unit: fast tests against mongomock")
    config.addinivalue_line(
        "markers", "blueprints: mark test as requiring specific blueprints"
    )
