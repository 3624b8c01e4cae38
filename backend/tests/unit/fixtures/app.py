from typing import List
import pytest
from flask import Flask
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from config.test import TestConfig
from services.bill_service import BillService
from services.bill_store import BillStore
from services.company_service import CompanyService


def create_minimal_app(blueprints: List[str] = None, bill_store: BillStore = None) -> Flask:
    """
    Create a minimal Flask app with only specified blueprints.
    This is a helper function for the minimal_app fixture.
    """
    app = Flask(__name__)
    app.config.from_object(TestConfig)

    bill_store = bill_store or BillStore(
        query_timeout_ms=app.config["STORE_QUERY_TIMEOUT_MS"]
    )
    bill_service = BillService(
        bill_store,
        yearly_workers=app.config["YEARLY_AGGREGATE_WORKERS"],
        yearly_timeout=app.config["YEARLY_AGGREGATE_TIMEOUT_SECONDS"],
    )
    company_service = CompanyService()

    blueprints = blueprints or ["bill", "company", "misc"]

    if "bill" in blueprints:
        from blueprints.bill_routes import create_bill_blueprint

        limiter = Limiter(get_remote_address, app=app, enabled=False)
        app.extensions["rate_limiter"] = limiter
        app.register_blueprint(create_bill_blueprint(bill_service, limiter))

    if "company" in blueprints:
        from blueprints.company_routes import create_company_blueprint

        app.register_blueprint(create_company_blueprint(company_service))

    if "misc" in blueprints:
        from blueprints.misc_routes import create_misc_blueprint

        app.register_blueprint(create_misc_blueprint())

    app.extensions["services"] = {
        "bill_store": bill_store,
        "bill_service": bill_service,
        "company_service": company_service,
    }
    return app


@pytest.fixture
def minimal_app(request):
    """
    Create a minimal Flask app for testing with only specified blueprints.
    Usage:
        @pytest.mark.blueprints(['bill'])  # Only include bill blueprint
        def test_something(minimal_app):
            ...
    """
    marker = request.node.get_closest_marker("blueprints")
    blueprints = marker.args[0] if marker else None
    return create_minimal_app(blueprints)


@pytest.fixture
def minimal_client(minimal_app):
    """Test client using minimal app"""
    return minimal_app.test_client()


@pytest.fixture
def bill_store():
    return BillStore(query_timeout_ms=TestConfig.STORE_QUERY_TIMEOUT_MS)


@pytest.fixture
def bill_service(bill_store):
    return BillService(bill_store, yearly_workers=4, yearly_timeout=10.0)


@pytest.fixture
def company_service():
    return CompanyService()
