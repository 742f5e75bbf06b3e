import copy
import json

import pytest
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain

PICKUP = {"text": "Jl. Ijen No. 1, Malang", "lat": -7.9666, "lon": 112.6326, "zone": "MALANG_KOTA"}
DROPOFF = {"text": "Jl. Soekarno Hatta No. 9, Malang", "lat": -7.947714, "lon": 112.6326, "zone": "MALANG_KOTA"}

BASE_DOCUMENT = {
    "service_type_alias": "Kirim Barang",
    "business_model": "OWN_OPERATION",
    "primary_vehicle": "MOTORCYCLE",
    "route_model": "DYNAMIC_P2P",
    "privacy_model": "PRIVATE_SINGLE_ORDER",
    "default_timing": "EXPRESS_NOW",
    "allowed_order_models": ["PICKUP_DELIVER_OTHER", "PICKUP_DELIVER_ORDERER"],
    "order_responsibility": "CONTACTLESS",
    "talangan": {"enabled": True, "max_amount": 500000},
    "high_value_default": False,
    "coverage": {"max_distance_km": 25, "cities": ["Malang"]},
    "pricing": {"admin_fee": 2000, "distance_model": "PER_KM", "per_km_rate": 3000},
    "cargo_types": [
        {"id": "docs", "name": "Documents"},
        {"id": "fragile", "name": "Fragile goods", "handling_fee": 5000},
    ],
    "facilities": [
        {"id": "cooler", "name": "Cooler box", "fee": 3000},
        {"id": "helmet", "name": "Spare helmet"},
    ],
}


@pytest.fixture(scope="session")
def dispatch_bed():
    from dispatch.domain import dispatch

    bed = DomainFixture(dispatch)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(dispatch_bed):
    with dispatch_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


@pytest.fixture()
def config_document():
    """Factory for a per-km service config document with nested overrides."""

    def _make(**overrides):
        document = copy.deepcopy(BASE_DOCUMENT)
        for key, value in overrides.items():
            if value is None:
                document.pop(key, None)
            else:
                document[key] = value
        return document

    return _make


@pytest.fixture()
def zone_pricing():
    return {
        "admin_fee": 1000,
        "distance_model": "ZONE",
        "zone_prices": [
            {"origin_zone": "MALANG_KOTA", "destination_zone": "KOTA_BATU", "price": 25000},
            {"origin_zone": "MALANG_KOTA", "destination_zone": "MALANG_KOTA", "price": 10000},
        ],
    }


@pytest.fixture()
def order_details():
    """Factory for an order details dict."""

    def _make(**overrides):
        details = {"pickup": dict(PICKUP), "dropoff": dict(DROPOFF), "notes": "Handle with care"}
        details.update(overrides)
        return details

    return _make


@pytest.fixture()
def make_service(config_document):
    """Register a service through the domain and return its id."""
    from dispatch.service.management import RegisterService

    def _make(mitra_id="mitra-1", name="Kirim Barang Malang", document=None):
        return current_domain.process(
            RegisterService(
                mitra_id=mitra_id,
                name=name,
                config=json.dumps(document or config_document()),
            ),
            asynchronous=False,
        )

    return _make


@pytest.fixture()
def make_driver():
    """Register a driver, optionally linked to services, and return its id."""
    from dispatch.driver.management import LinkDriverToService, RegisterDriver

    def _make(mitra_id="mitra-1", name="Budi", service_ids=()):
        driver_id = current_domain.process(
            RegisterDriver(mitra_id=mitra_id, name=name, phone="081234567890", vehicle_type="MOTORCYCLE"),
            asynchronous=False,
        )
        for service_id in service_ids:
            current_domain.process(
                LinkDriverToService(mitra_id=mitra_id, driver_id=driver_id, service_id=service_id),
                asynchronous=False,
            )
        return driver_id

    return _make


@pytest.fixture()
def place_order(order_details):
    """Place an order through the domain and return the receipt."""
    from dispatch.order.placement import PlaceOrder

    def _place(service_id, details=None, **overrides):
        fields = {
            "service_id": service_id,
            "orderer_identifier": "081298765432",
            "details": json.dumps(details or order_details()),
        }
        fields.update(overrides)
        return current_domain.process(PlaceOrder(**fields), asynchronous=False)

    return _place
