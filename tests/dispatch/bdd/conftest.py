"""Shared BDD fixtures and step definitions for the Dispatch domain."""

import pytest
from dispatch.order.order import Order
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture()
def drivers():
    """Driver ids by name."""
    return {}


@pytest.fixture()
def outcome():
    """Container for the last refused step's error."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a per-km service of mitra "{mitra_id}"'), target_fixture="service_id")
def _(make_service, mitra_id):
    return make_service(mitra_id=mitra_id)


@given(parsers.cfparse('a driver "{name}" linked to the service'))
def _(make_driver, drivers, service_id, name):
    drivers[name] = make_driver(name=name, service_ids=[service_id])


@given(parsers.cfparse('a driver "{name}" not linked to the service'))
def _(make_driver, drivers, name):
    drivers[name] = make_driver(name=name)


@given("an order was placed", target_fixture="order_id")
def _(place_order, service_id):
    return place_order(service_id)["order_id"]


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.cfparse('the {action} is refused with "{code}"'))
def _(outcome, action, code):
    assert outcome["exc"] is not None
    assert outcome["exc"].code == code
