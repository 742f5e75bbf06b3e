"""Repository lookups that hide records belonging to another tenant."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from dispatch.errors import NotFoundError


def load(aggregate_cls, identifier: str, label: str, mitra_id: str | None = None):
    """Fetch an aggregate by id, optionally scoped to one mitra.

    A record owned by a different mitra raises exactly the same error as a
    missing one.
    """
    code = f"{label.upper()}_NOT_FOUND"
    message = f"{label.capitalize()} not found"
    try:
        record = current_domain.repository_for(aggregate_cls).get(identifier)
    except ObjectNotFoundError:
        raise NotFoundError(message, code=code, details={"id": identifier}) from None
    if mitra_id is not None and str(record.mitra_id) != str(mitra_id):
        raise NotFoundError(message, code=code, details={"id": identifier})
    return record
