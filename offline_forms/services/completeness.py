"""Completeness predicates deciding whether a form is ready for sync.

Predicates are registered per form type (case-insensitive). Types with no
registered predicate fall back to ``default_predicate``.
"""

from __future__ import annotations

from typing import Any, Callable

Predicate = Callable[..., bool]

CONTACT_DETAIL_FORM = "UPDATE_CONTACT_DETAIL"

# (country code field, number field) for each phone channel
PHONE_PAIRS = (
    ("countryCodeMobile", "mobileNo"),
    ("countryCodeHome", "homeNo"),
    ("countryCodeOffice", "officeNo"),
)

_registry: dict[str, Predicate] = {}


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def contact_detail_predicate(
    data: dict[str, Any],
    customer_id: str | None = None,
    customer_name: str | None = None,
) -> bool:
    """Contact update is complete when no phone pair is half-filled and at
    least one channel (email or any phone field) is given."""
    for code_field, number_field in PHONE_PAIRS:
        if _present(data.get(code_field)) != _present(data.get(number_field)):
            return False

    if _present(data.get("email")):
        return True
    return any(_present(data.get(f)) for pair in PHONE_PAIRS for f in pair)


def default_predicate(
    data: dict[str, Any],
    customer_id: str | None = None,
    customer_name: str | None = None,
) -> bool:
    return bool(data) and _present(customer_id) and _present(customer_name)


def register_predicate(form_type: str, predicate: Predicate) -> None:
    _registry[form_type.upper()] = predicate


def unregister_predicate(form_type: str) -> None:
    _registry.pop(form_type.upper(), None)


def get_predicate(form_type: str | None) -> Predicate:
    if not form_type:
        return default_predicate
    return _registry.get(form_type.upper(), default_predicate)


def is_complete(
    form_type: str | None,
    data: dict[str, Any] | None,
    customer_id: str | None = None,
    customer_name: str | None = None,
) -> bool:
    if not isinstance(data, dict):
        return False
    return get_predicate(form_type)(data, customer_id, customer_name)


register_predicate(CONTACT_DETAIL_FORM, contact_detail_predicate)
