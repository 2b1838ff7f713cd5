"""BDD tests for the order lifecycle and escrow release."""

import pytest
from marketplace.errors import ConflictError, PermissionDeniedError
from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/order_lifecycle.feature")

_REFUSALS = (ConflictError, PermissionDeniedError, ValidationError)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the {actor} accepts the order"))
def accept_order(order, actors, actor, error):
    try:
        order.accept(actors[actor])
    except _REFUSALS as exc:
        error["exc"] = exc


@when(parsers.cfparse('the {actor} rejects the order with reason "{reason}"'))
def reject_order(order, actors, actor, reason, error):
    try:
        order.reject(actors[actor], reason)
    except _REFUSALS as exc:
        error["exc"] = exc


@when(parsers.cfparse("the {actor} cancels the order"))
def cancel_order(order, actors, actor, error):
    try:
        order.cancel(actors[actor])
    except _REFUSALS as exc:
        error["exc"] = exc


@when(parsers.cfparse('the {actor} ships the order with tracking "{tracking}"'))
def ship_order(order, actors, actor, tracking, error):
    try:
        order.add_tracking_and_ship(actors[actor], tracking, "UPS")
    except _REFUSALS as exc:
        error["exc"] = exc


@when(parsers.cfparse("the {actor} ships the order without tracking"))
def ship_without_tracking(order, actors, actor, error):
    try:
        order.add_tracking_and_ship(actors[actor], "", "UPS")
    except _REFUSALS as exc:
        error["exc"] = exc


@when(parsers.cfparse("the {actor} confirms delivery"))
def confirm_delivery(order, actors, actor, error):
    try:
        order.confirm_delivery(actors[actor])
    except _REFUSALS as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the escrow amount is {amount:f}"))
def escrow_amount_is(order, amount):
    assert order.escrow_amount == pytest.approx(amount)
