"""
tests/unit/test_protocol.py

Unit tests for the worker line protocol models.
"""

import pytest

from blinkit_agent.data_models.catalog import CartSnapshot
from blinkit_agent.data_models.outcomes import NavigationOutcome
from blinkit_agent.data_models.protocol import (
    AddToCartResult,
    CartItemParams,
    SearchInterceptCommand,
    WorkerAction,
    WorkerResponse,
    build_command,
    command_adapter,
    parse_result,
    result_model_for,
)
from blinkit_agent.exceptions import ProtocolError


class TestBuildCommand:
    """Commands are validated against the action's params model."""

    def test_builds_typed_command(self) -> None:
        command = build_command("abc", WorkerAction.SEARCH_INTERCEPT, {"query": "milk", "limit": 5})
        assert command.action == "searchIntercept"
        assert command.params.query == "milk"
        assert command.params.limit == 5

    def test_accepts_params_model(self) -> None:
        command = build_command("abc", WorkerAction.ADD_TO_CART, CartItemParams(item_id="1", quantity=2))
        assert command.params.quantity == 2

    def test_defaults_for_empty_params(self) -> None:
        command = build_command("abc", WorkerAction.GET_CART)
        assert command.model_dump()["params"] == {}

    def test_invalid_params_raise_protocol_error(self) -> None:
        with pytest.raises(ProtocolError):
            build_command("abc", WorkerAction.SEARCH_INTERCEPT, {"query": ""})

    def test_wire_format_round_trips_through_adapter(self) -> None:
        line = build_command("abc", WorkerAction.SEARCH_VIA_UI, {"query": "eggs"}).model_dump_json()
        parsed = command_adapter.validate_json(line)
        assert parsed.id == "abc"
        assert parsed.action == WorkerAction.SEARCH_VIA_UI

    def test_discriminator_selects_command_class(self) -> None:
        parsed = command_adapter.validate_python({"id": "1", "action": "searchIntercept", "params": {"query": "x"}})
        assert isinstance(parsed, SearchInterceptCommand)


class TestParseResult:

    def test_every_action_has_a_result_model(self) -> None:
        for action in WorkerAction:
            assert result_model_for(action) is not None

    def test_valid_data(self) -> None:
        response = WorkerResponse(id="1", success=True, data={"added": True, "quantity": 2})
        result = parse_result(WorkerAction.ADD_TO_CART, response)
        assert isinstance(result, AddToCartResult)
        assert result.quantity == 2

    def test_navigation_outcome_from_json_list(self) -> None:
        response = WorkerResponse(id="1", success=True, data={"reached": True, "cleared_steps": ["skip_optional_step"]})
        result = parse_result(WorkerAction.NAVIGATE_TO_PAYMENT, response)
        assert isinstance(result, NavigationOutcome)
        assert result.cleared_steps == ("skip_optional_step",)

    def test_missing_data_uses_defaults(self) -> None:
        result = parse_result(WorkerAction.GET_CART, WorkerResponse(id="1", success=True))
        assert isinstance(result, CartSnapshot)
        assert result.total == 0

    def test_malformed_data_raises_protocol_error(self) -> None:
        response = WorkerResponse(id="1", success=True, data={"added": "definitely", "quantity": "many"})
        with pytest.raises(ProtocolError):
            parse_result(WorkerAction.ADD_TO_CART, response)
