from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import voluptuous as vol
from homeassistant.data_entry_flow import AbortFlow, FlowResultType

import custom_components.huum_sauna.config_flow as config_flow
from custom_components.huum_sauna.api import HuumAuthError, RemoteFetchError
from custom_components.huum_sauna.const import CONF_POLL_INTERVAL, CONF_TEMPERATURE_UNIT

USER_INPUT = {
    "username": "Sauna@Example.com",
    "password": "secret",
    CONF_TEMPERATURE_UNIT: "C",
    CONF_POLL_INTERVAL: 45,
}


def _schema_default(schema: vol.Schema, field: str) -> Any:
    for key in getattr(schema, "schema", {}):
        name = getattr(key, "schema", key)
        if name == field:
            default = getattr(key, "default", None)
            return default() if callable(default) else default
    raise AssertionError(f"Missing default for {field}")


def _create_flow(*, configured: bool = False) -> config_flow.HuumSaunaConfigFlow:
    flow = config_flow.HuumSaunaConfigFlow()
    flow.hass = MagicMock()
    flow.context = {"source": "user"}

    async def _set_unique_id(unique_id: str, **_: Any) -> None:
        flow.context["unique_id"] = unique_id

    def _abort_if_configured(*_: Any, **__: Any) -> None:
        if configured:
            raise AbortFlow("already_configured")

    flow.async_set_unique_id = _set_unique_id  # type: ignore[method-assign]
    flow._abort_if_unique_id_configured = _abort_if_configured  # type: ignore[method-assign]
    return flow


@pytest.fixture
def validate_login(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    mock = AsyncMock(return_value=None)
    monkeypatch.setattr(config_flow, "_validate_login", mock)
    return mock


@pytest.mark.asyncio
async def test_user_step_shows_form_with_defaults(validate_login: AsyncMock) -> None:
    result = await _create_flow().async_step_user()

    assert result["type"] == FlowResultType.FORM
    assert result["step_id"] == "user"
    assert result["errors"] == {}
    schema = result["data_schema"]
    assert _schema_default(schema, "username") == ""
    assert _schema_default(schema, CONF_TEMPERATURE_UNIT) == "F"
    assert _schema_default(schema, CONF_POLL_INTERVAL) == 30
    validate_login.assert_not_awaited()


@pytest.mark.asyncio
async def test_user_step_creates_entry(validate_login: AsyncMock) -> None:
    flow = _create_flow()

    result = await flow.async_step_user(dict(USER_INPUT))

    assert result["type"] == FlowResultType.CREATE_ENTRY
    assert result["title"] == "Huum Sauna (Sauna@Example.com)"
    assert result["data"] == {
        "username": "Sauna@Example.com",
        "password": "secret",
        CONF_TEMPERATURE_UNIT: "C",
        CONF_POLL_INTERVAL: 45,
    }
    assert flow.context["unique_id"] == "sauna@example.com"
    config = validate_login.await_args.args[1]
    assert config.username == "Sauna@Example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("exc", "error"),
    [
        (HuumAuthError("Unauthorized"), "invalid_auth"),
        (RemoteFetchError("HTTP 500"), "cannot_connect"),
        (RuntimeError("boom"), "unknown"),
    ],
)
async def test_user_step_maps_validation_errors(
    validate_login: AsyncMock, exc: Exception, error: str
) -> None:
    validate_login.side_effect = exc

    result = await _create_flow().async_step_user(dict(USER_INPUT))

    assert result["type"] == FlowResultType.FORM
    assert result["errors"] == {"base": error}
    assert _schema_default(result["data_schema"], "username") == "Sauna@Example.com"
    assert _schema_default(result["data_schema"], CONF_TEMPERATURE_UNIT) == "C"


@pytest.mark.asyncio
async def test_user_step_rejects_blank_credentials(validate_login: AsyncMock) -> None:
    result = await _create_flow().async_step_user(
        {**USER_INPUT, "username": "   "}
    )

    assert result["errors"] == {"base": "invalid_config"}
    validate_login.assert_not_awaited()


@pytest.mark.asyncio
async def test_user_step_aborts_when_account_configured(
    validate_login: AsyncMock,
) -> None:
    flow = _create_flow(configured=True)

    with pytest.raises(AbortFlow) as err:
        await flow.async_step_user(dict(USER_INPUT))

    assert err.value.reason == "already_configured"
    assert flow.context["unique_id"] == "sauna@example.com"


def _existing_entry() -> MagicMock:
    entry = MagicMock()
    entry.entry_id = "entry-1"
    entry.data = {
        "username": "old@example.com",
        "password": "old",
        CONF_TEMPERATURE_UNIT: "F",
        CONF_POLL_INTERVAL: 30,
    }
    entry.options = {}
    return entry


@pytest.mark.asyncio
async def test_reconfigure_without_entry_aborts(validate_login: AsyncMock) -> None:
    flow = _create_flow()
    flow.context = {"source": "reconfigure"}

    result = await flow.async_step_reconfigure()

    assert result["type"] == FlowResultType.ABORT
    assert result["reason"] == "no_config_entry"


@pytest.mark.asyncio
async def test_reconfigure_updates_credentials(validate_login: AsyncMock) -> None:
    entry = _existing_entry()
    flow = _create_flow()
    flow.context = {"source": "reconfigure", "entry_id": "entry-1"}
    flow.hass.config_entries.async_get_entry.return_value = entry

    form = await flow.async_step_reconfigure()
    assert form["type"] == FlowResultType.FORM
    assert _schema_default(form["data_schema"], "username") == "old@example.com"

    result = await flow.async_step_reconfigure(
        {"username": "new@example.com", "password": "new"}
    )

    assert result["type"] == FlowResultType.ABORT
    assert result["reason"] == "reconfigure_successful"
    flow.hass.config_entries.async_update_entry.assert_called_once()
    new_data = flow.hass.config_entries.async_update_entry.call_args.kwargs["data"]
    assert new_data["username"] == "new@example.com"
    assert new_data["password"] == "new"
    assert new_data[CONF_TEMPERATURE_UNIT] == "F"


@pytest.mark.asyncio
async def test_reconfigure_reports_auth_failure(validate_login: AsyncMock) -> None:
    validate_login.side_effect = HuumAuthError("Unauthorized")
    flow = _create_flow()
    flow.context = {"source": "reconfigure", "entry_id": "entry-1"}
    flow.hass.config_entries.async_get_entry.return_value = _existing_entry()

    result = await flow.async_step_reconfigure(
        {"username": "new@example.com", "password": "bad"}
    )

    assert result["type"] == FlowResultType.FORM
    assert result["errors"] == {"base": "invalid_auth"}
    flow.hass.config_entries.async_update_entry.assert_not_called()


@pytest.mark.asyncio
async def test_options_flow_defaults_and_save() -> None:
    entry = _existing_entry()
    entry.options = {CONF_POLL_INTERVAL: 120}
    flow = config_flow.HuumSaunaConfigFlow.async_get_options_flow(entry)

    form = await flow.async_step_init()
    assert form["type"] == FlowResultType.FORM
    assert _schema_default(form["data_schema"], CONF_TEMPERATURE_UNIT) == "F"
    assert _schema_default(form["data_schema"], CONF_POLL_INTERVAL) == 120

    result = await flow.async_step_init(
        {CONF_TEMPERATURE_UNIT: "C", CONF_POLL_INTERVAL: 60}
    )
    assert result["type"] == FlowResultType.CREATE_ENTRY
    assert result["data"] == {CONF_TEMPERATURE_UNIT: "C", CONF_POLL_INTERVAL: 60}


def test_options_schema_rejects_out_of_range_interval() -> None:
    schema = vol.Schema(config_flow._settings_fields())
    with pytest.raises(vol.Invalid):
        schema({CONF_TEMPERATURE_UNIT: "F", CONF_POLL_INTERVAL: 0})
    with pytest.raises(vol.Invalid):
        schema({CONF_TEMPERATURE_UNIT: "K", CONF_POLL_INTERVAL: 30})
