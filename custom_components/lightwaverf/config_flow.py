import ipaddress
import logging
import os

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.const import CONF_HOST
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult

from .const import (
    CONF_COMMAND_TIMEOUT,
    CONF_EMAIL,
    CONF_FILE,
    CONF_PACING_INTERVAL,
    CONF_PIN,
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_PACING_INTERVAL,
    DOMAIN,
)

_LOGGER = logging.getLogger(__name__)


def validate_host(address: str) -> bool:
    """Accept an IPv4 unicast address or the limited broadcast address."""
    try:
        ipaddress.IPv4Address(address)
    except ValueError:
        return False
    return True


class LightwaveConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for LightwaveRF."""

    VERSION = 1

    async def async_step_user(self, user_input=None) -> FlowResult:
        """Configure the Link address and where devices come from."""
        errors = {}

        if user_input is not None:
            host = user_input.get(CONF_HOST, DEFAULT_HOST)
            path = user_input.get(CONF_FILE)
            if not validate_host(host):
                errors["base"] = "invalid_host"
            elif path and not await self.hass.async_add_executor_job(os.path.isfile, path):
                errors["base"] = "file_not_found"
            elif bool(user_input.get(CONF_EMAIL)) != bool(user_input.get(CONF_PIN)):
                errors["base"] = "incomplete_credentials"
            else:
                await self.async_set_unique_id(host)
                self._abort_if_unique_id_configured()
                return self.async_create_entry(title=f"LightwaveRF Link ({host})", data=user_input)

        user_input = user_input or {}
        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema({
                vol.Required(CONF_HOST, default=user_input.get(CONF_HOST, DEFAULT_HOST)): str,
                vol.Optional(CONF_FILE): str,
                vol.Optional(CONF_EMAIL): str,
                vol.Optional(CONF_PIN): str,
            }),
            errors=errors,
        )

    async def async_step_import(self, import_config) -> FlowResult:
        """Import a YAML configuration."""
        host = import_config.get(CONF_HOST, DEFAULT_HOST)
        await self.async_set_unique_id(host)
        self._abort_if_unique_id_configured()
        return self.async_create_entry(title=f"LightwaveRF Link ({host})", data=import_config)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        return LightwaveOptionsFlow(config_entry)


class LightwaveOptionsFlow(config_entries.OptionsFlow):
    """Handle pacing and timeout options for LightwaveRF."""

    def __init__(self, config_entry):
        self.entry = config_entry

    async def async_step_init(self, user_input=None) -> FlowResult:
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        options = {**self.entry.data, **self.entry.options}
        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema({
                vol.Required(
                    CONF_PACING_INTERVAL,
                    default=options.get(CONF_PACING_INTERVAL, DEFAULT_PACING_INTERVAL),
                ): vol.All(vol.Coerce(float), vol.Range(min=0.1, max=10.0)),
                vol.Required(
                    CONF_COMMAND_TIMEOUT,
                    default=options.get(CONF_COMMAND_TIMEOUT, DEFAULT_COMMAND_TIMEOUT),
                ): vol.All(vol.Coerce(float), vol.Range(min=0.1, max=30.0)),
            }),
        )
