"""Configuration loading for the SMS dashboard."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import voluptuous as vol
from dotenv import load_dotenv

from .const import (
	CONF_API_BASE_URL,
	CONF_BACKEND_PROFILE,
	CONF_DEFAULT_PAGE_SIZE,
	CONF_DIRECT_API_BASE_URL,
	CONF_MAX_PAGE_SIZE,
	CONF_PUBLIC_API_BASE_URL,
	CONF_REQUEST_TIMEOUT,
	CONF_STORAGE_PATH,
	CONF_WRITE_TIMEOUT,
	DEFAULT_API_BASE_URL,
	DEFAULT_BACKEND_PROFILE,
	DEFAULT_DIRECT_API_BASE_URL,
	DEFAULT_PAGE_SIZE,
	DEFAULT_REQUEST_TIMEOUT,
	DEFAULT_WRITE_TIMEOUT,
	MAX_PAGE_SIZE,
)
from .smsapi.endpoints import BACKEND_PROFILES
from .smsapi.exceptions import ConfigurationError

_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = vol.Schema(
	{
		vol.Optional(CONF_BACKEND_PROFILE, default=DEFAULT_BACKEND_PROFILE): vol.In(sorted(BACKEND_PROFILES)),
		vol.Optional(CONF_API_BASE_URL, default=DEFAULT_API_BASE_URL): vol.Url(),
		vol.Optional(CONF_PUBLIC_API_BASE_URL): vol.Url(),
		vol.Optional(CONF_DIRECT_API_BASE_URL, default=DEFAULT_DIRECT_API_BASE_URL): vol.Url(),
		vol.Optional(CONF_REQUEST_TIMEOUT, default=DEFAULT_REQUEST_TIMEOUT): vol.All(
			vol.Coerce(float), vol.Range(min=0.1, max=60)
		),
		vol.Optional(CONF_WRITE_TIMEOUT, default=DEFAULT_WRITE_TIMEOUT): vol.All(
			vol.Coerce(float), vol.Range(min=0.1, max=300)
		),
		vol.Optional(CONF_DEFAULT_PAGE_SIZE, default=DEFAULT_PAGE_SIZE): vol.All(vol.Coerce(int), vol.Range(min=1)),
		vol.Optional(CONF_MAX_PAGE_SIZE, default=MAX_PAGE_SIZE): vol.All(vol.Coerce(int), vol.Range(min=1)),
		vol.Optional(CONF_STORAGE_PATH): vol.Any(None, str),
	},
	extra=vol.REMOVE_EXTRA,
)


@dataclass(frozen=True)
class ClientConfig:
	"""Static settings chosen at startup."""
	backend_profile: str = DEFAULT_BACKEND_PROFILE
	api_base_url: str = DEFAULT_API_BASE_URL
	public_base_url: str = f"{DEFAULT_API_BASE_URL}/public"
	direct_base_url: str = DEFAULT_DIRECT_API_BASE_URL
	request_timeout: float = DEFAULT_REQUEST_TIMEOUT
	write_timeout: float = DEFAULT_WRITE_TIMEOUT
	default_page_size: int = DEFAULT_PAGE_SIZE
	max_page_size: int = MAX_PAGE_SIZE
	storage_path: Optional[Path] = None

	def clamp_page_size(self, limit: Optional[int]) -> int:
		if not limit or limit < 1:
			return self.default_page_size
		return min(int(limit), self.max_page_size)


def config_from_mapping(values: Mapping[str, Any]) -> ClientConfig:
	"""Validate a mapping of ``SMS_*`` settings and build a :class:`ClientConfig`."""
	# Empty strings in .env files mean "not set"
	present = {key: value for key, value in values.items() if value not in (None, "")}
	try:
		validated = CONFIG_SCHEMA(present)
	except vol.Invalid as err:
		raise ConfigurationError(f"Invalid configuration: {err}") from err

	api_base = validated[CONF_API_BASE_URL].rstrip("/")
	public_base = validated.get(CONF_PUBLIC_API_BASE_URL) or f"{api_base}/public"
	storage_path = validated.get(CONF_STORAGE_PATH)

	if validated[CONF_DEFAULT_PAGE_SIZE] > validated[CONF_MAX_PAGE_SIZE]:
		raise ConfigurationError(
			f"{CONF_DEFAULT_PAGE_SIZE} ({validated[CONF_DEFAULT_PAGE_SIZE]}) exceeds "
			f"{CONF_MAX_PAGE_SIZE} ({validated[CONF_MAX_PAGE_SIZE]})"
		)

	return ClientConfig(
		backend_profile=validated[CONF_BACKEND_PROFILE],
		api_base_url=api_base,
		public_base_url=public_base.rstrip("/"),
		direct_base_url=validated[CONF_DIRECT_API_BASE_URL].rstrip("/"),
		request_timeout=validated[CONF_REQUEST_TIMEOUT],
		write_timeout=validated[CONF_WRITE_TIMEOUT],
		default_page_size=validated[CONF_DEFAULT_PAGE_SIZE],
		max_page_size=validated[CONF_MAX_PAGE_SIZE],
		storage_path=Path(storage_path).expanduser() if storage_path else None,
	)


def load_config(env_file: Optional[Union[str, Path]] = None) -> ClientConfig:
	"""Load configuration from the environment, reading a .env file first.

	Variables already set in the environment win over the .env file.
	"""
	if env_file is not None:
		loaded = load_dotenv(env_file)
	else:
		loaded = load_dotenv()
	if loaded:
		_LOGGER.debug(f"Loaded settings from {env_file or '.env'}")

	keys = [key.schema if isinstance(key, vol.Marker) else key for key in CONFIG_SCHEMA.schema]
	config = config_from_mapping({key: os.environ.get(key) for key in keys})
	_LOGGER.info(
		f"Using {config.backend_profile} backend at {config.api_base_url} "
		f"(public: {config.public_base_url}, direct: {config.direct_base_url})"
	)
	return config
