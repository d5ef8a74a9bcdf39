"""Turns declarative request options into a concrete request descriptor."""

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote_plus

from restsync.application.schemas import RequestOptions
from restsync.config import Settings, get_settings
from restsync.domain.entities import RequestDescriptor, TransportConfig

logger = logging.getLogger(__name__)

_MERGED_DICT_FIELDS = ("params", "transport", "data")
_TRANSPORT_KEYS = ("save", "delete", "params_serializer", "data_key", "headers")


def serialize_params(params: Mapping[str, Any]) -> str:
    """Encode query parameters using bracket notation.

    ``{"filter": {"status": "open", "tag": ["a", "b"]}}`` becomes
    ``filter[status]=open&filter[tag][]=a&filter[tag][]=b``, which is what
    the API's filter parser expects and what a flat query-string encoder
    cannot produce.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        _flatten(str(key), value, pairs)
    return "&".join(
        f"{quote_plus(key, safe='[]')}={quote_plus(value, safe='[]')}" for key, value in pairs
    )


def _flatten(prefix: str, value: Any, pairs: list[tuple[str, str]]) -> None:
    if isinstance(value, Mapping):
        for key, item in value.items():
            _flatten(f"{prefix}[{key}]", item, pairs)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            if isinstance(item, (Mapping, list, tuple)):
                _flatten(f"{prefix}[{index}]", item, pairs)
            else:
                _flatten(f"{prefix}[]", item, pairs)
    else:
        pairs.append((prefix, _scalar(value)))


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _join(value: str | list[str] | None) -> str:
    if not value:
        return ""
    if isinstance(value, str):
        return value
    return ",".join(value)


class RequestPlanner:
    """Pure transformation: (defaults, overrides) → RequestDescriptor.

    Precedence is caller over per-operation default, field by field. The
    ``params``, ``transport`` and ``data`` dictionaries are merged key by key
    with the caller's keys winning. Planning never fails; a missing URL is
    diagnosed by whoever issues the request.
    """

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or get_settings()

    @staticmethod
    def merge(
        defaults: RequestOptions,
        overrides: RequestOptions | Mapping[str, Any] | None = None,
    ) -> RequestOptions:
        if overrides is None:
            return defaults.model_copy()
        if not isinstance(overrides, RequestOptions):
            overrides = RequestOptions.model_validate(dict(overrides))

        update: dict[str, Any] = {}
        for name in overrides.model_fields_set:
            value = getattr(overrides, name)
            if name in _MERGED_DICT_FIELDS:
                value = {**getattr(defaults, name), **value}
            update[name] = value
        return defaults.model_copy(update=update)

    def plan(
        self,
        defaults: RequestOptions,
        overrides: RequestOptions | Mapping[str, Any] | None = None,
    ) -> RequestDescriptor:
        settings = self._settings
        options = self.merge(defaults, overrides)

        relations = _join(options.expand)
        expand = relations
        expand_fields = _join(options.expand_fields)
        if expand_fields:
            expand = f"{expand},{expand_fields}" if expand else expand_fields

        params: dict[str, Any] = dict(options.params)
        if expand:
            params[options.expand_name] = expand

        if options.page:
            params[settings.page_param] = options.page

        if options.page_size is not None:
            params[settings.page_size_param] = options.page_size

        transport = dict(options.transport)
        if options.filter is not None:
            if not transport.get("params_serializer"):
                transport["params_serializer"] = serialize_params
            params[settings.filter_param] = options.filter

        if options.sort:
            params[settings.sort_param] = options.sort

        descriptor = RequestDescriptor(
            url=options.url,
            params=params,
            transport=self._transport_config(transport),
            relations=relations,
            sort=options.sort or None,
            data=options.data,
            options=options,
        )
        logger.debug("Planned request url=%s params=%s", descriptor.url, dict(descriptor.params))
        return descriptor

    @staticmethod
    def _transport_config(raw: Mapping[str, Any]) -> TransportConfig:
        return TransportConfig(
            save=raw.get("save", True),
            delete=raw.get("delete"),
            params_serializer=raw.get("params_serializer"),
            data_key=raw.get("data_key"),
            headers=dict(raw.get("headers") or {}),
            extra={key: value for key, value in raw.items() if key not in _TRANSPORT_KEYS},
        )
