"""Save / validate / delete orchestration and error mapping for single entities."""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from restsync.application.interfaces import Transport
from restsync.application.schemas import FieldErrorList, RequestOptions
from restsync.application.services.request_planner import RequestPlanner
from restsync.config import Settings, get_settings
from restsync.domain.entities import Entity, RequestDescriptor, TransportResponse
from restsync.domain.exceptions import (
    ConfigurationError,
    EntityValidationError,
    ErrorPathError,
    TransportError,
)

logger = logging.getLogger(__name__)

VALIDATION_FAILED_STATUS = 422


def key_params(model: type[Entity], key: Any) -> dict[str, Any]:
    """Query parameters addressing one record.

    Composite keys are sent the way the API expects them: the key values
    joined with ',' in a single ``id`` parameter.
    """
    if model.is_composite_key():
        return {"id": ",".join(str(value) for value in key)}
    return {"id": key}


def key_values(model: type[Entity], key: Any) -> dict[str, Any]:
    """Map the primary-key field(s) of ``model`` to the values in ``key``."""
    fields = model.primary_key_fields()
    if model.is_composite_key():
        return dict(zip(fields, key))
    return {fields[0]: key}


def fill_url(model: type[Entity], url: str, values: Mapping[str, Any]) -> str:
    """Fill ``{field}`` placeholders in an endpoint from ``values``."""
    if "{" not in url:
        return url
    try:
        return url.format(**values)
    except (KeyError, IndexError) as exc:
        raise ConfigurationError(
            model.entity_name(), f"endpoint '{url}' references unknown field {exc}"
        ) from exc


def resolve_url(entity: Entity, url: str) -> str:
    """Fill ``{field}`` placeholders in an endpoint from the entity's attributes."""
    return fill_url(type(entity), url, entity.to_record())


def _step(holder: Entity | list, segment: str) -> Entity | list | None:
    if isinstance(holder, list):
        if segment.isdigit() and int(segment) < len(holder):
            return holder[int(segment)]
        return None

    nested = holder.get_nested_entity(segment)
    if nested is not None:
        return nested
    if segment in holder.relation_fields():
        value = getattr(holder, segment, None)
        if isinstance(value, list):
            return value
    return None


def assign_error(entity: Entity, path: Sequence[str], message: str) -> Entity:
    """Walk ``path`` onto nested entities and set ``message`` on the leaf field.

    Every segment but the last must resolve to a nested entity, or to a
    has-many list followed by an index (``comments.0.body``); anything else
    is a programming error, not a validation result. Returns the entity whose
    error state received the message.
    """
    target: Entity | list = entity
    for segment in path[:-1]:
        nested = _step(target, segment)
        if nested is None:
            raise ErrorPathError(".".join(path), segment)
        target = nested

    if not isinstance(target, Entity):
        raise ErrorPathError(".".join(path), path[-2])
    target.errors.set(path[-1], message)
    return target


class EntityLifecycle:
    """Drives an entity through ``clean → dirty → pending → clean | errored``.

    Errors are cleared when an attempt starts and describe only the latest
    attempt. Validation failures (422) are recorded per field; other failures
    set the summary message. ``save`` and ``delete`` re-raise every failure
    after recording it, ``validate`` treats a 422 as a normal outcome.
    """

    def __init__(
        self,
        transport: Transport,
        planner: RequestPlanner | None = None,
        settings: Settings | None = None,
    ):
        self._settings = settings or get_settings()
        self._transport = transport
        self._planner = planner or RequestPlanner(self._settings)

    async def validate(
        self,
        entity: Entity,
        url: str | None,
        options: RequestOptions | Mapping[str, Any] | None = None,
    ) -> TransportResponse:
        """POST the entity as a dry run; the answer is never written to the store.

        Returns the response, including the 422 one when validation failed;
        check ``entity.has_errors()`` to tell the two apart.
        """
        entity.clear_errors()

        request = self._planner.plan(
            RequestOptions(
                url=url,
                expand_name=self._settings.save_expand_param,
                transport={"save": False},
            ),
            options,
        )
        target = self._require_url(entity, request)
        body = {**entity.to_json(), **request.data}

        try:
            response = await self._transport.post(
                type(entity), target, body, params=request.params, config=request.transport
            )
        except EntityValidationError as exc:
            self.apply_result_errors(entity, exc)
            logger.info(
                "Validation of %s reported %d field error(s)",
                entity.entity_name(),
                len(entity.errors.fields),
            )
            return exc.response
        except TransportError as exc:
            self.apply_result_errors(entity, exc)
            raise

        self.apply_result_errors(entity, response)
        return response

    async def save(
        self,
        entity: Entity,
        options: RequestOptions | Mapping[str, Any] | None = None,
    ) -> TransportResponse:
        """Create (POST) a new record or update (PUT) an existing one."""
        entity.clear_errors()
        model = type(entity)
        is_new = entity.is_new_record()

        request = self._planner.plan(
            RequestOptions(
                url=model.endpoint_create if is_new else model.endpoint_update,
                expand_name=self._settings.save_expand_param,
            ),
            options,
        )
        target = self._require_url(entity, request)
        body = {**entity.to_json(), **request.data}
        method = "POST" if is_new else "PUT"

        logger.info("Saving %s via %s %s", entity.entity_name(), method, target)
        try:
            response = await self._transport.request(
                method, model, target, params=request.params, body=body, config=request.transport
            )
        except TransportError as exc:
            self.apply_result_errors(entity, exc)
            logger.warning("Saving %s failed: %s", entity.entity_name(), exc)
            raise

        self.apply_result_errors(entity, response)
        if isinstance(response.data, Mapping):
            entity.set_attributes(response.data, is_dirty=False)
        entity.mark_synced()
        return response

    async def delete(
        self,
        entity: Entity,
        options: RequestOptions | Mapping[str, Any] | None = None,
    ) -> TransportResponse:
        """DELETE the record; the transport drops it from the local store."""
        model = type(entity)
        if not model.endpoint_delete:
            logger.error("No delete endpoint set for %s", entity.entity_name())
            raise ConfigurationError(entity.entity_name(), "no endpoint set for delete")

        if entity.is_new_record():
            logger.error("No primary key set for %s", entity.entity_name())
            raise ConfigurationError(entity.entity_name(), "no primary key set")

        entity.clear_errors()
        key = entity.primary_key_value()
        request = self._planner.plan(
            RequestOptions(
                url=model.endpoint_delete,
                expand_name=self._settings.save_expand_param,
                params=key_params(model, key),
                transport={"delete": key},
            ),
            options,
        )
        target = self._require_url(entity, request)

        try:
            response = await self._transport.delete(
                model, target, params=request.params, config=request.transport
            )
        except TransportError as exc:
            self.apply_result_errors(entity, exc)
            raise

        return response

    def apply_result_errors(self, entity: Entity, outcome: TransportResponse | Exception) -> None:
        """Record the outcome of a request on ``entity``'s error state."""
        if isinstance(outcome, TransportResponse):
            response = outcome
        else:
            response = getattr(outcome, "response", None)

        if response is None:
            entity.error_message = str(outcome)
            return

        if response.status == VALIDATION_FAILED_STATUS:
            self._map_field_errors(entity, response)
        elif not response.is_success:
            entity.error_message = response.reason

    def _map_field_errors(self, entity: Entity, response: TransportResponse) -> None:
        try:
            items = FieldErrorList.validate_python(response.data or [])
        except ValidationError:
            logger.warning(
                "Unexpected validation payload for %s: %r", entity.entity_name(), response.data
            )
            entity.error_message = response.reason
            return

        for item in items:
            assign_error(entity, item.path, item.message)

    @staticmethod
    def _require_url(entity: Entity, request: RequestDescriptor) -> str:
        """Resolve the endpoint or record why it is unusable and raise."""
        try:
            if not request.url:
                raise ConfigurationError(entity.entity_name(), "no endpoint set")
            return resolve_url(entity, request.url)
        except ConfigurationError as exc:
            logger.error("Cannot send %s: %s", entity.entity_name(), exc.message)
            entity.error_message = str(exc)
            raise
