"""Per-entity error state: field messages plus a free-standing summary."""

from collections.abc import MutableMapping

from restsync.domain.observable import ObservableFactory


class ErrorState:
    """Why the last sync attempt of an entity failed.

    ``fields`` maps a field name to its validation message. ``message`` is
    used when the failure was not a per-field validation failure (server
    error, no response).
    """

    def __init__(self, observables: ObservableFactory):
        self.fields: MutableMapping[str, str] = observables.mapping()
        self._message = observables.value(None)

    @property
    def message(self) -> str | None:
        return self._message.get()

    @message.setter
    def message(self, value: str | None) -> None:
        self._message.set(value)

    def has_errors(self) -> bool:
        # The summary message is not counted
        return len(self.fields) > 0

    def get(self, field: str) -> str | None:
        return self.fields.get(field)

    def set(self, field: str, message: str) -> None:
        self.fields[field] = message

    def clear(self, field: str | None = None) -> None:
        if field:
            self.fields.pop(field, None)
            return
        self.message = None
        for key in list(self.fields):
            del self.fields[key]

    def summary(self, separator: str = "; ") -> str:
        return separator.join(self.fields.values())
