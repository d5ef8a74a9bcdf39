"""Pydantic DTOs for API error payloads."""

from pydantic import BaseModel, TypeAdapter


class FieldErrorItem(BaseModel):
    """One item of a 422 payload: ``{"field": "owner.name", "message": "..."}``."""

    field: str
    message: str

    model_config = {"extra": "ignore"}

    @property
    def path(self) -> list[str]:
        return self.field.split(".")


FieldErrorList = TypeAdapter(list[FieldErrorItem])
