"""Custom registration form definitions stored on Event.custom_form."""

import typing as t
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator


class FieldType(StrEnum):
    TEXT = "text"
    EMAIL = "email"
    NUMBER = "number"
    TEXTAREA = "textarea"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    FILE = "file"
    DATE = "date"


CHOICE_FIELD_TYPES = frozenset({FieldType.DROPDOWN, FieldType.CHECKBOX, FieldType.RADIO})


class CustomFormField(BaseModel):
    field_id: str = Field(..., min_length=1, max_length=64)
    field_type: FieldType
    label: str = Field(..., min_length=1, max_length=255)
    placeholder: str = ""
    required: bool = False
    options: list[str] = Field(default_factory=list)
    order: int = 0

    @model_validator(mode="after")
    def options_match_type(self) -> t.Self:
        """Choice fields need options; other fields must not have any."""
        if self.field_type in CHOICE_FIELD_TYPES and not self.options:
            raise ValueError(f"Field '{self.field_id}' of type {self.field_type} needs at least one option.")
        if self.field_type not in CHOICE_FIELD_TYPES and self.options:
            raise ValueError(f"Field '{self.field_id}' of type {self.field_type} does not take options.")
        return self


class CustomForm(BaseModel):
    fields: list[CustomFormField] = Field(default_factory=list)

    @model_validator(mode="after")
    def unique_field_ids(self) -> t.Self:
        """Field ids key the stored responses, so they must be unique."""
        ids = [f.field_id for f in self.fields]
        if len(ids) != len(set(ids)):
            raise ValueError("Custom form field ids must be unique.")
        return self

    @classmethod
    def from_event_value(cls, value: list[dict[str, t.Any]] | None) -> "CustomForm":
        """Parse the raw JSON stored on the event."""
        return cls(fields=value or [])

    def ordered_fields(self) -> list[CustomFormField]:
        """Fields in display order."""
        return sorted(self.fields, key=lambda f: f.order)
