"""Validation of custom form responses against an event's form definition."""

import typing as t
from datetime import date
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email

from events.exceptions import InvalidInputError
from events.models import CustomForm, CustomFormField, FieldType


def _is_blank(value: t.Any) -> bool:
    return value is None or value == "" or value == [] or (isinstance(value, str) and not value.strip())


def _clean_value(form_field: CustomFormField, value: t.Any) -> t.Any:
    label = form_field.label
    match form_field.field_type:
        case FieldType.TEXT | FieldType.TEXTAREA | FieldType.FILE:
            if not isinstance(value, str):
                raise InvalidInputError(f"'{label}' must be text.")
            return value.strip()
        case FieldType.EMAIL:
            try:
                validate_email(value)
            except DjangoValidationError as e:
                raise InvalidInputError(f"'{label}' must be a valid email address.") from e
            return str(value).strip().lower()
        case FieldType.NUMBER:
            if isinstance(value, bool):
                raise InvalidInputError(f"'{label}' must be a number.")
            try:
                number = Decimal(str(value))
            except InvalidOperation as e:
                raise InvalidInputError(f"'{label}' must be a number.") from e
            if not number.is_finite():
                raise InvalidInputError(f"'{label}' must be a number.")
            return str(number)
        case FieldType.DATE:
            try:
                return date.fromisoformat(str(value)).isoformat()
            except ValueError as e:
                raise InvalidInputError(f"'{label}' must be a date in YYYY-MM-DD format.") from e
        case FieldType.DROPDOWN | FieldType.RADIO:
            if value not in form_field.options:
                raise InvalidInputError(f"'{label}' must be one of: {', '.join(form_field.options)}.")
            return value
        case FieldType.CHECKBOX:
            selected = value if isinstance(value, list) else [value]
            invalid = [v for v in selected if v not in form_field.options]
            if invalid:
                raise InvalidInputError(f"'{label}' has invalid choices: {', '.join(map(str, invalid))}.")
            return selected
    raise InvalidInputError(f"'{label}' has an unsupported field type.")  # pragma: no cover


def validate_form_responses(form: CustomForm, responses: dict[str, t.Any]) -> dict[str, t.Any]:
    """Validate responses against the form and return the cleaned values keyed by field id.

    Raises:
        InvalidInputError: on unknown fields, missing required fields or malformed values.
    """
    fields_by_id = {f.field_id: f for f in form.fields}
    unknown = sorted(set(responses) - set(fields_by_id))
    if unknown:
        raise InvalidInputError(f"Unknown form fields: {', '.join(unknown)}.")

    cleaned: dict[str, t.Any] = {}
    for form_field in form.ordered_fields():
        value = responses.get(form_field.field_id)
        if _is_blank(value):
            if form_field.required:
                raise InvalidInputError(f"'{form_field.label}' is required.")
            continue
        cleaned[form_field.field_id] = _clean_value(form_field, value)
    return cleaned
