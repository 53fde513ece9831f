# events/forms_schema.py
"""
Custom registration forms.

An event may carry one organizer-defined form: an ordered list of fields

    {"id": "f1", "type": "dropdown", "label": "T-shirt", "required": true,
     "options": ["S", "M", "L"], "description": "optional help text"}

Schemas are validated when written and again when read back, since rows
may predate the current rules. Answers are validated server-side against
the schema before a response row is written.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.db import DatabaseError
from django.utils.dateparse import parse_date

from .exceptions import InvalidFormSchema, FormValidationError, FormResponseError
from .models import EventForm, EventFormResponse
from .sanitizers import sanitize_text

logger = logging.getLogger("cos.events")

FIELD_TEXT = "text"
FIELD_TEXTAREA = "textarea"
FIELD_NUMBER = "number"
FIELD_DATE = "date"
FIELD_DROPDOWN = "dropdown"
FIELD_FILE = "file"

FIELD_TYPES = (FIELD_TEXT, FIELD_TEXTAREA, FIELD_NUMBER, FIELD_DATE, FIELD_DROPDOWN, FIELD_FILE)

MAX_FIELDS = 50
MAX_LABEL_LENGTH = 200
MAX_TEXT_ANSWER = 5000
# Digits before the decimal point a number answer may have
MAX_NUMBER_DIGITS = 15


def parse_schema(raw) -> list:
    """
    Validate and normalize a schema payload.

    Raises InvalidFormSchema naming the first offending field.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise InvalidFormSchema("Form schema must be a list of fields.")
    if len(raw) > MAX_FIELDS:
        raise InvalidFormSchema(f"A form can have at most {MAX_FIELDS} fields.")

    fields = []
    seen_ids = set()
    for position, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            raise InvalidFormSchema(f"Field #{position} must be an object.")

        field_id = item.get("id")
        if not isinstance(field_id, str) or not field_id.strip():
            raise InvalidFormSchema(f"Field #{position} is missing an id.")
        field_id = field_id.strip()
        if field_id in seen_ids:
            raise InvalidFormSchema(f"Duplicate field id '{field_id}'.")
        seen_ids.add(field_id)

        field_type = item.get("type")
        if field_type not in FIELD_TYPES:
            raise InvalidFormSchema(
                f"Field '{field_id}' has invalid type. Valid types: {', '.join(FIELD_TYPES)}"
            )

        label = item.get("label")
        if not isinstance(label, str):
            raise InvalidFormSchema(f"Field '{field_id}' needs a label.")
        label = sanitize_text(label, max_length=MAX_LABEL_LENGTH)
        if not label:
            raise InvalidFormSchema(f"Field '{field_id}' needs a label.")

        field = {
            "id": field_id,
            "type": field_type,
            "label": label,
            "required": bool(item.get("required", False)),
        }

        options = item.get("options")
        if field_type == FIELD_DROPDOWN:
            if not isinstance(options, list) or not options:
                raise InvalidFormSchema(f"Dropdown field '{field_id}' needs at least one option.")
            cleaned = [sanitize_text(str(option), max_length=MAX_LABEL_LENGTH) for option in options]
            if any(not option for option in cleaned):
                raise InvalidFormSchema(f"Dropdown field '{field_id}' has an empty option.")
            field["options"] = cleaned
        elif options:
            raise InvalidFormSchema(f"Only dropdown fields can have options ('{field_id}').")

        description = item.get("description")
        if description is not None and not isinstance(description, str):
            raise InvalidFormSchema(f"Description of field '{field_id}' must be text.")
        description = sanitize_text(description, max_length=500)
        if description:
            field["description"] = description

        fields.append(field)

    return fields


def get_form(event_id) -> Optional[EventForm]:
    return EventForm.objects.filter(event_id=event_id).first()


def get_schema(event_id) -> Optional[list]:
    """Return the event's parsed schema, or None when it has no form."""
    form = get_form(event_id)
    if form is None:
        return None
    return parse_schema(form.schema)


def save_schema(event, schema, user) -> EventForm:
    """Create or replace the event's form wholesale."""
    fields = parse_schema(schema)
    form, created = EventForm.objects.update_or_create(
        event=event,
        defaults={"schema": fields, "created_by": user},
    )
    logger.info(
        f"Form schema {'created' if created else 'replaced'}: event={event.id}, "
        f"fields={len(fields)}, user={user.id}"
    )
    return form


def _is_empty(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _clean_value(field, value):
    field_type = field["type"]
    label = field["label"]

    if field_type == FIELD_NUMBER:
        if isinstance(value, bool):
            raise FormValidationError(f"{label} must be a number")
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            raise FormValidationError(f"{label} must be a number")
        if not number.is_finite():
            raise FormValidationError(f"{label} must be a number")
        if number.adjusted() >= MAX_NUMBER_DIGITS:
            raise FormValidationError(f"{label} is too large")
        return int(number) if number == number.to_integral_value() else float(number)

    if not isinstance(value, str):
        raise FormValidationError(f"{label} must be text")
    value = value.strip()

    if field_type == FIELD_DATE:
        try:
            parsed = parse_date(value)
        except ValueError:
            parsed = None
        if parsed is None:
            raise FormValidationError(f"{label} must be a date (YYYY-MM-DD)")
        return parsed.isoformat()

    if field_type == FIELD_DROPDOWN:
        if value not in field["options"]:
            raise FormValidationError(f"{label} must be one of: {', '.join(field['options'])}")
        return value

    return sanitize_text(value, max_length=MAX_TEXT_ANSWER)


def validate_response(schema, data) -> dict:
    """
    Check answers against the schema and return the cleaned answer map.

    Keys that are not fields of the schema are dropped. Optional fields
    left empty are stored as None.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FormValidationError("Form data must be an object")

    cleaned = {}
    for field in schema:
        value = data.get(field["id"])
        if _is_empty(value):
            if field["required"]:
                raise FormValidationError(f"{field['label']} is required")
            cleaned[field["id"]] = None
            continue
        cleaned[field["id"]] = _clean_value(field, value)

    return cleaned


def save_response(form, user, answers) -> EventFormResponse:
    try:
        return EventFormResponse.objects.create(form=form, user=user, response=answers)
    except DatabaseError as e:
        logger.warning(f"Form response insert failed: form={form.id}, user={user.id}: {e}")
        raise FormResponseError(f"Failed to save form response: {e}")
