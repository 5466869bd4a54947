"""
Entry list parsing.

Bulk runs start from an uploaded JSON document:

    [{"email": "user@example.com", "firstName": "John", "lastName": "Doe"}]

snake_case keys (first_name, last_name) are accepted as well. Emails are
kept exactly as given; they are case-sensitive identifiers.
"""

import json
from typing import Any

from .exceptions import MalformedInput
from .ports import EmailEntry


def parse_entries(content: str | bytes) -> list[EmailEntry]:
    """
    Parse a JSON entry list.

    Raises:
        MalformedInput: If the document is not a list of entry objects
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedInput(f"Entry list is not valid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise MalformedInput("Entry list must be a JSON array")

    return [_parse_entry(index, item) for index, item in enumerate(data)]


def _parse_entry(index: int, item: Any) -> EmailEntry:
    if not isinstance(item, dict):
        raise MalformedInput(f"Entry {index} must be an object")

    email = item.get("email")
    if not isinstance(email, str) or not email.strip():
        raise MalformedInput(f"Entry {index} has no email")

    first_name = _name_field(index, item, "firstName", "first_name")
    last_name = _name_field(index, item, "lastName", "last_name")
    return EmailEntry(email=email.strip(), first_name=first_name, last_name=last_name)


def _name_field(index: int, item: dict[str, Any], camel: str, snake: str) -> str:
    value = item.get(camel, item.get(snake, ""))
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MalformedInput(f"Entry {index} field {camel} must be a string")
    return value
