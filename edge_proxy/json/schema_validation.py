from jsonschema import validate

AUTH_ENTRY_SCHEMA = {
    "type": "object",
    "required": ["header", "value"],
    "properties": {
        "header": {"type": "string"},
        "value": {"type": "string"},
    },
}

SERVER_CONFIG_SCHEMA = {
    "type": "object",
    "required": ["url"],
    "properties": {
        "url": {"type": "string"},
        "headers": {
            "type": ["object", "null"],
            "additionalProperties": {"type": "string"},
        },
        "auth": {"type": ["string", "null"]},
        "authHeader": {"type": ["string", "null"]},
        "authConfigs": {"type": ["array", "null"], "items": AUTH_ENTRY_SCHEMA},
    },
}

GLOBAL_AUTH_SCHEMA = {"type": "array", "items": AUTH_ENTRY_SCHEMA}


def validate_schema(schema: dict, data) -> None:
    """
    Validate data against a JSON schema.
    Wrapper around jsonschema.validate
    """

    validate(instance=data, schema=schema)
