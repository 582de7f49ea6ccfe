import os


def get_qualified_name(base_name: str) -> str:
    """Returns the object name prefixed with the configured schema, if any.

    Args:
        base_name: The unqualified table or type name.

    Returns:
        The schema-qualified name.
    """
    schema_name = os.getenv("POSTGRES_DB_SCHEMA")
    if schema_name:
        return f"{schema_name}.{base_name}"
    return base_name
