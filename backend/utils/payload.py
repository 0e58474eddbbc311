# backend/utils/payload.py


def get_text(data, key, default=""):
    """Stripped string at ``data[key]``. Raises ValueError for non-strings."""
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value.strip()
