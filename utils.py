from flask import request

IMPORT_EXTENSIONS = {"xlsx", "csv"}


def allowed_file(filename):
    """Check if the uploaded file has an importable extension."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in IMPORT_EXTENSIONS


def get_payload() -> dict:
    """Request body as a dict, from JSON or form data.

    Malformed JSON never reaches here; the app's before_request hook
    rejects it first. A JSON body that is not an object yields ``{}``.
    """
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form.to_dict()


def clean_str(value) -> str | None:
    """Strip strings; empty strings become ``None``."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_int(value, *, minimum: int | None = None) -> int | None:
    """Parse an integer field; ``None`` when invalid or below ``minimum``.

    Booleans and fractional values are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    if minimum is not None and number < minimum:
        return None
    return number
