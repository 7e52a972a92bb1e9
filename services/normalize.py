from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlparse

from models import COMPANY_FIELDS, CompanyRecord

PREFERRED_REFERENCES_FIELD = "topReferences"
FALLBACK_REFERENCES_FIELD = "references"
LINK_FIELDS = ("website", "linkedin")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _flatten(values, out: List[Any]) -> None:
    for item in values:
        if isinstance(item, (list, tuple)):
            _flatten(item, out)
        else:
            out.append(item)


def _render_item(item: Any) -> Optional[str]:
    if isinstance(item, Mapping):
        cleaned = normalize_value(item)
        if not cleaned:
            return None
        return ", ".join(f"{k}: {v}" for k, v in cleaned.items())
    return str(item)


def normalize_value(value: Any) -> Any:
    """
    Recursively clean one stored value.

    None and blank strings become None. Sequences are flattened, stripped of
    None/blank entries and joined into one comma-separated string. Mappings
    are cleaned field by field and lose their None fields. Everything else
    is returned as-is.
    """
    if _is_blank(value):
        return None

    if isinstance(value, (list, tuple)):
        flat: List[Any] = []
        _flatten(value, flat)
        parts = []
        for item in flat:
            if _is_blank(item):
                continue
            rendered = _render_item(item)
            if rendered is not None:
                parts.append(rendered)
        return ", ".join(parts) if parts else None

    if isinstance(value, Mapping):
        cleaned: Dict[str, Any] = {}
        for key, item in value.items():
            item = normalize_value(item)
            if item is not None:
                cleaned[key] = item
        return cleaned or None

    return value


def safe_url(value: Any) -> Optional[str]:
    """Return an http(s) link for `value`, adding https:// to bare hosts, or None."""
    if not isinstance(value, str) or not value.strip():
        return None
    url = value.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    try:
        parsed = urlparse(url)
        parsed.port  # raises ValueError on a malformed port
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    if any(c.isspace() or c == "," for c in parsed.netloc):
        return None
    return url


def _first_link(value: Any) -> Optional[str]:
    """First entry of a (possibly nested) link field that is a safe link."""
    if isinstance(value, (list, tuple)):
        flat: List[Any] = []
        _flatten(value, flat)
        for item in flat:
            link = safe_url(item)
            if link is not None:
                return link
        return None
    return safe_url(value)


def normalize(raw: Mapping[str, Any]) -> CompanyRecord:
    """Turn a raw stored company document into a display-ready CompanyRecord."""
    record: Dict[str, Any] = {}
    for field in COMPANY_FIELDS:
        if field == FALLBACK_REFERENCES_FIELD:
            continue
        value = normalize_value(raw.get(field))
        if value is not None:
            record[field] = value

    # preference is decided on the cleaned values, so an empty preferred list falls through
    references = normalize_value(raw.get(PREFERRED_REFERENCES_FIELD))
    if references is None:
        references = normalize_value(raw.get(FALLBACK_REFERENCES_FIELD))
    if references is not None:
        record["references"] = references

    # links are picked from the raw value so a list of URLs yields one usable link
    for field in LINK_FIELDS:
        record.pop(field, None)
        link = _first_link(raw.get(field))
        if link is not None:
            record[field] = link

    return CompanyRecord(**record)
