"""
Normalization of backend listings, metadata headers and errors.
"""
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from filegate.backends.base import HeaderValue, ObjectClient, ObjectPage
from filegate.errors import BackendError, FileGateError, NotFound
from filegate.models import FileInfo, ListResult, ObjectMetadata

CONTENT_LENGTH = "content-length"
LAST_MODIFIED = "last-modified"

NOT_FOUND_CODES = {"404", "nosuchkey", "notfound"}
NOT_FOUND_MESSAGES = ("no such key", "nosuchkey")
MISSING_BUCKET_CODE = "nosuchbucket"
MISSING_BUCKET_MESSAGES = (MISSING_BUCKET_CODE, "no such bucket")


def format_timestamp(value: Union[datetime, float, int, str, None]) -> str:
    """
    Render a backend timestamp as ISO-8601 UTC.

    Accepts datetimes, epoch seconds, ISO strings and HTTP dates; anything
    unparseable is returned verbatim.
    """
    if value is None or value == "":
        return ""

    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, (int, float)):
        moment = datetime.fromtimestamp(value, tz=timezone.utc)
    else:
        text = str(value).strip()
        try:
            moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                moment = parsedate_to_datetime(text)
            except (TypeError, ValueError):
                return text
            if moment is None:
                return text

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


def build_list_result(page: ObjectPage, page_size: int) -> ListResult:
    """
    Convert a backend listing page into a ListResult.

    The returned marker is the key of the last entry kept, so the next call
    resumes strictly after it.
    """
    entries = list(page.entries)
    is_truncated = page.is_truncated
    if page_size > 0 and len(entries) > page_size:
        entries = entries[:page_size]
        is_truncated = True

    files = [
        FileInfo(
            name=entry.key,
            size=int(entry.size or 0),
            last_modified=format_timestamp(entry.last_modified),
        )
        for entry in entries
    ]
    return ListResult(
        files=files,
        marker=files[-1].name if files else "",
        is_truncated=is_truncated,
        page_size=page_size,
    )


def _values(value: HeaderValue) -> List[str]:
    if value is None:
        return []
    if isinstance(value, bytes):
        return [value.decode()]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def metadata_from_headers(headers: Mapping[str, HeaderValue]) -> ObjectMetadata:
    """Split content length and last modified out of a header mapping."""
    size = 0
    last_modified = ""
    extra: Dict[str, List[str]] = {}

    for name, value in headers.items():
        values = _values(value)
        lowered = name.lower()
        if lowered == CONTENT_LENGTH:
            if values:
                try:
                    size = int(values[0])
                except ValueError:
                    size = 0
            continue
        if lowered == LAST_MODIFIED:
            if values:
                last_modified = format_timestamp(values[0])
            continue
        extra.setdefault(name, []).extend(values)

    return ObjectMetadata(size=size, last_modified=last_modified, extra=extra)


def _response_says_not_found(response: Any) -> bool:
    if not isinstance(response, Mapping):
        return False
    code = str(response.get("Error", {}).get("Code", "")).lower()
    status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code in NOT_FOUND_CODES or status == 404


def is_missing_bucket(exc: BaseException) -> bool:
    """Whether a backend exception reports that the bucket itself does not exist."""
    code = getattr(exc, "code", None)
    if isinstance(code, str) and code.lower() == MISSING_BUCKET_CODE:
        return True
    response = getattr(exc, "response", None)
    if isinstance(response, Mapping):
        if str(response.get("Error", {}).get("Code", "")).lower() == MISSING_BUCKET_CODE:
            return True
    message = str(exc).lower()
    return any(marker in message for marker in MISSING_BUCKET_MESSAGES)


def is_not_found(exc: BaseException, client: Optional[ObjectClient] = None) -> bool:
    """
    Whether a backend exception signals an absent object.

    A missing bucket is a configuration error and never counts as not found.
    """
    if isinstance(exc, NotFound):
        return True
    if is_missing_bucket(exc):
        return False
    if client is not None and client.is_not_found(exc):
        return True
    if isinstance(exc, FileNotFoundError):
        return True
    for attr in ("status", "status_code"):
        if getattr(exc, attr, None) == 404:
            return True
    if _response_says_not_found(getattr(exc, "response", None)):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in NOT_FOUND_MESSAGES)


def translate_error(
    exc: BaseException,
    operation: str,
    path: str,
    client: Optional[ObjectClient] = None,
) -> FileGateError:
    """Map a backend exception onto NotFound or BackendError."""
    if isinstance(exc, FileGateError):
        return exc
    if is_not_found(exc, client):
        return NotFound(operation, path, str(exc) or None)
    return BackendError(operation, path, str(exc) or exc.__class__.__name__)
