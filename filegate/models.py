"""
Data model for backend declarations and normalized results.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from filegate.errors import InvalidConfig


class BackendConfig(BaseModel):
    """One declared backend account/region."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    endpoint_id: str = Field("", alias="endpoint")
    region: Optional[str] = None
    access_key_id: str = Field("", alias="accessKeyID")
    access_key_secret: str = Field("", alias="accessKeySecret", repr=False)
    type: Optional[str] = None

    def masked(self) -> Dict[str, Any]:
        """Declaration with the secret hidden, safe for logs and status output."""
        return {
            "endpoint": self.endpoint_id,
            "region": self.region,
            "accessKeyID": self.access_key_id,
            "accessKeySecret": "***" if self.access_key_secret else "",
            "type": self.type,
        }


BackendDeclarations = Union[str, bytes, Sequence[Union[BackendConfig, Mapping[str, Any]]]]


def parse_backend_configs(declarations: BackendDeclarations) -> List[BackendConfig]:
    """
    Parse a declared backend list.

    Args:
        declarations: JSON array (str or bytes), or a sequence of
            BackendConfig instances / mappings

    Returns:
        BackendConfig list in declaration order

    Raises:
        InvalidConfig: If the list or any entry is malformed
    """
    if isinstance(declarations, (str, bytes, bytearray)):
        try:
            declarations = json.loads(declarations)
        except ValueError as e:
            raise InvalidConfig(f"backend declarations are not valid JSON: {e}") from e

    if isinstance(declarations, Mapping) or not isinstance(declarations, Sequence):
        raise InvalidConfig("backend declarations must be an array")

    configs = []
    for index, entry in enumerate(declarations):
        if isinstance(entry, BackendConfig):
            configs.append(entry)
            continue
        if not isinstance(entry, Mapping):
            raise InvalidConfig(f"backend declaration #{index} is not an object")
        try:
            configs.append(BackendConfig.model_validate(dict(entry)))
        except ValidationError as e:
            raise InvalidConfig(f"backend declaration #{index} is invalid: {e}") from e
    return configs


@dataclass(frozen=True)
class ListingCursor:
    """Page boundary in a backend's ordered key listing."""

    marker: str
    page_size: int
    is_truncated: bool


@dataclass(frozen=True)
class FileInfo:
    name: str
    size: int
    last_modified: str


@dataclass(frozen=True)
class ListResult:
    """One page of a listing. Pass `marker` back to continue."""

    files: List[FileInfo]
    marker: str
    is_truncated: bool
    page_size: int = 0

    @property
    def cursor(self) -> ListingCursor:
        return ListingCursor(
            marker=self.marker,
            page_size=self.page_size,
            is_truncated=self.is_truncated,
        )


@dataclass(frozen=True)
class ObjectMetadata:
    """
    Normalized object metadata.

    `extra` holds every header except content length and last modified,
    with all values of a repeated header kept in order.
    """

    size: int
    last_modified: str
    extra: Dict[str, List[str]] = field(default_factory=dict)
