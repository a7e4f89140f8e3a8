"""Map directory entries onto local user fields.

Mirrors the claims mapping done for SSO logins: a pure function from what the
external authority returned to what we store locally.
"""

from dataclasses import dataclass, field

from fedstore.config import AttributeMapping
from fedstore.federation.directory import DirectoryEntry

GROUP_PATH_SEPARATOR = "/"


@dataclass(frozen=True)
class MappedUser:
    """Local user fields derived from a directory entry."""

    email: str
    first_name: str
    last_name: str
    group_paths: list[str] = field(default_factory=list)


def raw_attribute(value: str | list[str] | None) -> str:
    """Flatten a directory attribute value to a single string.

    Multi-valued attributes yield their first value. Missing values become
    an empty string so local columns are never NULL.
    """
    if value is None:
        return ""
    if isinstance(value, list):
        return str(value[0]) if value else ""
    return str(value)


def group_path(group_name: str) -> str:
    """Local group path for an external group name, e.g. 'admins' → '/admins'."""
    return GROUP_PATH_SEPARATOR + group_name


def map_directory_entry(entry: DirectoryEntry, mapping: AttributeMapping) -> MappedUser:
    """Derive email, names and group paths from a directory entry.

    Blank group names are dropped; duplicates collapse while keeping the
    directory's order.
    """
    paths: list[str] = []
    for name in entry.groups:
        name = name.strip()
        if not name:
            continue
        path = group_path(name)
        if path not in paths:
            paths.append(path)

    return MappedUser(
        email=raw_attribute(entry.attributes.get(mapping.email)),
        first_name=raw_attribute(entry.attributes.get(mapping.first_name)),
        last_name=raw_attribute(entry.attributes.get(mapping.last_name)),
        group_paths=paths,
    )
