"""Label/annotation presentation helpers."""

from typing import Callable, Iterable, TypeVar

from cloudgate.models.deployment import MetadataEntry

T = TypeVar("T")


def hashify(
    records: Iterable[T],
    key: Callable[[T], str],
    value: Callable[[T], str | None],
) -> dict[str, str | None]:
    """
    Turn a flat sequence of key/value records into a mapping.

    Keys keep the order in which the records arrive; a later record with the
    same key wins.
    """
    return {key(record): value(record) for record in records}


def metadata_key(entry: MetadataEntry) -> str:
    """Full key for a label/annotation: ``prefix/name`` or just ``name``."""
    if entry.key_prefix:
        return f"{entry.key_prefix}/{entry.key_name}"
    return entry.key_name


def hashified_labels(labels: Iterable[MetadataEntry]) -> dict[str, str | None]:
    return hashify(labels, key=metadata_key, value=lambda entry: entry.value)


def hashified_annotations(annotations: Iterable[MetadataEntry]) -> dict[str, str | None]:
    return hashify(annotations, key=metadata_key, value=lambda entry: entry.value)


def parse_metadata_key(full_key: str) -> tuple[str | None, str]:
    """Split ``prefix/name`` into its parts. Keys without a slash have no prefix."""
    if "/" in full_key:
        prefix, name = full_key.split("/", 1)
        return prefix, name
    return None, full_key
