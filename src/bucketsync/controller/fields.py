"""Field selectors for Cloud Storage JSON API responses."""

from __future__ import annotations

OBJECT_FIELDS: str = (
    "name,"
    "size,"
    "updated,"
    "md5Hash"
)

LIST_FIELDS: str = f"nextPageToken,prefixes,items({OBJECT_FIELDS})"

PREFIX_FIELDS: str = "nextPageToken,prefixes"
