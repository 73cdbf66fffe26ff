"""Builders for cache documents used across the test suite."""

from cloudaudit.core.cache import CacheSnapshot

ACCOUNT_ID = "123456789012"
REGION = "us-east-1"
OTHER_REGION = "us-west-2"


def ok(data):
    return {"err": None, "data": data}


def failed(message="AccessDenied: not authorized"):
    return {"err": {"message": message}, "data": None}


def snapshot(document):
    return CacheSnapshot.from_dict(document)


def merge(*documents):
    """Deep-merge nested cache documents."""
    merged = {}
    for document in documents:
        for service, operations in document.items():
            for operation, regions in operations.items():
                target = merged.setdefault(service, {}).setdefault(operation, {})
                target.update(regions)
    return merged
