"""Shared fixtures for cloudaudit tests."""

import pytest

from cloudaudit.core.provider import RegionMetadata

from .helpers import ACCOUNT_ID, OTHER_REGION, REGION, ok


@pytest.fixture
def regions():
    """Region metadata that never consults botocore endpoint data."""
    return RegionMetadata(regions={
        "ec2": [REGION, OTHER_REGION],
        "cloudtrail": [REGION, OTHER_REGION],
        "voiceid": [REGION],
        "elasticache": [REGION, OTHER_REGION],
    })


@pytest.fixture
def single_region():
    return RegionMetadata(regions={
        "ec2": [REGION],
        "cloudtrail": [REGION],
        "voiceid": [REGION],
        "elasticache": [REGION],
    })


@pytest.fixture
def identity_cache():
    return {"sts": {"getCallerIdentity": {REGION: ok(ACCOUNT_ID)}}}
