"""
Tests for encryption-level comparison and whitelists.

The level ranking is small enough to check every pair directly; hypothesis
covers the comparator properties over arbitrary draws from it.
"""

import itertools
import re

import pytest
from hypothesis import given
from hypothesis import strategies as st

from cloudaudit.core.policy import (DEFAULT_ENCRYPTION_LEVEL, ENCRYPTION_LEVELS,
                                    EncryptionLevel, Whitelist, compare,
                                    key_id_from_reference, level_from_key_metadata)

levels = st.sampled_from(list(EncryptionLevel))


@given(levels)
def test_compare_is_reflexive(level):
    assert compare(level, level)


@given(levels, levels)
def test_compare_follows_ordinal(a, b):
    weaker, stronger = sorted((a, b))
    assert compare(stronger, weaker)
    if weaker != stronger:
        assert not compare(weaker, stronger)


def test_compare_every_pair():
    for observed, desired in itertools.product(EncryptionLevel, repeat=2):
        assert compare(observed, desired) == (observed.value >= desired.value)


def test_level_order_and_tokens():
    assert ENCRYPTION_LEVELS == ("none", "sse", "awskms", "awscmk", "externalcmk", "cloudhsm")
    assert EncryptionLevel.from_token("awscmk") == EncryptionLevel.AWSCMK
    assert EncryptionLevel.from_token(" CloudHSM ") == EncryptionLevel.CLOUDHSM
    assert str(EncryptionLevel.EXTERNALCMK) == "externalcmk"
    with pytest.raises(ValueError):
        EncryptionLevel.from_token("rot13")


def test_default_level_is_provider_managed_key():
    assert DEFAULT_ENCRYPTION_LEVEL == EncryptionLevel.AWSKMS
    assert int(DEFAULT_ENCRYPTION_LEVEL) == 2
    assert DEFAULT_ENCRYPTION_LEVEL != EncryptionLevel.NONE


@pytest.mark.parametrize("metadata, expected", [
    ({"Origin": "AWS_KMS", "KeyManager": "AWS"}, EncryptionLevel.AWSKMS),
    ({"Origin": "AWS_KMS", "KeyManager": "CUSTOMER"}, EncryptionLevel.AWSCMK),
    ({"Origin": "EXTERNAL", "KeyManager": "CUSTOMER"}, EncryptionLevel.EXTERNALCMK),
    ({"Origin": "AWS_CLOUDHSM", "KeyManager": "CUSTOMER"}, EncryptionLevel.CLOUDHSM),
    ({"Origin": "AWS_KMS"}, EncryptionLevel.NONE),
    ({}, EncryptionLevel.NONE),
])
def test_level_from_key_metadata(metadata, expected):
    assert level_from_key_metadata(metadata) == expected


@pytest.mark.parametrize("reference, expected", [
    ("arn:aws:kms:us-east-1:123456789012:key/abcd-1234", "abcd-1234"),
    ("abcd-1234", "abcd-1234"),
])
def test_key_id_from_reference(reference, expected):
    assert key_id_from_reference(reference) == expected


def test_unconfigured_whitelist_matches_nothing():
    for whitelist in (Whitelist(), Whitelist(""), Whitelist(None)):
        assert not whitelist.configured
        assert not whitelist.matches("anything")


def test_whitelist_matches_with_search_semantics():
    whitelist = Whitelist("^audit-")
    assert whitelist.configured
    assert whitelist.matches("audit-logs")
    assert not whitelist.matches("logs-audit")
    assert not whitelist.matches(None)

    assert Whitelist("logs").matches("my-logs-bucket")


def test_invalid_whitelist_raises():
    with pytest.raises(re.error):
        Whitelist("([unclosed")
