"""Tests for findings, the region executor and the check base classes."""

import threading

import pytest

from cloudaudit.core.cache import CacheResolver
from cloudaudit.core.executor import RegionExecutor
from cloudaudit.core.framework import (CheckContext, Finding, FindingAggregator, FindingStatus,
                                       RegionalCheck, SecurityCheck)
from cloudaudit.core.provider import RegionMetadata
from cloudaudit.core.settings import resolve_config
from cloudaudit.core.tagging import check_tags, tagged_arns

from .helpers import OTHER_REGION, REGION, failed, ok, snapshot


class WidgetCheck(RegionalCheck):
    check_id = "widgets"
    check_title = "Widgets"
    category = "Test"
    service = "widgets"
    listing = ("widgets", "listWidgets")
    resource_label = "widgets"

    def evaluate_resource(self, context, region, widget):
        if widget.get("explode"):
            raise KeyError("boom")
        context.add_result(FindingStatus.PASSING, f"Widget {widget['id']} ok",
                           region, widget["id"])


class RegionCrashCheck(WidgetCheck):
    check_id = "region_crash"

    def evaluate_region(self, context, region):
        if region == OTHER_REGION:
            raise RuntimeError("lost connection")
        super().evaluate_region(context, region)


WIDGET_REGIONS = RegionMetadata(regions={"widgets": [REGION, OTHER_REGION]})


def test_finding_requires_message():
    with pytest.raises(ValueError):
        Finding(status=FindingStatus.PASSING, message="")
    with pytest.raises(ValueError):
        Finding(status=FindingStatus.PASSING, message="   ")


def test_finding_serialization():
    finding = Finding(status=2, message="bad", region=REGION, resource_id="r", check_id="c")
    assert finding.status is FindingStatus.FAILING
    assert finding.to_dict() == {
        "check_id": "c", "status": "FAIL", "status_code": 2,
        "message": "bad", "region": REGION, "resource_id": "r",
    }


def test_status_codes():
    assert [int(s) for s in FindingStatus] == [0, 1, 2, 3]
    assert [s.label for s in FindingStatus] == ["PASS", "WARN", "FAIL", "UNKNOWN"]


def test_aggregator_keeps_order_and_freezes():
    aggregator = FindingAggregator("c")
    aggregator.add_result(FindingStatus.PASSING, "one", REGION)
    aggregator.add_result(FindingStatus.FAILING, "two", OTHER_REGION)
    aggregator.add_result(FindingStatus.WARNING, "three", REGION)

    assert [f.message for f in aggregator.for_region(REGION)] == ["one", "three"]
    frozen = aggregator.freeze()
    assert [f.message for f in frozen] == ["one", "two", "three"]
    assert all(f.check_id == "c" for f in frozen)

    with pytest.raises(RuntimeError):
        aggregator.add_result(FindingStatus.PASSING, "late")
    assert len(aggregator) == 3


def test_aggregator_concurrent_appends_keep_per_region_order():
    aggregator = FindingAggregator("c")
    regions = [f"region-{n}" for n in range(8)]

    def emit(region):
        for index in range(50):
            aggregator.add_result(FindingStatus.PASSING, str(index), region)

    RegionExecutor(max_workers=8).run(regions, emit)

    assert len(aggregator) == 400
    for region in regions:
        assert [f.message for f in aggregator.for_region(region)] == [str(n) for n in range(50)]


class TestRegionExecutor:

    def test_empty_region_list(self):
        calls = []
        assert RegionExecutor().run([], calls.append) == []
        assert calls == []

    @pytest.mark.parametrize("parallel", [True, False])
    def test_failure_is_isolated(self, parallel):
        seen = []
        errors = {}
        lock = threading.Lock()

        def evaluate(region):
            if region == "bad":
                raise ValueError("broken")
            with lock:
                seen.append(region)

        failed_regions = RegionExecutor(parallel=parallel).run(
            ["a", "bad", "b", "c"], evaluate,
            lambda region, exc: errors.setdefault(region, str(exc)))

        assert failed_regions == ["bad"]
        assert errors == {"bad": "broken"}
        assert sorted(seen) == ["a", "b", "c"]

    def test_failure_without_handler_is_logged(self, caplog):
        def evaluate(region):
            raise ValueError("broken")

        assert RegionExecutor(parallel=False).run(["a"], evaluate) == ["a"]
        assert "Evaluation failed in a: broken" in caplog.text


class TestRegionalCheck:

    def test_region_crash_becomes_unknown(self):
        cache = snapshot({"widgets": {"listWidgets": {REGION: ok([{"id": "w1"}])}}})

        result = RegionCrashCheck().run(cache, regions=WIDGET_REGIONS)

        by_region = {f.region: f for f in result.findings}
        assert by_region[REGION].status == FindingStatus.PASSING
        assert by_region[OTHER_REGION].status == FindingStatus.UNKNOWN
        assert by_region[OTHER_REGION].message == "Unexpected error evaluating region: lost connection"

    def test_resource_crash_does_not_stop_region(self):
        cache = snapshot({"widgets": {"listWidgets": {
            REGION: ok([{"id": "w1"}, {"id": "w2", "explode": True}, {"id": "w3"}])}}})

        result = WidgetCheck().run(cache, regions=WIDGET_REGIONS, parallel=False)

        assert [f.status for f in result.findings] == [
            FindingStatus.PASSING, FindingStatus.UNKNOWN, FindingStatus.PASSING]
        assert result.findings[1].message.startswith("Unexpected error evaluating resource")

    def test_listing_states(self):
        cache = snapshot({"widgets": {"listWidgets": {
            REGION: failed("denied"), OTHER_REGION: ok([])}}})

        result = WidgetCheck().run(cache, regions=WIDGET_REGIONS, parallel=False)

        assert [(f.region, f.status, f.message) for f in result.findings] == [
            (REGION, FindingStatus.UNKNOWN, "Unable to query for widgets: denied"),
            (OTHER_REGION, FindingStatus.PASSING, "No widgets found"),
        ]

    def test_uncollected_regions_are_silent(self):
        result = WidgetCheck().run(snapshot({}), regions=WIDGET_REGIONS)
        assert result.findings == ()
        assert result.source == {"widgets": {"listWidgets": {REGION: None, OTHER_REGION: None}}}

    def test_describe(self):
        assert WidgetCheck().describe()["check_id"] == "widgets"


def test_security_check_is_abstract():
    with pytest.raises(TypeError):
        SecurityCheck()


def _context(document):
    return CheckContext("tags", snapshot(document), resolve_config("tags", ()),
                        RegionMetadata(), RegionExecutor(parallel=False))


def test_tagged_arns_ignores_empty_tag_sets():
    assert tagged_arns([
        {"ResourceARN": "a", "Tags": [{"Key": "k", "Value": "v"}]},
        {"ResourceARN": "b", "Tags": []},
        {"Tags": [{"Key": "k", "Value": "v"}]},
        None,
        "arn:not-a-mapping",
    ]) == {"a"}


def test_check_tags_absent_listing_is_silent():
    context = _context({})
    check_tags(context, REGION, ["arn:a"], "Widget")
    assert len(context.findings) == 0


def test_context_resolver_is_per_invocation():
    context = _context({"sts": {"getCallerIdentity": {"us-east-1": ok("111122223333")}}})
    assert isinstance(context.resolver, CacheResolver)
    assert context.identity.account_id == "111122223333"
    assert context.identity.arn("ec2", REGION, "vpc/v") == \
        "arn:aws:ec2:us-east-1:111122223333:vpc/v"


def test_crash_outside_regions_becomes_unknown():
    class ListingCrashCheck(SecurityCheck):
        check_id = "listing_crash"

        def execute(self, context):
            context.add_result(FindingStatus.PASSING, "first")
            raise AttributeError("'NoneType' object has no attribute 'get'")

    result = ListingCrashCheck().run(snapshot({}), regions=WIDGET_REGIONS)

    assert [(f.status, f.message) for f in result.findings] == [
        (FindingStatus.PASSING, "first"),
        (FindingStatus.UNKNOWN,
         "Unexpected error evaluating check: 'NoneType' object has no attribute 'get'"),
    ]
