"""
CloudTrail security checks
"""

from typing import Any, Dict, NamedTuple, Set

from ..core.cache import Errored, Present, state_error
from ..core.framework import CheckContext, FindingStatus, RegionalCheck
from ..core.settings import RuleOption
from .s3 import bucket_arn

WHITELIST_OPTION = "whitelist_ct_bucket_access_loggings"


class TrailBucket(NamedTuple):
    name: str
    exists: bool


class CloudTrailBucketAccessLoggingCheck(RegionalCheck):
    """Ensure the bucket each trail writes to has S3 access logging.

    Failing: the trail's bucket no longer exists.
    Warning: the bucket exists but access logging is disabled.
    """

    check_id = "cloudtrail_bucket_access_logging"
    check_title = "CloudTrail Bucket Access Logging"
    category = "CloudTrail"
    description = ("Ensures CloudTrail logging bucket has access logging enabled "
                   "to detect tampering of log files")
    apis = ("CloudTrail:describeTrails", "S3:getBucketLogging", "S3:listBuckets")
    options = (
        RuleOption(
            name=WHITELIST_OPTION,
            title="Whitelist Cloud Trail Bucket Access Loggings",
            description="All buckets with this regex should get whitelisted",
            regex=r"^.*$",
            default="",
            pattern=True,
        ),
    )

    service = "cloudtrail"
    listing = ("cloudtrail", "describeTrails")
    resource_label = "CloudTrail trails"
    resource_kind = "Bucket"
    whitelist_option = WHITELIST_OPTION

    def execute(self, context: CheckContext):
        state = context.lookup("s3", "listBuckets", context.default_region)
        if isinstance(state, Errored):
            context.add_result(FindingStatus.UNKNOWN,
                               f"Unable to query for S3 buckets: {state.message}")
            return
        if not isinstance(state, Present):
            self.logger.warning(f"S3 bucket listing not collected for {context.default_region}")
            return

        buckets = {bucket.get("Name") for bucket in state.data if isinstance(bucket, dict)}
        regions = context.regions.for_service(self.service)
        self.fan_out(context, regions,
                     lambda region: self._evaluate_trails(context, region, buckets))

    def _evaluate_trails(self, context: CheckContext, region: str, buckets: Set[str]):
        state = context.lookup(*self.listing, region)
        if isinstance(state, Present) and not state.data:
            context.add_result(FindingStatus.PASSING, "No S3 buckets to check", region)
            return
        if not self.region_ready(context, state, region):
            return

        targets = [TrailBucket(trail["S3BucketName"], trail["S3BucketName"] in buckets)
                   for trail in state.data if self._owned_by_region(trail, region)]
        self.evaluate_resources(context, region, targets)

    @staticmethod
    def _owned_by_region(trail: Dict[str, Any], region: str) -> bool:
        if not trail.get("S3BucketName"):
            return False
        home = trail.get("HomeRegion")
        return not home or home.lower() == region

    def resource_name(self, target: TrailBucket) -> str:
        return target.name

    def resource_arn(self, context: CheckContext, region: str, target: TrailBucket) -> str:
        return bucket_arn(context.partition, target.name)

    def evaluate_resource(self, context: CheckContext, region: str, target: TrailBucket):
        name = target.name
        resource = bucket_arn(context.partition, name)

        if not target.exists:
            context.add_result(FindingStatus.FAILING,
                               "Unable to locate S3 bucket, it may have been deleted",
                               region, resource)
            return

        state = context.lookup("s3", "getBucketLogging", context.default_region, name)
        if not isinstance(state, Present):
            context.add_result(FindingStatus.UNKNOWN,
                               f"Error querying for bucket policy for bucket: {name}: "
                               f"{state_error(state)}",
                               region, resource)
            return

        if state.data.get("LoggingEnabled"):
            context.add_result(FindingStatus.PASSING,
                               f"Bucket: {name} has S3 access logs enabled",
                               region, resource)
        else:
            context.add_result(FindingStatus.WARNING,
                               f"Bucket: {name} has S3 access logs disabled",
                               region, resource)
