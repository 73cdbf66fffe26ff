"""
S3 security checks
"""

from ..core.cache import Errored, Present
from ..core.framework import CheckContext, FindingStatus, SecurityCheck
from ..core.tagging import check_tags


def bucket_arn(partition: str, name: str) -> str:
    return f"arn:{partition}:s3:::{name}"


class S3BucketHasTagsCheck(SecurityCheck):
    """Ensure S3 buckets carry at least one tag"""

    check_id = "s3_bucket_has_tags"
    check_title = "S3 Bucket Has Tags"
    category = "S3"
    description = "Ensure S3 Buckets have tags"
    apis = ("S3:listBuckets", "ResourceGroupsTaggingAPI:getResources")

    def execute(self, context: CheckContext):
        # Buckets are listed once, from the default region
        self.fan_out(context, [context.default_region],
                     lambda region: self._evaluate_buckets(context, region))

    def _evaluate_buckets(self, context: CheckContext, region: str):
        state = context.lookup("s3", "listBuckets", region)

        if isinstance(state, Errored):
            context.add_result(FindingStatus.UNKNOWN,
                               f"Unable to query for S3 buckets: {state.message}", region)
            return
        if not isinstance(state, Present):
            self.logger.warning(f"S3 bucket listing not collected for {region}")
            return
        if not state.data:
            context.add_result(FindingStatus.PASSING, "No S3 buckets to check", region)
            return

        arns = [bucket_arn(context.partition, bucket["Name"])
                for bucket in state.data if isinstance(bucket, dict) and bucket.get("Name")]
        check_tags(context, region, arns, "S3 bucket")
