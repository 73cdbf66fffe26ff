"""
ElastiCache checks
"""

from typing import Any, Dict

from ..core.framework import CheckContext, FindingStatus, RegionalCheck


class ElastiCacheReservedNodePaymentFailedCheck(RegionalCheck):
    """Failing: a reserved cache node purchase is in ``payment-failed`` state"""

    check_id = "elasticache_reserved_node_payment_failed"
    check_title = "ElastiCache Reserved Cache Node Payment Failed"
    category = "ElastiCache"
    description = ("Ensure that payments for ElastiCache Reserved Cache Nodes available "
                   "within your AWS account has been processed completely.")
    apis = ("ElastiCache:describeReservedCacheNodes",)

    service = "elasticache"
    listing = ("elasticache", "describeReservedCacheNodes")
    resource_label = "ElastiCache reserved cache nodes"
    resource_kind = "Reserved cache node"

    def resource_arn(self, context: CheckContext, region: str, node: Dict[str, Any]):
        return node.get("ReservationARN")

    def evaluate_resource(self, context: CheckContext, region: str, node: Dict[str, Any]):
        resource = node.get("ReservationARN")
        if not resource:
            return

        if node.get("State") == "payment-failed":
            context.add_result(FindingStatus.FAILING,
                               "ElastiCache reserved cache node have payment failure",
                               region, resource)
        else:
            context.add_result(FindingStatus.PASSING,
                               "ElastiCache reserved cache node does not have payment failure",
                               region, resource)
