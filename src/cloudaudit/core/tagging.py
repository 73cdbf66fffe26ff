"""
Tag presence verification against the resource tagging API cache
"""

from typing import Iterable, Set

from .cache import Errored, Present
from .framework import CheckContext, FindingStatus

TAGGING_SERVICE = "resourcegroupstaggingapi"
TAGGING_OPERATION = "getResources"


def tagged_arns(resources: Iterable[dict]) -> Set[str]:
    """ARNs from a ``getResources`` listing that carry at least one tag"""
    return {
        resource["ResourceARN"]
        for resource in resources
        if isinstance(resource, dict)
        and resource.get("ResourceARN") and resource.get("Tags")
    }


def check_tags(context: CheckContext, region: str, arns: Iterable[str],
               resource_label: str):
    """Record one finding per ARN telling whether the resource is tagged.

    The caller owns resource discovery; this only judges tag presence. An
    errored tagging lookup yields a single Unknown finding for the region.
    """
    state = context.lookup(TAGGING_SERVICE, TAGGING_OPERATION, region)

    if isinstance(state, Errored):
        context.add_result(FindingStatus.UNKNOWN,
                           f"Unable to query all resources from group tagging api: {state.message}",
                           region)
        return
    if not isinstance(state, Present):
        return

    tagged = tagged_arns(state.data)
    for arn in arns:
        if arn in tagged:
            context.add_result(FindingStatus.PASSING,
                               f"{resource_label} has tags", region, arn)
        else:
            context.add_result(FindingStatus.FAILING,
                               f"{resource_label} does not have any tags", region, arn)
