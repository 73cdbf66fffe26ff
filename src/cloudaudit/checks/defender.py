"""
Azure Defender checks
"""

from typing import Any, Dict, List

from ..core.framework import CheckContext, FindingStatus, RegionalCheck


def check_microsoft_defender(context: CheckContext, pricings: List[Dict[str, Any]],
                             service_name: str, display_name: str, location: str):
    """Record whether the Defender plan for ``service_name`` is on the standard tier"""
    plan = next((pricing for pricing in pricings
                 if str(pricing.get("name", "")).lower() == service_name), None)

    if plan is None:
        context.add_result(FindingStatus.FAILING,
                           f"Azure Defender is not enabled for {display_name}", location)
    elif str(plan.get("pricingTier", "")).lower() == "standard":
        context.add_result(FindingStatus.PASSING,
                           f"Azure Defender is enabled for {display_name}",
                           location, plan.get("id"))
    else:
        context.add_result(FindingStatus.FAILING,
                           f"Azure Defender is not enabled for {display_name}",
                           location, plan.get("id"))


class DefenderAppServiceEnabledCheck(RegionalCheck):
    """Failing: the App Services Defender plan is missing or not on the standard tier"""

    check_id = "defender_app_service_enabled"
    check_title = "Enable Defender For App Services"
    category = "Defender"
    description = "Ensures that Microsoft Defender is enabled for App Services."
    apis = ("pricings:list",)

    service = "pricings"
    listing = ("pricings", "list")
    resource_label = "Pricing information"

    def evaluate_resources(self, context: CheckContext, location: str, pricings):
        check_microsoft_defender(context, pricings, "appservices", "App Services", location)
