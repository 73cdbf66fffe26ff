"""
EC2 security checks
"""

from typing import Any, Dict

from ..core.cache import Present, state_error
from ..core.framework import CheckContext, FindingStatus, RegionalCheck
from ..core.provider import build_arn


class EC2LaunchWizardSecurityGroupsCheck(RegionalCheck):
    """Flag security groups created by the EC2 launch wizard.

    Failing: the group name starts with ``launch-wizard`` or is missing.
    """

    check_id = "ec2_launch_wizard_security_groups"
    check_title = "EC2 LaunchWizard Security Groups"
    category = "EC2"
    description = "Ensures security groups created by the EC2 launch wizard are not used"
    apis = ("EC2:describeSecurityGroups",)

    service = "ec2"
    listing = ("ec2", "describeSecurityGroups")
    resource_label = "security groups"
    resource_kind = "Security group"

    def resource_arn(self, context: CheckContext, region: str, sg: Dict[str, Any]) -> str:
        return build_arn(context.partition, "ec2", region, sg.get("OwnerId", ""),
                         f"security-group/{sg.get('GroupId')}")

    def evaluate_resource(self, context: CheckContext, region: str, sg: Dict[str, Any]):
        resource = self.resource_arn(context, region, sg)
        name = sg.get("GroupName")

        if not name:
            context.add_result(FindingStatus.FAILING,
                               "Unable to get group name of security group",
                               region, resource)
        elif name.lower().startswith("launch-wizard"):
            context.add_result(FindingStatus.FAILING,
                               f"Security Group {name} was launched using EC2 launch wizard",
                               region, resource)
        else:
            context.add_result(FindingStatus.PASSING,
                               f"Security Group {name} was not launched using EC2 launch wizard",
                               region, resource)


class EC2MultipleSubnetsCheck(RegionalCheck):
    """Ensure a lone VPC is split into more than one subnet.

    Failing: the region's only VPC has exactly one subnet.
    """

    check_id = "ec2_multiple_subnets"
    check_title = "VPC Multiple Subnets"
    category = "EC2"
    description = "Ensures that VPCs have multiple subnets to provide a layered architecture"
    apis = ("EC2:describeVpcs", "EC2:describeSubnets", "STS:getCallerIdentity")

    service = "ec2"
    listing = ("ec2", "describeVpcs")
    resource_label = "VPCs"
    resource_kind = "VPC"

    def evaluate_resources(self, context: CheckContext, region: str, vpcs):
        if len(vpcs) > 1:
            context.add_result(FindingStatus.PASSING,
                               f"Multiple ({len(vpcs)}) VPCs are used.", region)
            return
        super().evaluate_resources(context, region, vpcs)

    def evaluate_resource(self, context: CheckContext, region: str, vpc: Dict[str, Any]):
        vpc_id = vpc.get("VpcId")
        if not vpc_id:
            context.add_result(FindingStatus.UNKNOWN,
                               "Unable to query for subnets for VPC.", region)
            return

        state = context.lookup("ec2", "describeSubnets", region, vpc_id)
        if not isinstance(state, Present):
            context.add_result(FindingStatus.UNKNOWN,
                               f"Unable to query for subnets in VPC: {state_error(state)}",
                               region, vpc_id)
            return

        resource = context.identity.arn("ec2", region, f"vpc/{vpc_id}")
        subnets = state.data["Subnets"]

        if len(subnets) > 1:
            context.add_result(FindingStatus.PASSING,
                               f"There are {len(subnets)} subnets used in one VPC.",
                               region, resource)
        elif len(subnets) == 1:
            context.add_result(FindingStatus.FAILING,
                               f"Only one subnet ({subnets[0].get('SubnetId')}) in one VPC is used.",
                               region, resource)
        else:
            context.add_result(FindingStatus.PASSING,
                               "The VPC does not contain any subnets",
                               region, resource)
