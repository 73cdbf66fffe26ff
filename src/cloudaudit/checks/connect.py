"""
Amazon Connect security checks
"""

from typing import Any, Dict

from ..core.cache import Present, state_error
from ..core.framework import CheckContext, FindingStatus, RegionalCheck
from ..core.policy import (DEFAULT_ENCRYPTION_LEVEL, EncryptionLevel, compare,
                           key_id_from_reference, level_from_key_metadata)
from ..core.settings import RuleOption

LEVEL_OPTION = "voice_id_desired_encryption_level"


class ConnectVoiceIdDomainEncryptedCheck(RegionalCheck):
    """Ensure Voice ID domains use at least the desired KMS encryption level.

    Failing: the domain's key is weaker than the configured level. Domains
    without a customer key count as AWS-managed KMS.
    """

    check_id = "connect_voice_id_domain_encrypted"
    check_title = "Connect Voice ID Domain Encrypted"
    category = "Connect"
    description = ("Ensure that Voice domains created under Amazon Connect instances "
                   "are using desired KMS encryption level.")
    apis = ("VoiceID:listDomains", "KMS:listKeys", "KMS:describeKey")
    options = (
        RuleOption(
            name=LEVEL_OPTION,
            title="Connect Voice ID Domain Target Encryption Level",
            description=("In order (lowest to highest) "
                         "awskms=AWS-managed KMS; "
                         "awscmk=Customer managed KMS; "
                         "externalcmk=Customer managed externally sourced KMS; "
                         "cloudhsm=Customer managed CloudHSM sourced KMS"),
            regex=r"^(awskms|awscmk|externalcmk|cloudhsm)$",
            default="awskms",
        ),
    )

    service = "voiceid"
    listing = ("voiceid", "listDomains")
    resource_label = "Connect Voice ID domains"
    resource_kind = "Voice ID domain"

    def evaluate_resources(self, context: CheckContext, region: str, domains):
        keys = context.lookup("kms", "listKeys", region)
        if not isinstance(keys, Present):
            context.add_result(FindingStatus.UNKNOWN,
                               f"Unable to list KMS keys: {state_error(keys)}", region)
            return
        super().evaluate_resources(context, region, domains)

    def resource_arn(self, context: CheckContext, region: str, domain: Dict[str, Any]):
        return domain.get("Arn")

    def evaluate_resource(self, context: CheckContext, region: str, domain: Dict[str, Any]):
        desired = EncryptionLevel.from_token(context.config[LEVEL_OPTION])
        encryption = domain.get("ServerSideEncryptionConfiguration") or {}
        key_reference = encryption.get("KmsKeyId")

        if key_reference:
            key_id = key_id_from_reference(key_reference)
            state = context.lookup("kms", "describeKey", region, key_id)
            if not isinstance(state, Present):
                context.add_result(FindingStatus.UNKNOWN,
                                   f"Unable to query KMS key: {state_error(state)}",
                                   region, key_reference)
                return
            current = level_from_key_metadata(state.data["KeyMetadata"])
        else:
            current = DEFAULT_ENCRYPTION_LEVEL

        resource = domain.get("Arn")
        if compare(current, desired):
            context.add_result(FindingStatus.PASSING,
                               f"Voice ID domain is encrypted with {current.token} which is greater "
                               f"than or equal to the desired encryption level {desired.token}",
                               region, resource)
        else:
            context.add_result(FindingStatus.FAILING,
                               f"Voice ID domain is encrypted with {current.token} which is less "
                               f"than the desired encryption level {desired.token}",
                               region, resource)
