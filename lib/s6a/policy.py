# ulrsim Update-Location acceptance policy
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
from baseModels import ExchangeOutcome, Failure, SubscriberContext, SubscriptionData, Success
from s6a.constants import NetworkAccessMode, ResultCode, SubscriberStatus
from s6a.message_builder import generate_msisdn_from_imsi

UNKNOWN_SUBSCRIBER_PREFIX = "99999"
NO_EPS_SUBSCRIPTION_PREFIX = "88888"


def decide(ctx: SubscriberContext) -> ExchangeOutcome:
    """
    Synthetic subscriber store: the outcome depends only on the IMSI prefix.
      99999... -> DIAMETER_ERROR_USER_UNKNOWN
      88888... -> DIAMETER_ERROR_UNKNOWN_EPS_SUBSCRIPTION
      anything else -> Success with generated subscription data
    A real HSS replaces the body and keeps the signature.
    """
    if ctx.imsi.startswith(UNKNOWN_SUBSCRIBER_PREFIX):
        return Failure(result_code=ResultCode.DIAMETER_ERROR_USER_UNKNOWN)

    if ctx.imsi.startswith(NO_EPS_SUBSCRIPTION_PREFIX):
        return Failure(result_code=ResultCode.DIAMETER_ERROR_UNKNOWN_EPS_SUBSCRIPTION)

    return Success(subscription_data=SubscriptionData(
        msisdn=generate_msisdn_from_imsi(ctx.imsi),
        access_restriction_data=0,
        subscriber_status=SubscriberStatus.SERVICE_GRANTED,
        network_access_mode=NetworkAccessMode.PACKET_AND_CIRCUIT,
    ))
