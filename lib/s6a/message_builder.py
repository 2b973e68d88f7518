# ulrsim Update-Location message builder
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
from typing import Optional

from baseModels import ExchangeOutcome, Failure, Origin, SubscriberContext
from logtool import LogTool
from s6a.constants import (
    AVP_ACCESS_RESTRICTION_DATA,
    AVP_MSISDN,
    AVP_NETWORK_ACCESS_MODE,
    AVP_ORIGIN_HOST,
    AVP_ORIGIN_REALM,
    AVP_RAT_TYPE,
    AVP_RESULT_CODE,
    AVP_SUBSCRIBER_STATUS,
    AVP_SUBSCRIPTION_DATA,
    AVP_ULA_FLAGS,
    AVP_ULR_FLAGS,
    AVP_USER_NAME,
    AVP_VISITED_PLMN_ID,
    VENDOR_3GPP,
)
from s6a.protocol.avp import AttributeSet, AvpError
from s6a.protocol.codec import AvpCodec

ULA_FLAGS_SEPARATION_INDICATION = 1


def generate_msisdn_from_imsi(imsi: str) -> str:
    """
    Returns "1" followed by the last 10 digits of the IMSI.
    This is a placeholder for a subscriber number lookup, not a numbering plan.
    """
    return "1" + imsi[-10:]


class UlrMessageBuilder:

    def __init__(self, codec: AvpCodec, logTool: Optional[LogTool] = None):
        self.codec = codec
        self.logTool = logTool

    def build_ulr(self, ctx: SubscriberContext) -> AttributeSet:
        """
        Returns the ULR body AVPs for ctx, in wire order:
        User-Name, Visited-PLMN-Id, ULR-Flags, RAT-Type.
        """
        avps = AttributeSet()
        self.codec.write(avps, AVP_USER_NAME, ctx.imsi)
        self.codec.write(avps, AVP_VISITED_PLMN_ID, ctx.visited_plmn_id, vendor_id=VENDOR_3GPP)
        self.codec.write(avps, AVP_ULR_FLAGS, ctx.ulr_flags, vendor_id=VENDOR_3GPP)
        self.codec.write(avps, AVP_RAT_TYPE, ctx.rat_type, vendor_id=VENDOR_3GPP)
        return avps

    def build_ula(self, avps: AttributeSet, outcome: ExchangeOutcome, origin: Origin) -> AttributeSet:
        """
        Fills the ULA AVPs for outcome into avps and returns it.
        Origin-Host and Origin-Realm are always added and Result-Code is set from the outcome.
        A Failure stops there. A Success adds ULA-Flags and a Subscription-Data group;
        a Subscription-Data child that cannot be built is logged and left out, the answer is still returned.
        """
        self.codec.write(avps, AVP_ORIGIN_HOST, origin.host)
        self.codec.write(avps, AVP_ORIGIN_REALM, origin.realm)
        self.codec.set(avps, AVP_RESULT_CODE, int(outcome.result_code))
        if isinstance(outcome, Failure):
            return avps

        self.codec.write(avps, AVP_ULA_FLAGS, ULA_FLAGS_SEPARATION_INDICATION, vendor_id=VENDOR_3GPP)
        subscriptionData = self.codec.write_grouped(avps, AVP_SUBSCRIPTION_DATA, vendor_id=VENDOR_3GPP)

        data = outcome.subscription_data
        children = [
            (AVP_MSISDN, data.msisdn.encode('utf-8')),
            (AVP_ACCESS_RESTRICTION_DATA, data.access_restriction_data),
            (AVP_SUBSCRIBER_STATUS, data.subscriber_status),
            (AVP_NETWORK_ACCESS_MODE, data.network_access_mode),
        ]
        for code, value in children:
            try:
                self.codec.write(subscriptionData, code, value, vendor_id=VENDOR_3GPP)
            except AvpError as e:
                if self.logTool is not None:
                    self.logTool.log(service='S6A', level='error', message=f"[message_builder.py] [build_ula] Error creating Subscription-Data AVP {code}: {e}")
        return avps
