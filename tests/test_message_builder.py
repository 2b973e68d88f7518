# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import pytest

from baseModels import Failure, Origin, SubscriberContext, SubscriptionData, Success
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
from s6a.message_builder import UlrMessageBuilder, generate_msisdn_from_imsi
from s6a.protocol.avp import AttributeSet, AvpType

ORIGIN = Origin(host="hss.test.localdomain", realm="test.localdomain")


@pytest.fixture
def builder(codec, log_tool):
    return UlrMessageBuilder(codec, log_tool)


def test_msisdn_from_imsi():
    assert generate_msisdn_from_imsi("123456789012345") == "16789012345"
    assert generate_msisdn_from_imsi("0010101234") == "10010101234"


def test_build_ulr_order_and_flags(builder, codec):
    ctx = SubscriberContext(imsi="001010123456789", visited_plmn_id=b"\x00\xf1\x10", rat_type=1004, ulr_flags=34)
    avps = builder.build_ulr(ctx)

    assert [(avp.code, avp.vendor_id) for avp in avps] == [
        (AVP_USER_NAME, None),
        (AVP_VISITED_PLMN_ID, VENDOR_3GPP),
        (AVP_ULR_FLAGS, VENDOR_3GPP),
        (AVP_RAT_TYPE, VENDOR_3GPP),
    ]
    assert all(avp.mandatory for avp in avps)
    assert codec.read_utf8(avps, AVP_USER_NAME) == "001010123456789"
    assert codec.read(avps, AVP_VISITED_PLMN_ID, AvpType.OCTET_STRING, VENDOR_3GPP) == b"\x00\xf1\x10"
    assert codec.read(avps, AVP_ULR_FLAGS, AvpType.UNSIGNED32, VENDOR_3GPP) == 34
    assert codec.read(avps, AVP_RAT_TYPE, AvpType.INTEGER32, VENDOR_3GPP) == 1004


def test_build_ula_success(builder, codec):
    outcome = Success(subscription_data=SubscriptionData(msisdn="16789012345"))
    avps = builder.build_ula(AttributeSet(), outcome, ORIGIN)

    assert codec.read_utf8(avps, AVP_ORIGIN_HOST) == "hss.test.localdomain"
    assert codec.read_utf8(avps, AVP_ORIGIN_REALM) == "test.localdomain"
    assert codec.read(avps, AVP_RESULT_CODE, AvpType.UNSIGNED32) == 2001
    assert codec.read(avps, AVP_ULA_FLAGS, AvpType.UNSIGNED32, VENDOR_3GPP) == 1

    subscription = codec.read(avps, AVP_SUBSCRIPTION_DATA, AvpType.GROUPED, VENDOR_3GPP)
    assert codec.read_utf8(subscription, AVP_MSISDN, VENDOR_3GPP) == "16789012345"
    assert codec.read(subscription, AVP_ACCESS_RESTRICTION_DATA, AvpType.UNSIGNED32, VENDOR_3GPP) == 0
    assert codec.read(subscription, AVP_SUBSCRIBER_STATUS, AvpType.INTEGER32, VENDOR_3GPP) == 0
    assert codec.read(subscription, AVP_NETWORK_ACCESS_MODE, AvpType.INTEGER32, VENDOR_3GPP) == 0


@pytest.mark.parametrize("resultCode", [5001, 5004, 5420])
def test_build_ula_failure_stops_after_result_code(builder, codec, resultCode):
    avps = builder.build_ula(AttributeSet(), Failure(result_code=resultCode), ORIGIN)

    assert [avp.code for avp in avps] == [AVP_ORIGIN_HOST, AVP_ORIGIN_REALM, AVP_RESULT_CODE]
    assert codec.read(avps, AVP_RESULT_CODE, AvpType.UNSIGNED32) == resultCode


def test_build_ula_replaces_existing_result_code(builder, codec):
    avps = AttributeSet()
    codec.write(avps, AVP_RESULT_CODE, 5012)
    builder.build_ula(avps, Failure(result_code=5004), ORIGIN)
    assert len(avps.get_all(AVP_RESULT_CODE)) == 1
    assert codec.read(avps, AVP_RESULT_CODE, AvpType.UNSIGNED32) == 5004


def test_build_ula_keeps_partial_subscription_data(builder, codec):
    # Subscriber-Status out of Integer32 range cannot be written
    outcome = Success(subscription_data=SubscriptionData(msisdn="16789012345", subscriber_status=2**31))
    avps = builder.build_ula(AttributeSet(), outcome, ORIGIN)

    subscription = codec.read(avps, AVP_SUBSCRIPTION_DATA, AvpType.GROUPED, VENDOR_3GPP)
    assert [avp.code for avp in subscription] == [AVP_MSISDN, AVP_ACCESS_RESTRICTION_DATA, AVP_NETWORK_ACCESS_MODE]
    assert codec.read(avps, AVP_RESULT_CODE, AvpType.UNSIGNED32) == 2001
