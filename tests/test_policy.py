# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import pytest

from baseModels import Failure, SubscriberContext, Success
from s6a.policy import decide


def context(imsi, rat_type=1004):
    return SubscriberContext(imsi=imsi, visited_plmn_id=b"\x00\xf1\x10", rat_type=rat_type, ulr_flags=34)


def test_default_subscriber_is_accepted():
    outcome = decide(context("001010123456789"))
    assert isinstance(outcome, Success)
    assert outcome.result_code == 2001
    assert outcome.subscription_data.msisdn == "10123456789"
    assert outcome.subscription_data.access_restriction_data == 0
    assert outcome.subscription_data.subscriber_status == 0
    assert outcome.subscription_data.network_access_mode == 0


@pytest.mark.parametrize("imsi", ["999990000000001", "9999912345"])
@pytest.mark.parametrize("rat_type", [None, 1000, 1004])
def test_unknown_user_prefix(imsi, rat_type):
    assert decide(context(imsi, rat_type)) == Failure(result_code=5001)


@pytest.mark.parametrize("imsi", ["888880000000001", "8888812345"])
def test_unknown_eps_subscription_prefix(imsi):
    assert decide(context(imsi)) == Failure(result_code=5420)


def test_prefix_must_be_leading():
    assert isinstance(decide(context("199999000000001")), Success)
