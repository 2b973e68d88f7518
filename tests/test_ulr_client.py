# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import copy
import time
from unittest.mock import MagicMock

import pytest

from conftest import test_config, wait_for
from s6a.simulator import UlrSimulator

PLMN = b"\x00\xf1\x10"


def send_and_wait(simulator, imsi, plmn=PLMN, rat_type=1004, ulr_flags=34):
    before = len(simulator.client.results())
    result = simulator.client.send_ulr(imsi, plmn, rat_type, ulr_flags)
    assert result["message"] == "ULR Sent Successfully"
    wait_for(lambda: len(simulator.client.results()) > before)
    return simulator.client.last_result


@pytest.fixture
def slow_simulator(log_tool):
    created = []

    def factory(**stack):
        config = copy.deepcopy(test_config)
        config["stack"].update(stack)
        sim = UlrSimulator(config, log_tool)
        sim.start()
        created.append(sim)
        return sim

    yield factory
    for sim in created:
        sim.stop()


def test_successful_update_location(simulator):
    result = send_and_wait(simulator, "001010123456789")
    assert result.Outcome == "answered"
    assert result.DiameterResultCode == 2001
    assert result.HasSubscriptionData
    assert result.Msisdn == "10123456789"
    assert result.Imsi == "001010123456789"
    assert simulator.client.is_finished()
    assert simulator.clientCorrelator.active_count() == 0


@pytest.mark.parametrize("imsi, resultCode", [
    ("999990000000001", 5001),
    ("888880000000001", 5420),
    ("123456789", 5001),
])
def test_rejected_update_location(simulator, imsi, resultCode):
    result = send_and_wait(simulator, imsi)
    assert result.Outcome == "answered"
    assert result.DiameterResultCode == resultCode
    assert not result.HasSubscriptionData
    assert result.Msisdn is None


@pytest.mark.parametrize("imsi, plmn", [
    ("not-an-imsi", PLMN),
    ("0010101234567890", PLMN),
    ("001010123456789", b"\x00\xf1"),
])
def test_invalid_parameters_are_not_sent(simulator, imsi, plmn):
    result = simulator.client.send_ulr(imsi, plmn, 1004, 34)
    assert result["message"].startswith("Error sending ULR: ")
    assert "sessionId" not in result
    assert simulator.clientCorrelator.active_count() == 0


def test_transport_error_is_reported(simulator):
    simulator.serverStack.stop()
    result = simulator.client.send_ulr("001010123456789", PLMN, 1004, 34)
    assert result["message"].startswith("Error sending ULR: ")
    assert simulator.clientCorrelator.active_count() == 0
    assert simulator.client.results() == []


def test_timeout(slow_simulator):
    simulator = slow_simulator(request_timeout=0.1, answer_delay=0.5)
    result = send_and_wait(simulator, "001010123456789")
    assert result.Outcome == "timeout"
    assert result.DiameterResultCode is None

    # the late answer must not produce a second result
    time.sleep(0.6)
    assert len(simulator.client.results()) == 1


def test_cancel(slow_simulator):
    simulator = slow_simulator(request_timeout=2, answer_delay=0.3)
    sent = simulator.client.send_ulr("001010123456789", PLMN, 1004, 34)
    assert not simulator.client.is_finished()

    assert simulator.client.cancel(sent["sessionId"])
    assert simulator.client.last_result.Outcome == "cancelled"
    assert not simulator.client.cancel(sent["sessionId"])

    time.sleep(0.5)
    assert len(simulator.client.results()) == 1


def test_stop_expires_outstanding_ulr(slow_simulator):
    simulator = slow_simulator(request_timeout=5, answer_delay=0.5)
    simulator.client.send_ulr("001010123456789", PLMN, 1004, 34)
    simulator.clientStack.stop()

    assert simulator.clientCorrelator.active_count() == 0
    assert simulator.client.is_finished()
    assert simulator.client.last_result.Outcome == "timeout"

    time.sleep(0.6)
    assert len(simulator.client.results()) == 1


def test_result_history_is_bounded(simulator):
    completed = []
    simulator.client.on_result = completed.append
    for i in range(7):
        simulator.client.send_ulr(f"00101000000000{i}", PLMN, 1004, 34)
    wait_for(lambda: len(completed) == 7)
    assert len(simulator.client.results()) == test_config["client"]["max_results"]


def test_outcome_metric(log_tool):
    redisMessaging = MagicMock()
    simulator = UlrSimulator(test_config, log_tool, redisMessaging)
    simulator.start()
    try:
        send_and_wait(simulator, "001010123456789")
        wait_for(lambda: redisMessaging.sendMetric.call_count >= 2)
    finally:
        simulator.stop()

    metrics = {call.kwargs["metricName"]: call.kwargs for call in redisMessaging.sendMetric.call_args_list}
    assert metrics["prom_diam_ulr_outcome_count"]["metricLabels"] == {"outcome": "answered"}
    assert metrics["prom_diam_ula_result_count"]["metricLabels"] == {"result_code": "2001"}
