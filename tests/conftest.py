# ulrsim test fixtures
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import time
from pathlib import Path

import pytest

from logtool import LogTool
from s6a.protocol.codec import AvpCodec
from s6a.protocol.dictionary import AvpDictionary
from s6a.protocol.wire import DiameterWire
from s6a.simulator import UlrSimulator

top_dir = Path(Path(__file__) / "../..").resolve()

test_config = {
    "client": {
        "OriginHost": "mme.test.localdomain",
        "OriginRealm": "test.localdomain",
        "DestinationHost": "hss.test.localdomain",
        "DestinationRealm": "test.localdomain",
        "send_on_startup": False,
        "max_results": 5,
    },
    "server": {
        "OriginHost": "hss.test.localdomain",
        "OriginRealm": "test.localdomain",
    },
    "stack": {
        "request_timeout": 2,
        "answer_delay": 0,
        "max_pending_requests": 16,
    },
    "api": {
        "cors_origin": "http://localhost:3000",
    },
    "logging": {
        "level": "DEBUG",
        "log_to_terminal": True,
    },
    "redis": {
        "enabled": False,
    },
}


def wait_for(predicate, timeout=5):
    start_time = time.time()
    while not predicate():
        if time.time() - start_time >= timeout:
            raise RuntimeError(f"Condition not met within {timeout}s")
        time.sleep(0.01)


@pytest.fixture
def log_tool():
    return LogTool(test_config)


@pytest.fixture
def dictionary():
    return AvpDictionary()


@pytest.fixture
def codec(dictionary, log_tool):
    return AvpCodec(dictionary, log_tool)


@pytest.fixture
def wire(dictionary, log_tool):
    return DiameterWire(dictionary, log_tool)


@pytest.fixture
def simulator(log_tool):
    sim = UlrSimulator(test_config, log_tool)
    sim.start()
    try:
        yield sim
    finally:
        sim.stop()
