# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import threading

import pytest

from s6a.constants import APPLICATION_S6A, AVP_SESSION_ID, COMMAND_UPDATE_LOCATION
from s6a.protocol.message import DiameterMessage
from s6a.session import SessionContractViolation, SessionCorrelator, SessionRole, SessionState
from s6a.stack import EventListener


class RecordingListener(EventListener):
    def __init__(self):
        self.events = []
        self._lock = threading.Lock()

    def received_success_message(self, request, answer):
        with self._lock:
            self.events.append(("answer", request, answer))

    def timeout_expired(self, request):
        with self._lock:
            self.events.append(("timeout", request))


@pytest.fixture
def correlator(log_tool):
    return SessionCorrelator(log_tool, "mme.test.localdomain")


def make_request(codec, session):
    request = DiameterMessage(COMMAND_UPDATE_LOCATION, APPLICATION_S6A, is_request=True)
    codec.write(request.avps, AVP_SESSION_ID, session.session_id)
    return request


def make_answer(request, command_code=COMMAND_UPDATE_LOCATION):
    answer = DiameterMessage(command_code, APPLICATION_S6A, is_request=False,
                             hop_by_hop_id=request.hop_by_hop_id, end_to_end_id=request.end_to_end_id)
    answer.avps.append(request.avps.get(AVP_SESSION_ID))
    return answer


def sent_session(correlator, codec):
    listener = RecordingListener()
    session = correlator.new_session()
    request = make_request(codec, session)
    correlator.attach(session, request, listener)
    return session, request, listener


def test_session_ids_are_unique(correlator):
    ids = {correlator.new_session().session_id for _ in range(100)}
    assert len(ids) == 100
    assert all(session_id.startswith("mme.test.localdomain;") for session_id in ids)


def test_answer_delivers_once_and_releases(correlator, codec):
    session, request, listener = sent_session(correlator, codec)
    assert session.state == SessionState.SENT

    answer = make_answer(request)
    correlator.received_success_message(request, answer)
    correlator.received_success_message(request, answer)
    correlator.timeout_expired(request)

    assert listener.events == [("answer", request, answer)]
    assert session.is_released
    assert correlator.active_count() == 0


def test_timeout_delivers_once_and_releases(correlator, codec):
    session, request, listener = sent_session(correlator, codec)

    correlator.timeout_expired(request)
    correlator.received_success_message(request, make_answer(request))

    assert listener.events == [("timeout", request)]
    assert session.is_released


def test_mismatched_command_code_is_discarded(correlator, codec):
    session, request, listener = sent_session(correlator, codec)

    assert correlator.received_success_message(request, make_answer(request, command_code=318)) is False
    assert listener.events == []
    assert session.state == SessionState.SENT

    correlator.timeout_expired(request)
    assert listener.events == [("timeout", request)]


def test_concurrent_answer_and_timeout(correlator, codec):
    for _ in range(50):
        session, request, listener = sent_session(correlator, codec)
        answer = make_answer(request)
        barrier = threading.Barrier(2)

        def deliver_answer():
            barrier.wait()
            correlator.received_success_message(request, answer)

        def deliver_timeout():
            barrier.wait()
            correlator.timeout_expired(request)

        threads = [threading.Thread(target=deliver_answer), threading.Thread(target=deliver_timeout)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(listener.events) == 1
        assert session.is_released
    assert correlator.active_count() == 0


def test_cancel_suppresses_late_events(correlator, codec):
    session, request, listener = sent_session(correlator, codec)

    assert correlator.cancel(session)
    correlator.received_success_message(request, make_answer(request))
    correlator.timeout_expired(request)

    assert listener.events == []
    assert session.is_released
    assert not correlator.cancel(session)


def test_double_release_is_a_contract_violation(correlator, codec):
    session, request, _ = sent_session(correlator, codec)
    correlator.received_success_message(request, make_answer(request))
    with pytest.raises(SessionContractViolation):
        correlator.release(session)


def test_release_before_terminal_event_is_a_contract_violation(correlator, codec):
    session, _, _ = sent_session(correlator, codec)
    with pytest.raises(SessionContractViolation):
        correlator.release(session)


def test_attach_twice_is_a_contract_violation(correlator, codec):
    session, request, listener = sent_session(correlator, codec)
    with pytest.raises(SessionContractViolation):
        correlator.attach(session, request, listener)


def test_server_session_lifecycle(correlator):
    session = correlator.open_server_session("mme;1;2")
    assert session.role == SessionRole.SERVER
    correlator.release(session)
    assert session.is_released
    with pytest.raises(SessionContractViolation):
        correlator.release(session)
    with pytest.raises(SessionContractViolation):
        correlator.attach(correlator.open_server_session("mme;1;3"), None, RecordingListener())
