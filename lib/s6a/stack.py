# ulrsim Diameter stack interface and in-process loopback stack
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import threading
import time
import traceback
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from logtool import LogTool
from s6a.constants import (
    AVP_AUTH_SESSION_STATE,
    AVP_DESTINATION_HOST,
    AVP_DESTINATION_REALM,
    AVP_ORIGIN_HOST,
    AVP_ORIGIN_REALM,
    AVP_RESULT_CODE,
    AVP_SESSION_ID,
)
from s6a.protocol.codec import AvpCodec
from s6a.protocol.dictionary import AvpDictionary
from s6a.protocol.message import DiameterMessage
from s6a.protocol.wire import DiameterWire

NO_STATE_MAINTAINED = 1


class TransportError(Exception):
    """Base class for failures raised by a stack while sending"""


class RouteError(TransportError):
    pass


class OverloadError(TransportError):
    pass


class IllegalStackStateError(TransportError):
    pass


class EventListener(ABC):
    """Receives exactly one terminal signal per sent request."""

    @abstractmethod
    def received_success_message(self, request: DiameterMessage, answer: DiameterMessage) -> Optional[bool]:
        """Returning False discards the answer, the request then stays armed and can still time out."""
        pass

    @abstractmethod
    def timeout_expired(self, request: DiameterMessage):
        pass


class NetworkReqListener(ABC):

    @abstractmethod
    def process_request(self, request: DiameterMessage) -> Optional[DiameterMessage]:
        """Returns the answer to send back, or None to send nothing."""
        pass


class DiameterStack(ABC):
    def __init__(self, origin_host: str, origin_realm: str, dictionary: AvpDictionary, logTool: LogTool):
        self.origin_host = origin_host
        self.origin_realm = origin_realm
        self.dictionary = dictionary
        self.logTool = logTool
        self.codec = AvpCodec(dictionary, logTool)

    def create_request(self, session_id: str, command_code: int, application_id: int,
                       destination_realm: str, destination_host: Optional[str] = None) -> DiameterMessage:
        request = DiameterMessage(command_code, application_id, is_request=True)
        self.codec.write(request.avps, AVP_SESSION_ID, session_id)
        self.codec.write(request.avps, AVP_AUTH_SESSION_STATE, NO_STATE_MAINTAINED)
        self.codec.write(request.avps, AVP_ORIGIN_HOST, self.origin_host)
        self.codec.write(request.avps, AVP_ORIGIN_REALM, self.origin_realm)
        if destination_host:
            self.codec.write(request.avps, AVP_DESTINATION_HOST, destination_host)
        self.codec.write(request.avps, AVP_DESTINATION_REALM, destination_realm)
        return request

    def create_answer(self, request: DiameterMessage, result_code: Optional[int] = None) -> DiameterMessage:
        """
        Returns an answer carrying the request's command, application and identifiers.
        Session-Id is copied from the request, Result-Code is set when result_code is given.
        """
        answer = DiameterMessage(request.command_code, request.application_id, is_request=False,
                                 hop_by_hop_id=request.hop_by_hop_id, end_to_end_id=request.end_to_end_id,
                                 is_proxiable=request.is_proxiable)
        session = request.avps.get(AVP_SESSION_ID)
        if session is not None:
            answer.avps.append(session)
        if result_code is not None:
            self.codec.write(answer.avps, AVP_RESULT_CODE, int(result_code))
        return answer

    @abstractmethod
    def send(self, request: DiameterMessage, listener: EventListener):
        pass

    @abstractmethod
    def add_network_req_listener(self, listener: NetworkReqListener, application_id: int):
        pass

    @abstractmethod
    def start(self):
        pass

    @abstractmethod
    def stop(self):
        pass

    @abstractmethod
    def is_running(self) -> bool:
        pass


class LoopbackStack(DiameterStack):
    """
    In-process stack. Two instances are connected back to back: requests sent on one are
    encoded to wire hex, decoded by the other on a worker thread and handed to its
    NetworkReqListener; the answer travels back the same way.
    Every sent request arms a timer, whichever of answer or timer comes first wins. An answer the
    listener declines re-arms the timer with the time left.
    """

    def __init__(self, origin_host: str, origin_realm: str, dictionary: AvpDictionary, logTool: LogTool,
                 request_timeout: float = 10.0, answer_delay: float = 0.0, max_pending_requests: int = 1024):
        super().__init__(origin_host, origin_realm, dictionary, logTool)
        self.wire = DiameterWire(dictionary, logTool)
        self.request_timeout = request_timeout
        self.answer_delay = answer_delay
        self.max_pending_requests = max_pending_requests
        self.peer: Optional['LoopbackStack'] = None
        self._requestListeners: Dict[int, NetworkReqListener] = {}
        self._pending: Dict[int, Tuple[DiameterMessage, EventListener, threading.Timer, float]] = {}
        self._lock = threading.Lock()
        self._running = False

    def connect(self, peer: 'LoopbackStack'):
        self.peer = peer
        peer.peer = self

    def add_network_req_listener(self, listener: NetworkReqListener, application_id: int):
        self._requestListeners[application_id] = listener

    def start(self):
        self._running = True
        self.logTool.log(service='Stack', level='info', message=f"[stack.py] Stack {self.origin_host} started")

    def stop(self):
        """Stops the stack. Pending requests are expired at once, each listener gets its timeout."""
        with self._lock:
            self._running = False
            pending = list(self._pending.values())
            self._pending.clear()
        self.logTool.log(service='Stack', level='info', message=f"[stack.py] Stack {self.origin_host} stopped, {len(pending)} pending requests expired")
        for request, listener, timer, _ in pending:
            timer.cancel()
            try:
                listener.timeout_expired(request)
            except Exception:
                self.logTool.log(service='Stack', level='error', message=f"[stack.py] [stop] Listener failed: {traceback.format_exc()}")

    def is_running(self) -> bool:
        return self._running

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def send(self, request: DiameterMessage, listener: EventListener):
        if not self._running:
            raise IllegalStackStateError(f"Stack {self.origin_host} is not started")
        if self.peer is None or not self.peer.is_running():
            raise RouteError(f"No peer available for realm of {request!r}")
        if request.application_id not in self.peer._requestListeners:
            raise RouteError(f"Peer {self.peer.origin_host} does not serve application {request.application_id}")

        encoded = self.wire.encode_message(request)
        with self._lock:
            if len(self._pending) >= self.max_pending_requests:
                raise OverloadError(f"{len(self._pending)} requests pending, limit is {self.max_pending_requests}")
            self._arm(request, listener, time.monotonic() + self.request_timeout)

        worker = threading.Thread(target=self.peer._receive_request, args=(encoded, self), daemon=True)
        worker.start()

    def _receive_request(self, encoded: str, origin: 'LoopbackStack'):
        try:
            request = self.wire.decode_message(encoded)
        except ValueError as e:
            self.logTool.log(service='Stack', level='error', message=f"[stack.py] [_receive_request] Failed to decode request: {e}")
            return

        listener = self._requestListeners.get(request.application_id)
        if listener is None:
            self.logTool.log(service='Stack', level='warning', message=f"[stack.py] [_receive_request] No listener for application {request.application_id}")
            return

        try:
            answer = listener.process_request(request)
        except Exception:
            self.logTool.log(service='Stack', level='error', message=f"[stack.py] [_receive_request] Listener failed: {traceback.format_exc()}")
            return
        if answer is None:
            return

        encodedAnswer = self.wire.encode_message(answer)
        if self.answer_delay > 0:
            delayed = threading.Timer(self.answer_delay, origin._receive_answer, args=(encodedAnswer,))
            delayed.daemon = True
            delayed.start()
        else:
            origin._receive_answer(encodedAnswer)

    def _receive_answer(self, encoded: str):
        try:
            answer = self.wire.decode_message(encoded)
        except ValueError as e:
            self.logTool.log(service='Stack', level='error', message=f"[stack.py] [_receive_answer] Failed to decode answer: {e}")
            return

        with self._lock:
            entry = self._pending.pop(answer.end_to_end_id, None)
        if entry is None:
            self.logTool.log(service='Stack', level='warning', message=f"[stack.py] [_receive_answer] No pending request for E2E {answer.end_to_end_id:08x}, answer discarded")
            return
        request, listener, timer, deadline = entry
        timer.cancel()
        if listener.received_success_message(request, answer) is False:
            with self._lock:
                if self._running:
                    self._arm(request, listener, deadline)
                    return
            listener.timeout_expired(request)

    def _arm(self, request: DiameterMessage, listener: EventListener, deadline: float):
        # caller holds self._lock
        timer = threading.Timer(max(0.0, deadline - time.monotonic()), self._expire, args=(request.end_to_end_id,))
        timer.daemon = True
        self._pending[request.end_to_end_id] = (request, listener, timer, deadline)
        timer.start()

    def _expire(self, end_to_end_id: int):
        with self._lock:
            entry = self._pending.pop(end_to_end_id, None)
        if entry is None:
            return
        request, listener, _, _ = entry
        self.logTool.log(service='Stack', level='warning', message=f"[stack.py] Request E2E {end_to_end_id:08x} timed out after {self.request_timeout}s")
        listener.timeout_expired(request)
