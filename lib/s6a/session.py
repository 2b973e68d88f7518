# ulrsim session correlation
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import itertools
import threading
import time
import uuid
from enum import Enum, IntEnum
from typing import Dict, Optional

from logtool import LogTool
from s6a.protocol.message import DiameterMessage
from s6a.stack import EventListener


class SessionContractViolation(Exception):
    """A session was used outside its lifecycle. This is a programming error."""


class SessionRole(Enum):
    CLIENT = "client"
    SERVER = "server"


class SessionState(IntEnum):
    CREATED = 0
    SENT = 1
    ANSWERED = 2
    TIMED_OUT = 3
    RELEASED = 4


class PendingRequest:
    def __init__(self, request: DiameterMessage, listener: EventListener):
        self.request = request
        self.listener = listener
        self.sent_at = time.time()


class Session:
    def __init__(self, session_id: str, role: SessionRole):
        self.session_id = session_id
        self.role = role
        self.created_at = time.time()
        self.state = SessionState.CREATED
        self.pending: Optional[PendingRequest] = None

    @property
    def is_released(self) -> bool:
        return self.state == SessionState.RELEASED

    def __repr__(self):
        return f"<Session {self.session_id} {self.role.value} {self.state.name}>"


class SessionCorrelator(EventListener):
    """
    Tracks client sessions by Session-Id and turns the stack's answer and timeout signals into
    exactly one terminal callback per session:

        CREATED -> SENT -> ANSWERED | TIMED_OUT -> RELEASED
        SENT -> RELEASED                         (cancel)
        CREATED -> RELEASED                      (server side, after the answer is built)

    State checks and transitions happen under one lock, callbacks run outside it.
    A signal for a session that is no longer SENT is logged and dropped.
    """

    def __init__(self, logTool: LogTool, origin_host: str):
        self.logTool = logTool
        self.origin_host = origin_host
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._counter = itertools.count(1)

    def _log(self, level: str, message: str):
        self.logTool.log(service='Session', level=level, message=f"[session.py] {message}")

    def new_session(self) -> Session:
        with self._lock:
            session_id = f"{self.origin_host};{uuid.uuid4().hex[:10]};{next(self._counter)};app_s6a"
            session = Session(session_id, SessionRole.CLIENT)
            self._sessions[session_id] = session
        self._log('debug', f"Created {session!r}")
        return session

    def open_server_session(self, session_id: str) -> Session:
        """Server sessions live for the duration of one request and are not tracked."""
        return Session(session_id, SessionRole.SERVER)

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def attach(self, session: Session, request: DiameterMessage, listener: EventListener):
        with self._lock:
            if session.role != SessionRole.CLIENT:
                raise SessionContractViolation(f"Cannot attach a request to {session!r}")
            if session.state != SessionState.CREATED:
                raise SessionContractViolation(f"Cannot attach a request to {session!r}, expected CREATED")
            session.pending = PendingRequest(request, listener)
            session.state = SessionState.SENT
        self._log('debug', f"Attached request E2E {request.end_to_end_id:08x} to {session!r}")

    def received_success_message(self, request: DiameterMessage, answer: DiameterMessage) -> bool:
        """
        Returns False when the answer does not match the outstanding request, which stays SENT and can still time out.
        """
        with self._lock:
            session = self._sessions.get(request.session_id)
            if session is None or session.state != SessionState.SENT:
                self._log('warning', f"Answer for {request.session_id} arrived with no request outstanding, discarded")
                return True
            pending = session.pending
            if answer.command_code != pending.request.command_code or answer.end_to_end_id != pending.request.end_to_end_id:
                self._log('error', f"Answer cmd={answer.command_code} E2E {answer.end_to_end_id:08x} does not match "
                                   f"request cmd={pending.request.command_code} E2E {pending.request.end_to_end_id:08x}, discarded")
                return False
            if answer.session_id is not None and answer.session_id != session.session_id:
                self._log('error', f"Answer Session-Id {answer.session_id} does not match {session.session_id}, discarded")
                return False
            session.state = SessionState.ANSWERED
        try:
            pending.listener.received_success_message(pending.request, answer)
        finally:
            self.release(session)
        return True

    def timeout_expired(self, request: DiameterMessage):
        with self._lock:
            session = self._sessions.get(request.session_id)
            if session is None or session.state != SessionState.SENT:
                self._log('debug', f"Timeout for {request.session_id} after terminal event, ignored")
                return
            pending = session.pending
            if pending.request.end_to_end_id != request.end_to_end_id:
                self._log('error', f"Timeout for E2E {request.end_to_end_id:08x} does not match outstanding request, ignored")
                return
            session.state = SessionState.TIMED_OUT
        try:
            pending.listener.timeout_expired(pending.request)
        finally:
            self.release(session)

    def cancel(self, session: Session) -> bool:
        """
        Releases a session that has not reached a terminal event yet.
        Any answer or timeout arriving later is dropped. Returns False if the session already finished.
        """
        with self._lock:
            if session.state not in (SessionState.CREATED, SessionState.SENT):
                return False
            self._finish(session)
        self._log('info', f"Cancelled {session!r}")
        return True

    def release(self, session: Session):
        with self._lock:
            if session.state == SessionState.RELEASED:
                raise SessionContractViolation(f"{session.session_id} is already released")
            if session.role == SessionRole.CLIENT and session.state not in (SessionState.ANSWERED, SessionState.TIMED_OUT):
                raise SessionContractViolation(f"Cannot release client session {session.session_id} in state {session.state.name}")
            if session.role == SessionRole.SERVER and session.state != SessionState.CREATED:
                raise SessionContractViolation(f"Cannot release server session {session.session_id} in state {session.state.name}")
            self._finish(session)
        self._log('debug', f"Released {session!r}")

    def _finish(self, session: Session):
        session.state = SessionState.RELEASED
        session.pending = None
        self._sessions.pop(session.session_id, None)
