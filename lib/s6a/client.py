# ulrsim S6a Update Location client driver
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import socket
import threading
import time
from collections import OrderedDict
from typing import Callable, List, Optional

from pydantic import ValidationError

from baseModels import ClientResult, SubscriberContext
from logtool import LogTool
from messaging import RedisMessaging
from s6a.constants import (
    APPLICATION_S6A,
    AVP_MSISDN,
    AVP_SUBSCRIPTION_DATA,
    AVP_USER_NAME,
    COMMAND_UPDATE_LOCATION,
    VENDOR_3GPP,
    ResultCode,
)
from s6a.dump import dump_message
from s6a.message_builder import UlrMessageBuilder
from s6a.protocol.avp import AvpError, AvpType
from s6a.protocol.message import DiameterMessage
from s6a.session import SessionCorrelator
from s6a.stack import DiameterStack, EventListener, TransportError
from utils import InvalidIMSI, validate_imsi

OUTCOME_ANSWERED = 'answered'
OUTCOME_TIMEOUT = 'timeout'
OUTCOME_CANCELLED = 'cancelled'


class ULRClient(EventListener):
    """
    Sends Update-Location-Requests and records the terminal event of each one.
    send_ulr returns as soon as the request is handed to the stack; the outcome arrives later
    through received_success_message or timeout_expired, called by the correlator.
    """

    def __init__(self, logTool: LogTool, stack: DiameterStack, correlator: SessionCorrelator,
                 destination_realm: str, destination_host: Optional[str] = None, max_results: int = 100,
                 redisMessaging: Optional[RedisMessaging] = None,
                 on_result: Optional[Callable[[ClientResult], None]] = None):
        self.logTool = logTool
        self.stack = stack
        self.codec = stack.codec
        self.correlator = correlator
        self.destination_realm = destination_realm
        self.destination_host = destination_host
        self.max_results = max_results
        self.redisMessaging = redisMessaging
        self.on_result = on_result
        self.builder = UlrMessageBuilder(self.codec, logTool)
        self.hostname = socket.gethostname()
        self._results: "OrderedDict[str, ClientResult]" = OrderedDict()
        self._lock = threading.Lock()
        self._finished = False

    def send_ulr(self, imsi: str, visited_plmn_id: bytes, rat_type: int, ulr_flags: int) -> dict:
        try:
            validate_imsi(imsi)
            ctx = SubscriberContext(imsi=imsi, visited_plmn_id=visited_plmn_id, rat_type=rat_type, ulr_flags=ulr_flags)
        except (InvalidIMSI, ValidationError) as e:
            self.logTool.log(service='Client', level='error', message=f"[client.py] [send_ulr] Rejected ULR parameters: {e}")
            return {"message": f"Error sending ULR: {e}"}

        with self._lock:
            wasFinished = self._finished
        session = self.correlator.new_session()
        try:
            request = self.stack.create_request(session.session_id, COMMAND_UPDATE_LOCATION, APPLICATION_S6A,
                                                self.destination_realm, self.destination_host)
            request.avps.extend(self.builder.build_ulr(ctx))
            self.correlator.attach(session, request, self)
            self.logTool.log(service='Client', level='info', message=f"[client.py] Sending ULR for IMSI {imsi} on session {session.session_id}")
            dump_message(self.logTool, self.codec, 'Client', 'Sending', request)
            with self._lock:
                self._finished = False
            self.stack.send(request, self.correlator)
        except (TransportError, AvpError) as e:
            if self.correlator.cancel(session):
                with self._lock:
                    self._finished = wasFinished
            self.logTool.log(service='Client', level='error', message=f"[client.py] [send_ulr] Error sending ULR: {e}")
            return {"message": f"Error sending ULR: {e}"}

        return {"message": "ULR Sent Successfully", "sessionId": session.session_id}

    def received_success_message(self, request: DiameterMessage, answer: DiameterMessage):
        dump_message(self.logTool, self.codec, 'Client', 'Received', answer)
        resultCode = answer.result_code
        self.logTool.log(service='Client', level='info', message=f"[client.py] ULA received with Result-Code: {resultCode}")

        hasSubscriptionData = False
        msisdn = None
        if resultCode == ResultCode.DIAMETER_SUCCESS:
            subscriptionData = answer.avps.get(AVP_SUBSCRIPTION_DATA, VENDOR_3GPP)
            if subscriptionData is not None and subscriptionData.kind is AvpType.GROUPED:
                hasSubscriptionData = True
                try:
                    msisdn = self.codec.read_utf8(subscriptionData.value, AVP_MSISDN, VENDOR_3GPP)
                except (AvpError, UnicodeDecodeError) as e:
                    self.logTool.log(service='Client', level='warning', message=f"[client.py] Could not read MSISDN from Subscription-Data: {e}")
                self.logTool.log(service='Client', level='info', message=f"[client.py] Update Location successful, MSISDN: {msisdn}")
            else:
                self.logTool.log(service='Client', level='warning', message="[client.py] Update Location successful but Subscription-Data is missing")
        else:
            self.logTool.log(service='Client', level='warning', message=f"[client.py] Update Location failed with Result-Code: {resultCode}")

        self._record(ClientResult(
            SessionId=request.session_id,
            Imsi=self._imsi_of(request),
            Outcome=OUTCOME_ANSWERED,
            DiameterResultCode=resultCode,
            HasSubscriptionData=hasSubscriptionData,
            Msisdn=msisdn,
            CompletedTimestamp=time.time(),
        ))

    def timeout_expired(self, request: DiameterMessage):
        self.logTool.log(service='Client', level='error', message=f"[client.py] ULR timed out for session {request.session_id}")
        self._record(ClientResult(
            SessionId=request.session_id,
            Imsi=self._imsi_of(request),
            Outcome=OUTCOME_TIMEOUT,
            CompletedTimestamp=time.time(),
        ))

    def cancel(self, session_id: str) -> bool:
        """Abandons an outstanding ULR. Returns False if there is nothing to cancel."""
        session = self.correlator.get(session_id)
        if session is None:
            return False
        pending = session.pending
        imsi = self._imsi_of(pending.request) if pending is not None else ''
        if not self.correlator.cancel(session):
            return False
        self._record(ClientResult(
            SessionId=session_id,
            Imsi=imsi,
            Outcome=OUTCOME_CANCELLED,
            CompletedTimestamp=time.time(),
        ))
        return True

    def is_finished(self) -> bool:
        with self._lock:
            return self._finished

    @property
    def last_result(self) -> Optional[ClientResult]:
        with self._lock:
            if not self._results:
                return None
            return next(reversed(self._results.values()))

    def results(self) -> List[ClientResult]:
        with self._lock:
            return list(self._results.values())

    def _imsi_of(self, request: DiameterMessage) -> str:
        try:
            return self.codec.read_utf8(request.avps, AVP_USER_NAME)
        except (AvpError, UnicodeDecodeError):
            return ''

    def _record(self, result: ClientResult):
        with self._lock:
            self._results[result.SessionId] = result
            while len(self._results) > self.max_results:
                self._results.popitem(last=False)
            self._finished = True

        if self.redisMessaging is not None:
            self.redisMessaging.sendMetric(serviceName='s6a', metricName='prom_diam_ulr_outcome_count',
                                           metricType='counter', metricAction='inc',
                                           metricLabels={"outcome": result.Outcome},
                                           metricValue=1.0, metricHelp='Number of ULR exchanges by outcome',
                                           metricExpiry=60,
                                           usePrefix=True,
                                           prefixHostname=self.hostname,
                                           prefixServiceName='metric')
        if self.on_result is not None:
            self.on_result(result)
