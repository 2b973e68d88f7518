# ulrsim S6a Update Location Request controller
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
from typing import Optional

from baseModels import Failure, Origin, SubscriberContext
from logtool import LogTool
from messaging import RedisMessaging
from rat import describe_rat_type
from s6a.constants import ResultCode, UlrFlags
from s6a.controller.abstract_controller import S6aController
from s6a.message_builder import UlrMessageBuilder
from s6a.policy import decide
from s6a.protocol.message import DiameterMessage
from s6a.session import SessionCorrelator
from s6a.stack import DiameterStack
from s6a.validator import UlrValidator
from utils import InvalidPLMN, decode_plmn


class ULRController(S6aController):
    """
    Answers an Update-Location-Request synchronously: validate, decide, build the ULA.
    The server session opened for the request is released once the answer is built, whatever the outcome.
    """

    def __init__(self, logTool: LogTool, stack: DiameterStack, correlator: SessionCorrelator,
                 redisMessaging: Optional[RedisMessaging] = None):
        super().__init__(logTool, stack, redisMessaging)
        self._correlator = correlator
        self._validator = UlrValidator(self._codec, logTool)
        self._builder = UlrMessageBuilder(self._codec, logTool)
        self._origin = Origin(host=stack.origin_host, realm=stack.origin_realm)

    def handle_message(self, request: DiameterMessage) -> DiameterMessage:
        self._dump_message('Received', request)
        session = self._correlator.open_server_session(request.session_id or '')
        try:
            validated = self._validator.validate(request.avps)
            if isinstance(validated, Failure):
                outcome = validated
            else:
                self._log_subscriber(validated)
                outcome = decide(validated)

            answer = self._stack.create_answer(request)
            self._builder.build_ula(answer.avps, outcome, self._origin)
            self._log_outcome(outcome.result_code)
            self._send_metric('prom_diam_ula_result_count', 'Number of ULA answers by result code',
                              {"result_code": str(int(outcome.result_code))})
            self._dump_message('Sending', answer)
            return answer
        finally:
            self._correlator.release(session)

    def _log_subscriber(self, ctx: SubscriberContext):
        try:
            mcc, mnc = decode_plmn(ctx.visited_plmn_id)
            self._logger.log(service='Server', level='info', message=f"[ulr.py] Visited PLMN: MCC {mcc} MNC {mnc}")
        except InvalidPLMN as e:
            self._logger.log(service='Server', level='warning', message=f"[ulr.py] Visited PLMN {ctx.visited_plmn_id.hex()} not decodable: {e}")

        if ctx.rat_type is not None:
            self._logger.log(service='Server', level='info', message=f"[ulr.py] RAT-Type: {describe_rat_type(ctx.rat_type)}")

        if ctx.ulr_flags is not None:
            names = [flag.name for flag in UlrFlags if ctx.ulr_flags & flag]
            self._logger.log(service='Server', level='info', message=f"[ulr.py] ULR-Flags: {ctx.ulr_flags:#x} {names}")

    def _log_outcome(self, resultCode: int):
        try:
            name = ResultCode(resultCode).name
        except ValueError:
            name = 'unknown'
        level = 'info' if resultCode == ResultCode.DIAMETER_SUCCESS else 'warning'
        self._logger.log(service='Server', level=level, message=f"[ulr.py] Answering ULR with {resultCode} ({name})")
