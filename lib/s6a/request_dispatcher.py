# ulrsim S6a request dispatcher
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
from typing import Dict, Optional

from logtool import LogTool
from messaging import RedisMessaging
from s6a.constants import AVP_ORIGIN_HOST, AVP_ORIGIN_REALM, COMMAND_UPDATE_LOCATION, ResultCode
from s6a.controller.abstract_controller import S6aController
from s6a.controller.ulr import ULRController
from s6a.protocol.message import DiameterMessage
from s6a.session import SessionCorrelator
from s6a.stack import DiameterStack, NetworkReqListener


class S6aRequestDispatcher(NetworkReqListener):
    def __init__(self, logTool: LogTool, stack: DiameterStack, correlator: SessionCorrelator,
                 redisMessaging: Optional[RedisMessaging] = None):
        self.logger = logTool
        self.stack = stack
        self.controller_mapping: Dict[int, S6aController] = {
            COMMAND_UPDATE_LOCATION: ULRController(logTool, stack, correlator, redisMessaging),
        }

    def process_request(self, request: DiameterMessage) -> Optional[DiameterMessage]:
        if request.command_code in self.controller_mapping:
            return self.controller_mapping[request.command_code].handle_message(request)
        return self.__handle_unsupported_request(request)

    def __handle_unsupported_request(self, request: DiameterMessage) -> DiameterMessage:
        self.logger.log(service='Server', level='warning',
                        message=f"[request_dispatcher.py] Unhandled command {request.command_code} (app {request.application_id}). Responding with {int(ResultCode.DIAMETER_COMMAND_UNSUPPORTED)}.")
        answer = self.stack.create_answer(request, ResultCode.DIAMETER_COMMAND_UNSUPPORTED)
        answer.is_error = True
        self.stack.codec.write(answer.avps, AVP_ORIGIN_HOST, self.stack.origin_host)
        self.stack.codec.write(answer.avps, AVP_ORIGIN_REALM, self.stack.origin_realm)
        return answer
