# ulrsim S6a request controller base class
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import socket
from abc import ABC, abstractmethod
from typing import Optional

from logtool import LogTool
from messaging import RedisMessaging
from s6a.dump import dump_message
from s6a.protocol.message import DiameterMessage
from s6a.stack import DiameterStack


class S6aController(ABC):
    def __init__(self, logTool: LogTool, stack: DiameterStack, redisMessaging: Optional[RedisMessaging] = None):
        self._logger = logTool
        self._stack = stack
        self._codec = stack.codec
        self._redisMessaging = redisMessaging
        self._hostname = socket.gethostname()

    @abstractmethod
    def handle_message(self, request: DiameterMessage) -> Optional[DiameterMessage]:
        pass

    def _dump_message(self, direction: str, message: DiameterMessage):
        dump_message(self._logger, self._codec, 'Server', direction, message)

    def _send_metric(self, metricName: str, metricHelp: str, metricLabels: dict):
        if self._redisMessaging is None:
            return
        self._redisMessaging.sendMetric(serviceName='s6a', metricName=metricName,
                                        metricType='counter', metricAction='inc',
                                        metricLabels=metricLabels,
                                        metricValue=1.0, metricHelp=metricHelp,
                                        metricExpiry=60,
                                        usePrefix=True,
                                        prefixHostname=self._hostname,
                                        prefixServiceName='metric')
