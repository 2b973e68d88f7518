# ulrsim simulator bootstrap
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import threading
from typing import Optional

from logtool import LogTool
from messaging import RedisMessaging
from s6a.client import ULRClient
from s6a.constants import APPLICATION_S6A
from s6a.protocol.dictionary import AvpDictionary
from s6a.request_dispatcher import S6aRequestDispatcher
from s6a.session import SessionCorrelator
from s6a.stack import LoopbackStack
from utils import InvalidPLMN, plmn_from_hex


class UlrSimulator:
    """
    Wires a client (MME side) and a server (HSS side) together over a loopback stack pair.
    Everything is built from the config dict, nothing runs until start() is called.
    """

    def __init__(self, config: dict, logTool: LogTool, redisMessaging: Optional[RedisMessaging] = None):
        self.config = config
        self.logTool = logTool
        clientConfig = config.get('client', {})
        serverConfig = config.get('server', {})
        stackConfig = config.get('stack', {})

        self.dictionary = AvpDictionary()
        extraDictionary = config.get('dictionary', {}).get('extra_file')
        if extraDictionary:
            loaded = self.dictionary.load_yaml(extraDictionary)
            self.logTool.log(service='S6A', level='info', message=f"[simulator.py] Loaded {loaded} AVP definitions from {extraDictionary}")

        stackOptions = {
            'request_timeout': float(stackConfig.get('request_timeout', 10)),
            'answer_delay': float(stackConfig.get('answer_delay', 0)),
            'max_pending_requests': int(stackConfig.get('max_pending_requests', 1024)),
        }
        self.serverStack = LoopbackStack(serverConfig.get('OriginHost', 'hss.localdomain'),
                                         serverConfig.get('OriginRealm', 'localdomain'),
                                         self.dictionary, logTool, **stackOptions)
        self.clientStack = LoopbackStack(clientConfig.get('OriginHost', 'mme.localdomain'),
                                         clientConfig.get('OriginRealm', 'localdomain'),
                                         self.dictionary, logTool, **stackOptions)
        self.clientStack.connect(self.serverStack)

        self.serverCorrelator = SessionCorrelator(logTool, self.serverStack.origin_host)
        self.dispatcher = S6aRequestDispatcher(logTool, self.serverStack, self.serverCorrelator, redisMessaging)
        self.serverStack.add_network_req_listener(self.dispatcher, APPLICATION_S6A)

        self.clientCorrelator = SessionCorrelator(logTool, self.clientStack.origin_host)
        self.client = ULRClient(logTool, self.clientStack, self.clientCorrelator,
                                destination_realm=clientConfig.get('DestinationRealm', self.serverStack.origin_realm),
                                destination_host=clientConfig.get('DestinationHost', self.serverStack.origin_host),
                                max_results=int(clientConfig.get('max_results', 100)),
                                redisMessaging=redisMessaging)

        self.startupDelay = float(clientConfig.get('startup_delay', 5))
        self.sendOnStartup = bool(clientConfig.get('send_on_startup', False))
        self.defaultImsi = str(clientConfig.get('default_imsi', '001010123456789'))
        self.defaultPlmnId = str(clientConfig.get('default_plmn_id', '00f110'))
        self.defaultRatType = int(clientConfig.get('default_rat_type', 1004))
        self.defaultUlrFlags = int(clientConfig.get('default_ulr_flags', 34))
        self._startupTimer: Optional[threading.Timer] = None

    def start(self):
        self.serverStack.start()
        self.clientStack.start()
        if self.sendOnStartup:
            self.logTool.log(service='S6A', level='info', message=f"[simulator.py] Sending startup ULR in {self.startupDelay}s")
            self._startupTimer = threading.Timer(self.startupDelay, self.send_default_ulr)
            self._startupTimer.daemon = True
            self._startupTimer.start()

    def stop(self):
        if self._startupTimer is not None:
            self._startupTimer.cancel()
            self._startupTimer = None
        self.clientStack.stop()
        self.serverStack.stop()

    def send_default_ulr(self) -> dict:
        try:
            plmn = plmn_from_hex(self.defaultPlmnId)
        except InvalidPLMN as e:
            self.logTool.log(service='Client', level='error', message=f"[simulator.py] Invalid default_plmn_id: {e}")
            return {"message": f"Error sending ULR: {e}"}
        return self.client.send_ulr(self.defaultImsi, plmn, self.defaultRatType, self.defaultUlrFlags)

    def client_status(self) -> dict:
        running = self.clientStack.is_running()
        lastResult = self.client.last_result
        return {
            "isRunning": running,
            "message": "Diameter client is running" if running else "Diameter client is stopped",
            "finished": self.client.is_finished(),
            "lastResult": lastResult.model_dump() if lastResult is not None else None,
        }

    def server_status(self) -> dict:
        running = self.serverStack.is_running()
        return {
            "isRunning": running,
            "message": "Diameter server is running" if running else "Diameter server is stopped",
        }
