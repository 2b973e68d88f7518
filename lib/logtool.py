# ulrsim logging
# Copyright 2023 David Kneipp <david@davidkneipp.com>
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import logging
import logging.handlers as handlers
import os
import socket
import time
from datetime import datetime

from messaging import RedisMessaging


class TimestampFilter (logging.Filter):
    """
    Logging filter which checks for a `timestamp` attribute on a
    given LogRecord, and if present it will override the LogRecord creation time.
    Expects time.time() or equivalent integer.
    """

    def filter(self, record):
        if hasattr(record, 'timestamp'):
            record.created = record.timestamp
        return True

class LogTool:
    """
    Reusable logging class: filters on the configured level, prints to the console,
    and optionally mirrors each message to a file logger and a Redis log queue.
    Safe to call from any thread.
    """
    def __init__(self, config: dict):
        self.logLevels = {
        'CRITICAL': {'verbosity': 1, 'logging': logging.CRITICAL},
        'ERROR': {'verbosity': 2, 'logging': logging.ERROR},
        'WARNING': {'verbosity': 3, 'logging':  logging.WARNING},
        'WARN': {'verbosity': 3, 'logging':  logging.WARNING},
        'INFO': {'verbosity': 4, 'logging':  logging.INFO},
        'DEBUG': {'verbosity': 5, 'logging':  logging.DEBUG},
        'NOTSET': {'verbosity': 6, 'logging':  logging.NOTSET},
        }
        self.logLevel = config.get('logging', {}).get('level', 'INFO')
        self.logToTerminal = config.get('logging', {}).get('log_to_terminal', True)

        self.redisEnabled = config.get('redis', {}).get('enabled', False)
        self.redisUseUnixSocket = config.get('redis', {}).get('useUnixSocket', False)
        self.redisUnixSocketPath = config.get('redis', {}).get('unixSocketPath', '/var/run/redis/redis-server.sock')
        self.redisHost = config.get('redis', {}).get('host', 'localhost')
        self.redisPort = config.get('redis', {}).get('port', 6379)

        self.redisMessaging = None
        if self.redisEnabled:
            self.redisMessaging = RedisMessaging(host=self.redisHost, port=self.redisPort, useUnixSocket=self.redisUseUnixSocket, unixSocketPath=self.redisUnixSocketPath)
        self.hostname = socket.gethostname()
        self.fileLogger = None

    def isEnabled(self, level: str) -> bool:
        configLogLevelVerbosity = self.logLevels.get(self.logLevel.upper(), {}).get('verbosity', 4)
        messageLogLevelVerbosity = self.logLevels.get(level.upper(), {}).get('verbosity', 4)
        return messageLogLevelVerbosity <= configLogLevelVerbosity

    def log(self, service: str, level: str, message: str, redisClient=None) -> bool:
        """
        Tests loglevel, prints to console and queues a log message to a synchronous redis messaging client, if one is configured.
        """
        if redisClient == None:
            redisClient = self.redisMessaging
        if not self.isEnabled(level):
            return False
        timestamp = time.time()
        if self.logToTerminal:
            dateTimeString = datetime.fromtimestamp(timestamp).strftime("%m/%d/%Y %H:%M:%S %Z").strip()
            print(f"[{dateTimeString}] [{level.upper()}] [{service}] {message}")
        if self.fileLogger is not None:
            self.fileLogger.log(self.logLevels.get(level.upper(), {}).get('logging', logging.INFO), f"[{service}] {message}", extra={'timestamp': timestamp})
        if redisClient is not None:
            redisClient.sendLogMessage(serviceName=service.lower(), logLevel=level, logTimestamp=timestamp, message=message, logExpiry=60, usePrefix=True, prefixHostname=self.hostname, prefixServiceName='log')
        return True

    def setupFileLogger(self, loggerName: str, logFilePath: str):
        """
        Sets up and returns a file logger, given a loggerName and logFilePath.
        Defaults to {ulrsimRootDir}/log/{logFileName} if the configured file location is not writable.
        Once set up, every message passed to log() is mirrored to this file.
        """
        try:
            rolloverHandler = handlers.RotatingFileHandler(logFilePath, maxBytes=50000000, backupCount=5)
        except (PermissionError, FileNotFoundError):
            logFileName = os.path.basename(logFilePath)
            ulrsimRootDir = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
            print(f"[LogTool] Warning - Unable to write to {logFilePath}, using {ulrsimRootDir}/log/{logFileName} instead.")
            os.makedirs(os.path.join(ulrsimRootDir, "log"), exist_ok=True)
            logFilePath = os.path.join(ulrsimRootDir, "log", logFileName)
            rolloverHandler = handlers.RotatingFileHandler(logFilePath, maxBytes=50000000, backupCount=5)
        fileLogger = logging.getLogger(loggerName)
        formatter = logging.Formatter(fmt="%(asctime)s  %(levelname)s  {%(pathname)s:%(lineno)d}  %(message)s", datefmt="%m/%d/%Y %H:%M:%S %Z")
        filter = TimestampFilter()
        fileLogger.addFilter(filter)
        rolloverHandler.setFormatter(formatter)
        fileLogger.addHandler(rolloverHandler)
        fileLogger.setLevel(logging.DEBUG)
        self.fileLogger = fileLogger
        return fileLogger
