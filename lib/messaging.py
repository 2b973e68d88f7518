# ulrsim Redis messaging, used for log shipping and metrics
# Copyright 2023 David Kneipp <david@davidkneipp.com>
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import json
import time

from redis import Redis
from redis.exceptions import RedisError


class RedisMessaging:
    """
    ulrsim Redis Message Service
    Ships log messages and metrics to their Redis queues.
    Failures are reported through the return value and never raised, logging and metrics are best-effort.
    """

    def __init__(self, host: str='localhost', port: int=6379, useUnixSocket: bool=False, unixSocketPath: str='/var/run/redis/redis-server.sock'):
        if useUnixSocket:
            self.redisClient = Redis(unix_socket_path=unixSocketPath)
        else:
            self.redisClient = Redis(host=host, port=port)

    def handlePrefix(self, key: str, usePrefix: bool=False, prefixHostname: str='unknown', prefixServiceName: str='common') -> str:
        """
        Adds a prefix to the Key or Queue name, if enabled.
        Returns the same Key or Queue if not enabled.
        """
        if usePrefix:
            return f"{prefixHostname}:{prefixServiceName}:{key}"
        return key

    def sendMetric(self, serviceName: str, metricName: str, metricType: str, metricAction: str, metricValue: float, metricHelp: str='', metricLabels: dict=None, metricTimestamp: int=None, metricExpiry: int=None, usePrefix: bool=False, prefixHostname: str='unknown', prefixServiceName: str='common') -> str:
        """
        Stores a prometheus metric in a format readable by a metric service.
        """
        if isinstance(metricValue, bool) or not isinstance(metricValue, (int, float)):
            return 'Invalid Argument: metricValue must be a digit'
        prometheusMetricBody = json.dumps([{
        'serviceName': serviceName,
        'timestamp': metricTimestamp if metricTimestamp is not None else time.time_ns(),
        'NAME': metricName,
        'TYPE': metricType,
        'HELP': metricHelp,
        'LABELS': metricLabels or {},
        'ACTION': metricAction,
        'VALUE': float(metricValue),
        }
        ])

        metricQueueName = self.handlePrefix(key="metric", usePrefix=usePrefix, prefixHostname=prefixHostname, prefixServiceName=prefixServiceName)

        try:
            self.redisClient.rpush(metricQueueName, prometheusMetricBody)
            if metricExpiry is not None:
                self.redisClient.expire(metricQueueName, metricExpiry)
            return f'Succesfully stored metric called: {metricName}, with value of: {metricType}'
        except RedisError:
            return ''

    def sendLogMessage(self, serviceName: str, logLevel: str, logTimestamp: float, message: str, logExpiry: int=None, usePrefix: bool=False, prefixHostname: str='unknown', prefixServiceName: str='common') -> str:
        """
        Stores a log message in the log Queue (Key).
        """
        try:
            logQueueName = self.handlePrefix(key="log", usePrefix=usePrefix, prefixHostname=prefixHostname, prefixServiceName=prefixServiceName)
            logMessage = json.dumps({"message": message, "service": serviceName, "level": logLevel, "timestamp": logTimestamp})
            self.redisClient.rpush(logQueueName, logMessage)
            if logExpiry is not None:
                self.redisClient.expire(logQueueName, logExpiry)
            return f'{message} stored in {logQueueName} successfully.'
        except RedisError:
            return ''

