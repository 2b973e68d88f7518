# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
from unittest.mock import MagicMock

from logtool import LogTool


def test_level_filtering(capsys):
    logTool = LogTool({"logging": {"level": "WARNING"}})
    assert not logTool.log(service="Test", level="info", message="hidden")
    assert logTool.log(service="Test", level="error", message="shown")
    assert logTool.log(service="Test", level="WARN", message="also shown")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "[ERROR] [Test] shown" in out
    assert "[WARN] [Test] also shown" in out


def test_terminal_output_can_be_disabled(capsys):
    logTool = LogTool({"logging": {"level": "DEBUG", "log_to_terminal": False}})
    assert logTool.log(service="Test", level="debug", message="quiet")
    assert capsys.readouterr().out == ""


def test_redis_client_receives_messages():
    logTool = LogTool({"logging": {"level": "INFO", "log_to_terminal": False}})
    redisClient = MagicMock()
    logTool.log(service="Client", level="info", message="hello", redisClient=redisClient)

    kwargs = redisClient.sendLogMessage.call_args.kwargs
    assert kwargs["serviceName"] == "client"
    assert kwargs["message"] == "hello"
    assert kwargs["prefixServiceName"] == "log"


def test_redis_disabled_by_default():
    assert LogTool({}).redisMessaging is None


def test_file_logger(tmp_path):
    logTool = LogTool({"logging": {"level": "INFO", "log_to_terminal": False}})
    logFile = tmp_path / "ulrsim.log"
    logTool.setupFileLogger(loggerName="ulrsim_test_file_logger", logFilePath=str(logFile))
    logTool.log(service="Server", level="info", message="written to file")
    for handler in logTool.fileLogger.handlers:
        handler.flush()

    assert "[Server] written to file" in logFile.read_text()
