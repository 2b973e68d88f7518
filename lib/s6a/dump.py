# ulrsim Diameter message dumps
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
from logtool import LogTool
from s6a.protocol.codec import AvpCodec
from s6a.protocol.message import DiameterMessage


def dump_message(logTool: LogTool, codec: AvpCodec, service: str, direction: str, message: DiameterMessage):
    """
    Logs a one line header for message at INFO and its AVP tree at DEBUG.
    direction is free text such as "Sending" or "Received".
    """
    kind = "Request" if message.is_request else "Answer"
    logTool.log(service=service, level='info',
                message=f"{direction} {kind}: cmd={message.command_code} E2E={message.end_to_end_id:08x} "
                        f"HBH={message.hop_by_hop_id:08x} AppID={message.application_id} AVPs={len(message.avps)}")
    if logTool.isEnabled('debug'):
        logTool.log(service=service, level='debug', message=f"AVPs:\n{codec.render(message.avps)}")
