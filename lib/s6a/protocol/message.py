# ulrsim Diameter message container
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import random
from typing import Optional

from s6a.constants import AVP_RESULT_CODE, AVP_SESSION_ID
from s6a.protocol.avp import AttributeSet, AvpType


def generate_identifier() -> int:
    return random.getrandbits(32)


class DiameterMessage:
    """
    A Diameter request or answer: header fields plus the AVP set.
    """

    def __init__(self, command_code: int, application_id: int, is_request: bool, avps: Optional[AttributeSet] = None,
                 hop_by_hop_id: Optional[int] = None, end_to_end_id: Optional[int] = None, is_proxiable: bool = True,
                 is_error: bool = False):
        self.command_code = command_code
        self.application_id = application_id
        self.is_request = is_request
        self.is_proxiable = is_proxiable
        self.is_error = is_error
        self.hop_by_hop_id = generate_identifier() if hop_by_hop_id is None else hop_by_hop_id
        self.end_to_end_id = generate_identifier() if end_to_end_id is None else end_to_end_id
        self.avps = avps if avps is not None else AttributeSet()

    def _text_avp(self, code: int) -> Optional[str]:
        avp = self.avps.get(code)
        if avp is None or avp.kind is not AvpType.OCTET_STRING:
            return None
        try:
            return avp.value.decode('utf-8')
        except UnicodeDecodeError:
            return None

    @property
    def session_id(self) -> Optional[str]:
        return self._text_avp(AVP_SESSION_ID)

    @property
    def result_code(self) -> Optional[int]:
        avp = self.avps.get(AVP_RESULT_CODE)
        if avp is None or avp.kind is not AvpType.UNSIGNED32:
            return None
        return avp.value

    @property
    def flags(self) -> int:
        flags = 0
        if self.is_request:
            flags |= 0x80
        if self.is_proxiable:
            flags |= 0x40
        if self.is_error:
            flags |= 0x20
        return flags

    def __repr__(self):
        kind = "Request" if self.is_request else "Answer"
        return f"<Diameter{kind} cmd={self.command_code} app={self.application_id} e2e={self.end_to_end_id:08x} session={self.session_id}>"
