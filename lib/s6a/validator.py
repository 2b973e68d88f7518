# ulrsim Update-Location-Request validation
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
from typing import Optional, Union

from baseModels import Failure, SubscriberContext
from logtool import LogTool
from s6a.constants import (
    AVP_RAT_TYPE,
    AVP_ULR_FLAGS,
    AVP_USER_NAME,
    AVP_VISITED_PLMN_ID,
    VENDOR_3GPP,
    ResultCode,
)
from s6a.protocol.avp import AttributeSet, AvpError, AvpType
from s6a.protocol.codec import AvpCodec

IMSI_MIN_LENGTH = 10
IMSI_MAX_LENGTH = 15


class UlrValidator:
    """
    Checks the mandatory ULR AVPs before policy evaluation. The first failing check wins:
      1. User-Name present                    else DIAMETER_MISSING_AVP
      2. Visited-PLMN-Id present              else DIAMETER_MISSING_AVP
      3. User-Name decodes as UTF-8           else DIAMETER_MISSING_AVP
         Visited-PLMN-Id holds 3 octets       else DIAMETER_MISSING_AVP
      4. IMSI length within [10, 15]          else DIAMETER_ERROR_USER_UNKNOWN
    RAT-Type and ULR-Flags are read best-effort and never fail validation.
    """

    def __init__(self, codec: AvpCodec, logTool: LogTool):
        self.codec = codec
        self.logTool = logTool

    def validate(self, avps: AttributeSet) -> Union[SubscriberContext, Failure]:
        if not avps.contains(AVP_USER_NAME):
            self.logTool.log(service='Server', level='error', message="[validator.py] Request missing User-Name (IMSI) AVP")
            return Failure(result_code=ResultCode.DIAMETER_MISSING_AVP)

        if not avps.contains(AVP_VISITED_PLMN_ID, VENDOR_3GPP):
            self.logTool.log(service='Server', level='error', message="[validator.py] Request missing Visited-PLMN-Id AVP")
            return Failure(result_code=ResultCode.DIAMETER_MISSING_AVP)

        try:
            imsi = self.codec.read_utf8(avps, AVP_USER_NAME)
        except (AvpError, UnicodeDecodeError) as e:
            self.logTool.log(service='Server', level='error', message=f"[validator.py] Failed to read User-Name AVP: {e}")
            return Failure(result_code=ResultCode.DIAMETER_MISSING_AVP)

        try:
            visitedPlmnId = self.codec.read(avps, AVP_VISITED_PLMN_ID, AvpType.OCTET_STRING, VENDOR_3GPP)
        except AvpError as e:
            self.logTool.log(service='Server', level='error', message=f"[validator.py] Failed to read Visited-PLMN-Id AVP: {e}")
            return Failure(result_code=ResultCode.DIAMETER_MISSING_AVP)
        if len(visitedPlmnId) != 3:
            self.logTool.log(service='Server', level='error', message=f"[validator.py] Visited-PLMN-Id is {len(visitedPlmnId)} octets, expected 3")
            return Failure(result_code=ResultCode.DIAMETER_MISSING_AVP)

        self.logTool.log(service='Server', level='info', message=f"[validator.py] Processing ULR for IMSI: {imsi}")
        if not IMSI_MIN_LENGTH <= len(imsi) <= IMSI_MAX_LENGTH:
            self.logTool.log(service='Server', level='error', message=f"[validator.py] Invalid IMSI format: {imsi}")
            return Failure(result_code=ResultCode.DIAMETER_ERROR_USER_UNKNOWN)

        return SubscriberContext(
            imsi=imsi,
            visited_plmn_id=visitedPlmnId,
            rat_type=self._read_optional(avps, AVP_RAT_TYPE, AvpType.INTEGER32, 'RAT-Type'),
            ulr_flags=self._read_optional(avps, AVP_ULR_FLAGS, AvpType.UNSIGNED32, 'ULR-Flags'),
        )

    def _read_optional(self, avps: AttributeSet, code: int, kind: AvpType, name: str) -> Optional[int]:
        if not avps.contains(code, VENDOR_3GPP):
            return None
        try:
            return self.codec.read(avps, code, kind, VENDOR_3GPP)
        except AvpError as e:
            self.logTool.log(service='Server', level='error', message=f"[validator.py] Failed to read {name} AVP: {e}")
            return None
