# ulrsim S6a/S6d protocol constants
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
from enum import IntEnum, IntFlag

VENDOR_3GPP = 10415
APPLICATION_S6A = 16777251           # 3GPP S6a/S6d
COMMAND_UPDATE_LOCATION = 316        # ULR / ULA

# Base protocol AVPs (RFC 6733)
AVP_USER_NAME = 1
AVP_SESSION_ID = 263
AVP_ORIGIN_HOST = 264
AVP_RESULT_CODE = 268
AVP_AUTH_SESSION_STATE = 277
AVP_DESTINATION_REALM = 283
AVP_DESTINATION_HOST = 293
AVP_ORIGIN_REALM = 296

# 3GPP AVPs (vendor 10415)
AVP_MSISDN = 701
AVP_RAT_TYPE = 1032
AVP_SUBSCRIPTION_DATA = 1400
AVP_ULR_FLAGS = 1405
AVP_ULA_FLAGS = 1406
AVP_VISITED_PLMN_ID = 1407
AVP_NETWORK_ACCESS_MODE = 1417
AVP_SUBSCRIBER_STATUS = 1424
AVP_ACCESS_RESTRICTION_DATA = 1426


class ResultCode(IntEnum):
    DIAMETER_SUCCESS = 2001
    DIAMETER_COMMAND_UNSUPPORTED = 3001
    DIAMETER_ERROR_USER_UNKNOWN = 5001
    DIAMETER_MISSING_AVP = 5004
    DIAMETER_ERROR_UNKNOWN_EPS_SUBSCRIPTION = 5420


class UlrFlags(IntFlag):
    """ULR-Flags bits, 3GPP TS 29.272 7.3.7"""
    SINGLE_REGISTRATION_INDICATION = 0x01
    S6A_S6D_INDICATOR = 0x02
    SKIP_SUBSCRIBER_DATA = 0x04
    GPRS_SUBSCRIPTION_DATA_INDICATOR = 0x08
    NODE_TYPE_INDICATOR = 0x10
    INITIAL_ATTACH_INDICATOR = 0x20
    PS_LCS_NOT_SUPPORTED_BY_UE = 0x40
    SMS_ONLY_INDICATION = 0x80


class SubscriberStatus(IntEnum):
    SERVICE_GRANTED = 0


class NetworkAccessMode(IntEnum):
    PACKET_AND_CIRCUIT = 0
