# ulrsim helpers for subscriber identities and network codes
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import re
from typing import Tuple


class InvalidIMSI(Exception):
    """validate_imsi may raise this exception"""


class InvalidPLMN(ValueError):
    """decode_plmn, encode_plmn and plmn_from_hex may raise this exception"""


def validate_imsi(imsi):
    if not isinstance(imsi, str) or not re.match(r'^\d{6,15}$', imsi):
        raise InvalidIMSI(f"IMSI is invalid: {imsi}")


def plmn_from_hex(hexString: str) -> bytes:
    """Converts the hex string form used by the UI ("000102") to the 3 Visited-PLMN-Id octets."""
    try:
        plmn = bytes.fromhex(hexString)
    except (TypeError, ValueError):
        raise InvalidPLMN(f"PLMN ID is not a hex string: {hexString}")
    if len(plmn) != 3:
        raise InvalidPLMN(f"PLMN ID must be 3 octets, got {len(plmn)}: {hexString}")
    return plmn


def decode_plmn(plmn: bytes) -> Tuple[str, str]:
    """
    Decodes 3 TBCD octets (3GPP TS 24.008 10.5.1.13) into (MCC, MNC).
    A filler nibble (f) in MNC digit 3 gives a 2 digit MNC.
    """
    if len(plmn) != 3:
        raise InvalidPLMN(f"PLMN must be 3 octets, got {len(plmn)}")
    nibbles = [plmn[0] & 0x0f, plmn[0] >> 4, plmn[1] & 0x0f, plmn[1] >> 4, plmn[2] & 0x0f, plmn[2] >> 4]
    mcc1, mcc2, mcc3, mnc3, mnc1, mnc2 = nibbles
    for digit in (mcc1, mcc2, mcc3, mnc1, mnc2):
        if digit > 9:
            raise InvalidPLMN(f"PLMN is not TBCD encoded: {plmn.hex()}")
    if mnc3 != 0x0f and mnc3 > 9:
        raise InvalidPLMN(f"PLMN is not TBCD encoded: {plmn.hex()}")
    mcc = f"{mcc1}{mcc2}{mcc3}"
    mnc = f"{mnc1}{mnc2}" + ("" if mnc3 == 0x0f else str(mnc3))
    return mcc, mnc


def encode_plmn(mcc: str, mnc: str) -> bytes:
    if not re.match(r'^\d{3}$', mcc) or not re.match(r'^\d{2,3}$', mnc):
        raise InvalidPLMN(f"Invalid MCC/MNC: {mcc}/{mnc}")
    mnc3 = int(mnc[2]) if len(mnc) == 3 else 0x0f
    return bytes([
        (int(mcc[1]) << 4) | int(mcc[0]),
        (mnc3 << 4) | int(mcc[2]),
        (int(mnc[1]) << 4) | int(mnc[0]),
    ])
