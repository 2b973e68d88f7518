# ulrsim RAT-Type handling
# Copyright 2025 Lennart Rosam <hello@takuto.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
from enum import IntEnum, StrEnum
from typing import Optional


class RAT(StrEnum):
    GERAN = "2g"
    UTRAN = "3g"
    EUTRAN = "4g"
    NR = "5g"


class RatType(IntEnum):
    """RAT-Type AVP values, 3GPP TS 29.212 5.3.31"""
    WLAN = 0
    VIRTUAL = 1
    UTRAN = 1000
    GERAN = 1001
    GAN = 1002
    HSPA_EVOLUTION = 1003
    EUTRAN = 1004
    EUTRAN_NB_IOT = 1005
    NR = 1006
    LTE_M = 1007
    CDMA2000_1X = 2000
    HRPD = 2001
    UMB = 2002
    EHRPD = 2003


RAT_GENERATION = {
    RatType.GERAN: RAT.GERAN,
    RatType.GAN: RAT.GERAN,
    RatType.UTRAN: RAT.UTRAN,
    RatType.HSPA_EVOLUTION: RAT.UTRAN,
    RatType.EUTRAN: RAT.EUTRAN,
    RatType.EUTRAN_NB_IOT: RAT.EUTRAN,
    RatType.LTE_M: RAT.EUTRAN,
    RatType.NR: RAT.NR,
}


def rat_generation(ratType: int) -> Optional[RAT]:
    try:
        return RAT_GENERATION.get(RatType(ratType))
    except ValueError:
        return None


def describe_rat_type(ratType: int) -> str:
    """
    Returns a printable name for a RAT-Type value, e.g. "EUTRAN (4g)".
    Unknown values are returned as "unknown (<value>)".
    """
    try:
        name = RatType(ratType).name
    except ValueError:
        return f"unknown ({ratType})"
    generation = rat_generation(ratType)
    if generation is None:
        return name
    return f"{name} ({generation.value})"
