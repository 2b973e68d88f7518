# ulrsim data models
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from s6a.constants import ResultCode


class Origin(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    realm: str


class SubscriberContext(BaseModel):
    """
    Subscriber parameters of a single Update-Location exchange.
    Immutable once built, discarded when the exchange ends.
    """
    model_config = ConfigDict(frozen=True)

    imsi: str
    visited_plmn_id: bytes
    rat_type: Optional[int] = None
    ulr_flags: Optional[int] = None

    @field_validator('visited_plmn_id')
    @classmethod
    def plmn_is_three_octets(cls, value: bytes) -> bytes:
        if len(value) != 3:
            raise ValueError(f"Visited-PLMN-Id must be 3 octets, got {len(value)}")
        return value


class SubscriptionData(BaseModel):
    model_config = ConfigDict(frozen=True)

    msisdn: str
    access_restriction_data: int = 0
    subscriber_status: int = 0
    network_access_mode: int = 0


class Success(BaseModel):
    model_config = ConfigDict(frozen=True)

    subscription_data: SubscriptionData

    @property
    def result_code(self) -> int:
        return ResultCode.DIAMETER_SUCCESS


class Failure(BaseModel):
    model_config = ConfigDict(frozen=True)

    result_code: int


ExchangeOutcome = Union[Success, Failure]


class ClientResult(BaseModel):
    """Terminal event of one client-side exchange, as reported to the caller."""
    SessionId: str
    Imsi: str
    Outcome: str
    DiameterResultCode: Optional[int] = None
    HasSubscriptionData: bool = False
    Msisdn: Optional[str] = None
    CompletedTimestamp: float
