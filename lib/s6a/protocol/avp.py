# ulrsim AVP model: typed attributes and ordered attribute sets
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import struct
from enum import Enum
from typing import Iterable, Iterator, List, Optional


class AvpType(Enum):
    INTEGER32 = "Integer32"
    INTEGER64 = "Integer64"
    UNSIGNED32 = "Unsigned32"
    UNSIGNED64 = "Unsigned64"
    FLOAT32 = "Float32"
    OCTET_STRING = "OctetString"
    GROUPED = "Grouped"


class AvpError(Exception):
    """Base class for attribute codec errors"""


class AttributeNotFound(AvpError):
    def __init__(self, code: int, vendor_id: Optional[int] = None):
        super().__init__(f"AVP {code} (vendor {vendor_id or 0}) not present")
        self.code = code
        self.vendor_id = vendor_id


class AttributeTypeMismatch(AvpError):
    pass


class UnknownAttribute(AvpError):
    pass


_INTEGER_RANGES = {
    AvpType.INTEGER32: (-2**31, 2**31 - 1),
    AvpType.INTEGER64: (-2**63, 2**63 - 1),
    AvpType.UNSIGNED32: (0, 2**32 - 1),
    AvpType.UNSIGNED64: (0, 2**64 - 1),
}


def normalize_vendor(vendor_id: Optional[int]) -> Optional[int]:
    # Vendor-Id 0 is the base protocol
    return vendor_id or None


def coerce_value(kind: AvpType, value):
    """
    Checks that value can be carried by an AVP of the given kind and returns it in canonical form.
    OctetString accepts str (encoded as UTF-8) or bytes, and always stores bytes.
    """
    if kind is AvpType.GROUPED:
        if not isinstance(value, AttributeSet):
            raise AttributeTypeMismatch(f"Grouped AVP needs an AttributeSet, got {type(value).__name__}")
        return value

    if kind is AvpType.OCTET_STRING:
        if isinstance(value, str):
            return value.encode('utf-8')
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        raise AttributeTypeMismatch(f"OctetString AVP needs bytes or str, got {type(value).__name__}")

    if isinstance(value, bool):
        raise AttributeTypeMismatch(f"{kind.value} AVP does not take a bool")

    if kind is AvpType.FLOAT32:
        if not isinstance(value, (int, float)):
            raise AttributeTypeMismatch(f"Float32 AVP needs a number, got {type(value).__name__}")
        try:
            struct.pack('>f', value)
        except OverflowError:
            raise AttributeTypeMismatch(f"{value} out of range for Float32")
        return float(value)

    if not isinstance(value, int):
        raise AttributeTypeMismatch(f"{kind.value} AVP needs an int, got {type(value).__name__}")
    low, high = _INTEGER_RANGES[kind]
    if not low <= value <= high:
        raise AttributeTypeMismatch(f"{value} out of range for {kind.value}")
    return value


class Avp:
    __slots__ = ('code', 'vendor_id', 'kind', 'value', 'mandatory')

    def __init__(self, code: int, kind: AvpType, value, vendor_id: Optional[int] = None, mandatory: bool = True):
        self.code = code
        self.vendor_id = normalize_vendor(vendor_id)
        self.kind = kind
        self.value = coerce_value(kind, value)
        self.mandatory = mandatory

    @property
    def is_vendor_specific(self) -> bool:
        return self.vendor_id is not None

    def matches(self, code: int, vendor_id: Optional[int] = None) -> bool:
        return self.code == code and self.vendor_id == normalize_vendor(vendor_id)

    def __eq__(self, other):
        if not isinstance(other, Avp):
            return NotImplemented
        return (self.code, self.vendor_id, self.kind, self.value, self.mandatory) == \
               (other.code, other.vendor_id, other.kind, other.value, other.mandatory)

    def __repr__(self):
        return f"Avp(code={self.code}, vendor_id={self.vendor_id}, kind={self.kind.value}, value={self.value!r})"


class AttributeSet:
    """
    Ordered sequence of AVPs.
    Order is kept for wire fidelity, lookups ignore it and return the first match.
    """

    def __init__(self, avps: Optional[Iterable[Avp]] = None):
        self._avps: List[Avp] = list(avps or [])

    def append(self, avp: Avp):
        self._avps.append(avp)

    def extend(self, avps: Iterable[Avp]):
        for avp in avps:
            self.append(avp)

    def get(self, code: int, vendor_id: Optional[int] = None) -> Optional[Avp]:
        for avp in self._avps:
            if avp.matches(code, vendor_id):
                return avp
        return None

    def get_all(self, code: int, vendor_id: Optional[int] = None) -> List[Avp]:
        return [avp for avp in self._avps if avp.matches(code, vendor_id)]

    def contains(self, code: int, vendor_id: Optional[int] = None) -> bool:
        return self.get(code, vendor_id) is not None

    def replace(self, avp: Avp):
        """Replaces the first AVP with the same code and vendor, or appends if there is none."""
        for index, existing in enumerate(self._avps):
            if existing.matches(avp.code, avp.vendor_id):
                self._avps[index] = avp
                return
        self._avps.append(avp)

    def remove(self, code: int, vendor_id: Optional[int] = None) -> int:
        before = len(self._avps)
        self._avps = [avp for avp in self._avps if not avp.matches(code, vendor_id)]
        return before - len(self._avps)

    def __iter__(self) -> Iterator[Avp]:
        return iter(self._avps)

    def __len__(self) -> int:
        return len(self._avps)

    def __eq__(self, other):
        if not isinstance(other, AttributeSet):
            return NotImplemented
        return self._avps == other._avps

    def __repr__(self):
        return f"AttributeSet({self._avps!r})"
