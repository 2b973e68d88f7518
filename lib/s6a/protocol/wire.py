# ulrsim Diameter wire encoder / decoder
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import struct
from typing import Optional, Union

from logtool import LogTool
from s6a.protocol.avp import Avp, AvpType, AttributeSet
from s6a.protocol.dictionary import AvpDictionary
from s6a.protocol.message import DiameterMessage

AVP_FLAG_VENDOR = 0x80
AVP_FLAG_MANDATORY = 0x40
DIAMETER_HEADER_LENGTH = 20
DIAMETER_VERSION = "01"
MAX_GROUPED_DEPTH = 16

_FIXED_WIDTH = {
    AvpType.INTEGER32: (4, True),
    AvpType.INTEGER64: (8, True),
    AvpType.UNSIGNED32: (4, False),
    AvpType.UNSIGNED64: (8, False),
}


def roundUpToMultiple(n, multiple):
    return ((n + multiple - 1) // multiple) * multiple


class DiameterWire:
    """
    Encodes Diameter messages to hex strings and decodes them back.
    Decoding is driven by the dictionary: Grouped AVPs are decoded into nested AttributeSets,
    AVPs the dictionary does not know are kept as raw OctetString.
    """

    def __init__(self, dictionary: AvpDictionary, logTool: Optional[LogTool] = None):
        self.dictionary = dictionary
        self.logTool = logTool

    def _log(self, level: str, message: str):
        if self.logTool is not None:
            self.logTool.log(service='S6A', level=level, message=message)

    def encode_value(self, avp: Avp) -> str:
        if avp.kind is AvpType.GROUPED:
            return self.encode_avps(avp.value)
        if avp.kind is AvpType.OCTET_STRING:
            return avp.value.hex()
        if avp.kind is AvpType.FLOAT32:
            return struct.pack('>f', avp.value).hex()
        width, signed = _FIXED_WIDTH[avp.kind]
        return avp.value.to_bytes(width, 'big', signed=signed).hex()

    def generate_avp(self, avp: Avp) -> str:
        content = self.encode_value(avp)
        flags = 0
        header = format(avp.code, "x").zfill(8)
        headerLength = 8
        if avp.is_vendor_specific:
            flags |= AVP_FLAG_VENDOR
            headerLength = 12
        if avp.mandatory:
            flags |= AVP_FLAG_MANDATORY

        avpLength = headerLength + len(content) // 2
        paddingLength = roundUpToMultiple(avpLength, 4) - avpLength

        encoded = header + format(flags, "x").zfill(2) + format(avpLength, "x").zfill(6)
        if avp.is_vendor_specific:
            encoded += format(avp.vendor_id, "x").zfill(8)
        return encoded + content + "00" * paddingLength

    def encode_avps(self, avps: AttributeSet) -> str:
        return "".join(self.generate_avp(avp) for avp in avps)

    def encode_message(self, message: DiameterMessage) -> str:
        body = self.encode_avps(message.avps)
        length = DIAMETER_HEADER_LENGTH + len(body) // 2
        return (DIAMETER_VERSION
                + format(length, "x").zfill(6)
                + format(message.flags, "x").zfill(2)
                + format(message.command_code, "x").zfill(6)
                + format(message.application_id, "x").zfill(8)
                + format(message.hop_by_hop_id, "x").zfill(8)
                + format(message.end_to_end_id, "x").zfill(8)
                + body)

    def decode_message(self, data: Union[str, bytes]) -> DiameterMessage:
        if isinstance(data, bytes):
            data = data.hex()
        data = data.lower()
        if len(data) < DIAMETER_HEADER_LENGTH * 2:
            raise ValueError(f"Diameter message too short: {len(data) // 2} bytes")
        if data[0:2] != DIAMETER_VERSION:
            raise ValueError(f"Unsupported Diameter version: {data[0:2]}")
        length = int(data[2:8], 16)
        if length * 2 != len(data):
            raise ValueError(f"Diameter length field {length} does not match message size {len(data) // 2}")

        flags = int(data[8:10], 16)
        return DiameterMessage(
            command_code=int(data[10:16], 16),
            application_id=int(data[16:24], 16),
            is_request=bool(flags & 0x80),
            is_proxiable=bool(flags & 0x40),
            is_error=bool(flags & 0x20),
            hop_by_hop_id=int(data[24:32], 16),
            end_to_end_id=int(data[32:40], 16),
            avps=self.decode_avps(data[40:]),
        )

    def decode_avps(self, data: str, depth: int = 0) -> AttributeSet:
        if depth > MAX_GROUPED_DEPTH:
            raise ValueError("Grouped AVP nesting too deep")
        avps = AttributeSet()
        offset = 0
        while offset < len(data):
            if len(data) - offset < 16:
                raise ValueError(f"Truncated AVP header at offset {offset // 2}")
            code = int(data[offset:offset + 8], 16)
            flags = int(data[offset + 8:offset + 10], 16)
            avpLength = int(data[offset + 10:offset + 16], 16)
            headerChars = 16
            vendor_id = None
            if flags & AVP_FLAG_VENDOR:
                vendor_id = int(data[offset + 16:offset + 24], 16)
                headerChars = 24
            if avpLength * 2 < headerChars or offset + avpLength * 2 > len(data):
                raise ValueError(f"Invalid length {avpLength} for AVP {code}")

            content = data[offset + headerChars:offset + avpLength * 2]
            avps.append(self.decode_avp(code, vendor_id, bool(flags & AVP_FLAG_MANDATORY), content, depth))
            offset += roundUpToMultiple(avpLength, 4) * 2
        return avps

    def decode_avp(self, code: int, vendor_id: Optional[int], mandatory: bool, content: str, depth: int = 0) -> Avp:
        definition = self.dictionary.lookup(code, vendor_id)
        raw = bytes.fromhex(content)
        if definition is None:
            return Avp(code, AvpType.OCTET_STRING, raw, vendor_id=vendor_id, mandatory=mandatory)

        kind = definition.kind
        try:
            if kind is AvpType.GROUPED:
                value = self.decode_avps(content, depth + 1)
            elif kind is AvpType.OCTET_STRING:
                value = raw
            elif kind is AvpType.FLOAT32:
                value = struct.unpack('>f', raw)[0]
            else:
                width, signed = _FIXED_WIDTH[kind]
                if len(raw) != width:
                    raise ValueError(f"expected {width} bytes, got {len(raw)}")
                value = int.from_bytes(raw, 'big', signed=signed)
        except (ValueError, struct.error) as e:
            self._log('warning', f"[wire.py] [decode_avp] Could not decode {definition.name} ({code}) as {kind.value}, keeping raw bytes: {e}")
            return Avp(code, AvpType.OCTET_STRING, raw, vendor_id=vendor_id, mandatory=mandatory)
        return Avp(code, kind, value, vendor_id=vendor_id, mandatory=mandatory)
