# ulrsim attribute codec: dictionary-typed AVP reads, writes and diagnostic rendering
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
from typing import List, Optional

from logtool import LogTool
from s6a.protocol.avp import (
    Avp,
    AvpError,
    AvpType,
    AttributeNotFound,
    AttributeSet,
    AttributeTypeMismatch,
    UnknownAttribute,
)
from s6a.protocol.dictionary import AvpDictionary, AvpDefinition, TEXT_TYPES


class AvpCodec:
    """
    Reads and writes AVPs using the kind declared in the dictionary for each (code, vendor) pair.
    """

    def __init__(self, dictionary: AvpDictionary, logTool: Optional[LogTool] = None):
        self.dictionary = dictionary
        self.logTool = logTool

    def _declared_kind(self, code: int, vendor_id: Optional[int], kind: Optional[AvpType]) -> AvpType:
        definition = self.dictionary.lookup(code, vendor_id)
        if definition is None:
            if kind is None:
                raise UnknownAttribute(f"AVP {code} (vendor {vendor_id or 0}) is not in the dictionary")
            return kind
        if kind is not None and kind is not definition.kind:
            raise AttributeTypeMismatch(f"{definition.name} is declared {definition.kind.value}, not {kind.value}")
        return definition.kind

    def build(self, code: int, value, vendor_id: Optional[int] = None, mandatory: bool = True, kind: Optional[AvpType] = None) -> Avp:
        return Avp(code, self._declared_kind(code, vendor_id, kind), value, vendor_id=vendor_id, mandatory=mandatory)

    def write(self, avps: AttributeSet, code: int, value, vendor_id: Optional[int] = None, mandatory: bool = True, kind: Optional[AvpType] = None) -> Avp:
        """
        Appends an AVP to avps. kind is only needed for codes the dictionary does not know.
        """
        avp = self.build(code, value, vendor_id=vendor_id, mandatory=mandatory, kind=kind)
        avps.append(avp)
        return avp

    def write_grouped(self, avps: AttributeSet, code: int, vendor_id: Optional[int] = None, mandatory: bool = True) -> AttributeSet:
        """Appends an empty Grouped AVP and returns its child set for the caller to fill."""
        children = AttributeSet()
        self.write(avps, code, children, vendor_id=vendor_id, mandatory=mandatory, kind=AvpType.GROUPED)
        return children

    def set(self, avps: AttributeSet, code: int, value, vendor_id: Optional[int] = None, mandatory: bool = True) -> Avp:
        avp = self.build(code, value, vendor_id=vendor_id, mandatory=mandatory)
        avps.replace(avp)
        return avp

    def read(self, avps: AttributeSet, code: int, kind: AvpType, vendor_id: Optional[int] = None):
        avp = avps.get(code, vendor_id)
        if avp is None:
            raise AttributeNotFound(code, vendor_id)
        if avp.kind is not kind:
            raise AttributeTypeMismatch(f"AVP {code} holds {avp.kind.value}, requested {kind.value}")
        return avp.value

    def read_utf8(self, avps: AttributeSet, code: int, vendor_id: Optional[int] = None) -> str:
        # UnicodeDecodeError is left to the caller
        return self.read(avps, code, AvpType.OCTET_STRING, vendor_id).decode('utf-8')

    def read_declared(self, avps: AttributeSet, code: int, vendor_id: Optional[int] = None):
        definition = self.dictionary.lookup(code, vendor_id)
        if definition is None:
            raise UnknownAttribute(f"AVP {code} (vendor {vendor_id or 0}) is not in the dictionary")
        return self.read(avps, code, definition.kind, vendor_id)

    def render(self, avps: AttributeSet) -> str:
        """
        Renders avps as an indented tree, two spaces per nesting level.
        AVPs unknown to the dictionary are shown by code only and never descended into.
        """
        lines: List[str] = []
        self._render(avps, 0, lines)
        return "\n".join(lines)

    def _render(self, avps: AttributeSet, level: int, lines: List[str]):
        prefix = "  " * level
        for avp in avps:
            vendor_id = avp.vendor_id or 0
            definition = self.dictionary.lookup(avp.code, avp.vendor_id)
            if definition is None:
                lines.append(f'{prefix}<avp code="{avp.code}" vendor="{vendor_id}" />')
                continue

            if definition.kind is AvpType.GROUPED and avp.kind is AvpType.GROUPED:
                lines.append(f'{prefix}<avp name="{definition.name}" code="{avp.code}" vendor="{vendor_id}">')
                self._render(avp.value, level + 1, lines)
                lines.append(f'{prefix}</avp>')
                continue

            value = self._format_value(definition, avp)
            lines.append(f'{prefix}<avp name="{definition.name}" code="{avp.code}" vendor="{vendor_id}" value="{value}" />')

    def _format_value(self, definition: AvpDefinition, avp: Avp) -> str:
        try:
            if avp.kind is not definition.kind:
                raise AttributeTypeMismatch(f"{definition.name} is declared {definition.kind.value} but holds {avp.kind.value}")
            if definition.kind is AvpType.OCTET_STRING:
                if definition.type_name in TEXT_TYPES:
                    return avp.value.decode('utf-8')
                return avp.value.hex()
            return str(avp.value)
        except (AvpError, UnicodeDecodeError) as e:
            if self.logTool is not None:
                self.logTool.log(service='S6A', level='warning', message=f"[codec.py] [render] Unable to render AVP {avp.code}: {e}")
            return "?"
