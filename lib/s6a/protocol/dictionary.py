# ulrsim AVP dictionary
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
from collections import namedtuple
from typing import Dict, Optional, Tuple

import yaml

from s6a.constants import VENDOR_3GPP
from s6a.protocol.avp import AvpType, normalize_vendor

AvpDefinition = namedtuple('AvpDefinition', ['name', 'code', 'vendor_id', 'kind', 'type_name'])

# Diameter derived data formats and the primitive kind each is carried as (RFC 6733 4.3)
TYPE_NAMES = {
    'Integer32': AvpType.INTEGER32,
    'Integer64': AvpType.INTEGER64,
    'Unsigned32': AvpType.UNSIGNED32,
    'Unsigned64': AvpType.UNSIGNED64,
    'Float32': AvpType.FLOAT32,
    'OctetString': AvpType.OCTET_STRING,
    'Grouped': AvpType.GROUPED,
    'Enumerated': AvpType.INTEGER32,
    'UTF8String': AvpType.OCTET_STRING,
    'DiameterIdentity': AvpType.OCTET_STRING,
    'DiameterURI': AvpType.OCTET_STRING,
    'Address': AvpType.OCTET_STRING,
    'Time': AvpType.OCTET_STRING,
    'IPFilterRule': AvpType.OCTET_STRING,
}

# Types rendered as text in diagnostics, everything else of kind OctetString is rendered as hex
TEXT_TYPES = ('UTF8String', 'DiameterIdentity', 'DiameterURI')

BUILTIN_AVPS = [
    # code, vendor, name, type
    (1, 0, 'User-Name', 'UTF8String'),
    (258, 0, 'Auth-Application-Id', 'Unsigned32'),
    (260, 0, 'Vendor-Specific-Application-Id', 'Grouped'),
    (263, 0, 'Session-Id', 'UTF8String'),
    (264, 0, 'Origin-Host', 'DiameterIdentity'),
    (266, 0, 'Vendor-Id', 'Unsigned32'),
    (268, 0, 'Result-Code', 'Unsigned32'),
    (277, 0, 'Auth-Session-State', 'Enumerated'),
    (278, 0, 'Origin-State-Id', 'Unsigned32'),
    (281, 0, 'Error-Message', 'UTF8String'),
    (283, 0, 'Destination-Realm', 'DiameterIdentity'),
    (293, 0, 'Destination-Host', 'DiameterIdentity'),
    (296, 0, 'Origin-Realm', 'DiameterIdentity'),
    (297, 0, 'Experimental-Result', 'Grouped'),
    (298, 0, 'Experimental-Result-Code', 'Unsigned32'),
    (628, VENDOR_3GPP, 'Supported-Features', 'Grouped'),
    (629, VENDOR_3GPP, 'Feature-List-ID', 'Unsigned32'),
    (630, VENDOR_3GPP, 'Feature-List', 'Unsigned32'),
    (701, VENDOR_3GPP, 'MSISDN', 'OctetString'),
    (1032, VENDOR_3GPP, 'RAT-Type', 'Enumerated'),
    (1400, VENDOR_3GPP, 'Subscription-Data', 'Grouped'),
    (1405, VENDOR_3GPP, 'ULR-Flags', 'Unsigned32'),
    (1406, VENDOR_3GPP, 'ULA-Flags', 'Unsigned32'),
    (1407, VENDOR_3GPP, 'Visited-PLMN-Id', 'OctetString'),
    (1417, VENDOR_3GPP, 'Network-Access-Mode', 'Enumerated'),
    (1423, VENDOR_3GPP, 'Context-Identifier', 'Unsigned32'),
    (1424, VENDOR_3GPP, 'Subscriber-Status', 'Enumerated'),
    (1426, VENDOR_3GPP, 'Access-Restriction-Data', 'Unsigned32'),
    (1428, VENDOR_3GPP, 'All-APN-Configurations-Included-Indicator', 'Enumerated'),
    (1429, VENDOR_3GPP, 'APN-Configuration-Profile', 'Grouped'),
    (1615, VENDOR_3GPP, 'E-SRVCC-Capability', 'Enumerated'),
    (1619, VENDOR_3GPP, 'Subscribed-Periodic-RAU-TAU-Timer', 'Unsigned32'),
]


class AvpDictionary:
    """
    Maps (code, vendor) to the AVP's declared name and type.
    Used to pick the kind when writing and decoding, and to name AVPs in diagnostics.
    """

    def __init__(self, load_builtin: bool = True):
        self._definitions: Dict[Tuple[int, int], AvpDefinition] = {}
        if load_builtin:
            for code, vendor_id, name, type_name in BUILTIN_AVPS:
                self.register(code, vendor_id, name, type_name)

    def register(self, code: int, vendor_id: Optional[int], name: str, type_name: str) -> AvpDefinition:
        if type_name not in TYPE_NAMES:
            raise ValueError(f"Unsupported AVP type '{type_name}' for {name} ({code})")
        definition = AvpDefinition(name, int(code), normalize_vendor(vendor_id), TYPE_NAMES[type_name], type_name)
        self._definitions[(definition.code, definition.vendor_id or 0)] = definition
        return definition

    def lookup(self, code: int, vendor_id: Optional[int] = None) -> Optional[AvpDefinition]:
        return self._definitions.get((code, vendor_id or 0))

    def load_yaml(self, path: str) -> int:
        """
        Loads additional definitions from a YAML list of {code, vendor, name, type} mappings.
        Returns the number of definitions loaded.
        """
        with open(path, 'r') as stream:
            entries = yaml.safe_load(stream) or []
        for entry in entries:
            self.register(entry['code'], entry.get('vendor', 0), entry['name'], entry['type'])
        return len(entries)

    def __len__(self):
        return len(self._definitions)

    def __contains__(self, key):
        code, vendor_id = key
        return self.lookup(code, vendor_id) is not None
