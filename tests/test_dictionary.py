# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later
import pytest

from s6a.constants import AVP_RAT_TYPE, AVP_SESSION_ID, VENDOR_3GPP
from s6a.protocol.avp import AvpType
from s6a.protocol.dictionary import AvpDictionary


def test_builtin_lookup(dictionary):
    definition = dictionary.lookup(AVP_RAT_TYPE, VENDOR_3GPP)
    assert definition.name == "RAT-Type"
    assert definition.kind is AvpType.INTEGER32
    assert definition.type_name == "Enumerated"


def test_lookup_is_vendor_scoped(dictionary):
    assert dictionary.lookup(AVP_RAT_TYPE) is None
    assert (AVP_SESSION_ID, 0) in dictionary
    assert (AVP_SESSION_ID, None) in dictionary


def test_empty_dictionary():
    assert len(AvpDictionary(load_builtin=False)) == 0


def test_register_rejects_unknown_type(dictionary):
    with pytest.raises(ValueError):
        dictionary.register(5000, 0, "Broken", "Float128")


def test_load_yaml(tmp_path):
    extra = tmp_path / "avps.yaml"
    extra.write_text(
        "- {code: 1408, vendor: 10415, name: Cancellation-Type, type: Enumerated}\n"
        "- {code: 1, name: User-Name, type: UTF8String}\n"
    )
    dictionary = AvpDictionary(load_builtin=False)
    assert dictionary.load_yaml(str(extra)) == 2
    assert dictionary.lookup(1408, VENDOR_3GPP).name == "Cancellation-Type"
    assert dictionary.lookup(1).kind is AvpType.OCTET_STRING
