"""Tests de derivación de claves de dispositivo."""

import base64

import pytest

from tracker_api.errors import InvalidDeviceIdentity
from tracker_api.identity import (
    CURRENT_SCHEME,
    IdentityScheme,
    decode_current_key,
    derive_device_key,
    derive_key,
    parse_mac,
)


MAC_TEXT = "AA:BB:CC:DD:EE:FF"
MAC_RAW = bytes.fromhex("AABBCCDDEEFF")


class TestParseMac:

    @pytest.mark.parametrize(
        "text",
        ["AA:BB:CC:DD:EE:FF", "aa:bb:cc:dd:ee:ff", "AA-BB-CC-DD-EE-FF", " AA:BB:CC:DD:EE:FF "],
    )
    def test_valid_formats(self, text):
        assert parse_mac(text) == MAC_RAW

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "AA:BB:CC:DD:EE",  # corta
            "AA:BB:CC:DD:EE:FF:00",  # larga
            "GG:BB:CC:DD:EE:FF",  # no hexadecimal
            "AA:BB-CC:DD:EE:FF",  # separadores mezclados
            "AABBCCDDEEFF",
        ],
    )
    def test_malformed_mac_rejected(self, text):
        with pytest.raises(InvalidDeviceIdentity) as exc_info:
            parse_mac(text)

        assert exc_info.value.code == "invalid_device_mac"
        assert exc_info.value.code != "invalid_signature"


class TestDeriveDeviceKey:

    def test_current_key_round_trips_to_raw_mac(self):
        keys = derive_device_key(parse_mac(MAC_TEXT))

        assert keys.current_key.startswith("device_")
        assert base64.b64decode(keys.current_key[len("device_"):]) == MAC_RAW
        assert decode_current_key(keys.current_key) == MAC_RAW

    def test_current_key_value(self):
        assert derive_device_key(MAC_RAW).current_key == "device_qrvM3e7/"

    def test_legacy_key_value(self):
        # "BB:CC:DD:EE:FF" -> 0xBBCCDDEE (big-endian) = 3150765550
        keys = derive_device_key(MAC_RAW)

        assert keys.legacy_key == "device_" + base64.b64encode(b"3150765550").decode()
        assert keys.legacy_key == "device_MzE1MDc2NTU1MA=="

    def test_legacy_ignores_first_and_last_octet(self):
        a = derive_device_key(bytes.fromhex("00BBCCDDEE00"))
        b = derive_device_key(bytes.fromhex("FFBBCCDDEEFF"))

        # El esquema legacy colisiona; el actual no
        assert a.legacy_key == b.legacy_key
        assert a.current_key != b.current_key

    def test_deterministic(self):
        first = derive_device_key(MAC_RAW)

        for _ in range(10):
            assert derive_device_key(bytes(MAC_RAW)) == first

    def test_custom_namespace(self):
        keys = derive_device_key(MAC_RAW, namespace="dev-")

        assert keys.current_key == "dev-qrvM3e7/"
        assert keys.legacy_key.startswith("dev-")

    @pytest.mark.parametrize("raw", [b"", b"\x00" * 5, b"\x00" * 7, "AA:BB:CC:DD:EE:FF"])
    def test_wrong_raw_length_rejected(self, raw):
        with pytest.raises(InvalidDeviceIdentity):
            derive_device_key(raw)

    def test_superseded_lists_legacy_key(self):
        keys = derive_device_key(MAC_RAW)

        assert keys.superseded == ((IdentityScheme.LEGACY_UINT32, keys.legacy_key),)


class TestSchemes:

    def test_current_scheme_is_mac_base64(self):
        assert CURRENT_SCHEME is IdentityScheme.MAC_BASE64
        assert int(IdentityScheme.LEGACY_UINT32) < int(CURRENT_SCHEME)

    def test_derive_key_matches_device_keys(self):
        keys = derive_device_key(MAC_RAW)

        assert derive_key(MAC_RAW, IdentityScheme.LEGACY_UINT32) == keys.legacy_key
        assert derive_key(MAC_RAW, IdentityScheme.MAC_BASE64) == keys.current_key

    def test_decode_rejects_legacy_key(self):
        keys = derive_device_key(MAC_RAW)

        with pytest.raises(InvalidDeviceIdentity):
            decode_current_key(keys.legacy_key)

    def test_decode_rejects_foreign_namespace(self):
        with pytest.raises(InvalidDeviceIdentity):
            decode_current_key("user_qrvM3e7/")
