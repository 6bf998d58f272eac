from __future__ import annotations

import base64
import hashlib
import hmac
import json
from datetime import datetime, timedelta, timezone

import pytest

from src.event_attendance.event_attendance.core.exceptions import ConfigurationMissingError
from src.event_attendance.event_attendance.tokens.legacy import LegacyTokenWindow
from src.event_attendance.event_attendance.tokens.ticket import (
    TicketTokenCodec,
    is_signed_ticket_format,
    placeholder_ticket,
)

NOW = datetime(2025, 3, 1, 1, 0, tzinfo=timezone.utc)


def _legacy(user_id: str, exp: datetime) -> str:
    payload = json.dumps({"userId": user_id, "exp": int(exp.timestamp() * 1000)}).encode()
    return base64.urlsafe_b64encode(payload).rstrip(b"=").decode()


def _mutate(token: str, i: int) -> str:
    replacement = "A" if token[i] != "A" else "B"
    return token[:i] + replacement + token[i + 1 :]


def test_issue_then_verify_returns_subject():
    codec = TicketTokenCodec("secret")
    token = codec.issue("123456789012345678", now=NOW)

    result = codec.verify(token)

    assert result.valid
    assert result.subject_id == "123456789012345678"


def test_ticket_shape_has_sixteen_hex_signature():
    token = TicketTokenCodec("secret").issue("u1", now=NOW)

    payload, signature = token.split(".")
    decoded = base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)).decode()

    assert len(signature) == 16
    assert decoded.startswith(f"u1:{int(NOW.timestamp() * 1000)}:")
    assert len(decoded.rsplit(":", 1)[1]) == 32


def test_each_issue_uses_a_fresh_nonce():
    codec = TicketTokenCodec("secret")
    assert codec.issue("u1", now=NOW) != codec.issue("u1", now=NOW)


def test_subject_with_colons_survives():
    codec = TicketTokenCodec("secret")
    assert codec.verify(codec.issue("guild:member:7")).subject_id == "guild:member:7"


def test_every_single_character_mutation_is_rejected():
    codec = TicketTokenCodec("secret")
    token = codec.issue("u1", now=NOW)

    for i in range(len(token)):
        assert not codec.verify(_mutate(token, i)).valid, f"mutation at {i} accepted"


def test_other_secret_rejects():
    token = TicketTokenCodec("secret").issue("u1")
    assert not TicketTokenCodec("other").verify(token).valid


@pytest.mark.parametrize("token", ["", None, "garbage", "a.b", ".", "bot-sync-u1-1700000000000"])
def test_malformed_tokens_are_invalid(token):
    assert not TicketTokenCodec("secret").verify(token).valid


def test_missing_secret_is_configuration_error():
    with pytest.raises(ConfigurationMissingError):
        TicketTokenCodec("")


def test_placeholder_is_not_signed_format():
    token = placeholder_ticket("u1", now=NOW)

    assert token == f"bot-sync-u1-{int(NOW.timestamp() * 1000)}"
    assert not is_signed_ticket_format(token)
    assert is_signed_ticket_format(TicketTokenCodec("secret").issue("u1"))


def test_legacy_token_rejected_without_migration_window():
    token = _legacy("u1", NOW + timedelta(days=1))
    assert not TicketTokenCodec("secret").verify(token, now=NOW).valid


def test_legacy_token_accepted_inside_window():
    codec = TicketTokenCodec("secret", legacy_window=LegacyTokenWindow(cutoff=NOW + timedelta(days=30)))
    token = _legacy("u1", NOW + timedelta(days=1))

    result = codec.verify(token, now=NOW)

    assert result.valid
    assert result.subject_id == "u1"


def test_legacy_token_rejected_after_cutoff_or_expiry():
    codec = TicketTokenCodec("secret", legacy_window=LegacyTokenWindow(cutoff=NOW))

    assert not codec.verify(_legacy("u1", NOW + timedelta(days=1)), now=NOW + timedelta(seconds=1)).valid
    assert not codec.verify(_legacy("u1", NOW - timedelta(hours=2)), now=NOW - timedelta(hours=1)).valid


def test_flipping_signature_byte_invalidates():
    codec = TicketTokenCodec("secret")
    token = codec.issue("123")
    assert codec.verify(token).subject_id == "123"

    payload, signature = token.split(".")
    flipped = format(int(signature[0], 16) ^ 0x1, "x") + signature[1:]

    assert not codec.verify(f"{payload}.{flipped}").valid


def _signed(secret: str, payload: str) -> str:
    signature = hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()[:16]
    return base64.urlsafe_b64encode(payload.encode()).rstrip(b"=").decode() + "." + signature


def test_correctly_signed_payload_passes_the_hand_built_path():
    payload = f"u1:{int(NOW.timestamp() * 1000)}:{'a' * 32}"
    assert TicketTokenCodec("secret").verify(_signed("secret", payload)).subject_id == "u1"


def test_nonce_with_trailing_newline_is_rejected_even_when_signed():
    payload = f"u1:{int(NOW.timestamp() * 1000)}:{'a' * 32}\n"
    assert not TicketTokenCodec("secret").verify(_signed("secret", payload)).valid


def test_signature_with_trailing_newline_is_rejected():
    codec = TicketTokenCodec("secret")
    payload, signature = codec.issue("u1").split(".")

    assert not codec.verify(f"{payload}.{signature[:15]}\n").valid
