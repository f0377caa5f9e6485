"""
Unit tests for canonical message rendering.
"""

import dataclasses

from bloomauth import Claims, build_canonical_message
from bloomauth.message import AUTH_MESSAGE_LABEL


ADDRESS = "0x" + "12" * 20


def _claims(**overrides) -> Claims:
    fields = dict(
        address=ADDRESS,
        nonce="n1",
        timestamp=1000,
        expires_at=86401000,
        scope=["read:identity", "read:skills"],
    )
    fields.update(overrides)
    return Claims(**fields)


class TestCanonicalMessage:
    """Tests for build_canonical_message()."""

    def test_exact_layout(self):
        expected = (
            "Bloom Agent Authentication\n"
            f"Address: {ADDRESS}\n"
            "Nonce: n1\n"
            "Timestamp: 1000\n"
            "Expires: 86401000\n"
            "Scope: read:identity,read:skills"
        )
        assert build_canonical_message(_claims()) == expected

    def test_starts_with_label(self):
        assert build_canonical_message(_claims()).split("\n")[0] == AUTH_MESSAGE_LABEL

    def test_no_trailing_newline(self):
        assert not build_canonical_message(_claims()).endswith("\n")

    def test_deterministic(self):
        assert build_canonical_message(_claims()) == build_canonical_message(_claims())

    def test_scope_order_matters(self):
        reordered = _claims(scope=["read:skills", "read:identity"])
        assert build_canonical_message(reordered) != build_canonical_message(_claims())

    def test_every_field_changes_message(self):
        base = build_canonical_message(_claims())
        for change in (
            {"address": "0x" + "34" * 20},
            {"nonce": "n2"},
            {"timestamp": 1001},
            {"expires_at": 86401001},
            {"scope": ["read:identity"]},
        ):
            assert build_canonical_message(dataclasses.replace(_claims(), **change)) != base

    def test_empty_scope_renders_empty_line_value(self):
        assert build_canonical_message(_claims(scope=[])).endswith("Scope: ")

    def test_identity_not_signed(self):
        """Optional extensions are not part of the signed text."""
        assert build_canonical_message(_claims(agent_id="42")) == build_canonical_message(_claims())
