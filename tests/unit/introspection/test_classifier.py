"""Unit tests for action derivation.

Tests cover:
- Priority order of the five rules
- Challenge content per action
- RFC 7662 token metadata classification
"""

from __future__ import annotations

import pytest

from resource_guard.introspection.classifier import (
    bad_request_outcome,
    classify,
    classify_token_info,
    server_error_outcome,
)
from resource_guard.introspection.models import Action, TokenInfo
from tests.factories.introspection import TokenInfoFactory


pytestmark = pytest.mark.unit

NOW = 1_700_000_000


# =============================================================================
# Priority Order Tests
# =============================================================================


class TestClassify:
    """Tests for classify."""

    def test_missing_credential_is_bad_request(self) -> None:
        """Should return BAD_REQUEST before looking at any other fact."""
        verdict = classify(
            credential_present=False,
            lookup_failed=True,
            existent=True,
            usable=True,
            sufficient=True,
        )

        assert verdict.action is Action.BAD_REQUEST
        assert verdict.response_content.startswith('Bearer error="invalid_request"')

    def test_lookup_failure_is_internal_server_error(self) -> None:
        """Should return INTERNAL_SERVER_ERROR when the service failed."""
        verdict = classify(credential_present=True, lookup_failed=True, existent=True)

        assert verdict.action is Action.INTERNAL_SERVER_ERROR
        assert verdict.response_content == 'Bearer error="server_error"'

    @pytest.mark.parametrize("usable", [True, False])
    @pytest.mark.parametrize("sufficient", [True, False])
    def test_nonexistent_token_is_unauthorized(
        self, usable: bool, sufficient: bool
    ) -> None:
        """Should return UNAUTHORIZED for an unknown token whatever else is set."""
        verdict = classify(
            credential_present=True,
            existent=False,
            usable=usable,
            sufficient=sufficient,
        )

        assert verdict.action is Action.UNAUTHORIZED
        assert verdict.action.status_code == 401
        assert 'error="invalid_token"' in verdict.response_content
        assert "is invalid" in verdict.response_content

    def test_expired_token_is_unauthorized(self) -> None:
        """Should return UNAUTHORIZED for an existing but unusable token."""
        verdict = classify(
            credential_present=True, existent=True, usable=False, sufficient=True
        )

        assert verdict.action is Action.UNAUTHORIZED
        assert "has expired" in verdict.response_content

    def test_insufficient_scope_is_forbidden(self) -> None:
        """Should return FORBIDDEN and list the required scopes."""
        verdict = classify(
            credential_present=True,
            existent=True,
            usable=True,
            sufficient=False,
            required_scopes=["write", "read"],
        )

        assert verdict.action is Action.FORBIDDEN
        assert verdict.action.status_code == 403
        assert 'error="insufficient_scope"' in verdict.response_content
        assert 'scope="read write"' in verdict.response_content

    def test_subject_mismatch_is_forbidden(self) -> None:
        """Should fold a subject mismatch into FORBIDDEN."""
        verdict = classify(
            credential_present=True,
            existent=True,
            usable=True,
            sufficient=True,
            subject_matches=False,
        )

        assert verdict.action is Action.FORBIDDEN
        assert "required subject" in verdict.response_content

    def test_usable_sufficient_token_is_ok(self) -> None:
        """Should return OK with the minimal default challenge."""
        verdict = classify(
            credential_present=True, existent=True, usable=True, sufficient=True
        )

        assert verdict.action is Action.OK
        assert verdict.action.status_code == 200
        assert verdict.response_content == 'Bearer error="invalid_request"'

    def test_realm_is_rendered(self) -> None:
        """Should include the realm in every challenge."""
        verdict = classify(credential_present=True, realm="example")

        assert verdict.response_content.startswith('Bearer realm="example"')


class TestLocalOutcomes:
    """Tests for locally synthesized outcomes."""

    def test_bad_request_outcome(self) -> None:
        """Should build a non-existent BAD_REQUEST outcome."""
        outcome = bad_request_outcome()

        assert outcome.action is Action.BAD_REQUEST
        assert outcome.status_code == 400
        assert not outcome.existent
        assert outcome.response_content

    def test_server_error_outcome(self) -> None:
        """Should build an INTERNAL_SERVER_ERROR outcome with content."""
        outcome = server_error_outcome("example")

        assert outcome.action is Action.INTERNAL_SERVER_ERROR
        assert outcome.status_code == 500
        assert outcome.response_content == (
            'Bearer realm="example", error="server_error"'
        )


# =============================================================================
# RFC 7662 Classification Tests
# =============================================================================


class TestClassifyTokenInfo:
    """Tests for classify_token_info."""

    def test_active_token_with_scopes_is_ok(self) -> None:
        """Should return OK with the token facts copied over."""
        info = TokenInfoFactory.build(
            sub="john",
            scope="read write",
            client_id="4326385670",
            exp=NOW + 600,
            aud="https://api.example.com",
        )

        outcome = classify_token_info(info, required_scopes=["read"], now=NOW)

        assert outcome.action is Action.OK
        assert outcome.existent
        assert outcome.usable
        assert outcome.sufficient
        assert outcome.subject == "john"
        assert outcome.client_id == 4326385670
        assert outcome.client_id_alias is None
        assert outcome.scopes == frozenset({"read", "write"})
        assert outcome.expires_at == (NOW + 600) * 1000
        assert outcome.resources == frozenset({"https://api.example.com"})
        assert outcome.access_token_resources == outcome.resources

    def test_inactive_token_is_unauthorized(self) -> None:
        """Should treat an inactive token without expiry as unknown."""
        outcome = classify_token_info(TokenInfoFactory.inactive(), now=NOW)

        assert outcome.action is Action.UNAUTHORIZED
        assert not outcome.existent
        assert outcome.subject is None
        assert "is invalid" in outcome.response_content

    def test_inactive_token_with_past_expiry_is_expired(self) -> None:
        """Should report an inactive token whose exp has passed as existing."""
        info = TokenInfo(active=False, exp=NOW - 10, sub="john")

        outcome = classify_token_info(info, now=NOW)

        assert outcome.action is Action.UNAUTHORIZED
        assert outcome.existent
        assert not outcome.usable
        assert "has expired" in outcome.response_content

    def test_active_token_past_expiry_is_unauthorized(self) -> None:
        """Should not trust active=true once exp has passed."""
        info = TokenInfoFactory.build(exp=NOW)

        outcome = classify_token_info(info, now=NOW)

        assert outcome.action is Action.UNAUTHORIZED
        assert not outcome.usable

    def test_token_not_yet_valid_is_unauthorized(self) -> None:
        """Should reject a token before its nbf."""
        info = TokenInfoFactory.build(exp=NOW + 600, nbf=NOW + 60)

        outcome = classify_token_info(info, now=NOW)

        assert outcome.action is Action.UNAUTHORIZED

    def test_missing_scope_is_forbidden(self) -> None:
        """Should return FORBIDDEN when a required scope is not granted."""
        info = TokenInfoFactory.build(scope="read", exp=NOW + 600)

        outcome = classify_token_info(
            info, required_scopes=["read", "admin"], now=NOW
        )

        assert outcome.action is Action.FORBIDDEN
        assert not outcome.sufficient
        assert 'scope="admin read"' in outcome.response_content

    def test_subject_mismatch_is_forbidden(self) -> None:
        """Should return FORBIDDEN when the subject differs."""
        info = TokenInfoFactory.build(sub="alice", exp=NOW + 600)

        outcome = classify_token_info(info, expected_subject="bob", now=NOW)

        assert outcome.action is Action.FORBIDDEN
        assert outcome.sufficient

    def test_no_required_scopes_is_sufficient(self) -> None:
        """Should consider any token sufficient when no scope is required."""
        info = TokenInfoFactory.build(scope=None, exp=NOW + 600)

        outcome = classify_token_info(info, now=NOW)

        assert outcome.action is Action.OK

    def test_textual_client_id_becomes_alias(self) -> None:
        """Should keep a non-numeric client_id as the alias."""
        info = TokenInfoFactory.build(client_id="my-client", exp=NOW + 600)

        outcome = classify_token_info(info, now=NOW)

        assert outcome.client_id == 0
        assert outcome.client_id_alias == "my-client"
        assert outcome.client_id_alias_used

    def test_certificate_binding_is_reported(self) -> None:
        """Should copy the mutual-TLS thumbprint."""
        info = TokenInfoFactory.build(exp=NOW + 600, cnf={"x5t#S256": "thumb"})

        outcome = classify_token_info(info, now=NOW)

        assert outcome.certificate_thumbprint == "thumb"

    def test_realm_is_passed_through(self) -> None:
        """Should include the realm in the challenge."""
        outcome = classify_token_info(
            TokenInfoFactory.inactive(), realm="example", now=NOW
        )

        assert outcome.response_content.startswith('Bearer realm="example"')
