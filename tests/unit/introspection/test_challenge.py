"""Unit tests for WWW-Authenticate challenge strings."""

from __future__ import annotations

import pytest

from resource_guard.introspection.challenge import (
    SERVER_ERROR,
    ChallengeError,
    build_challenge,
    default_challenge,
)


pytestmark = pytest.mark.unit


class TestBuildChallenge:
    """Tests for build_challenge."""

    def test_error_only(self) -> None:
        """Should render the error code alone."""
        assert build_challenge(ChallengeError.INVALID_TOKEN) == (
            'Bearer error="invalid_token"'
        )

    def test_with_description(self) -> None:
        """Should append error_description after the error."""
        challenge = build_challenge(
            ChallengeError.INVALID_TOKEN, "The access token has expired."
        )

        assert challenge == (
            'Bearer error="invalid_token", '
            'error_description="The access token has expired."'
        )

    def test_realm_comes_first(self) -> None:
        """Should place the realm before the error."""
        challenge = build_challenge(ChallengeError.INVALID_REQUEST, realm="example")

        assert challenge == 'Bearer realm="example", error="invalid_request"'

    def test_scopes_are_sorted(self) -> None:
        """Should list required scopes in a stable order."""
        challenge = build_challenge(
            ChallengeError.INSUFFICIENT_SCOPE, scopes={"write", "admin", "read"}
        )

        assert challenge == 'Bearer error="insufficient_scope", scope="admin read write"'

    def test_empty_scopes_are_omitted(self) -> None:
        """Should not render an empty scope parameter."""
        assert "scope=" not in build_challenge(
            ChallengeError.INSUFFICIENT_SCOPE, scopes=[]
        )

    def test_quotes_are_escaped(self) -> None:
        """Should escape quotes and backslashes inside values."""
        challenge = build_challenge(ChallengeError.INVALID_REQUEST, realm='a"b\\c')

        assert challenge.startswith('Bearer realm="a\\"b\\\\c"')

    def test_server_error_code(self) -> None:
        """Should accept the server_error code."""
        assert build_challenge(SERVER_ERROR) == 'Bearer error="server_error"'


class TestDefaultChallenge:
    """Tests for default_challenge."""

    def test_minimal_challenge(self) -> None:
        """Should return the generic invalid_request challenge."""
        assert default_challenge() == 'Bearer error="invalid_request"'

    def test_with_realm(self) -> None:
        """Should include the realm when given."""
        assert default_challenge("api") == 'Bearer realm="api", error="invalid_request"'
