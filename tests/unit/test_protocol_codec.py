"""Tests for the protocol 1.1 codec: hashing, request builders and response parsing."""

import pytest

from audioscrobbler.config import ScrobblerConfig
from audioscrobbler.domain.errors import (
    ClientObsoleteError,
    ParseFailureError,
    ProtocolRejectError,
    ProtocolUnrecognizedError,
)
from audioscrobbler.infrastructure.connectors.protocol import (
    ResponseKind,
    build_handshake_url,
    build_radio_handshake_url,
    build_submission_body,
    parse_response,
    password_hash,
    session_hash,
)


class TestHashing:
    """Credential digests must match the server byte for byte."""

    def test_password_hash_is_lowercase_md5_hex(self):
        digest = password_hash("secret")
        assert digest == "5ebe2294ecd0e0f08eab7690d2a6ee69"
        assert len(digest) == 32
        assert digest == digest.lower()

    def test_session_hash_matches_reference(self):
        assert session_hash("secret", "abc123") == "7840a038e45863d5ef110af0145f1b06"

    def test_password_hash_encodes_utf8(self):
        assert password_hash("pässwörd") == "12841e4ba5e37d2fbfc78458c6714ade"


class TestRequestBuilders:
    """Test handshake URLs and submission bodies."""

    def test_handshake_url(self):
        url = build_handshake_url(ScrobblerConfig(), "Some User")
        assert url == (
            "http://post.audioscrobbler.com/?hs=true&p=1.1&c=mpm&v=0.1&u=Some+User"
        )

    def test_radio_handshake_url_lowercases_username(self):
        url = build_radio_handshake_url(ScrobblerConfig(), "Some User", "secret")
        assert url.startswith("http://ws.audioscrobbler.com/radio/handshake.php?")
        assert "version=1.0.6" in url
        assert "platform=win32" in url
        assert "username=some+user" in url
        assert "passwordmd5=5ebe2294ecd0e0f08eab7690d2a6ee69" in url
        assert url.endswith("&language=en")

    def test_submission_body_prefix(self):
        body = build_submission_body("a user", "secret", "abc123", "&a[0]=X")
        assert body == f"u=a+user&s={session_hash('secret', 'abc123')}&a[0]=X"


class TestHandshakeResponses:
    """Test parsing of main handshake responses."""

    def test_uptodate_extracts_two_stripped_fields(self):
        response = parse_response(["UPTODATE", "  abc123 ", " http://post/submit  "])

        assert response.kind == ResponseKind.UPTODATE
        assert response.is_success
        assert response.challenge == "abc123"
        assert response.submit_url == "http://post/submit"

    def test_uptodate_with_missing_lines_is_parse_failure(self):
        response = parse_response(["UPTODATE", "abc123"])

        assert response.malformed
        assert not response.is_success
        assert response.challenge == ""
        with pytest.raises(ParseFailureError):
            response.raise_for_status()

    def test_uptodate_with_blank_challenge_is_parse_failure(self):
        response = parse_response(["UPTODATE", "   ", "http://post/submit"])
        assert response.malformed

    def test_leading_blank_lines_are_skipped(self):
        response = parse_response(["", "  ", "UPTODATE", "c", "u"])
        assert response.kind == ResponseKind.UPTODATE
        assert response.challenge == "c"

    def test_uptodate_is_not_mistaken_for_update(self):
        assert parse_response(["UPTODATE", "c", "u"]).kind == ResponseKind.UPTODATE
        assert parse_response(["UPDATE http://example/new"]).kind == ResponseKind.UPDATE

    def test_update_raises_client_obsolete(self):
        response = parse_response(["UPDATE http://example/new"])
        assert response.message == "http://example/new"
        with pytest.raises(ClientObsoleteError):
            response.raise_for_status()

    @pytest.mark.parametrize("kind", ["BADUSER", "BADAUTH"])
    def test_credential_rejections(self, kind):
        response = parse_response([kind])
        assert response.is_rejection
        with pytest.raises(ProtocolRejectError) as exc_info:
            response.raise_for_status()
        assert exc_info.value.kind == kind

    def test_unknown_first_line_keeps_remaining_lines(self):
        response = parse_response(["<html>", "<body>oops</body>"])

        assert response.kind == ResponseKind.UNKNOWN
        with pytest.raises(ProtocolUnrecognizedError) as exc_info:
            response.raise_for_status()
        assert exc_info.value.first_line == "<html>"
        assert exc_info.value.remaining == ["<body>oops</body>"]

    def test_empty_body_is_parse_failure(self):
        response = parse_response([])
        assert response.kind == ResponseKind.EMPTY
        with pytest.raises(ParseFailureError):
            response.raise_for_status()


class TestFailedResponses:
    """Test FAILED reasons and the plugin bug hint."""

    @pytest.mark.parametrize(
        "line,reason",
        [
            ("FAILED Bad time", "Bad time"),
            ("FAILED: Bad time", "Bad time"),
            ("FAILED", ""),
        ],
    )
    def test_reason_follows_prefix(self, line, reason):
        response = parse_response([line])
        assert response.kind == ResponseKind.FAILED
        assert response.message == reason

    def test_plugin_bug_detected(self):
        response = parse_response(
            ["FAILED Plugin bug: Not all request variables are set"]
        )
        assert response.is_plugin_bug

    def test_ordinary_failure_is_not_plugin_bug(self):
        assert not parse_response(["FAILED Bad time"]).is_plugin_bug


class TestIntervalScan:
    """INTERVAL lines are honoured whichever branch resolved."""

    def test_interval_after_failed(self):
        response = parse_response(["FAILED Plugin bug: x", "INTERVAL 45"])
        assert response.interval == 45

    def test_interval_after_uptodate(self):
        response = parse_response(["UPTODATE", "c", "u", "INTERVAL 60"])
        assert response.interval == 60
        assert response.is_success

    def test_interval_after_ok(self):
        assert parse_response(["OK", "INTERVAL 1"]).interval == 1

    def test_last_numeric_interval_wins(self):
        response = parse_response(["OK", "INTERVAL 40", "INTERVAL abc", "INTERVAL 50"])
        assert response.interval == 50

    def test_non_numeric_interval_ignored(self):
        assert parse_response(["OK", "INTERVAL soon"]).interval is None

    def test_no_interval(self):
        assert parse_response(["OK"]).interval is None


class TestRadioResponses:
    """Test parsing of radio handshake bodies."""

    def test_radio_session(self):
        response = parse_response(
            ["session=0123abcd", "stream_url=http://stream.example/x", "subscriber=1"]
        )

        assert response.kind == ResponseKind.RADIO_SESSION
        assert response.is_success
        assert response.radio.session_id == "0123abcd"
        assert response.radio.stream_url == "http://stream.example/x"
        assert response.radio.subscriber is True

    def test_subscriber_flag_other_values_are_false(self):
        response = parse_response(["session=id", "stream_url=http://s", "subscriber=0"])
        assert response.radio.subscriber is False

    def test_extra_lines_ignored(self):
        response = parse_response(
            ["session=id", "stream_url=http://s", "subscriber=1", "base_url=x"]
        )
        assert response.radio.session_id == "id"

    @pytest.mark.parametrize(
        "lines",
        [
            ["session=FAILED"],
            ["session=id", "stream_url=failed", "subscriber=0"],
        ],
    )
    def test_failed_anywhere_is_radio_failure(self, lines):
        response = parse_response(lines)
        assert response.kind == ResponseKind.RADIO_FAILED
        assert not response.is_success

    @pytest.mark.parametrize(
        "lines",
        [
            ["session="],
            ["session=id", "stream_url=http://s"],
            ["session=id", "stream=http://s", "subscriber=1"],
        ],
    )
    def test_incomplete_radio_body_is_parse_failure(self, lines):
        response = parse_response(lines)
        assert response.malformed
        with pytest.raises(ParseFailureError):
            response.raise_for_status()


class TestSubmissionResponses:
    """Test submission replies."""

    def test_ok(self):
        response = parse_response(["OK"])
        assert response.kind == ResponseKind.OK
        assert response.is_success
        assert response.raise_for_status() is response
