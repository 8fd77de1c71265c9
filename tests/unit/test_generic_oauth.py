"""Tests for the generic OAuth2 connector."""

import base64
import json

import httpx
import pytest

from dashsync.social.base import (
    MissingOrganizationMembershipError,
    MissingTeamMembershipError,
    UserInfoError,
)
from dashsync.social.generic_oauth import SocialGenericOAuth, lookup_path
from dashsync.social.oauth2 import OAuth2Token
from dashsync.types import OAuthType
from tests.helpers import json_response, route_transport
from tests.mocks import make_oauth_client

API_URL = "https://sso.example.com/userinfo"


def make_connector(**kwargs: object) -> SocialGenericOAuth:
    return SocialGenericOAuth(make_oauth_client(), api_url=API_URL, **kwargs)  # type: ignore[arg-type]


def id_token(claims: dict[str, object]) -> str:
    payload = base64.urlsafe_b64encode(json.dumps(claims).encode()).decode().rstrip("=")
    return f"eyJhbGciOiJub25lIn0.{payload}.signature"


class TestLookupPath:
    """Tests for lookup_path."""

    def test_nested(self) -> None:
        assert lookup_path({"a": {"b": {"c": "x"}}}, "a.b.c") == "x"

    def test_missing(self) -> None:
        assert lookup_path({"a": {"b": 1}}, "a.c") is None

    def test_through_non_mapping(self) -> None:
        assert lookup_path({"a": "text"}, "a.b") is None


class TestExtractEmail:
    """Tests for SocialGenericOAuth.extract_email."""

    def test_email_field(self) -> None:
        assert make_connector().extract_email({"email": "a@example.com"}) == "a@example.com"

    def test_attribute_path(self) -> None:
        connector = make_connector(email_attribute_path="profile.mail")
        assert connector.extract_email({"profile": {"mail": "p@example.com"}}) == "p@example.com"

    def test_default_attribute_name(self) -> None:
        data = {"attributes": {"email:primary": ["attr@example.com", "other@example.com"]}}
        assert make_connector().extract_email(data) == "attr@example.com"

    def test_custom_attribute_name(self) -> None:
        connector = make_connector(email_attribute_name="mail")
        assert connector.extract_email({"attributes": {"mail": ["m@example.com"]}}) == "m@example.com"

    def test_upn(self) -> None:
        data = {"upn": "Jane Doe <jane@corp.example.com>"}
        assert make_connector().extract_email(data) == "jane@corp.example.com"

    def test_upn_without_address(self) -> None:
        assert make_connector().extract_email({"upn": "CORP\\jane"}) == ""

    def test_nothing_found(self) -> None:
        assert make_connector().extract_email({"name": "Jane"}) == ""


class TestIdTokenClaims:
    """Tests for SocialGenericOAuth.claims_from_id_token."""

    def test_decodes_claims_with_email(self) -> None:
        token = OAuth2Token(
            access_token="a",
            extra={"id_token": id_token({"sub": "u-1", "email": "jane@example.com"})},
        )

        claims = make_connector().claims_from_id_token(token)

        assert claims == {"sub": "u-1", "email": "jane@example.com"}

    def test_claims_without_email_ignored(self) -> None:
        token = OAuth2Token(access_token="a", extra={"id_token": id_token({"sub": "u-1"})})
        assert make_connector().claims_from_id_token(token) is None

    def test_malformed_token_ignored(self) -> None:
        token = OAuth2Token(access_token="a", extra={"id_token": "not-a-jwt"})
        assert make_connector().claims_from_id_token(token) is None

    def test_undecodable_payload_ignored(self) -> None:
        token = OAuth2Token(access_token="a", extra={"id_token": "a.!!!.c"})
        assert make_connector().claims_from_id_token(token) is None

    def test_no_id_token(self) -> None:
        assert make_connector().claims_from_id_token(OAuth2Token(access_token="a")) is None


class TestUserInfo:
    """Tests for SocialGenericOAuth.user_info."""

    def test_from_id_token_without_api_call(self) -> None:
        requests: list[httpx.Request] = []
        token = OAuth2Token(
            access_token="a",
            extra={
                "id_token": id_token(
                    {"sub": "u-1", "email": "jane@example.com", "name": "Jane Doe"}
                )
            },
        )

        with httpx.Client(transport=route_transport({}, requests)) as client:
            info = make_connector().user_info(client, token)

        assert requests == []
        assert info.id == "u-1"
        assert info.name == "Jane Doe"
        assert info.email == "jane@example.com"
        assert info.login == "jane@example.com"

    def test_from_api(self) -> None:
        transport = route_transport(
            {
                API_URL: json_response(
                    {"id": 5, "display_name": "Jane", "username": "jdoe", "email": "j@example.com"}
                )
            }
        )

        with httpx.Client(transport=transport) as client:
            info = make_connector().user_info(client, OAuth2Token(access_token="a"))

        assert info.id == "5"
        assert info.name == "Jane"
        assert info.login == "jdoe"
        assert info.email == "j@example.com"

    def test_email_from_listing(self) -> None:
        transport = route_transport(
            {
                API_URL: json_response({"login": "jdoe"}),
                f"{API_URL}/emails": json_response(
                    [{"email": "primary@example.com", "isPrimary": True}]
                ),
            }
        )

        with httpx.Client(transport=transport) as client:
            info = make_connector().user_info(client, OAuth2Token(access_token="a"))

        assert info.email == "primary@example.com"

    def test_api_failure(self) -> None:
        transport = route_transport({API_URL: httpx.Response(503, text="maintenance")})

        with httpx.Client(transport=transport) as client:
            with pytest.raises(UserInfoError, match="Error getting user info"):
                make_connector().user_info(client, OAuth2Token(access_token="a"))

    def test_api_invalid_json(self) -> None:
        transport = route_transport({API_URL: httpx.Response(200, text="<html>")})

        with httpx.Client(transport=transport) as client:
            with pytest.raises(UserInfoError, match="Error decoding user info JSON"):
                make_connector().user_info(client, OAuth2Token(access_token="a"))

    def test_team_restriction(self) -> None:
        transport = route_transport(
            {
                API_URL: json_response({"login": "jdoe", "email": "j@example.com"}),
                f"{API_URL}/teams": json_response([{"id": 3}]),
            }
        )

        with httpx.Client(transport=transport) as client:
            with pytest.raises(MissingTeamMembershipError):
                make_connector(team_ids=(4,)).user_info(client, OAuth2Token(access_token="a"))

    def test_organization_restriction(self) -> None:
        transport = route_transport(
            {
                API_URL: json_response({"login": "jdoe", "email": "j@example.com"}),
                f"{API_URL}/orgs": json_response([{"login": "other"}]),
            }
        )
        connector = make_connector(allowed_organizations=("acme",))

        with httpx.Client(transport=transport) as client:
            with pytest.raises(MissingOrganizationMembershipError):
                connector.user_info(client, OAuth2Token(access_token="a"))

    def test_type(self) -> None:
        assert make_connector().type() == OAuthType.GENERIC
