"""Unit tests for provider profile normalizers."""

import pytest

from hsm.domain.auth.model.value import OAuthProvider
from hsm.infrastructure.auth.normalizers import normalize

SAMPLE_PAYLOADS = {
    OAuthProvider.GOOGLE: {
        "sub": "109876543210",
        "email": "a@x.com",
        "name": "Ada Lovelace",
        "given_name": "Ada",
        "family_name": "Lovelace",
        "picture": "https://lh3.googleusercontent.com/a",
    },
    OAuthProvider.FACEBOOK: {
        "id": "10158",
        "email": "a@x.com",
        "name": "Ada Lovelace",
        "first_name": "Ada",
        "last_name": "Lovelace",
        "picture": {"data": {"url": "https://graph.facebook.com/pic.jpg"}},
    },
    OAuthProvider.LINKEDIN: {"sub": "li-42", "email": "a@x.com", "name": "Ada Lovelace"},
    OAuthProvider.APPLE: {"sub": "001234.abcd", "email": "a@privaterelay.appleid.com"},
    OAuthProvider.TWITTER: {
        "data": {
            "id": "2244994945",
            "name": "Ada",
            "username": "ada",
            "profile_image_url": "https://pbs.twimg.com/ada.jpg",
        }
    },
    OAuthProvider.GITHUB: {
        "id": 583231,
        "login": "octocat",
        "name": None,
        "email": None,
        "avatar_url": "https://avatars.githubusercontent.com/u/583231",
        "html_url": "https://github.com/octocat",
    },
    OAuthProvider.MICROSOFT: {
        "id": "87d349ed",
        "displayName": "Ada Lovelace",
        "givenName": "Ada",
        "surname": "Lovelace",
        "mail": None,
        "userPrincipalName": "ada@contoso.onmicrosoft.com",
    },
}


@pytest.mark.parametrize("provider", list(OAuthProvider))
def test_every_provider_yields_external_id(provider: OAuthProvider):
    profile = normalize(provider, SAMPLE_PAYLOADS[provider])

    assert profile.external_id
    assert isinstance(profile.external_id, str)
    assert profile.raw_payload == SAMPLE_PAYLOADS[provider]


class TestGoogle:
    def test_standard_claims(self):
        profile = normalize(OAuthProvider.GOOGLE, SAMPLE_PAYLOADS[OAuthProvider.GOOGLE])

        assert profile.external_id == "109876543210"
        assert profile.email == "a@x.com"
        assert profile.given_name == "Ada"
        assert profile.family_name == "Lovelace"
        assert profile.avatar_url == "https://lh3.googleusercontent.com/a"


class TestFacebook:
    def test_picture_and_profile_url(self):
        profile = normalize(OAuthProvider.FACEBOOK, SAMPLE_PAYLOADS[OAuthProvider.FACEBOOK])

        assert profile.avatar_url == "https://graph.facebook.com/pic.jpg"
        assert profile.profile_url == "https://facebook.com/10158"


class TestLinkedIn:
    def test_profile_url_from_sub(self):
        profile = normalize(OAuthProvider.LINKEDIN, SAMPLE_PAYLOADS[OAuthProvider.LINKEDIN])

        assert profile.profile_url == "https://linkedin.com/in/li-42"


class TestTwitter:
    def test_unwraps_data_envelope(self):
        profile = normalize(OAuthProvider.TWITTER, SAMPLE_PAYLOADS[OAuthProvider.TWITTER])

        assert profile.external_id == "2244994945"
        assert profile.email is None
        assert profile.profile_url == "https://twitter.com/ada"
        assert profile.avatar_url == "https://pbs.twimg.com/ada.jpg"


class TestGitHub:
    def test_numeric_id_becomes_string(self):
        profile = normalize(OAuthProvider.GITHUB, SAMPLE_PAYLOADS[OAuthProvider.GITHUB])

        assert profile.external_id == "583231"

    def test_display_name_falls_back_to_login(self):
        profile = normalize(OAuthProvider.GITHUB, SAMPLE_PAYLOADS[OAuthProvider.GITHUB])

        assert profile.display_name == "octocat"
        assert profile.email is None


class TestMicrosoft:
    def test_email_falls_back_to_principal_name(self):
        profile = normalize(OAuthProvider.MICROSOFT, SAMPLE_PAYLOADS[OAuthProvider.MICROSOFT])

        assert profile.email == "ada@contoso.onmicrosoft.com"
        assert profile.display_name == "Ada Lovelace"

    def test_mail_preferred(self):
        payload = {**SAMPLE_PAYLOADS[OAuthProvider.MICROSOFT], "mail": "ada@contoso.com"}

        assert normalize(OAuthProvider.MICROSOFT, payload).email == "ada@contoso.com"


class TestApple:
    def test_claims_only(self):
        profile = normalize(OAuthProvider.APPLE, SAMPLE_PAYLOADS[OAuthProvider.APPLE])

        assert profile.external_id == "001234.abcd"
        assert profile.email == "a@privaterelay.appleid.com"
        assert profile.display_name is None

    def test_first_login_user_payload_supplies_name(self):
        payload = {
            "sub": "001234.abcd",
            "user": {"name": {"firstName": "Ada", "lastName": "Lovelace"}, "email": "a@x.com"},
        }

        profile = normalize(OAuthProvider.APPLE, payload)

        assert profile.given_name == "Ada"
        assert profile.family_name == "Lovelace"
        assert profile.display_name == "Ada Lovelace"
        assert profile.email is None
        assert profile.split_name() == ("Ada", "Lovelace")

    def test_user_payload_email_never_trusted(self):
        payload = {
            "sub": "001234.abcd",
            "email": "a@privaterelay.appleid.com",
            "user": {"email": "victim@x.com"},
        }

        assert normalize(OAuthProvider.APPLE, payload).email == "a@privaterelay.appleid.com"

    @pytest.mark.parametrize("flag", [False, "false"])
    def test_unverified_email_claim_dropped(self, flag):
        payload = {"sub": "001234.abcd", "email": "a@x.com", "email_verified": flag}

        assert normalize(OAuthProvider.APPLE, payload).email is None


class TestMissingId:
    def test_empty_payload_yields_empty_id(self):
        assert normalize(OAuthProvider.GOOGLE, {}).external_id == ""
