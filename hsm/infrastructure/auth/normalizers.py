"""Per-provider mapping of profile payloads onto ExternalProfile.

Each normalizer is a pure function of the decoded payload. Providers without
an entry fall back to ``normalize_generic``.
"""

from collections.abc import Callable
from typing import Any

from hsm.domain.auth.model.profile import ExternalProfile
from hsm.domain.auth.model.value import OAuthProvider

Normalizer = Callable[[dict[str, Any]], ExternalProfile]


def _str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def normalize_oidc(data: dict[str, Any]) -> ExternalProfile:
    """Standard OpenID Connect userinfo claims (Google)."""
    return ExternalProfile(
        external_id=_str(data.get("sub")) or "",
        email=_str(data.get("email")),
        display_name=_str(data.get("name")),
        given_name=_str(data.get("given_name")),
        family_name=_str(data.get("family_name")),
        avatar_url=_str(data.get("picture")),
        raw_payload=data,
    )


def normalize_linkedin(data: dict[str, Any]) -> ExternalProfile:
    profile = normalize_oidc(data)
    sub = profile.external_id
    return ExternalProfile(
        external_id=sub,
        email=profile.email,
        display_name=profile.display_name,
        given_name=profile.given_name,
        family_name=profile.family_name,
        avatar_url=profile.avatar_url,
        profile_url=f"https://linkedin.com/in/{sub}" if sub else None,
        raw_payload=data,
    )


def normalize_facebook(data: dict[str, Any]) -> ExternalProfile:
    external_id = _str(data.get("id")) or ""
    picture = data.get("picture")
    avatar_url = None
    if isinstance(picture, dict):
        avatar_url = _str((picture.get("data") or {}).get("url"))

    return ExternalProfile(
        external_id=external_id,
        email=_str(data.get("email")),
        display_name=_str(data.get("name")),
        given_name=_str(data.get("first_name")),
        family_name=_str(data.get("last_name")),
        avatar_url=avatar_url,
        profile_url=f"https://facebook.com/{external_id}" if external_id else None,
        raw_payload=data,
    )


def normalize_twitter(data: dict[str, Any]) -> ExternalProfile:
    # v2 API wraps the user in a "data" envelope
    user = data.get("data") if isinstance(data.get("data"), dict) else data
    username = _str(user.get("username"))

    return ExternalProfile(
        external_id=_str(user.get("id")) or "",
        email=None,  # Not exposed by the users/me endpoint
        display_name=_str(user.get("name")),
        avatar_url=_str(user.get("profile_image_url")),
        profile_url=f"https://twitter.com/{username}" if username else None,
        raw_payload=data,
    )


def normalize_github(data: dict[str, Any]) -> ExternalProfile:
    return ExternalProfile(
        external_id=_str(data.get("id")) or "",  # Numeric on the wire
        email=_str(data.get("email")),
        display_name=_str(data.get("name")) or _str(data.get("login")),
        avatar_url=_str(data.get("avatar_url")),
        profile_url=_str(data.get("html_url")),
        raw_payload=data,
    )


def normalize_microsoft(data: dict[str, Any]) -> ExternalProfile:
    return ExternalProfile(
        external_id=_str(data.get("id")) or "",
        email=_str(data.get("mail")) or _str(data.get("userPrincipalName")),
        display_name=_str(data.get("displayName")),
        given_name=_str(data.get("givenName")),
        family_name=_str(data.get("surname")),
        raw_payload=data,
    )


def _apple_verified_email(claims: dict[str, Any]) -> str | None:
    # Apple sends email_verified as a bool or as the string "true"/"false"
    if str(claims.get("email_verified", "true")).lower() == "false":
        return None
    return _str(claims.get("email"))


def normalize_apple(data: dict[str, Any]) -> ExternalProfile:
    """Verified id_token claims, plus names from the first-login ``user`` form field.

    Apple only sends the user's name once, as JSON alongside the callback:
    ``{"name": {"firstName": ..., "lastName": ...}, "email": ...}``. That field
    is unsigned browser input, so only its name is read; the email comes from
    the signed claims alone.
    """
    user = data.get("user") if isinstance(data.get("user"), dict) else {}
    name = user.get("name") if isinstance(user.get("name"), dict) else {}
    given_name = _str(name.get("firstName"))
    family_name = _str(name.get("lastName"))
    display_name = " ".join(p for p in (given_name, family_name) if p) or None

    return ExternalProfile(
        external_id=_str(data.get("sub")) or "",
        email=_apple_verified_email(data),
        display_name=display_name,
        given_name=given_name,
        family_name=family_name,
        raw_payload=data,
    )


def normalize_generic(data: dict[str, Any]) -> ExternalProfile:
    return ExternalProfile(
        external_id=_str(data.get("id")) or _str(data.get("sub")) or "",
        email=_str(data.get("email")),
        display_name=_str(data.get("name")),
        raw_payload=data,
    )


NORMALIZERS: dict[OAuthProvider, Normalizer] = {
    OAuthProvider.GOOGLE: normalize_oidc,
    OAuthProvider.FACEBOOK: normalize_facebook,
    OAuthProvider.LINKEDIN: normalize_linkedin,
    OAuthProvider.APPLE: normalize_apple,
    OAuthProvider.TWITTER: normalize_twitter,
    OAuthProvider.GITHUB: normalize_github,
    OAuthProvider.MICROSOFT: normalize_microsoft,
}


def normalize(provider: OAuthProvider, data: dict[str, Any]) -> ExternalProfile:
    """Map a provider payload onto the canonical profile."""
    return NORMALIZERS.get(provider, normalize_generic)(data)
