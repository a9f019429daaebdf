"""
Profile data types and their JSON form.

The JSON field names are the on-disk format of profiles.json and of the
profile section inside exported bundles. They must not change.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .errors import CorruptedError


class AuthMethod(str, Enum):
    CLIENT_SECRET = "ClientSecret"
    CERTIFICATE = "Certificate"
    PASSWORDLESS_CERTIFICATE = "PasswordlessCertificate"

    @property
    def uses_certificate(self) -> bool:
        return self in (AuthMethod.CERTIFICATE, AuthMethod.PASSWORDLESS_CERTIFICATE)


class OAuth2Flow(str, Enum):
    AUTHORIZATION_CODE = "AuthorizationCode"
    CLIENT_CREDENTIALS = "ClientCredentials"
    DEVICE_CODE = "DeviceCode"
    INTERACTIVE_BROWSER = "InteractiveBrowser"


class SecretType(str, Enum):
    """Suffix of the secret key a profile owns."""
    CLIENT_SECRET = "secret"
    CERTIFICATE_PASSWORD = "cert-password"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# 2024-01-02T03:04:05.1234567+00:00 -> keep at most 6 fractional digits
_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, tolerating 'Z' and 7-digit fractions."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(r"\1", text)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


# Lower-cased JSON keys whose values must be strings when present
_TEXT_FIELDS = (
    "tenantid", "clientid", "resource", "authmethod", "redirecturi",
    "certificatepath", "defaultflow", "createdat", "updatedat",
)


@dataclass(frozen=True)
class AuthProfile:
    """
    A named authentication configuration.

    Holds no secret values. Client secrets and certificate passwords live in
    the secret backend under keys derived from `name`.
    """
    name: str
    tenant_id: str = ""
    client_id: str = ""
    scopes: Tuple[str, ...] = ()
    resource: Optional[str] = None  # Legacy, used when scopes is empty
    auth_method: AuthMethod = AuthMethod.CLIENT_SECRET
    redirect_uri: Optional[str] = None
    certificate_path: Optional[str] = None
    cache_certificate_password: bool = False
    default_flow: Optional[OAuth2Flow] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        # Accept lists from callers; keep the stored value hashable
        if not isinstance(self.scopes, tuple):
            object.__setattr__(self, "scopes", tuple(self.scopes))
        if not isinstance(self.auth_method, AuthMethod):
            object.__setattr__(self, "auth_method", AuthMethod(self.auth_method))
        if self.default_flow is not None and not isinstance(self.default_flow, OAuth2Flow):
            object.__setattr__(self, "default_flow", OAuth2Flow(self.default_flow))

    def renamed(self, name: str) -> "AuthProfile":
        return replace(self, name=name)

    def to_dict(self) -> Dict[str, Any]:
        """Metadata form. Null fields are omitted."""
        data = {
            "name": self.name,
            "tenantId": self.tenant_id,
            "clientId": self.client_id,
            "scopes": list(self.scopes),
            "resource": self.resource,
            "authMethod": self.auth_method.value,
            "redirectUri": self.redirect_uri,
            "certificatePath": self.certificate_path,
            "cacheCertificatePassword": self.cache_certificate_password,
            "defaultFlow": self.default_flow.value if self.default_flow else None,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthProfile":
        """
        Build a profile from its metadata form.

        Keys are matched case-insensitively. Unknown keys are dropped, so a
        record can never carry extra fields back into profiles.json.

        Raises:
            CorruptedError: if the record is not a usable profile
        """
        if not isinstance(data, dict):
            raise CorruptedError(f"Profile record must be an object, got {type(data).__name__}")

        fields = {str(k).lower(): v for k, v in data.items()}
        name = fields.get("name")
        if not isinstance(name, str) or not name.strip():
            raise CorruptedError("Profile record has no name")

        scopes = fields.get("scopes")
        if scopes is None:
            scopes = []
        if not isinstance(scopes, list) or not all(isinstance(s, str) for s in scopes):
            raise CorruptedError(f"Profile '{name}' has invalid scopes")

        text = {}
        for key in _TEXT_FIELDS:
            value = fields.get(key)
            if value is not None and not isinstance(value, str):
                raise CorruptedError(f"Profile '{name}' field '{key}' must be a string")
            text[key] = value

        cache_password = fields.get("cachecertificatepassword")
        if cache_password is None:
            cache_password = False
        if not isinstance(cache_password, bool):
            raise CorruptedError(f"Profile '{name}' field 'cacheCertificatePassword' must be true or false")

        try:
            auth_method = AuthMethod(text["authmethod"] or AuthMethod.CLIENT_SECRET.value)
            flow = text["defaultflow"]
            default_flow = OAuth2Flow(flow) if flow else None
            now = utcnow()
            created_at = parse_timestamp(text["createdat"]) if text["createdat"] else now
            updated_at = parse_timestamp(text["updatedat"]) if text["updatedat"] else now
        except ValueError as e:
            raise CorruptedError(f"Profile '{name}' has an invalid field: {e}") from e

        return cls(
            name=name,
            tenant_id=text["tenantid"] or "",
            client_id=text["clientid"] or "",
            scopes=tuple(scopes),
            resource=text["resource"],
            auth_method=auth_method,
            redirect_uri=text["redirecturi"],
            certificate_path=text["certificatepath"],
            cache_certificate_password=cache_password,
            default_flow=default_flow,
            created_at=created_at,
            updated_at=updated_at,
        )
