"""
Profile validation.

Run when a profile is about to be used, not when it is loaded, so a profile
whose certificate file has since moved can still be listed and edited.
"""

import os
import uuid
from dataclasses import dataclass, field
from typing import Callable, List

from .errors import ValidationError
from .models import AuthMethod, AuthProfile

CERTIFICATE_EXTENSIONS = (".pfx", ".p12")


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationError(self.errors)


def is_guid(value: str) -> bool:
    try:
        uuid.UUID(value.strip())
    except (ValueError, AttributeError):
        return False
    return True


def _check_tenant(profile: AuthProfile, result: ValidationResult):
    tenant = (profile.tenant_id or "").strip()
    if not tenant:
        result.errors.append("Tenant ID is required.")
    elif not is_guid(tenant) and "." not in tenant:
        result.errors.append(
            "Tenant ID must be a GUID or domain name (e.g., contoso.onmicrosoft.com)."
        )


def _check_client(profile: AuthProfile, result: ValidationResult):
    client = (profile.client_id or "").strip()
    if not client:
        result.errors.append("Client ID is required.")
    elif not is_guid(client):
        result.errors.append("Client ID must be a valid GUID.")


def _check_scopes(profile: AuthProfile, result: ValidationResult):
    has_scope = any(s.strip() for s in profile.scopes)
    has_resource = bool(profile.resource and profile.resource.strip())
    if not has_scope and not has_resource:
        result.errors.append("At least one scope or resource must be specified.")


def _check_certificate(profile: AuthProfile, result: ValidationResult):
    path = (profile.certificate_path or "").strip()
    if not path:
        result.errors.append("Certificate path is required for certificate-based authentication.")
        return
    if not os.path.isfile(path):
        result.errors.append(f"Certificate file not found: {path}")
        return
    if not path.lower().endswith(CERTIFICATE_EXTENSIONS):
        result.warnings.append(
            f"Certificate file {os.path.basename(path)} is not a .pfx or .p12 file."
        )


def validate_profile(
    profile: AuthProfile,
    has_client_secret: Callable[[str], bool],
) -> ValidationResult:
    """
    Check a profile against every rule and collect all violations.

    Args:
        profile: Profile to check
        has_client_secret: Lookup for a stored client secret by profile name;
            only called for ClientSecret profiles

    Returns:
        ValidationResult with every error found
    """
    result = ValidationResult()
    _check_tenant(profile, result)
    _check_client(profile, result)
    _check_scopes(profile, result)

    method = profile.auth_method
    if method is AuthMethod.CLIENT_SECRET:
        if not has_client_secret(profile.name):
            result.errors.append("Client secret is required for ClientSecret authentication method.")
    elif method is AuthMethod.CERTIFICATE or method is AuthMethod.PASSWORDLESS_CERTIFICATE:
        _check_certificate(profile, result)
    else:
        raise ValueError(f"No validation rules for auth method {method!r}")

    return result


def ensure_valid(profile: AuthProfile, has_client_secret: Callable[[str], bool]) -> ValidationResult:
    """Validate and raise ValidationError with the full list on failure."""
    result = validate_profile(profile, has_client_secret)
    result.raise_for_errors()
    return result
