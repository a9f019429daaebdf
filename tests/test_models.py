import json
from datetime import datetime, timezone

import pytest

from entravault.errors import CorruptedError
from entravault.models import AuthMethod, AuthProfile, OAuth2Flow, parse_timestamp

from .conftest import CLIENT, TENANT, make_profile


class TestAuthProfileJson:
    def test_field_names_are_stable(self):
        profile = make_profile(
            redirect_uri="http://localhost",
            default_flow=OAuth2Flow.DEVICE_CODE,
            resource="https://management.azure.com",
        )
        assert set(profile.to_dict()) == {
            "name", "tenantId", "clientId", "scopes", "resource", "authMethod",
            "redirectUri", "cacheCertificatePassword", "defaultFlow",
            "createdAt", "updatedAt",
        }

    def test_nulls_are_omitted(self):
        data = make_profile().to_dict()
        assert "certificatePath" not in data
        assert "defaultFlow" not in data
        assert "redirectUri" not in data

    def test_enums_use_wire_names(self):
        data = make_profile(
            auth_method=AuthMethod.PASSWORDLESS_CERTIFICATE,
            certificate_path="/certs/app.pfx",
            default_flow=OAuth2Flow.CLIENT_CREDENTIALS,
        ).to_dict()
        assert data["authMethod"] == "PasswordlessCertificate"
        assert data["defaultFlow"] == "ClientCredentials"

    def test_from_dict_restores_profile(self):
        original = make_profile(certificate_path="/c.pfx", auth_method=AuthMethod.CERTIFICATE,
                                cache_certificate_password=True)
        restored = AuthProfile.from_dict(json.loads(json.dumps(original.to_dict())))
        assert restored == original

    def test_keys_are_case_insensitive(self):
        profile = AuthProfile.from_dict({
            "Name": "svc", "TenantId": TENANT, "ClientId": CLIENT,
            "Scopes": ["api://x/.default"], "AuthMethod": "ClientSecret",
        })
        assert profile.name == "svc"
        assert profile.tenant_id == TENANT
        assert profile.scopes == ("api://x/.default",)

    def test_unknown_keys_are_dropped(self):
        profile = AuthProfile.from_dict({"name": "svc", "clientSecret": "leaked"})
        assert "leaked" not in json.dumps(profile.to_dict())

    @pytest.mark.parametrize("record", [
        [],
        {"tenantId": TENANT},
        {"name": ""},
        {"name": "svc", "authMethod": "Kerberos"},
        {"name": "svc", "scopes": "not-a-list"},
        {"name": "svc", "createdAt": "yesterday"},
        {"name": "svc", "scopes": 5},
        {"name": "svc", "scopes": {"a": 1}},
        {"name": "svc", "tenantId": 5},
        {"name": "svc", "clientId": ["x"]},
        {"name": "svc", "resource": 1.5},
        {"name": "svc", "redirectUri": True},
        {"name": "svc", "authMethod": 3},
        {"name": "svc", "cacheCertificatePassword": "false"},
        {"name": "svc", "cacheCertificatePassword": 1},
    ])
    def test_bad_records(self, record):
        with pytest.raises(CorruptedError):
            AuthProfile.from_dict(record)

    def test_profile_is_immutable(self):
        profile = make_profile()
        with pytest.raises(AttributeError):
            profile.name = "other"

    def test_renamed_keeps_everything_else(self):
        profile = make_profile()
        renamed = profile.renamed("svc2")
        assert renamed.name == "svc2"
        assert renamed.created_at == profile.created_at
        assert renamed.client_id == profile.client_id


class TestTimestamps:
    def test_seven_digit_fraction(self):
        parsed = parse_timestamp("2024-03-05T10:11:12.1234567+00:00")
        assert parsed == datetime(2024, 3, 5, 10, 11, 12, 123456, tzinfo=timezone.utc)

    def test_zulu(self):
        assert parse_timestamp("2024-03-05T10:11:12Z").tzinfo is not None

    def test_naive_is_utc(self):
        assert parse_timestamp("2024-03-05T10:11:12").tzinfo == timezone.utc


def test_certificate_methods():
    assert AuthMethod.CERTIFICATE.uses_certificate
    assert AuthMethod.PASSWORDLESS_CERTIFICATE.uses_certificate
    assert not AuthMethod.CLIENT_SECRET.uses_certificate
