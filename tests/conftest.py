import subprocess
from datetime import datetime, timedelta, timezone

import pytest

from entravault.backends import dpapi, keychain
from entravault.backends.dpapi import DpapiBackend
from entravault.backends.keychain import ITEM_NOT_FOUND, KeychainBackend
from entravault.backends.obfuscated_file import ObfuscatedFileBackend
from entravault.errors import CorruptedError
from entravault.models import AuthMethod, AuthProfile
from entravault.profiles import ProfileRepository

TENANT = "72f988bf-86f1-41af-91ab-2d7cd011db47"
CLIENT = "0c8a5d9e-4f5b-4c1a-9f4e-8d6a3b2c1e0f"


class FakeSecurityCli:
    """Stands in for /usr/bin/security with an in-memory keychain."""

    def __init__(self):
        self.items = {}
        self.calls = []
        self.fail_with = None

    def __call__(self, cmd, capture_output=True, text=True, timeout=None):
        self.calls.append(cmd)
        if self.fail_with is not None:
            return subprocess.CompletedProcess(cmd, self.fail_with, "", "denied")

        action, args = cmd[1], cmd[2:]
        opts = dict(zip(args[::2], args[1::2]))
        item = (opts.get("-s"), opts.get("-a"))

        if action == "find-generic-password":
            if item not in self.items:
                return subprocess.CompletedProcess(cmd, ITEM_NOT_FOUND, "", "not found")
            return subprocess.CompletedProcess(cmd, 0, self.items[item] + "\n", "")
        if action == "delete-generic-password":
            if self.items.pop(item, None) is None:
                return subprocess.CompletedProcess(cmd, ITEM_NOT_FOUND, "", "not found")
            return subprocess.CompletedProcess(cmd, 0, "", "")
        if action == "add-generic-password":
            self.items[item] = opts["-w"]
            return subprocess.CompletedProcess(cmd, 0, "", "")
        raise AssertionError(f"unexpected security call: {cmd}")


class FakeDpapi:
    """Reversible stand-in for CryptProtectData, bound to one 'user'."""

    MARKER = b"DPAPI:"

    def protect(self, data):
        return self.MARKER + bytes(reversed(data))

    def unprotect(self, data):
        if not data.startswith(self.MARKER):
            raise CorruptedError("DPAPI could not decrypt value: The data is invalid.")
        return bytes(reversed(data[len(self.MARKER):]))


@pytest.fixture
def fake_security(monkeypatch):
    cli = FakeSecurityCli()
    monkeypatch.setattr(keychain.subprocess, "run", cli)
    return cli


@pytest.fixture
def fake_dpapi(monkeypatch):
    fake = FakeDpapi()
    monkeypatch.setattr(dpapi, "_protect", fake.protect)
    monkeypatch.setattr(dpapi, "_unprotect", fake.unprotect)
    return fake


@pytest.fixture(params=["obfuscated_file", "dpapi", "keychain"])
def any_backend(request, tmp_path):
    """Every backend variant, with the OS parts faked."""
    if request.param == "obfuscated_file":
        return ObfuscatedFileBackend(tmp_path / "secure")
    if request.param == "dpapi":
        request.getfixturevalue("fake_dpapi")
        return DpapiBackend(tmp_path / "secure")
    request.getfixturevalue("fake_security")
    return KeychainBackend()


@pytest.fixture
def backend(tmp_path):
    return ObfuscatedFileBackend(tmp_path / "secure")


class StepClock:
    """Deterministic clock: every call is one minute after the previous."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now = self.now + timedelta(minutes=1)
        return self.now


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def repo(tmp_path, backend, clock):
    return ProfileRepository(tmp_path / "profiles.json", backend, clock=clock)


def make_profile(name="svc", **overrides):
    fields = dict(
        name=name,
        tenant_id=TENANT,
        client_id=CLIENT,
        scopes=["https://graph.microsoft.com/.default"],
        auth_method=AuthMethod.CLIENT_SECRET,
    )
    fields.update(overrides)
    return AuthProfile(**fields)
