"""Private skills: auth config, license checks, gated content and tarball safety."""

import io
import json
import tarfile
from pathlib import Path

import httpx
import pytest

from skill_dock.config import settings
from skill_dock.core.remote import (
    cleanup_extracted_directories,
    extract_tarball,
    fetch_private_skill_content,
    is_private_skill,
    parse_auth_config,
    verify_license,
)
from skill_dock.errors import UnsafeArchiveError

AUTH = {
    "verify": {
        "endpoint": "https://skills.example.com/verify",
        "method": "POST",
        "tokenHeader": "Authorization",
        "tokenPrefix": "Bearer ",
    },
    "content": {
        "endpoint": "https://skills.example.com/content",
        "method": "GET",
        "tokenHeader": "X-License",
        "tokenPrefix": "",
    },
}


def _tarball(entries: dict[str, bytes], symlinks: dict[str, str] | None = None) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, data in entries.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
        for name, target in (symlinks or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tar.addfile(info)
    return buf.getvalue()


def test_is_private_skill():
    assert is_private_skill({"access": "private"})
    assert not is_private_skill({"access": "public"})
    assert not is_private_skill({})
    assert not is_private_skill(None)


def test_parse_auth_config():
    config = parse_auth_config(json.dumps(AUTH))
    assert config.verify.token_header == "Authorization"
    assert config.verify.token_prefix == "Bearer "
    assert config.content.method == "GET"

    only_verify = parse_auth_config(json.dumps({"verify": AUTH["verify"]}))
    assert only_verify.content is None


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.pop("verify"),
        lambda d: d["verify"].update(endpoint="http://insecure.example.com"),
        lambda d: d["verify"].update(method="DELETE"),
        lambda d: d["verify"].pop("tokenHeader"),
        lambda d: d["content"].update(endpoint="ftp://x"),
    ],
)
def test_parse_auth_config_rejects(mutate):
    data = json.loads(json.dumps(AUTH))
    mutate(data)
    assert parse_auth_config(json.dumps(data)) is None


def test_parse_auth_config_rejects_garbage():
    assert parse_auth_config("not json") is None
    assert parse_auth_config("[]") is None


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def test_verify_license_sends_token():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["method"] = request.method
        return httpx.Response(200, json={"valid": True, "expiresAt": "2030-01-01"})

    config = parse_auth_config(json.dumps(AUTH))
    async with _client(handler) as client:
        result = await verify_license(config, "KEY", client)

    assert result.valid
    assert result.expires_at == "2030-01-01"
    assert seen == {"auth": "Bearer KEY", "method": "POST"}


@pytest.mark.parametrize(
    "status, body, error",
    [
        (401, None, "Invalid or expired license key"),
        (403, None, "Invalid or expired license key"),
        (429, None, "Too many attempts. Try again later."),
        (500, None, "Verification failed with status 500"),
        (200, {"valid": False, "error": "Revoked"}, "Revoked"),
    ],
)
async def test_verify_license_failures(status, body, error):
    config = parse_auth_config(json.dumps(AUTH))
    async with _client(lambda r: httpx.Response(status, json=body)) as client:
        result = await verify_license(config, "KEY", client)
    assert not result.valid
    assert result.error == error


async def test_verify_license_retries_transport_errors(monkeypatch):
    monkeypatch.setattr(settings, "http_backoff", 0)
    attempts = []

    def handler(request):
        attempts.append(1)
        if len(attempts) < 3:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200)

    config = parse_auth_config(json.dumps(AUTH))
    async with _client(handler) as client:
        result = await verify_license(config, "KEY", client)

    assert result.valid
    assert len(attempts) == 3


async def test_verify_license_gives_up(monkeypatch):
    monkeypatch.setattr(settings, "http_backoff", 0)

    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    config = parse_auth_config(json.dumps(AUTH))
    async with _client(handler) as client:
        result = await verify_license(config, "KEY", client)
    assert result.error == "Unable to reach verification server"


async def test_fetch_plain_content():
    config = parse_auth_config(json.dumps(AUTH))

    def handler(request):
        assert request.headers["X-License"] == "KEY"
        return httpx.Response(200, text="---\nname: paid\ndescription: d\n---\n")

    async with _client(handler) as client:
        result = await fetch_private_skill_content(config, "KEY", client)
    assert result.success
    assert result.content.startswith("---")


async def test_fetch_tarball_content():
    config = parse_auth_config(json.dumps(AUTH))
    data = _tarball({"SKILL.md": b"---\nname: paid\ndescription: d\n---\n", "ref/a.md": b"a"})

    async with _client(lambda r: httpx.Response(200, content=data)) as client:
        result = await fetch_private_skill_content(config, "KEY", client)

    try:
        assert result.success
        assert (Path(result.extracted_path) / "ref" / "a.md").read_text() == "a"
    finally:
        cleanup_extracted_directories()
    assert not Path(result.extracted_path).exists()


async def test_fetch_without_content_endpoint():
    config = parse_auth_config(json.dumps({"verify": AUTH["verify"]}))
    result = await fetch_private_skill_content(config, "KEY")
    assert not result.success


def test_extract_tarball_drops_unsafe_members(tmp_path):
    data = _tarball(
        {
            "SKILL.md": b"ok",
            "../escape.txt": b"bad",
            "/abs.txt": b"bad",
            "nested/../../escape2.txt": b"bad",
        },
        symlinks={"link": "/etc/passwd"},
    )

    try:
        dest = extract_tarball(data)
        names = sorted(p.relative_to(dest).as_posix() for p in dest.rglob("*"))
        assert names == ["SKILL.md"]
        assert not (dest.parent / "escape.txt").exists()
    finally:
        cleanup_extracted_directories()


def test_extract_tarball_rejects_garbage():
    try:
        with pytest.raises(UnsafeArchiveError):
            extract_tarball(b"\x1f\x8bnot really gzip")
    finally:
        cleanup_extracted_directories()


async def test_verify_license_without_retries_tries_once(monkeypatch):
    monkeypatch.setattr(settings, "http_max_retries", 0)
    attempts = []

    def handler(request):
        attempts.append(1)
        raise httpx.ConnectError("refused", request=request)

    config = parse_auth_config(json.dumps(AUTH))
    async with _client(handler) as client:
        result = await verify_license(config, "KEY", client)

    assert len(attempts) == 1
    assert result.error == "Unable to reach verification server"
