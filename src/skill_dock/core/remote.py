"""Private skills: SKILL.auth.json parsing, license checks, gated content fetch."""

import asyncio
import io
import json
import logging
import shutil
import tarfile
import tempfile
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from skill_dock.config import settings
from skill_dock.errors import UnsafeArchiveError
from skill_dock.models import (
    AuthEndpoint,
    FetchContentResult,
    LicenseVerificationResult,
    SkillAuthConfig,
)

logger = logging.getLogger("skill-dock.remote")

GZIP_MAGIC = b"\x1f\x8b"

# Temp dirs created from fetched content, removed by cleanup_extracted_directories()
_extracted_dirs: set[Path] = set()


def is_private_skill(metadata: dict | None) -> bool:
    """A skill is private when its frontmatter says access: private."""
    return bool(metadata) and metadata.get("access") == "private"


def _validate_endpoint(obj: object) -> AuthEndpoint | None:
    if not isinstance(obj, dict):
        return None
    try:
        endpoint = AuthEndpoint.model_validate(obj)
    except ValidationError:
        return None
    if not endpoint.endpoint or not endpoint.token_header:
        return None
    if urlparse(endpoint.endpoint).scheme != "https":
        return None
    return endpoint


def parse_auth_config(content: str) -> SkillAuthConfig | None:
    """Parse SKILL.auth.json. Returns None if anything is invalid."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    verify = _validate_endpoint(data.get("verify"))
    if verify is None:
        return None

    content_endpoint = None
    if data.get("content") is not None:
        content_endpoint = _validate_endpoint(data["content"])
        if content_endpoint is None:
            return None

    return SkillAuthConfig(verify=verify, content=content_endpoint)


def _auth_headers(endpoint: AuthEndpoint, license_key: str) -> dict[str, str]:
    headers = {endpoint.token_header: f"{endpoint.token_prefix}{license_key}"}
    if endpoint.method == "POST":
        headers["Content-Type"] = "application/json"
    return headers


async def _request_with_retry(
    client: httpx.AsyncClient,
    endpoint: AuthEndpoint,
    headers: dict[str, str],
) -> httpx.Response:
    """Send a request, retrying transport errors with exponential backoff.

    Timeouts are not retried.
    """
    for attempt in range(settings.http_max_retries):
        try:
            return await client.request(endpoint.method, endpoint.endpoint, headers=headers)
        except httpx.TimeoutException:
            raise
        except httpx.TransportError as e:
            delay = settings.http_backoff * (2**attempt)
            logger.debug("Request to %s failed (%s), retrying in %.1fs", endpoint.endpoint, e, delay)
            await asyncio.sleep(delay)
    return await client.request(endpoint.method, endpoint.endpoint, headers=headers)


def _client(client: httpx.AsyncClient | None) -> httpx.AsyncClient:
    return client or httpx.AsyncClient(timeout=settings.http_timeout, follow_redirects=True)


async def verify_license(
    auth_config: SkillAuthConfig,
    license_key: str,
    client: httpx.AsyncClient | None = None,
) -> LicenseVerificationResult:
    """Check a license key against the skill author's verify endpoint."""
    endpoint = auth_config.verify
    http = _client(client)
    try:
        response = await _request_with_retry(http, endpoint, _auth_headers(endpoint, license_key))
    except httpx.TimeoutException:
        return LicenseVerificationResult(valid=False, error="Verification request timed out")
    except httpx.HTTPError as e:
        logger.warning("License verification failed: %s", e)
        return LicenseVerificationResult(valid=False, error="Unable to reach verification server")
    finally:
        if client is None:
            await http.aclose()

    if response.status_code in (401, 403):
        return LicenseVerificationResult(valid=False, error="Invalid or expired license key")
    if response.status_code == 429:
        return LicenseVerificationResult(valid=False, error="Too many attempts. Try again later.")
    if not response.is_success:
        return LicenseVerificationResult(
            valid=False, error=f"Verification failed with status {response.status_code}"
        )

    try:
        data = response.json()
    except ValueError:
        # 2xx without a JSON body still counts as valid
        return LicenseVerificationResult(valid=True)

    if not isinstance(data, dict):
        return LicenseVerificationResult(valid=True)
    if data.get("valid") is False:
        error = data.get("error")
        return LicenseVerificationResult(
            valid=False, error=error if isinstance(error, str) else "License validation failed"
        )
    expires_at = data.get("expiresAt")
    return LicenseVerificationResult(valid=True, expires_at=expires_at if isinstance(expires_at, str) else None)


def _safe_members(tar: tarfile.TarFile, dest: Path) -> list[tarfile.TarInfo]:
    """Regular files and directories whose paths stay inside dest."""
    safe: list[tarfile.TarInfo] = []
    dest_resolved = dest.resolve()
    for member in tar.getmembers():
        name = member.name
        parts = PurePosixPath(name.replace("\\", "/")).parts
        if name.startswith(("/", "\\")) or (parts and parts[0].endswith(":")) or ".." in parts:
            logger.warning("Skipping unsafe archive entry: %s", name)
            continue
        if not (member.isfile() or member.isdir()):
            logger.warning("Skipping non-regular archive entry: %s", name)
            continue
        target = (dest_resolved / name).resolve()
        if target != dest_resolved and dest_resolved not in target.parents:
            logger.warning("Skipping archive entry outside destination: %s", name)
            continue
        safe.append(member)
    return safe


def extract_tarball(data: bytes) -> Path:
    """Extract a gzip tarball into a tracked temp dir and return it.

    Absolute paths, '..' escapes, links and device entries are dropped.
    """
    extract_dir = Path(tempfile.mkdtemp(prefix="skill-content-"))
    _extracted_dirs.add(extract_dir)

    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            members = _safe_members(tar, extract_dir)
            tar.extractall(extract_dir, members=members, filter="data")
    except (tarfile.TarError, OSError) as e:
        raise UnsafeArchiveError(f"Failed to extract skill tarball: {e}") from e

    logger.info("Extracted skill tarball -> %s", extract_dir)
    return extract_dir


def materialize_skill_content(content: str) -> Path:
    """Write plain SKILL.md content into a tracked temp skill dir."""
    skill_dir = Path(tempfile.mkdtemp(prefix="skill-content-"))
    _extracted_dirs.add(skill_dir)
    (skill_dir / settings.manifest_file).write_text(content, encoding="utf-8")
    return skill_dir


def cleanup_extracted_directories() -> None:
    """Remove every temp dir created by extract_tarball/materialize_skill_content."""
    for directory in list(_extracted_dirs):
        shutil.rmtree(directory, ignore_errors=True)
    _extracted_dirs.clear()


async def fetch_private_skill_content(
    auth_config: SkillAuthConfig,
    license_key: str,
    client: httpx.AsyncClient | None = None,
) -> FetchContentResult:
    """Fetch gated skill content: a gzip tarball or plain SKILL.md text."""
    endpoint = auth_config.content
    if endpoint is None:
        return FetchContentResult(success=False, error="No content endpoint configured")

    http = _client(client)
    try:
        response = await _request_with_retry(http, endpoint, _auth_headers(endpoint, license_key))
    except httpx.TimeoutException:
        return FetchContentResult(success=False, error="Content fetch request timed out")
    except httpx.HTTPError as e:
        logger.warning("Content fetch failed: %s", e)
        return FetchContentResult(success=False, error="Unable to reach content server")
    finally:
        if client is None:
            await http.aclose()

    if response.status_code in (401, 403):
        return FetchContentResult(success=False, error="Invalid or expired license key")
    if response.status_code == 429:
        return FetchContentResult(success=False, error="Too many attempts. Try again later.")
    if not response.is_success:
        return FetchContentResult(
            success=False, error=f"Failed to fetch content (status {response.status_code})"
        )

    data = response.content
    if not data:
        return FetchContentResult(success=False, error="Content endpoint returned empty response")

    if data[:2] == GZIP_MAGIC:
        try:
            return FetchContentResult(success=True, extracted_path=str(extract_tarball(data)))
        except UnsafeArchiveError as e:
            logger.warning("%s", e)
            return FetchContentResult(success=False, error="Failed to extract skill tarball")

    text = data.decode("utf-8", errors="replace")
    if not text.strip():
        return FetchContentResult(success=False, error="Content endpoint returned empty response")
    return FetchContentResult(success=True, content=text)
