from __future__ import annotations

import os
from datetime import timedelta
from typing import Protocol

from comicgen import logger
from comicgen.config import Config
from comicgen.errors import ConfigurationError
from comicgen.lib.imaging import ext_for_mime
from comicgen.lib.paths import ensure_dir, make_image_name

log = logger.get_logger(__name__)

LOCAL_URL_PREFIX = "/generated"


class ImageStore(Protocol):
    def save(self, data: bytes, mime: str) -> str:
        """Persist `data` under a fresh key and return a retrievable reference."""
        ...


class LocalImageStore:
    """Write-once files in a static directory served by the API at /generated."""

    def __init__(self, directory: str, *, public_base_url: str = "", url_prefix: str = LOCAL_URL_PREFIX):
        self.directory = ensure_dir(directory)
        self.public_base_url = public_base_url.rstrip("/")
        self.url_prefix = url_prefix

    def save(self, data: bytes, mime: str) -> str:
        name = make_image_name(ext_for_mime(mime))
        path = os.path.join(self.directory, name)
        # "x" mode: an existing key is never overwritten
        with open(path, "xb") as f:
            f.write(data)
        log.debug(f"stored {len(data)} bytes at {path}")
        return f"{self.public_base_url}{self.url_prefix}/{name}"


_storage = None
def _gcs_client():
    global _storage
    if _storage is None:
        from google.cloud import storage
        _storage = storage.Client()
    return _storage

def _signing_creds(service_account: str = ""):
    import google.auth
    from google.auth import impersonated_credentials
    # Base creds from runtime (Cloud Run SA token)
    base_creds, _ = google.auth.default(scopes=["https://www.googleapis.com/auth/cloud-platform"])
    # If we already have a signer (e.g., SA key file), use it
    if getattr(base_creds, "signer", None):
        return base_creds
    # Otherwise impersonate a service account that CAN sign
    target_sa = service_account
    if not target_sa:
        try:
            from google.auth.compute_engine import _metadata
            from google.auth.transport.requests import Request
            target_sa = _metadata.get_service_account_info(Request()).get("email", "")
        except Exception as e:
            log.debug(f"no service account from metadata server: {e}")
    if not target_sa:
        raise ConfigurationError("Cannot sign URLs: set GCS_SIGNING_SERVICE_ACCOUNT to the service account email.")
    return impersonated_credentials.Credentials(
        source_credentials=base_creds,
        target_principal=target_sa,
        target_scopes=[
            "https://www.googleapis.com/auth/devstorage.read_write",
            "https://www.googleapis.com/auth/cloud-platform",
        ],
        lifetime=3600,
    )


class GCSImageStore:
    def __init__(
        self,
        bucket: str,
        *,
        signed_url_ttl: int = 3600,
        signing_service_account: str = "",
        prefix: str = "panels",
        client=None,
    ):
        if not bucket:
            raise ConfigurationError("GCS_BUCKET not configured")
        self.bucket_name = bucket
        self.signed_url_ttl = signed_url_ttl
        self.prefix = prefix.strip("/")
        self.signing_service_account = signing_service_account
        self._client = client

    def save(self, data: bytes, mime: str) -> str:
        client = self._client or _gcs_client()
        bucket = client.bucket(self.bucket_name)
        object_name = f"{self.prefix}/{make_image_name(ext_for_mime(mime))}"

        blob = bucket.blob(object_name)
        blob.cache_control = "public, max-age=31536000"
        # if_generation_match=0: create-only, never replace an existing object
        blob.upload_from_string(data, content_type=mime, if_generation_match=0)

        return blob.generate_signed_url(
            version="v4",
            expiration=timedelta(seconds=self.signed_url_ttl),
            method="GET",
            response_type=mime,
            credentials=_signing_creds(self.signing_service_account),
        )


def make_image_store(cfg: Config) -> ImageStore:
    if cfg.image_store == "gcs":
        return GCSImageStore(
            cfg.gcs_bucket,
            signed_url_ttl=cfg.signed_url_ttl,
            signing_service_account=cfg.gcs_signing_service_account,
        )
    return LocalImageStore(str(cfg.generated_dir), public_base_url=cfg.public_base_url)
