"""
Object Storage Client

Provider-agnostic operations over S3-compatible and Azure Blob stores. Every
call goes through the backend's /storage/<connection> endpoints; the client
never talks to a provider directly, so S3 and Azure share one code path.

Keys are never rooted: leading slashes are stripped from every key and
prefix before use.
"""

import logging
from typing import BinaryIO, List, Optional, Tuple, Union

from .cancellation import CancellationToken
from .client import GraniteClient, connection_path
from .config import settings
from .exceptions import GraniteError, InvalidPrefixError, OperationCancelledError
from .models import Container, ListObjectsResult, ObjectDetails, StorageProvider

logger = logging.getLogger(__name__)


# =============================================================================
# Path helpers
# =============================================================================

def normalize_key(path: str) -> str:
    """Strip leading slashes so keys and prefixes are never rooted."""
    return (path or "").lstrip("/")


def parse_storage_path(path: str) -> Tuple[str, str]:
    """
    Split "container/a/b" into ("container", "a/b/").

    The prefix is empty for a bare container and otherwise ends with "/".
    """
    parts = [p for p in (path or "").split("/") if p]
    if not parts:
        return "", ""
    prefix = "/".join(parts[1:])
    return parts[0], f"{prefix}/" if prefix else ""


def build_storage_path(container: str, prefix: str = "") -> str:
    if not prefix:
        return container
    return f"{container}/{normalize_key(prefix)}".rstrip("/")


def get_parent_path(path: str) -> str:
    parts = [p for p in (path or "").split("/") if p]
    return "/".join(parts[:-1])


def get_display_name(key: str) -> str:
    """Last path segment of a key; folders keep their name without the slash."""
    parts = [p for p in (key or "").split("/") if p]
    return parts[-1] if parts else key


def get_file_extension(key: str) -> str:
    """Lower-cased extension without the dot; dotfiles have none."""
    name = get_display_name(key)
    dot = name.rfind(".")
    return name[dot + 1:].lower() if dot > 0 else ""


_SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_file_size(size: int) -> str:
    """Human-readable size in powers of 1024, e.g. 1536 -> '1.5 KB'."""
    if not size or size <= 0:
        return "0 B"
    value = float(size)
    exponent = 0
    while value >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[exponent]}"


# =============================================================================
# Storage client
# =============================================================================

class StorageClient:
    """
    Storage operations for one saved storage connection.

    Example:
        async with GraniteClient() as client:
            storage = StorageClient(client, "my-s3")
            page = await storage.list_objects("photos-bucket", prefix="2024/")
            for entry in page.entries():
                print(entry.name, entry.is_folder)

            deleted = await storage.delete_prefix("photos-bucket", "2023/")
    """

    def __init__(
        self,
        client: GraniteClient,
        connection_id: str,
        provider: Union[StorageProvider, str] = None
    ):
        """
        Args:
            client: Shared backend client
            connection_id: Saved storage connection
            provider: Optional provider of that connection (validated, used in logs)
        """
        self.client = client
        self.connection_id = connection_id
        self.provider = StorageProvider.parse(provider) if provider is not None else None

    def _path(self, *parts: str) -> str:
        return connection_path("storage", self.connection_id, *parts)

    @property
    def _label(self) -> str:
        if self.provider is not None:
            return f"{self.connection_id} ({self.provider.value})"
        return self.connection_id

    # =========================================================================
    # Containers
    # =========================================================================

    async def list_containers(self, cancel_token: Optional[CancellationToken] = None) -> List[Container]:
        data = await self.client.post(self._path("containers"), json={}, cancel_token=cancel_token)
        return [Container.from_dict(c) for c in (data or [])]

    async def create_container(self, name: str, cancel_token: Optional[CancellationToken] = None) -> None:
        await self.client.post(self._path("containers", "create"), json={"name": name}, cancel_token=cancel_token)
        logger.info(f"Created container {name} on {self._label}")

    async def test_connection(self) -> bool:
        """True when the backend can list containers with this connection."""
        try:
            await self.list_containers()
            return True
        except GraniteError as e:
            logger.debug(f"Storage connection test failed for {self._label}: {e}")
            return False

    # =========================================================================
    # Objects
    # =========================================================================

    async def list_objects(
        self,
        container: str,
        prefix: str = "",
        delimiter: str = "/",
        max_keys: int = None,
        continuation_token: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> ListObjectsResult:
        """
        List one page of objects.

        Args:
            container: Bucket or container name
            prefix: Folder to list (leading slashes are stripped)
            delimiter: "/" for one folder level, "" for a flat recursive listing
            max_keys: Page size (default: settings.list_page_size)
            continuation_token: Token of the previous truncated page
        """
        payload = {
            "container": container,
            "prefix": normalize_key(prefix),
            "delimiter": delimiter,
            "maxKeys": max_keys or settings.list_page_size,
        }
        if continuation_token:
            payload["continuationToken"] = continuation_token

        data = await self.client.post(self._path("objects"), json=payload, cancel_token=cancel_token)
        return ListObjectsResult.from_dict(data or {})

    async def get_object_details(
        self,
        container: str,
        key: str,
        cancel_token: Optional[CancellationToken] = None
    ) -> ObjectDetails:
        data = await self.client.post(
            self._path("object", "details"),
            json={"container": container, "key": normalize_key(key)},
            cancel_token=cancel_token
        )
        return ObjectDetails.from_dict(data)

    async def get_presigned_url(
        self,
        container: str,
        key: str,
        expires_in: int = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> str:
        """Time-limited download URL for an object (expires_in in seconds)."""
        data = await self.client.post(
            self._path("object", "presign"),
            json={
                "container": container,
                "key": normalize_key(key),
                "expiresIn": expires_in or settings.presign_expires_in,
            },
            cancel_token=cancel_token
        )
        return data["url"]

    async def upload_object(
        self,
        container: str,
        key: str,
        data: Union[bytes, BinaryIO],
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> None:
        """Upload bytes or a binary file object as a multipart form."""
        key = normalize_key(key)
        files = {
            "file": (
                filename or get_display_name(key),
                data,
                content_type or "application/octet-stream",
            )
        }
        await self.client.post_form(
            self._path("upload"),
            data={"container": container, "key": key},
            files=files,
            cancel_token=cancel_token
        )
        logger.debug(f"Uploaded {container}/{key} to {self._label}")

    async def delete_objects(
        self,
        container: str,
        keys: List[str],
        cancel_token: Optional[CancellationToken] = None
    ) -> None:
        """Delete a batch of objects. An empty batch is a no-op."""
        keys = [normalize_key(k) for k in keys]
        if not keys:
            return
        await self.client.post(
            self._path("object", "delete"),
            json={"container": container, "keys": keys},
            cancel_token=cancel_token
        )
        logger.debug(f"Deleted {len(keys)} object(s) from {container} on {self._label}")

    async def delete_prefix(
        self,
        container: str,
        prefix: str,
        page_size: int = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> int:
        """
        Delete every object under a prefix ("delete folder").

        Lists flat (empty delimiter) pages and deletes each page before
        fetching the next. Iterations are strictly sequential. The
        continuation token of each page is passed to the next listing; when
        a truncated page carries no token the same prefix is listed again,
        since the keys just deleted are gone.

        Returns:
            Number of keys deleted

        Raises:
            InvalidPrefixError: If prefix is empty (that would empty the container)
            OperationCancelledError: If cancel_token fires between iterations
        """
        prefix = normalize_key(prefix)
        if not prefix:
            raise InvalidPrefixError("Refusing to delete an empty prefix")

        deleted = 0
        token = None
        pages = 0

        while True:
            if cancel_token is not None and cancel_token.cancelled:
                logger.info(f"Prefix deletion of {container}/{prefix} cancelled after {deleted} object(s)")
                raise OperationCancelledError(f"Prefix deletion cancelled after {deleted} object(s)")

            page = await self.list_objects(
                container,
                prefix=prefix,
                delimiter="",
                max_keys=page_size,
                continuation_token=token,
                cancel_token=cancel_token
            )
            pages += 1

            keys = page.keys()
            if keys:
                await self.delete_objects(container, keys, cancel_token=cancel_token)
                deleted += len(keys)

            if not page.is_truncated:
                break
            if page.continuation_token:
                token = page.continuation_token
            elif keys:
                token = None
            else:
                logger.warning(f"Empty truncated page without a token for {container}/{prefix}; stopping")
                break

        logger.info(f"Deleted {deleted} object(s) under {container}/{prefix} in {pages} page(s)")
        return deleted
