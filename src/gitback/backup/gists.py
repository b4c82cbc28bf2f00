"""Gist exporter - writes one gist's metadata and files to disk.

Layout:
    <root>/<gist_id>/gist.json      full API metadata, indented
    <root>/<gist_id>/<filename>     one file per gist file

Only a failure to create the gist directory or to write its metadata fails
the gist; a single file that cannot be fetched or written is logged and
skipped.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

import httpx

from gitback.logging import bind_item
from gitback.schemas import GistDescriptor, GistFileRef

from .exceptions import ContentFetchError, WriteError
from .results import ExportAction, ItemKind

METADATA_FILENAME = "gist.json"


def resolve_file_path(gist_dir: Path, filename: str) -> Path | None:
    """Map a gist filename to a path inside ``gist_dir``.

    Returns:
        The destination path, or None if the name is absolute, empty, or
        would climb out of the gist directory.
    """
    relative = PurePosixPath(filename.replace("\\", "/"))
    if relative.is_absolute() or not relative.parts or ".." in relative.parts:
        return None
    return gist_dir.joinpath(*relative.parts)


class GistExporter:
    """Exports a single gist into its own directory.

    Usage:
        async with httpx.AsyncClient(timeout=30, follow_redirects=True) as http:
            exporter = GistExporter(http)
            await exporter.export(gist, output_dir / "gists")
    """

    def __init__(self, http: httpx.AsyncClient) -> None:
        """Initialize the exporter.

        Args:
            http: Client used to download raw file content
        """
        self._http = http

    async def export(self, gist: GistDescriptor, destination_root: Path) -> ExportAction:
        """Back up one gist under ``destination_root/<gist_id>``.

        Returns:
            ExportAction.EXPORTED

        Raises:
            WriteError: If the gist has no id, or its directory or metadata
                cannot be written
        """
        display = gist.display_name
        if not gist.id:
            raise WriteError(display, "gist has no id")

        log = bind_item(ItemKind.GIST.value, display)
        gist_dir = destination_root / gist.id

        try:
            gist_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(display, f"cannot create {gist_dir}: {e}") from e

        try:
            metadata = gist.to_metadata_json()
            (gist_dir / METADATA_FILENAME).write_text(metadata, encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            raise WriteError(display, f"cannot write {METADATA_FILENAME}: {e}") from e

        written = 0
        for key, ref in gist.files.items():
            filename = ref.filename
            if not filename:
                log.info("Skipping gist file {!r}: no filename", key)
                continue

            path = resolve_file_path(gist_dir, filename)
            if path is None:
                log.warning("Skipping gist file {!r}: path escapes the gist directory", filename)
                continue
            if path == gist_dir / METADATA_FILENAME:
                log.warning(
                    "Skipping gist file {!r}: it would overwrite the gist metadata", filename
                )
                continue

            try:
                content = await self.fetch_content(ref, display)
            except ContentFetchError as e:
                log.warning("Skipping gist file {}: {}", filename, e.reason)
                continue
            if content is None:
                log.info("Skipping gist file {}: no content or raw URL", filename)
                continue

            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(content)
            except OSError as e:
                log.warning("Failed to write gist file {}: {}", filename, e)
                continue
            written += 1

        log.info("Exported gist {} ({}/{} files)", display, written, len(gist.files))
        return ExportAction.EXPORTED

    async def fetch_content(self, ref: GistFileRef, item: str) -> bytes | None:
        """Get a file's bytes from inline content or its raw URL.

        Inline content is used unless GitHub marked it truncated.

        Returns:
            File bytes, or None when the file has neither content nor URL

        Raises:
            ContentFetchError: On a transport error or non-2xx response
        """
        if ref.content is not None and not (ref.truncated and ref.raw_url):
            return ref.content.encode("utf-8")
        if not ref.raw_url:
            return None

        try:
            response = await self._http.get(ref.raw_url)
        except httpx.HTTPError as e:
            raise ContentFetchError(item, f"request for {ref.raw_url} failed: {e}") from e
        if not response.is_success:
            raise ContentFetchError(
                item, f"GET {ref.raw_url} returned HTTP {response.status_code}"
            )
        return response.content
