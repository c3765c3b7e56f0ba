"""Turn source locations (files, directories, zip archives, URLs) into local files."""
from __future__ import annotations

import logging
import os
import shutil
import zipfile
from pathlib import Path
from typing import Iterable, List, Optional, Sequence
from urllib.parse import unquote, urlsplit

import requests

from skipgram_gazetteer.common.config import get_cache_paths
from skipgram_gazetteer.common.errors import CacheDirectoryError, SourceError

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("http", "https")
DOWNLOAD_TIMEOUT = 120


def is_remote(location: str) -> bool:
    return urlsplit(location).scheme.lower() in REMOTE_SCHEMES


def select_cache_dir(candidates: Optional[Sequence[Path]] = None) -> Path:
    """Return the first candidate directory we can create, read and write."""

    paths = list(candidates) if candidates is not None else list(get_cache_paths().values())
    for path in paths:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError:
            logger.debug("Cache candidate not creatable", extra={"path": str(path)})
            continue
        if os.access(path, os.R_OK | os.W_OK):
            return path
    raise CacheDirectoryError(paths)


def download_source(url: str, cache_dir: Path) -> Path:
    """Fetch ``url`` into ``cache_dir`` unless a file of the same name is already there."""

    name = Path(unquote(urlsplit(url).path)).name or "download"
    target = cache_dir / name
    if target.exists():
        logger.info(f"File '{target}' exists, skipping download.")
        return target

    logger.info(f"Downloading '{url}'..")
    partial = target.with_name(target.name + ".part")
    try:
        with requests.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT) as response:
            response.raise_for_status()
            with partial.open("wb") as handle:
                for chunk in response.iter_content(chunk_size=1 << 16):
                    handle.write(chunk)
        os.replace(partial, target)
    except (requests.RequestException, OSError) as exc:
        partial.unlink(missing_ok=True)
        raise SourceError(f"Could not download '{url}': {exc}", location=url) from exc
    logger.info(f"Finished download of '{target}'.")
    return target


def extract_archive(archive: Path, cache_dir: Path) -> List[Path]:
    """Extract the files of a zip archive into ``cache_dir``; existing files are kept."""

    logger.info(f"Extracting entry files from '{archive}'..")
    extracted: List[Path] = []
    root = cache_dir.resolve()
    try:
        with zipfile.ZipFile(archive) as zf:
            for member in zf.infolist():
                if member.is_dir():
                    continue
                destination = (cache_dir / member.filename).resolve()
                if root not in destination.parents:
                    raise SourceError(
                        f"Archive member '{member.filename}' escapes the cache directory",
                        location=archive,
                    )
                extracted.append(destination)
                if destination.exists():
                    logger.info(f"File '{destination}' exists, skipping extraction.")
                    continue
                destination.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(member) as src, destination.open("wb") as dst:
                    shutil.copyfileobj(src, dst)
    except SourceError:
        raise
    except (zipfile.BadZipFile, OSError) as exc:
        raise SourceError(f"Could not extract '{archive}': {exc}", location=archive) from exc
    logger.info(f"Extracted {len(extracted)} entry files to '{cache_dir}'.")
    return extracted


def resolve_location(location: str | Path, *, cache_dir: Optional[Path] = None) -> List[Path]:
    """Return the local source files behind one location."""

    text = str(location)
    scheme = urlsplit(text).scheme.lower()
    if "://" in text and scheme not in REMOTE_SCHEMES:
        raise SourceError(
            f"Unsupported URL scheme '{scheme}' for '{location}'; use http or https",
            location=location,
        )
    if is_remote(text):
        cache_dir = cache_dir or select_cache_dir()
        path = download_source(text, cache_dir)
    else:
        path = Path(text).expanduser()

    if path.suffix.lower() == ".zip":
        if not path.is_file():
            raise SourceError(f"Archive '{path}' does not exist", location=location)
        return extract_archive(path, cache_dir or select_cache_dir())
    if path.is_dir():
        return sorted(child.absolute() for child in path.iterdir() if child.is_file())
    if path.is_file():
        return [path]
    raise SourceError(f"Source '{location}' does not exist or is not readable", location=location)


def resolve_locations(
    locations: Iterable[str | Path], *, cache_dir: Optional[Path] = None
) -> List[Path]:
    paths: List[Path] = []
    for location in locations:
        paths.extend(resolve_location(location, cache_dir=cache_dir))
    return paths


__all__ = [
    "download_source",
    "extract_archive",
    "is_remote",
    "resolve_location",
    "resolve_locations",
    "select_cache_dir",
]
