from __future__ import annotations

import tarfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

from loguru import logger

from .archive import ArchiveStream
from .download import CachedDownloader
from .errors import DownloadError
from .formats import ImportFormat
from .manifest import iter_manifest_lines, parse_manifest_line
from .paths import CategorySet
from .records import Record
from .settings import ImportSettings
from .store import StoreReader, StoreWriter
from .transcode import ImageTranscoder, TranscodeResult


@dataclass
class ImportStats:
    accepted: int = 0
    skipped: int = 0


@dataclass
class ArchiveCursor:
    """Position of an archive import: global entry id, entry within archive, archive index."""

    global_id: int = 0
    local_id: int = 0
    archive_index: int = 0

    def where(self) -> str:
        return f"{self.archive_index}/{self.local_id}/{self.global_id}"


def _describe(result: TranscodeResult) -> str:
    if result.error:
        return f"{result.status.value}: {result.error}"
    return result.status.value


def _require_file(path: Path, what: str) -> Path:
    if not path.is_file():
        raise FileNotFoundError(f"{what} not found: {path}")
    return path


class Importer:
    """Route one input to the record source for its format and fill a store.

    Sources validate their input when they are created (a bad category layout
    raises before the output store is opened) and then yield records lazily,
    skipping and logging whatever fails on the input side.
    """

    def __init__(
        self,
        transcoder: ImageTranscoder,
        downloader: CachedDownloader,
        *,
        limit: int = 0,
    ):
        self.transcoder = transcoder
        self.downloader = downloader
        self.limit = int(limit)
        self.stats = ImportStats()

    def records(self, fmt: ImportFormat, source: str | Path) -> Iterator[Record]:
        source = Path(source)
        sources: dict[ImportFormat, Callable[[], Iterator[Record]]] = {
            ImportFormat.DIR: lambda: self._category_records(CategorySet.single(source)),
            ImportFormat.SUBDIRS: lambda: self._category_records(CategorySet.scan(source)),
            ImportFormat.LIST: lambda: self._manifest_records(_require_file(source, "manifest"), fmt),
            ImportFormat.ANNO_JSON: lambda: self._manifest_records(_require_file(source, "manifest"), fmt),
            ImportFormat.ANNO_IMAGE: lambda: self._manifest_records(_require_file(source, "manifest"), fmt),
            ImportFormat.STORE: lambda: self._store_records(StoreReader(source)),
            ImportFormat.TARS: lambda: self._archive_records(_require_file(source, "archive list")),
        }
        make = sources.get(fmt)
        if make is None:
            raise ValueError(f"unsupported format: {fmt!r}")
        return make()

    def run(self, fmt: ImportFormat, source: str | Path, output: str | Path, *, compact: bool = False) -> ImportStats:
        if Path(source).resolve() == Path(output).resolve():
            raise ValueError(f"output must not overwrite the input: {output}")
        records = self.records(fmt, source)
        with StoreWriter(output, compact=compact) as writer:
            for record in records:
                writer.append(record)
                self.stats.accepted += 1
        logger.info(f"Loaded {self.stats.accepted} samples.")
        return self.stats

    def _skip(self, message: str) -> None:
        logger.error(message)
        self.stats.skipped += 1

    def _category_records(self, categories: CategorySet) -> Iterator[Record]:
        for label, paths in enumerate(categories.categories):
            for path in paths:
                result = self.transcoder.read(path)
                if not result.ok:
                    self._skip(f"not an image: {path} ({_describe(result)})")
                    continue
                yield Record(label=label, fields=(result.payload,))

    def _manifest_records(self, manifest: Path, fmt: ImportFormat) -> Iterator[Record]:
        for lineno, line in iter_manifest_lines(manifest):
            if line is None:
                self._skip(f"Bad line {manifest}:{lineno}: not valid UTF-8")
                continue
            parsed = parse_manifest_line(line)
            if parsed is None:
                self._skip(f"Bad line {manifest}:{lineno}: {line!r}")
                continue
            image_ref, value = parsed
            try:
                record = self._manifest_record(fmt, image_ref, value)
            except Exception as exc:
                self._skip(f"Fail to load {image_ref} ({manifest}:{lineno}): {exc}")
                continue
            if record is not None:
                yield record

    def _manifest_record(self, fmt: ImportFormat, image_ref: str, value: str) -> Record | None:
        path = self.downloader.download(image_ref)
        image = self.transcoder.read(path)
        if not image.ok:
            self._skip(f"not an image: {path} ({_describe(image)})")
            return None

        if fmt is ImportFormat.LIST:
            return Record(label=float(value), fields=(image.payload,))
        if fmt is ImportFormat.ANNO_JSON:
            return Record(label=0.0, fields=(image.payload, value.encode("utf-8")))
        if fmt is ImportFormat.ANNO_IMAGE:
            annotation = b""
            if value:
                second = self.transcoder.read(self.downloader.download(value))
                if second.ok:
                    annotation = second.payload
                else:
                    logger.warning(f"annotation image not decoded, storing empty payload: {value} ({_describe(second)})")
            return Record(label=0.0, fields=(image.payload, annotation))
        raise ValueError(f"not a manifest format: {fmt.value}")

    def _archive_records(self, archive_list: Path) -> Iterator[Record]:
        cursor = ArchiveCursor()
        for lineno, line in iter_manifest_lines(archive_list):
            label = cursor.archive_index
            if line is None:
                self._skip(f"Bad line {archive_list}:{lineno}: not valid UTF-8")
                cursor.archive_index += 1
                continue
            location = line.strip()
            if not location:
                continue
            cursor.local_id = 0
            try:
                stream = ArchiveStream(self.downloader.download(location))
            except (DownloadError, OSError, tarfile.TarError) as exc:
                self._skip(f"cannot open archive {label}: {location} ({exc})")
                cursor.archive_index += 1
                continue

            with stream:
                entries = iter(stream)
                while True:
                    try:
                        entry, data = next(entries)
                    except StopIteration:
                        break
                    except (OSError, tarfile.TarError) as exc:
                        self._skip(f"archive {label} unreadable after {cursor.local_id} entries: {location} ({exc})")
                        break

                    record = None
                    result = self.transcoder.transcode(data)
                    if result.ok:
                        record = Record(label=label, fields=(result.payload,), id=cursor.global_id)
                    else:
                        self._skip(f"bad file in tar {cursor.where()}: {entry.name} ({_describe(result)})")
                    cursor.local_id += 1
                    cursor.global_id += 1
                    if record is not None:
                        yield record

            logger.info(location)
            cursor.archive_index += 1

    def _store_records(self, reader: StoreReader) -> Iterator[Record]:
        for i in range(len(reader)):
            if self.limit > 0 and i >= self.limit:
                break
            record = reader.read(i)
            binary = b""
            if record.primary:
                result = self.transcoder.transcode(record.primary)
                if not result.ok:
                    self._skip(f"bad image in store record {i}: {_describe(result)}")
                    continue
                binary = result.payload

            if len(record) == 1:
                yield Record(label=record.label, fields=(binary,), label2=record.label2)
            elif len(record) == 2:
                yield Record(label=record.label, fields=(binary, record.fields[1]), label2=record.label2)


def run_import(settings: ImportSettings) -> ImportStats:
    importer = Importer(
        ImageTranscoder(settings.transcode),
        CachedDownloader(settings.cache),
        limit=settings.limit,
    )
    return importer.run(settings.format, settings.input, settings.output, compact=settings.compact)
