# Copyright (c) 2025 Trae AI. All rights reserved.

import json
import logging
from pathlib import Path
from typing import Optional, Tuple
from src.core.models import SidecarFields
from src.core.naming import detect_imdb_id

logger = logging.getLogger(__name__)

MAGIC = 0x08

TAG_TITLE1 = 0x12
TAG_TITLE2 = 0x1A
TAG_TITLE3 = 0x22
TAG_YEAR = 0x28
TAG_RELEASE_DATE = 0x32
TAG_SUMMARY = 0x42
TAG_META_JSON = 0x4A
TAG_GROUP1 = 0x52
TAG_RATING = 0x60

TAG1_GENRE = 0x1A


class VsmetaFormatError(ValueError):
    pass


class _Reader:
    """
    Cursor over a protobuf-like byte stream of varint keys and values.
    """

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def eof(self) -> bool:
        return self.pos >= len(self.data)

    def read_u8(self) -> int:
        if self.eof():
            raise VsmetaFormatError("unexpected end of data")
        value = self.data[self.pos]
        self.pos += 1
        return value

    def read_varint(self) -> int:
        out, shift = 0, 0
        while True:
            byte = self.read_u8()
            out |= (byte & 0x7F) << shift
            shift += 7
            if not byte & 0x80 or self.eof():
                return out

    def read_bytes(self) -> bytes:
        size = self.read_varint()
        if self.pos + size > len(self.data):
            raise VsmetaFormatError("length %d exceeds data" % size)
        chunk = self.data[self.pos:self.pos + size]
        self.pos += size
        return chunk

    def read_string(self) -> str:
        return self.read_bytes().decode("utf-8", errors="replace")

    def skip(self, key: int):
        wire_type = key & 0x07
        if wire_type == 0:
            self.read_varint()
        elif wire_type == 2:
            self.read_bytes()
        else:
            raise VsmetaFormatError("unsupported wire type %d" % wire_type)

    def fields(self):
        while not self.eof():
            yield self.read_varint()


class VsmetaParser:
    """
    Reads Synology Video Station .vsmeta files.
    """

    def parse(self, path: Path) -> Optional[SidecarFields]:
        try:
            data = Path(path).read_bytes()
            return self.parse_bytes(data)
        except (OSError, VsmetaFormatError) as e:
            logger.debug("Could not parse vsmeta %s: %s", path, e)
            return None

    def parse_bytes(self, data: bytes) -> SidecarFields:
        reader = _Reader(data)
        magic, version = reader.read_u8(), reader.read_u8()
        if magic != MAGIC:
            raise VsmetaFormatError("not a vsmeta file")
        logger.debug("| vsmeta version %d", version)

        fields = SidecarFields()
        for key in reader.fields():
            if key == TAG_TITLE1:
                fields.title = reader.read_string().strip()
            elif key == TAG_TITLE2:
                fields.original_title = reader.read_string().strip()
            elif key == TAG_TITLE3:
                fields.tagline = reader.read_string().strip()
            elif key == TAG_YEAR:
                year = reader.read_varint()
                fields.year = year or None
            elif key == TAG_RELEASE_DATE:
                released = reader.read_string()
                if fields.year is None and released[:4].isdigit():
                    fields.year = int(released[:4])
            elif key == TAG_SUMMARY:
                fields.plot = reader.read_string().strip()
            elif key == TAG_META_JSON:
                self._read_json(reader.read_string(), fields)
            elif key == TAG_GROUP1:
                fields.genres.extend(self._read_genres(reader.read_bytes()))
            elif key == TAG_RATING:
                rating = reader.read_varint()
                # negative values mean "no rating"
                if rating < 2 ** 31:
                    fields.rating = rating / 10
            else:
                reader.skip(key)
        return fields

    @staticmethod
    def _read_genres(chunk: bytes):
        group = _Reader(chunk)
        genres = []
        for key in group.fields():
            if key == TAG1_GENRE:
                genres.append(group.read_string())
            else:
                group.skip(key)
        return genres

    @staticmethod
    def _read_json(raw: str, fields: SidecarFields):
        if not raw or raw == "null":
            return
        try:
            document = json.loads(raw)
        except ValueError as e:
            logger.debug("| invalid vsmeta json: %s", e)
            return
        if not isinstance(document, dict):
            return
        for name, section in document.items():
            if not name.startswith("com.synology") or not isinstance(section, dict):
                continue
            reference = section.get("reference")
            if not isinstance(reference, dict):
                reference = {}
            imdb_id = detect_imdb_id(str(reference.get("imdb", "")))
            if imdb_id:
                fields.imdb_id = imdb_id
            tmdb_id, ok = _to_int(reference.get("themoviedb"))
            if ok:
                fields.tmdb_id = tmdb_id
            collection = section.get("collection_id")
            if isinstance(collection, dict) and collection.get("themoviedb") and fields.title:
                fields.collection = fields.title + "_col"


def _to_int(value) -> Tuple[Optional[int], bool]:
    try:
        return int(value), True
    except (TypeError, ValueError):
        return None, False
