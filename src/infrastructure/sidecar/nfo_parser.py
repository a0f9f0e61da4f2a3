# Copyright (c) 2025 Trae AI. All rights reserved.

import re
import logging
from pathlib import Path
from typing import List, Optional
from xml.etree import ElementTree as ET
from src.core.models import SidecarFields
from src.core.naming import detect_imdb_id, is_valid_imdb_id

logger = logging.getLogger(__name__)


def _text(element, tag: str) -> str:
    value = element.findtext(tag)
    return value.strip() if value else ""


def _int(value: str) -> Optional[int]:
    digits = re.sub(r"[^0-9]", "", value or "")
    return int(digits) if digits else None


def _float(value: str) -> Optional[float]:
    try:
        return float(value.replace(",", ".")) if value else None
    except ValueError:
        return None


def _year(value: str) -> Optional[int]:
    match = re.search(r"\d{4}", value or "")
    return int(match.group(0)) if match else None


class BaseNfoParser:
    """
    Shared reading of the fields both NFO dialects agree on.
    """

    def _load(self, path: Path) -> Optional[ET.Element]:
        try:
            root = ET.parse(path).getroot()
        except (ET.ParseError, OSError) as e:
            logger.debug("Could not parse NFO %s: %s", path, e)
            return None
        if root.tag != "movie":
            return None
        return root

    def _common(self, root: ET.Element) -> SidecarFields:
        return SidecarFields(
            title=_text(root, "title"),
            original_title=_text(root, "originaltitle"),
            sort_title=_text(root, "sorttitle"),
            year=_year(_text(root, "year")) or _year(_text(root, "premiered")),
            plot=_text(root, "plot") or _text(root, "outline"),
            tagline=_text(root, "tagline"),
            rating=_float(_text(root, "rating")),
            runtime=_int(_text(root, "runtime")),
        )

    def parse(self, path: Path) -> Optional[SidecarFields]:
        root = self._load(path)
        if root is None:
            return None
        fields = self._common(root)
        self._read_dialect(root, fields)
        return fields

    def _read_dialect(self, root: ET.Element, fields: SidecarFields):
        raise NotImplementedError


class KodiNfoParser(BaseNfoParser):
    """
    Kodi / XBMC style: <uniqueid type="imdb">, <id>, <set><name>, repeated <genre>.
    """

    def _load(self, path: Path) -> Optional[ET.Element]:
        root = super()._load(path)
        if root is None:
            return None
        # MediaPortal wrappers without any Kodi id element
        if root.find("uniqueid") is None and any(root.find(tag) is not None for tag in ("ids", "sets", "genres")):
            return None
        return root

    def _read_dialect(self, root: ET.Element, fields: SidecarFields):
        for uniqueid in root.findall("uniqueid"):
            kind = (uniqueid.get("type") or "").lower()
            value = (uniqueid.text or "").strip()
            if kind == "imdb" and is_valid_imdb_id(value):
                fields.imdb_id = value
            elif kind == "tmdb":
                fields.tmdb_id = _int(value)

        if not fields.imdb_id:
            fields.imdb_id = detect_imdb_id(_text(root, "id")) or detect_imdb_id(_text(root, "imdb"))
        if not fields.tmdb_id:
            fields.tmdb_id = _int(_text(root, "tmdbid"))

        set_element = root.find("set")
        if set_element is not None:
            name = set_element.findtext("name")
            fields.collection = (name if name is not None else set_element.text or "").strip()

        # newer files carry <ratings><rating default="true"><value>
        if fields.rating is None:
            for rating in root.findall("ratings/rating"):
                if rating.get("default") == "true" or fields.rating is None:
                    fields.rating = _float(_text(rating, "value"))

        fields.genres = [g.text.strip() for g in root.findall("genre") if g.text and g.text.strip()]


class MediaPortalNfoParser(BaseNfoParser):
    """
    MediaPortal style: <imdb>, <ids><entry><key/><value/></entry></ids>, <sets><set>, <genres><genre>.
    """

    def _read_dialect(self, root: ET.Element, fields: SidecarFields):
        fields.imdb_id = detect_imdb_id(_text(root, "imdb"))

        for entry in root.findall("ids/entry"):
            key = _text(entry, "key").lower()
            value = _text(entry, "value")
            if key in ("imdb", "imdbid") and not fields.imdb_id:
                fields.imdb_id = detect_imdb_id(value)
            elif key in ("tmdb", "tmdbid"):
                fields.tmdb_id = _int(value)

        sets: List[str] = [s.text.strip() for s in root.findall("sets/set") if s.text and s.text.strip()]
        if sets:
            fields.collection = sets[0]

        genres = root.findall("genres/genre") or root.findall("genre")
        fields.genres = [g.text.strip() for g in genres if g.text and g.text.strip()]
