# Copyright (c) 2025 Trae AI. All rights reserved.

import re
import datetime
import logging
from typing import Iterable, Optional, Tuple
from .models import MediaSource

logger = logging.getLogger(__name__)

_DELIMITER = re.compile(r"[\[\]() _,.-]+")
_OPTIONALS = re.compile(r"\[(.*?)\]")
_RESOLUTION = re.compile(r"\W\d{3,4}x\d{3,4}", re.IGNORECASE)
_FPS = [re.compile(r"\W" + fps, re.IGNORECASE) for fps in (r"24\.000", r"23\.976", r"23\.98", r"24\.00")]
_EXTENSION = re.compile(r"\.\w{2,4}$")
_IMDB_ID = re.compile(r"(tt\d{7,8})")
_IMDB_URL = re.compile(r"imdb\.com/title/\?(\d{7})", re.IGNORECASE)
_VIDEO_3D = re.compile(r"[ ._(\[-]3D(?:[ ._)\]-]|$)", re.IGNORECASE)
_ROMAN = {"I", "II", "III", "IV", "V", "VI", "VII", "VIII", "IX", "X"}

STOPWORDS = {
    "1080", "1080i", "1080p", "2160p", "3d", "480i", "480p", "576i", "576p", "720", "720i", "720p", "ac3", "ac3ld",
    "ac3md", "aoe", "bd5", "bdrip", "blueray", "bluray", "brrip", "cam", "cd1", "cd2", "cd3", "cd4", "cd5", "cd6",
    "cd7", "cd8", "cd9", "complete", "custom", "dc", "disc1", "disc2", "disc3", "disc4", "disc5", "disc6", "disc7",
    "disc8", "disc9", "divx", "divx5", "dl", "docu", "dsr", "dsrip", "dts", "dtv", "dubbed", "dutch", "dvd", "dvd1",
    "dvd2", "dvd3", "dvd4", "dvd5", "dvd6", "dvd7", "dvd8", "dvd9", "dvdivx", "dvdrip", "dvdscr", "dvdscreener",
    "emule", "etm", "extended", "fragment", "fs", "fps", "german", "h264", "h265", "hddvd", "hdrip", "hdtv",
    "hdtvrip", "hevc", "hrhd", "hrhdtv", "ind", "internal", "ld", "limited", "md", "multisubs", "nfo", "nfofix",
    "ntg", "ntsc", "ogg", "ogm", "pal", "pdtv", "proper", "pso", "r3", "r5", "read", "repack", "rerip", "retail",
    "roor", "rs", "rsvcd", "screener", "se", "subbed", "svcd", "swedish", "tc", "telecine", "telesync", "ts",
    "uncut", "unrated", "vcf", "webdl", "webrip", "workprint", "ws", "www", "x264", "x265", "xf", "xvid", "xvidvd",
    "xxx",
}

# order matters: the first source with a matching token wins
_MEDIA_SOURCES = [
    (MediaSource.BLURAY, re.compile(r"(?:^|[\W_])(bluray|blueray|bdrip|brrip|bd25|bd50|bdmv|uhd)(?:[\W_]|$)", re.IGNORECASE)),
    (MediaSource.HDDVD, re.compile(r"(?:^|[\W_])(hddvd|hvdvd_ts)(?:[\W_]|$)", re.IGNORECASE)),
    (MediaSource.DVD, re.compile(r"(?:^|[\W_])(dvd\d?|dvdrip|dvdscr|video_ts|dvd5|dvd9)(?:[\W_]|$)", re.IGNORECASE)),
    (MediaSource.TV, re.compile(r"(?:^|[\W_])(hdtv|pdtv|dsr|dtv|dvb|tvrip|hdtvrip)(?:[\W_]|$)", re.IGNORECASE)),
    (MediaSource.VHS, re.compile(r"(?:^|[\W_])(vhs|vhsrip)(?:[\W_]|$)", re.IGNORECASE)),
    (MediaSource.WEB, re.compile(r"(?:^|[\W_])(web-?dl|webrip|web)(?:[\W_]|$)", re.IGNORECASE)),
]


def is_valid_imdb_id(value: str) -> bool:
    return bool(value) and re.fullmatch(r"tt\d{7,8}", value) is not None


def detect_imdb_id(text: str) -> str:
    """
    Finds an IMDb id (tt1234567) inside any text, or returns "".
    """
    if not text:
        return ""
    match = _IMDB_ID.search(text)
    if match:
        return match.group(1)
    match = _IMDB_URL.search(text)
    if match:
        return "tt" + match.group(1)
    return ""


def _is_year(token: str, current_year: int) -> bool:
    return re.fullmatch(r"\d{4}", token) is not None and 1800 < int(token) < current_year + 5


def _capitalize(word: str) -> str:
    if word.upper() in _ROMAN:
        return word.upper()
    return word.capitalize()


def detect_clean_title_and_year(name: str, bad_words: Iterable[str] = ()) -> Tuple[str, Optional[int]]:
    """
    Cleans a directory or file name into a (title, year) pair.

    Tokens are split on common delimiters; everything from the first stopword
    (but never before the third token) is dropped, bad words are removed and a
    trailing 4-digit year is separated out.
    """
    if not name:
        return "", None

    bad = {w.lower() for w in bad_words}
    current_year = datetime.date.today().year

    fname = _EXTENSION.sub("", name, count=1)
    fname = _RESOLUTION.sub(" ", fname, count=1)
    for fps in _FPS:
        fname = fps.sub(" ", fname, count=1)

    optionals = []
    for match in _OPTIONALS.finditer(fname):
        optionals.extend(t for t in _DELIMITER.split(match.group(1)) if t)
    fname_no_opt = _OPTIONALS.sub("", fname)

    tokens = [t for t in _DELIMITER.split(fname_no_opt) if t]
    if not tokens:
        tokens = list(optionals)

    first_stopword = len(tokens)
    for i, token in enumerate(tokens):
        if token.lower() in STOPWORDS:
            tokens[i] = ""
            if 2 <= i < first_stopword:
                first_stopword = i
        elif is_valid_imdb_id(token):
            tokens[i] = ""

    year = None
    for i in range(len(tokens) - 1, 0, -1):
        if _is_year(tokens[i], current_year):
            year = int(tokens[i])
            tokens[i] = ""
            break
    if year is None:
        for token in optionals:
            if _is_year(token, current_year):
                year = int(token)

    words = [_capitalize(t) for t in tokens[:first_stopword] if t and t.lower() not in bad]
    title = " ".join(words).strip()
    if not title:
        # started with a bad word
        title = fname_no_opt.strip() or fname.strip()
    logger.debug("Cleaned %r -> %r (%s)", name, title, year)
    return title, year


def parse_media_source(text: str) -> MediaSource:
    if not text:
        return MediaSource.UNKNOWN
    for source, pattern in _MEDIA_SOURCES:
        if pattern.search(text):
            return source
    return MediaSource.UNKNOWN


def is_3d(name: str) -> bool:
    return bool(name) and _VIDEO_3D.search(name) is not None
