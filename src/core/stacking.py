# Copyright (c) 2025 Trae AI. All rights reserved.

import re

# <cd/dvd/part/pt/disk/disc> <1-9>
_STACKING_NUMBERED = re.compile(r"(.*?)[ _.-]+((?:cd|dvd|p(?:ar)?t|dis[ck])[ _.-]*[1-9])(\.[^.]+)$", re.IGNORECASE)
# <cd/dvd/part/pt/disk/disc> <a-d>
_STACKING_LETTERED = re.compile(r"(.*?)[ _.-]+((?:cd|dvd|p(?:ar)?t|dis[ck])[ _.-]*[a-d])(\.[^.]+)$", re.IGNORECASE)
# movie-a.avi, no space delimiter
_STACKING_LETTER_ONLY = re.compile(r"(.*?)[_.-]+([a-d])(\.[^.]+)$", re.IGNORECASE)
# movie-1of2.avi, movie (1 of 2).avi
_STACKING_OF = re.compile(r"(.*?)[ (_.-]+([1-9][ .]?of[ .]?[1-9])[ )_-]?(\.[^.]+)$", re.IGNORECASE)

_FILE_PATTERNS = (_STACKING_NUMBERED, _STACKING_LETTERED, _STACKING_LETTER_ONLY, _STACKING_OF)

# must be the last part of the folder name
_FOLDER_STACKING = re.compile(r"(.*?)[ _.-]*((?:cd|dvd|p(?:ar)?t|dis[ck])[ _.-]*[1-9])$", re.IGNORECASE)


def get_stacking_marker(filename: str) -> str:
    """
    Returns the stacking marker of a filename (with extension), e.g. "cd1", or "".
    """
    if not filename:
        return ""
    for pattern in _FILE_PATTERNS:
        match = pattern.match(filename)
        if match:
            return match.group(2)
    return ""


def clean_stacking_markers(filename: str) -> str:
    """
    Returns the filename (with extension) without its stacking marker.
    """
    if not filename:
        return filename
    for pattern in _FILE_PATTERNS:
        match = pattern.match(filename)
        if match:
            return match.group(1) + match.group(3)
    return filename


def get_folder_stacking_marker(folder_name: str) -> str:
    if not folder_name:
        return ""
    match = _FOLDER_STACKING.match(folder_name)
    return match.group(2) if match else ""


def clean_folder_stacking_markers(folder_name: str) -> str:
    if not folder_name:
        return folder_name
    match = _FOLDER_STACKING.match(folder_name)
    return match.group(1) if match else folder_name


def is_pure_folder_stacking_marker(folder_name: str) -> bool:
    """
    True for folders named solely by a stacking marker ("CD1", "Part 2").
    """
    return bool(get_folder_stacking_marker(folder_name)) and not clean_folder_stacking_markers(folder_name).strip()
