"""Reading and writing level strings inside a game save file."""

from __future__ import annotations

import base64
import binascii
import logging
import re
import sys
import zlib
from collections.abc import Iterator
from pathlib import Path
from typing import Optional, Union
from xml.sax.saxutils import escape

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

log = logging.getLogger(__name__)

_XOR_MASK = 11

# Fixed cipher material of the save-file format used on Apple platforms.
_IOS_AES_MATERIAL = bytes(
    [
        0x69, 0x70, 0x75, 0x39, 0x54, 0x55, 0x76, 0x35, 0x34, 0x79, 0x76, 0x5D,
        0x69, 0x73, 0x46, 0x4D, 0x68, 0x35, 0x40, 0x3B, 0x74, 0x2E, 0x35, 0x77,
        0x33, 0x34, 0x45, 0x32, 0x52, 0x79, 0x40, 0x7B,
    ]
)

_GZIP_SIGNATURE = b"\x1f\x8b\x08\x00\x00\x00\x00\x00\x00\x0b"
_LEVEL_STRING_PREFIX = "H4sIAAAAAAAAC"

_NOT_INITIALIZED = (
    "Level is not initialized! Please open the level, place some objects, "
    "then save and quit to initialize the level."
)

_XML_MARKUP = re.compile(r"<!--.*?-->|<!\[CDATA\[.*?\]\]>|<[^>]*>", re.S)
_ENTITY = re.compile(r"&(#x[0-9a-fA-F]+|#[0-9]+|lt|gt|amp|apos|quot);")
_NAMED_ENTITIES = {"lt": "<", "gt": ">", "amp": "&", "apos": "'", "quot": '"'}


class LevelStringError(Exception):
    """The save file or the level string inside it could not be used."""


def xor(data: bytes, key: int) -> bytes:
    """XOR every byte of ``data`` with ``key``."""
    return bytes(b ^ key for b in data)


def _use_ios(ios: Optional[bool]) -> bool:
    return sys.platform == "darwin" if ios is None else ios


def _ecb_cipher() -> Cipher:
    return Cipher(algorithms.AES(_IOS_AES_MATERIAL), modes.ECB())


def _gunzip(data: bytes) -> bytes:
    try:
        return zlib.decompressobj(wbits=31).decompress(data)
    except zlib.error as exc:
        raise LevelStringError(str(exc)) from exc


def decrypt_savefile(data: bytes, ios: Optional[bool] = None) -> bytes:
    """Turn the bytes of a save file into its XML text bytes."""
    if _use_ios(ios):
        try:
            decryptor = _ecb_cipher().decryptor()
            padded = decryptor.update(data) + decryptor.finalize()
            unpadder = padding.PKCS7(128).unpadder()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as exc:
            raise LevelStringError(str(exc)) from exc

    replaced = (
        xor(data, _XOR_MASK)
        .decode("utf-8", errors="replace")
        .replace("-", "+")
        .replace("_", "/")
        .replace("\0", "")
    )
    try:
        compressed = base64.b64decode(replaced, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise LevelStringError(str(exc)) from exc
    return _gunzip(compressed)


def encrypt_savefile(data: bytes, ios: Optional[bool] = None) -> bytes:
    """Turn XML text bytes into the bytes of a save file."""
    if _use_ios(ios):
        padder = padding.PKCS7(128).padder()
        padded = padder.update(data) + padder.finalize()
        encryptor = _ecb_cipher().encryptor()
        return encryptor.update(padded) + encryptor.finalize()

    compressed = zlib.compress(data)
    checksum = zlib.crc32(data) & 0xFFFFFFFF
    size = len(data) & 0xFFFFFFFF
    with_signature = (
        _GZIP_SIGNATURE
        + compressed[2:-4]
        + checksum.to_bytes(4, "little")
        + size.to_bytes(4, "little")
    )
    encoded = (
        base64.b64encode(with_signature)
        .replace(b"+", b"-")
        .replace(b"/", b"_")
    )
    return xor(encoded, _XOR_MASK)


def _unescape(raw: str) -> str:
    def sub(match: re.Match[str]) -> str:
        name = match.group(1)
        if name.startswith("#x"):
            return chr(int(name[2:], 16))
        if name.startswith("#"):
            return chr(int(name[1:]))
        return _NAMED_ENTITIES[name]

    return _ENTITY.sub(sub, raw)


def _pieces(document: str) -> Iterator[tuple[bool, str]]:
    """Yield ``(is_text, raw)`` pieces; whitespace-only text is dropped."""
    pos = 0
    for match in _XML_MARKUP.finditer(document):
        yield from _text_piece(document[pos : match.start()])
        yield False, match.group(0)
        pos = match.end()
    yield from _text_piece(document[pos:])


def _text_piece(raw: str) -> Iterator[tuple[bool, str]]:
    stripped = raw.strip()
    if not stripped:
        return
    if "<" in stripped:
        raise LevelStringError(f"Malformed XML near {stripped[:40]!r}")
    yield True, stripped


def _decode_level_string(text: str) -> str:
    cleaned = text.replace("-", "+").replace("_", "/").replace("\0", "")
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        compressed = base64.b64decode(cleaned)
    except (binascii.Error, ValueError) as exc:
        raise LevelStringError(str(exc)) from exc
    try:
        return _gunzip(compressed).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise LevelStringError(str(exc)) from exc


def _encode_level_string(ls: str) -> str:
    b64 = base64.b64encode(_gzip(ls.encode("utf-8"))).decode("ascii")
    fin = b64.replace("+", "-").replace("/", "_")
    return _LEVEL_STRING_PREFIX + fin[13:]


def _gzip(data: bytes) -> bytes:
    compressor = zlib.compressobj(wbits=31)
    return compressor.compress(data) + compressor.flush()


def get_level_string(
    data: bytes, level_name: Optional[str] = None, ios: Optional[bool] = None
) -> str:
    """Return the decoded level string of a level in a save file.

    Without ``level_name`` the first level in the file is used.
    """
    document = decrypt_savefile(data, ios).decode("utf-8", errors="replace")

    level_string = ""
    k4_detected = False
    k2_detected = False
    level_detected = False

    for is_text, raw in _pieces(document):
        if not is_text:
            continue
        text = _unescape(raw)
        if text == "k2":
            k2_detected = True
            if level_detected:
                raise LevelStringError(_NOT_INITIALIZED)
        elif k2_detected:
            if level_name is None or text == level_name:
                level_detected = True
            k2_detected = False
        if level_detected and text == "k4":
            k4_detected = True
        elif k4_detected:
            level_string = text
            break

    if level_detected and not k4_detected:
        raise LevelStringError(_NOT_INITIALIZED)
    if not k4_detected:
        if level_name is not None:
            raise LevelStringError(f'Level named "{level_name}" was not found!')
        raise LevelStringError(
            "No level found! Please create a level for SPWN to operate on!"
        )

    return _decode_level_string(level_string)


def replace_level_string(
    data: bytes,
    ls: str,
    old_ls: str,
    level_name: Optional[str] = None,
    ios: Optional[bool] = None,
) -> bytes:
    """Return a save file whose level holds ``old_ls + ls``."""
    document = decrypt_savefile(data, ios).decode("utf-8", errors="replace")
    full_ls = old_ls + ls

    out: list[str] = []
    k4_detected = False
    done = False
    k2_detected = False
    level_detected = False

    for is_text, raw in _pieces(document):
        if not is_text:
            out.append(raw)
            continue
        text = _unescape(raw)
        if k4_detected and level_detected:
            out.append(escape(_encode_level_string(full_ls), {'"': "&quot;", "'": "&apos;"}))
            done = True
            k4_detected = False
        else:
            k4_detected = False
            out.append(raw)
            if k2_detected:
                if level_name is None or level_name == text:
                    level_detected = True
                    log.info("Writing to level: %s", text)
                k2_detected = False

        if not done and text == "k4":
            k4_detected = True
        if not done and text == "k2":
            k2_detected = True

    return encrypt_savefile("".join(out).encode("utf-8"), ios)


def encrypt_level_string(
    ls: str,
    old_ls: str,
    path: Union[str, Path],
    level_name: Optional[str] = None,
    ios: Optional[bool] = None,
) -> None:
    """Write ``old_ls + ls`` into a level of the save file at ``path``."""
    path = Path(path)
    updated = replace_level_string(path.read_bytes(), ls, old_ls, level_name, ios)
    path.write_bytes(updated)