"""
Trusted boundary: wraps the host's charset tables as core.Engine objects.

The table-driven codepages delegate entirely to Python's codec registry;
nothing here re-implements a charset table.  The modified UTF-7 of
RFC 3501 §5.1.3 (IMAP mailbox names), which the standard library does not
ship, comes from imapclient.

Engines are plain objects created on demand.  There are no module-level
instances: callers pick an ordered list through make_engines().
"""

import binascii
import codecs
import logging
import re

from imapclient import imap_utf7

from core import DeencodeError, Engine, MixedWidthEngine, REPLACEMENT_CHARACTER

logger = logging.getLogger(__name__)


class UnknownEngineError(DeencodeError):
    """No engine is registered under the requested key."""


class CodecEngine(Engine):
    """
    An engine backed by a registered Python codec.

    encode() returns None as soon as one character is unmappable; decode()
    substitutes U+FFFD for every byte the table leaves undefined.
    """

    def __init__(self, name, codec):
        # fail at construction, not on first use
        self.codec = codecs.lookup(codec).name
        self.name = name

    def encode(self, string):
        try:
            return string.encode(self.codec)
        except UnicodeEncodeError as e:
            logger.debug("%s cannot encode %r at %d", self.name, e.object[e.start:e.end], e.start)
            return None

    def decode(self, data):
        return bytes(data).decode(self.codec, errors="replace")


def utf8_engine():
    return CodecEngine("UTF-8", "utf-8")


# ═══════════════════════════════════════════════════════════════════════════
# Modified UTF-7 (IMAP)
# ═══════════════════════════════════════════════════════════════════════════
#
#   "&"          ─→ "&-"
#   0x20..0x7E   ─→ itself
#   anything else, in runs ─→ "&" + base64(UTF-16BE(run)) + "-"
#
# with "," in place of "/" and no "=" padding.  Examples:
#
#   "é"  → "&AOk-"       (00 E9)
#   "€"  → "&IKw-"       (20 AC)
#   "😀" → "&2D3eAA-"    (D8 3D DE 00)
#
# The codec itself is imapclient's.  Its decoder raises on a malformed
# shift, so decoding goes one shift at a time.
# ═══════════════════════════════════════════════════════════════════════════

_SHIFT = re.compile(r"(&[^-]*-?)")


def imap_utf7_encode(string):
    """Encode *string* as modified UTF-7, or None if it holds a lone surrogate."""
    try:
        return imap_utf7.encode(string)
    except UnicodeEncodeError:
        return None


def imap_utf7_decode(data):
    """
    Decode modified UTF-7.  Total: the bytes are first read as lossy UTF-8,
    a malformed shift becomes a single U+FFFD, and an unterminated shift
    runs to the end of the input.
    """
    text = bytes(data).decode("utf-8", errors="replace")
    out = []
    for i, part in enumerate(_SHIFT.split(text)):
        if i % 2 == 0:
            out.append(part)
            continue
        try:
            out.append(imap_utf7.decode(part.encode("utf-8")))
        except (binascii.Error, UnicodeDecodeError):
            out.append(REPLACEMENT_CHARACTER)
    return "".join(out)


class ImapUtf7Engine(Engine):
    name = "UTF-7"

    def encode(self, string):
        return imap_utf7_encode(string)

    def decode(self, data):
        return imap_utf7_decode(data)


# ═══════════════════════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════════════════════

ENGINE_FACTORIES = {
    "utf8": utf8_engine,
    "latin1": lambda: CodecEngine("Latin-1 / Codepage 1252", "cp1252"),
    "latin2": lambda: CodecEngine("Latin-2 / Codepage 1250", "cp1250"),
    "cp1253": lambda: CodecEngine("Codepage 1253", "cp1253"),
    "cp1254": lambda: CodecEngine("ISO 8859-9 / Codepage 1254", "cp1254"),
    "cp1255": lambda: CodecEngine("ISO 8859-8 / Codepage 1255", "cp1255"),
    "mixed816be": lambda: MixedWidthEngine("big"),
    "mixed816le": lambda: MixedWidthEngine("little"),
    "utf7": ImapUtf7Engine,
}

DEFAULT_ENGINE_KEYS = (
    "utf8", "latin1", "latin2", "cp1253", "mixed816be", "mixed816le", "utf7",
)


def make_engine(key):
    try:
        factory = ENGINE_FACTORIES[key]
    except KeyError:
        known = ", ".join(sorted(ENGINE_FACTORIES))
        raise UnknownEngineError(f"unknown engine {key!r} (known: {known})") from None
    return factory()


def make_engines(keys):
    """Build engines for *keys*, keeping their order."""
    engines = [make_engine(key) for key in keys]
    logger.debug("engines: %s", ", ".join(e.get_name() for e in engines))
    return engines


def default_engines():
    return make_engines(DEFAULT_ENGINE_KEYS)
