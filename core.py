"""
Pure kernel: explore encode/decode corruption trees ("mojibake").

This module has ZERO knowledge of which charsets exist on the host.
No codec registry lookups, no I/O, no global mutable state.  Every
operation is a pure function of its inputs and of the engines it is
handed.

The model:

    input ─encode(E1)→ bytes ─decode(E1)→ string ─encode(E1)→ ...
                             ─decode(E2)→ string ─encode(E2)→ ...
          ─encode(E2)→ bytes ─decode(E1)→ ...

Every path starts on an encode step and ends on a decode step, so a tree
built with ``encoding_depth = d`` has paths of exactly ``2 * d`` transform
applications.

Invariants checked at runtime:

  Shape (check_tree_shape):
      The tree strictly alternates EncodeNode → DecodeNode → EncodeNode,
      every leaf DecodeNode sits at transform depth ``2 * d``, and no
      non-leaf DecodeNode sits there.

  Uniqueness (check_deduplicated):
      After DeencodeTree.deduplicate(), no surviving string or byte output
      appears twice, the root input appears nowhere below the root, and
      every leaf flag still describes a childless node.

  Growth:
      Without deduplication the tree holds up to
      ``estimate_node_count(len(engines), d)`` nodes.  Callers must keep
      ``len(engines) * d`` small; the builder does not guard against it.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

REPLACEMENT_CHARACTER = "\ufffd"


# ═══════════════════════════════════════════════════════════════════════════
# Part 1: Errors
# ═══════════════════════════════════════════════════════════════════════════

class DeencodeError(ValueError):
    """Caller misuse, rejected before any tree work starts."""


class InvalidDepthError(DeencodeError):
    """encoding_depth is not an integer >= 1."""


class TreeTooLargeError(DeencodeError):
    """The worst-case tree size exceeds the caller's bound."""


# ═══════════════════════════════════════════════════════════════════════════
# Part 2: Engine capability
# ═══════════════════════════════════════════════════════════════════════════

class Engine(ABC):
    """
    A named, pure transform between text and bytes.

    encode() is partial: it returns None when at least one character of the
    input is outside the engine's repertoire.  The builder reads None as
    "this branch does not exist", never as a fault.

    decode() is total: every byte sequence yields a string, with
    REPLACEMENT_CHARACTER standing in for bytes the engine cannot read.
    """

    name = ""

    def get_name(self):
        return self.name

    @abstractmethod
    def encode(self, string):
        """Return the bytes for *string*, or None if not representable."""

    @abstractmethod
    def decode(self, data):
        """Return the string for *data*.  Must never raise."""

    def __repr__(self):
        return f"<{type(self).__name__} {self.get_name()!r}>"


# ═══════════════════════════════════════════════════════════════════════════
# Part 3: Mixed single-byte / double-byte transform
# ═══════════════════════════════════════════════════════════════════════════
#
# ASCII scalars travel as one byte, everything else as UTF-16 code units in
# a fixed byte order.  Nothing in the byte stream marks which is which, so
# the decoder guesses from the high bit of the current byte.  A Latin-1 "é"
# (0xE9) followed by "m" (0x6D) therefore decodes, little-endian, as the
# single unit 0x6DE9:
#
#     "Clément" ─encode(cp1252)→ 43 6C E9 6D 65 6E 74
#               ─decode(mixed LE)→ "Cl" + U+6DE9 + "ent"
#
# The scheme is not injective either way: U+0100 encodes little-endian as
# 00 01, which decodes back as two control characters.
# ═══════════════════════════════════════════════════════════════════════════

def utf16_units(cp):
    """
    Split a code point into its UTF-16 code units.

    Scalars up to U+FFFF are a single unit (lone surrogates included, so
    this never fails); anything above becomes a high/low surrogate pair.
    """
    if cp <= 0xFFFF:
        return (cp,)
    cp -= 0x10000
    return (0xD800 | (cp >> 10), 0xDC00 | (cp & 0x3FF))


def is_high_surrogate(unit):
    return 0xD800 <= unit <= 0xDBFF


def is_low_surrogate(unit):
    return 0xDC00 <= unit <= 0xDFFF


def is_surrogate(unit):
    return 0xD800 <= unit <= 0xDFFF


def combine_surrogates(high, low):
    """Code point of a valid high/low surrogate pair."""
    return 0x10000 + ((high - 0xD800) << 10) + (low - 0xDC00)


def mixed_encode(string, byteorder):
    """
    Encode *string*: ASCII as single bytes, other scalars as UTF-16 units.

    Parameters
    ----------
    string    : str
    byteorder : "big" or "little" — order of the two bytes in each unit

    Returns
    -------
    bytes — always; every scalar has a representation
    """
    out = bytearray()
    for ch in string:
        cp = ord(ch)
        if cp < 0x80:
            out.append(cp)
            continue
        for unit in utf16_units(cp):
            out += unit.to_bytes(2, byteorder)
    return bytes(out)


def mixed_decode(data, byteorder):
    """
    Decode *data* left to right, guessing unit width from the high bit.

    - high bit clear: one ASCII character, advance 1.
    - high bit set, last byte: U+FFFD, advance 1.
    - non-surrogate unit: that character, advance 2.
    - surrogate without a full second unit: U+FFFD, advance 2.  The
      unit's low byte is not reinterpreted as ASCII.
    - surrogate + second unit: the paired scalar if they form a valid
      high/low pair, U+FFFD otherwise; advance 4 either way.  A low
      surrogate in first position is just an invalid pair.

    Total: every byte sequence decodes and the scan always advances.
    """
    chars = []
    i = 0
    n = len(data)
    while i < n:
        b = data[i]
        if b < 0x80:
            chars.append(chr(b))
            i += 1
            continue
        if i + 1 >= n:
            # stray high-bit byte at the very end
            chars.append(REPLACEMENT_CHARACTER)
            i += 1
            continue
        unit1 = int.from_bytes(data[i:i + 2], byteorder)
        if not is_surrogate(unit1):
            chars.append(chr(unit1))
            i += 2
            continue
        if i + 4 > n:
            chars.append(REPLACEMENT_CHARACTER)
            i += 2
            continue
        unit2 = int.from_bytes(data[i + 2:i + 4], byteorder)
        if is_high_surrogate(unit1) and is_low_surrogate(unit2):
            chars.append(chr(combine_surrogates(unit1, unit2)))
        else:
            # one U+FFFD for both units; unit2 is not re-read on its own
            chars.append(REPLACEMENT_CHARACTER)
        i += 4
    return "".join(chars)


class MixedWidthEngine(Engine):
    """Mixed UTF-8/UTF-16 scheme in a chosen byte order ("big" or "little")."""

    def __init__(self, byteorder):
        if byteorder not in ("big", "little"):
            raise ValueError(f"byteorder must be 'big' or 'little', got {byteorder!r}")
        self.byteorder = byteorder
        self.name = "mixed UTF-8/UTF-16BE" if byteorder == "big" else "mixed UTF-8/UTF-16LE"

    def encode(self, string):
        return mixed_encode(string, self.byteorder)

    def decode(self, data):
        return mixed_decode(data, self.byteorder)


# ═══════════════════════════════════════════════════════════════════════════
# Part 4: Tree nodes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class EncodeNode:
    """One encode step: *output* is exactly what engine *name* produced."""
    name: str
    output: bytes
    decoders: list = field(default_factory=list)

    @property
    def children(self):
        return self.decoders

    def deduplicate(self, known_strings, known_bytes):
        """
        Register this node's bytes, then prune child decoders whose string
        was already seen or which lost every child of their own.

        Leaf decoders are kept even though they are childless: they ended
        on purpose, at full depth.
        """
        known_bytes.add(self.output)
        todelete = []
        for i, decoder in enumerate(self.decoders):
            if decoder.output in known_strings:
                todelete.append(i)
                continue
            decoder.deduplicate(known_strings, known_bytes)
            if not decoder.encoders and not decoder.is_leaf:
                todelete.append(i)
        _remove_indices(self.decoders, todelete)


@dataclass
class DecodeNode:
    """
    One decode step.  *is_leaf* is fixed at construction: True exactly
    when the node was built with no encode budget left.
    """
    name: str
    output: str
    encoders: list = field(default_factory=list)
    is_leaf: bool = False

    @property
    def children(self):
        return self.encoders

    def deduplicate(self, known_strings, known_bytes):
        """
        Register this node's string, then prune child encoders whose bytes
        were already seen or which lost every decoder.
        """
        assert not (self.is_leaf and self.encoders), (
            f"leaf decoder {self.name!r} has {len(self.encoders)} encoders"
        )
        known_strings.add(self.output)
        todelete = []
        for i, encoder in enumerate(self.encoders):
            if encoder.output in known_bytes:
                todelete.append(i)
                continue
            encoder.deduplicate(known_strings, known_bytes)
            if not encoder.decoders:
                todelete.append(i)
        _remove_indices(self.encoders, todelete)


class _Registry:
    """Insertion-ordered set: list for order, set for membership."""

    def __init__(self, initial=()):
        self.items = []
        self._seen = set()
        for item in initial:
            self.add(item)

    def add(self, item):
        if item not in self._seen:
            self._seen.add(item)
            self.items.append(item)

    def __contains__(self, item):
        return item in self._seen


def _remove_indices(seq, indices):
    """Delete *indices* (ascending) from *seq*, last first, so none shift."""
    for i in reversed(indices):
        del seq[i]


# ═══════════════════════════════════════════════════════════════════════════
# Part 5: Tree builder
# ═══════════════════════════════════════════════════════════════════════════

def build_encode_level(string, engines, depth):
    """
    Encode *string* with every engine, in order, and decode each result.

    Engines whose encode() returns None contribute no node.  Each encode
    step consumes one unit of *depth*.

    Precondition: depth >= 1.  Not checked here; deencode() rejects 0
    before calling in, so the recursion always bottoms out in
    build_decode_level at depth 0.
    """
    nodes = []
    for engine in engines:
        output = engine.encode(string)
        if output is None:
            continue
        nodes.append(EncodeNode(
            name=engine.get_name(),
            output=bytes(output),
            decoders=build_decode_level(output, engines, depth - 1),
        ))
    return nodes


def build_decode_level(data, engines, depth):
    """
    Decode *data* with every engine, in order.

    decode() is total, so every engine yields a node.  Depth is not
    decremented here: at depth 0 the nodes are leaves, otherwise each one
    re-enters build_encode_level with the same budget.
    """
    nodes = []
    for engine in engines:
        output = engine.decode(data)
        encoders = build_encode_level(output, engines, depth) if depth > 0 else []
        nodes.append(DecodeNode(
            name=engine.get_name(),
            output=output,
            encoders=encoders,
            is_leaf=depth == 0,
        ))
    return nodes


def estimate_node_count(engine_count, depth, cap=None):
    """
    Worst-case node count below the root: every encode succeeds, so level
    k of the tree holds engine_count ** k nodes, for k in 1..2*depth.

    With *cap*, summing stops as soon as the total passes it and the
    partial total is returned, so huge depths stay cheap to reject.
    """
    levels = 2 * depth
    if engine_count <= 1 or levels <= 0:
        return engine_count * max(levels, 0)
    total = 0
    term = 1
    for _ in range(levels):
        term *= engine_count
        total += term
        if cap is not None and total > cap:
            break
    return total


def check_tractable(engine_count, depth, max_nodes):
    """Raise TreeTooLargeError if the worst case exceeds *max_nodes*."""
    estimate = estimate_node_count(engine_count, depth, cap=max_nodes)
    if estimate > max_nodes:
        raise TreeTooLargeError(
            f"{engine_count} engines at depth {depth} may build more than {max_nodes} "
            "nodes; lower the depth or use fewer engines"
        )
    return estimate


# ═══════════════════════════════════════════════════════════════════════════
# Part 6: Tree root and orchestrator
# ═══════════════════════════════════════════════════════════════════════════

def _check_arguments(engines, encoding_depth):
    """Reject bad depths and unnamed engines; return the engines as a list."""
    if isinstance(encoding_depth, bool) or not isinstance(encoding_depth, int):
        raise InvalidDepthError(
            f"encoding_depth must be an integer, got {type(encoding_depth).__name__}"
        )
    if encoding_depth < 1:
        raise InvalidDepthError(
            f"encoding_depth must be >= 1, got {encoding_depth}: "
            "every path starts with an encode step"
        )
    engines = list(engines)
    for engine in engines:
        if not engine.get_name():
            raise DeencodeError(f"engine {engine!r} has an empty name")
    return engines


@dataclass
class DeencodeTree:
    """Root of an exploration: the untouched input and its encoders."""
    input: str
    encoders: list = field(default_factory=list)

    @property
    def children(self):
        return self.encoders

    @classmethod
    def deencode(cls, string, engines, encoding_depth):
        engines = _check_arguments(engines, encoding_depth)
        return cls(input=string, encoders=build_encode_level(string, engines, encoding_depth))

    def deduplicate(self):
        """
        Prune the tree in place, keeping only the first occurrence of every
        string and byte output.

        "First" is depth-first, pre-order, in engine-list order: the same
        order the builder used, so earlier engines win ties.  At the root
        only the byte rule applies; a root encoder whose decoders were all
        pruned is kept, since its bytes are still new.

        Returns
        -------
        (list[str], list[bytes]) — every distinct string seen (the input
        first) and every distinct byte sequence seen, in visiting order
        """
        known_strings = _Registry([self.input])
        known_bytes = _Registry()
        todelete = []
        for i, encoder in enumerate(self.encoders):
            if encoder.output in known_bytes:
                todelete.append(i)
                continue
            encoder.deduplicate(known_strings, known_bytes)
        _remove_indices(self.encoders, todelete)
        logger.debug(
            "deduplicated %r: %d strings, %d byte sequences, %d nodes left",
            self.input, len(known_strings.items), len(known_bytes.items), count_nodes(self),
        )
        return known_strings.items, known_bytes.items


def deencode(string, engines, encoding_depth):
    """
    Build the full encode/decode tree for *string*.

    Parameters
    ----------
    string         : str — the root input
    engines        : sequence of Engine — order matters for deduplicate()
    encoding_depth : int >= 1 — encode steps per path; every path holds
                     2 * encoding_depth transforms

    The tree is not deduplicated; call tree.deduplicate() for that.  Size
    grows as len(engines) ** (2 * encoding_depth): keeping it tractable is
    the caller's job (see estimate_node_count).

    Raises
    ------
    InvalidDepthError — encoding_depth is not an int >= 1
    DeencodeError     — an engine has an empty name
    """
    engines = list(engines)
    tree = DeencodeTree.deencode(string, engines, encoding_depth)
    logger.debug(
        "built tree for %r: %d engines, depth %d, %d nodes",
        string, len(engines), encoding_depth, count_nodes(tree),
    )
    return tree


# ═══════════════════════════════════════════════════════════════════════════
# Part 7: Traversal and runtime invariant checks
# ═══════════════════════════════════════════════════════════════════════════

def iter_nodes(tree):
    """Yield (transform_depth, node) pairs depth-first, pre-order."""
    stack = [(1, node) for node in reversed(tree.encoders)]
    while stack:
        level, node = stack.pop()
        yield level, node
        stack.extend((level + 1, child) for child in reversed(node.children))


def count_nodes(tree):
    """Number of nodes below the root."""
    return sum(1 for _ in iter_nodes(tree))


def iter_paths(tree):
    """Yield every root-to-terminal path as a tuple of nodes."""
    def walk(node, prefix):
        path = prefix + (node,)
        if not node.children:
            yield path
            return
        for child in node.children:
            yield from walk(child, path)

    for encoder in tree.encoders:
        yield from walk(encoder, ())


def check_tree_shape(tree, encoding_depth):
    """
    Verify a freshly built (not yet deduplicated) tree.

    - odd transform depths hold EncodeNodes, even ones DecodeNodes
    - every EncodeNode has one decoder per engine, so never terminates
    - leaves sit exactly at 2 * encoding_depth and have no children
    - non-leaf DecodeNodes sit strictly above that
    """
    full = 2 * encoding_depth
    for level, node in iter_nodes(tree):
        if level % 2:
            assert isinstance(node, EncodeNode), f"level {level}: expected EncodeNode"
            assert node.decoders, f"level {level}: encoder {node.name!r} has no decoders"
            continue
        assert isinstance(node, DecodeNode), f"level {level}: expected DecodeNode"
        if node.is_leaf:
            assert level == full, f"leaf {node.name!r} at level {level}, expected {full}"
            assert not node.encoders, f"leaf {node.name!r} has encoders"
        else:
            assert level < full, f"non-leaf {node.name!r} at level {level}"
    return True


def check_deduplicated(tree):
    """
    Verify a deduplicated tree.

    - no string output repeats, and none equals the root input
    - no byte output repeats
    - leaves are childless
    - every terminal is a leaf DecodeNode, or a root-level EncodeNode
      whose decoders were all pruned
    """
    strings = {tree.input}
    byte_seqs = set()
    for level, node in iter_nodes(tree):
        if isinstance(node, EncodeNode):
            assert node.output not in byte_seqs, f"duplicate bytes {node.output!r}"
            byte_seqs.add(node.output)
            assert node.decoders or level == 1, (
                f"encoder {node.name!r} at level {level} has no decoders"
            )
        else:
            assert node.output not in strings, f"duplicate string {node.output!r}"
            strings.add(node.output)
            if node.is_leaf:
                assert not node.encoders, f"leaf {node.name!r} has encoders"
            else:
                assert node.encoders, f"non-leaf {node.name!r} has no encoders"
    return True
