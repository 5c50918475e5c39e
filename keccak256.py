#!/usr/bin/env python3
"""
Python implementation of keccak256 (Ethereum-style, not NIST SHA3-256).

Input is absorbed incrementally: feed any number of chunks of any size to a
KeccakSponge (or the hashlib-style KeccakHash), then finalize once to get the
32-byte digest. Padding is the original Keccak 0x01 ... 0x80 rule.
"""

import argparse
import logging
import os
import sys
from copy import deepcopy

logger = logging.getLogger("keccak256")

# --------------------------------------------------------------------
#                          Constants & Helpers
# --------------------------------------------------------------------

WIDTH_BITS = 1600
CAPACITY_BITS = 512
LANE_BITS = 64
ROUNDS = 24

RATE = (WIDTH_BITS - CAPACITY_BITS) // 8  # 136 bytes
RATE_LANES = RATE // 8  # 17
DIGEST_SIZE = 100 - RATE // 2  # 32 bytes

MASK64 = (1 << LANE_BITS) - 1

# One byte per round: bit j set means bit (2**j - 1) of the round constant is set.
ROUND_INFO = (
    1, 26, 94, 112, 31, 33, 121, 85, 14, 12, 53, 38,
    63, 79, 93, 83, 82, 72, 22, 102, 121, 88, 33, 116,
)

# Lane index chain walked by pi; lane 1 ends up at 10.
PI_TRANSFORM = (
    1, 6, 9, 22, 14, 20, 2, 12, 13, 19, 23, 15,
    4, 24, 21, 8, 16, 5, 3, 18, 17, 11, 7, 10,
)

# Left rotation for lanes 1..24.
RHO_TRANSFORM = (
    1, 62, 28, 27, 36, 44, 6, 55, 20, 3, 10, 43,
    25, 39, 41, 45, 15, 21, 8, 18, 2, 61, 56, 14,
)


def expand_round_constant(round_info):
    rc = 0
    for j in range(7):
        if round_info & (1 << j):
            rc |= 1 << ((1 << j) - 1)
    return rc


RoundConstants = tuple(expand_round_constant(info) for info in ROUND_INFO)


class SpentContextError(RuntimeError):
    """Raised when a finalized hash context is used again."""


def rol(value, left):
    return ((value << left) | (value >> (LANE_BITS - left))) & MASK64


def bytes2lane(bb):
    return int.from_bytes(bb, "little")


def lane2bytes(lane):
    return lane.to_bytes(8, "little")


def as_byte_view(data):
    """Return a flat unsigned-byte view of any bytes-like object."""
    if isinstance(data, str):
        raise TypeError("Strings must be encoded before hashing")
    try:
        view = memoryview(data)
    except TypeError:
        raise TypeError(
            f"Data must be a bytes-like object, got {type(data).__name__}"
        ) from None
    if view.ndim != 1 or view.format != "B":
        view = view.cast("B")
    return view


def multirate_padding(used_bytes, align_bytes):
    """
    Pad bytes completing a block that already holds used_bytes.

    0x01 goes on the first pad byte and 0x80 on the last; when only one
    byte is left both bits are OR-ed into it, giving 0x81.
    """
    pad = bytearray(align_bytes - used_bytes)
    pad[0] |= 0x01
    pad[-1] |= 0x80
    return pad


def hex_to_bytes(text):
    text = text.strip()
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    if len(text) % 2:
        text = "0" + text
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise ValueError(f"Invalid hex string: {text!r}") from None

# --------------------------------------------------------------------
#                          Keccak Permutation
# --------------------------------------------------------------------

def keccak_theta(a):
    c = [a[x] ^ a[x + 5] ^ a[x + 10] ^ a[x + 15] ^ a[x + 20] for x in range(5)]
    for x in range(5):
        d = rol(c[(x + 1) % 5], 1) ^ c[(x + 4) % 5]
        for y in range(0, 25, 5):
            a[x + y] ^= d


def keccak_rho(a):
    for i in range(1, 25):
        a[i] = rol(a[i], RHO_TRANSFORM[i - 1])


def keccak_pi(a):
    a1 = a[1]
    for i in range(1, 24):
        a[PI_TRANSFORM[i - 1]] = a[PI_TRANSFORM[i]]
    a[10] = a1


def keccak_chi(a):
    for i in range(0, 25, 5):
        row = a[i : i + 5]
        for k in range(5):
            a[i + k] = row[k] ^ (~row[(k + 1) % 5] & row[(k + 2) % 5])


def keccak_f(state):
    a = state.s
    for rc in RoundConstants:
        keccak_theta(a)
        keccak_rho(a)
        keccak_pi(a)
        keccak_chi(a)
        # Iota
        a[0] ^= rc

# --------------------------------------------------------------------
#                          Keccak State & Sponge
# --------------------------------------------------------------------

class KeccakState:
    LANES = 25

    def __init__(self):
        self.s = [0] * self.LANES

    def absorb(self, block):
        assert len(block) == RATE
        for i in range(RATE_LANES):
            self.s[i] ^= bytes2lane(block[8 * i : 8 * i + 8])

    def squeeze(self, length):
        assert length <= RATE
        return self.get_bytes()[:length]

    def get_bytes(self):
        return b"".join(lane2bytes(lane) for lane in self.s)


class KeccakSponge:
    """
    One hash context: a permutation state plus the unprocessed tail of the
    input. Absorb any number of chunks, then call finalize() exactly once.
    """

    def __init__(self):
        self.state = KeccakState()
        self.buffer = bytearray(RATE)
        self.rest = 0
        self.blocks = 0
        self.finalized = False

    def _require_live(self, operation):
        if self.finalized:
            raise SpentContextError(f"Cannot {operation}: hash context is already finalized")

    def copy(self):
        self._require_live("copy")
        return deepcopy(self)

    def absorb_block(self, block):
        self.state.absorb(block)
        keccak_f(self.state)
        self.blocks += 1

    def absorb(self, data):
        self._require_live("absorb")
        msg = as_byte_view(data)
        size = len(msg)
        idx = self.rest
        self.rest = (idx + size) % RATE
        logger.debug("absorb: %d bytes at offset %d, rest now %d", size, idx, self.rest)

        # Fill the pending partial block first
        if idx:
            left = RATE - idx
            take = min(size, left)
            self.buffer[idx : idx + take] = msg[:take]
            if size < left:
                return
            self.absorb_block(self.buffer)
            msg = msg[left:]
            size -= left

        while size >= RATE:
            self.absorb_block(msg[:RATE])
            msg = msg[RATE:]
            size -= RATE

        if size:
            self.buffer[:size] = msg

    def finalize(self):
        self._require_live("finalize")
        self.buffer[self.rest :] = multirate_padding(self.rest, RATE)
        logger.debug(
            "finalize: pad 0x01 at %d, 0x80 at %d (last byte 0x%02x) after %d blocks",
            self.rest,
            RATE - 1,
            self.buffer[RATE - 1],
            self.blocks,
        )
        self.absorb_block(self.buffer)
        self.finalized = True
        return self.state.squeeze(DIGEST_SIZE)

# --------------------------------------------------------------------
#                          Keccak-256 Class
# --------------------------------------------------------------------

class KeccakHash:
    name = "keccak256"
    digest_size = DIGEST_SIZE
    block_size = RATE

    def __init__(self, data=None):
        self.sponge = KeccakSponge()
        if data is not None:
            self.update(data)

    def update(self, data: bytes):
        self.sponge.absorb(data)

    def copy(self):
        other = KeccakHash.__new__(KeccakHash)
        other.sponge = self.sponge.copy()
        return other

    def digest(self) -> bytes:
        # Finalize a copy so this object can keep absorbing
        return self.sponge.copy().finalize()

    def hexdigest(self) -> str:
        return self.digest().hex()


def keccak256(data: bytes) -> bytes:
    h = KeccakHash()
    h.update(data)
    return h.digest()


def keccak256_hex(data: bytes) -> str:
    return keccak256(data).hex()

# --------------------------------------------------------------------
#                                Main
# --------------------------------------------------------------------

DEFAULT_CHUNK_SIZE = 65536

EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_USAGE_ERROR = 2


def setup_logging(level="WARNING"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def positive_int(value):
    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return n


def build_parser():
    parser = argparse.ArgumentParser(
        prog="keccak256",
        description="Print the keccak256 digest of a message, a file or stdin.",
    )
    parser.add_argument("message", nargs="?", help="message to hash (UTF-8 unless --hex)")
    parser.add_argument("--hex", action="store_true", help="treat MESSAGE as hex-encoded bytes")
    parser.add_argument("--file", metavar="PATH", help="hash the contents of PATH ('-' for stdin)")
    parser.add_argument(
        "--chunk-size",
        type=positive_int,
        default=DEFAULT_CHUNK_SIZE,
        help=f"read size when streaming (default: {DEFAULT_CHUNK_SIZE})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to stderr")
    return parser


def hash_stream(stream, chunk_size=DEFAULT_CHUNK_SIZE):
    h = KeccakHash()
    for chunk in iter(lambda: stream.read(chunk_size), b""):
        h.update(chunk)
    return h


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else os.environ.get("KECCAK256_LOG_LEVEL", "WARNING"))

    if args.message is not None and args.file is not None:
        parser.error("give either MESSAGE or --file, not both")

    try:
        if args.message is not None:
            data = hex_to_bytes(args.message) if args.hex else args.message.encode("utf-8")
            h = KeccakHash(data)
        elif args.file in (None, "-"):
            h = hash_stream(sys.stdin.buffer, args.chunk_size)
        else:
            with open(args.file, "rb") as f:
                h = hash_stream(f, args.chunk_size)
    except ValueError as e:
        logger.error("%s", e)
        return EXIT_USAGE_ERROR
    except OSError as e:
        logger.error("Cannot read %s: %s", args.file, e)
        return EXIT_RUNTIME_ERROR

    print(h.hexdigest())
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
