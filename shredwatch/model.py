"""Transaction and entry data types, with their binary wire decoding."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Callable, Sequence, TypeVar

__all__ = [
    "DecodeError",
    "Pubkey",
    "MessageHeader",
    "CompiledInstruction",
    "MessageAddressTableLookup",
    "Message",
    "VersionedTransaction",
    "Entry",
    "b58encode",
    "b58decode",
    "decode_transaction",
    "decode_entries",
]

_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_ALPHABET_INDEX = {char: index for index, char in enumerate(_ALPHABET)}

PUBKEY_BYTES = 32
SIGNATURE_BYTES = 64
HASH_BYTES = 32
_MAX_PUBKEY_BASE58_LEN = 44
_MESSAGE_VERSION_PREFIX = 0x80

T = TypeVar("T")


class DecodeError(ValueError):
    """Raised when bytes or text cannot be decoded."""


def b58encode(data: bytes) -> str:
    """Encode bytes as a base58 string (Bitcoin alphabet)."""
    data = bytes(data)
    stripped = data.lstrip(b"\x00")
    leading = len(data) - len(stripped)
    number = int.from_bytes(stripped, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 58)
        digits.append(_ALPHABET[remainder])
    return "1" * leading + "".join(reversed(digits))


def b58decode(text: str) -> bytes:
    """Decode a base58 string into bytes."""
    number = 0
    for char in text:
        try:
            number = number * 58 + _ALPHABET_INDEX[char]
        except KeyError:
            raise DecodeError(f"invalid base58 character: {char!r}") from None
    leading = len(text) - len(text.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\x00" * leading + body


@dataclass(frozen=True)
class Pubkey:
    """A 32-byte account address, shown in base58."""

    raw: bytes

    def __post_init__(self) -> None:
        raw = bytes(self.raw)
        if len(raw) != PUBKEY_BYTES:
            raise ValueError(f"a public key is {PUBKEY_BYTES} bytes, got {len(raw)}")
        object.__setattr__(self, "raw", raw)

    @classmethod
    def from_base58(cls, text: str) -> "Pubkey":
        """Parse a base58 address; raises ValueError when it is not one."""
        if len(text) > _MAX_PUBKEY_BASE58_LEN:
            raise ValueError(f"address too long: {text!r}")
        raw = b58decode(text)
        if len(raw) != PUBKEY_BYTES:
            raise ValueError(f"address does not decode to {PUBKEY_BYTES} bytes: {text!r}")
        return cls(raw)

    @classmethod
    def default(cls) -> "Pubkey":
        """The all-zero address."""
        return cls(bytes(PUBKEY_BYTES))

    def __str__(self) -> str:
        return b58encode(self.raw)

    def __repr__(self) -> str:
        return f"Pubkey({str(self)!r})"


@dataclass(frozen=True)
class MessageHeader:
    num_required_signatures: int
    num_readonly_signed_accounts: int
    num_readonly_unsigned_accounts: int


@dataclass(frozen=True)
class CompiledInstruction:
    program_id_index: int
    accounts: tuple[int, ...] = ()
    data: bytes = b""

    def program_id(self, account_keys: Sequence[Pubkey]) -> Pubkey:
        """The program this instruction calls, looked up in the account keys."""
        return account_keys[self.program_id_index]


@dataclass(frozen=True)
class MessageAddressTableLookup:
    account_key: Pubkey
    writable_indexes: tuple[int, ...] = ()
    readonly_indexes: tuple[int, ...] = ()


@dataclass(frozen=True)
class Message:
    """A transaction message; ``version`` is None for legacy messages."""

    header: MessageHeader
    account_keys: tuple[Pubkey, ...]
    recent_blockhash: bytes = bytes(HASH_BYTES)
    instructions: tuple[CompiledInstruction, ...] = ()
    address_table_lookups: tuple[MessageAddressTableLookup, ...] = ()
    version: int | None = None


@dataclass(frozen=True)
class VersionedTransaction:
    signatures: tuple[bytes, ...]
    message: Message


@dataclass(frozen=True)
class Entry:
    num_hashes: int
    hash: bytes
    transactions: tuple[VersionedTransaction, ...] = field(default_factory=tuple)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise DecodeError(
                f"unexpected end of data: need {count} bytes at offset {self._pos}"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self.take(8))[0]

    def compact_u16(self) -> int:
        value = 0
        for nth in range(3):
            byte = self.u8()
            if byte == 0 and nth != 0:
                raise DecodeError("non-canonical compact length")
            done = not byte & 0x80
            if nth == 2 and not done:
                raise DecodeError("compact length continues past third byte")
            value |= (byte & 0x7F) << (nth * 7)
            if value > 0xFFFF:
                raise DecodeError("compact length overflows u16")
            if done:
                return value
        raise DecodeError("compact length too long")

    def short_vec(self, item: Callable[[], T]) -> tuple[T, ...]:
        return tuple(item() for _ in range(self.compact_u16()))

    def short_bytes(self) -> bytes:
        return self.take(self.compact_u16())

    def pubkey(self) -> Pubkey:
        return Pubkey(self.take(PUBKEY_BYTES))


def _read_instruction(reader: _Reader) -> CompiledInstruction:
    program_id_index = reader.u8()
    accounts = tuple(reader.short_bytes())
    data = reader.short_bytes()
    return CompiledInstruction(program_id_index, accounts, data)


def _read_lookup(reader: _Reader) -> MessageAddressTableLookup:
    account_key = reader.pubkey()
    writable = tuple(reader.short_bytes())
    readonly = tuple(reader.short_bytes())
    return MessageAddressTableLookup(account_key, writable, readonly)


def _read_message(reader: _Reader) -> Message:
    first = reader.u8()
    version: int | None = None
    if first & _MESSAGE_VERSION_PREFIX:
        version = first & 0x7F
        if version != 0:
            raise DecodeError(f"unsupported message version: {version}")
        num_required = reader.u8()
    else:
        num_required = first
    header = MessageHeader(num_required, reader.u8(), reader.u8())
    account_keys = reader.short_vec(reader.pubkey)
    recent_blockhash = reader.take(HASH_BYTES)
    instructions = reader.short_vec(lambda: _read_instruction(reader))
    lookups: tuple[MessageAddressTableLookup, ...] = ()
    if version is not None:
        lookups = reader.short_vec(lambda: _read_lookup(reader))
    return Message(header, account_keys, recent_blockhash, instructions, lookups, version)


def _read_transaction(reader: _Reader) -> VersionedTransaction:
    signatures = reader.short_vec(lambda: reader.take(SIGNATURE_BYTES))
    return VersionedTransaction(signatures, _read_message(reader))


def _read_entry(reader: _Reader) -> Entry:
    num_hashes = reader.u64()
    entry_hash = reader.take(HASH_BYTES)
    transactions = tuple(_read_transaction(reader) for _ in range(reader.u64()))
    return Entry(num_hashes, entry_hash, transactions)


def decode_transaction(data: bytes) -> VersionedTransaction:
    """Decode one serialized transaction; trailing bytes are ignored."""
    return _read_transaction(_Reader(data))


def decode_entries(data: bytes) -> list[Entry]:
    """Decode a serialized list of ledger entries; trailing bytes are ignored."""
    reader = _Reader(data)
    return [_read_entry(reader) for _ in range(reader.u64())]