"""Argument decoding for Pump program instructions and events.

The ``decode_*`` functions take an instruction payload: the bytes after the
8-byte discriminator. Like strict Borsh, they raise :class:`BorshError` unless
the payload is consumed exactly. The ``parse_*_args`` functions take the whole
instruction data and return a display string, or None when the data is too
short.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from shredwatch.model import DecodeError, Pubkey

__all__ = [
    "BorshError",
    "CompleteEvent",
    "decode_create_args",
    "decode_amount_pair",
    "decode_swap_args",
    "decode_set_params_args",
    "parse_complete_event",
    "format_timestamp",
    "lamports_to_sol_string",
    "parse_create_coin_args",
    "parse_buy_tokens_args",
    "parse_sell_tokens_args",
    "parse_swap_args",
]

_DISCRIMINATOR_LEN = 8
_LAMPORTS_PER_SOL = 1_000_000_000.0
_U64_MAX = 2**64 - 1
_MAX_YEAR = 262_142
_SECONDS_PER_DAY = 86_400

_AMOUNT_PAIR = struct.Struct("<QQ")
_SWAP = struct.Struct("<QQII")
_SET_PARAMS = struct.Struct("<32sQQQQQ")
_COMPLETE = struct.Struct("<32s32s32sQ")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


class BorshError(DecodeError):
    """Raised when a payload does not match its Borsh layout."""


@dataclass(frozen=True)
class CompleteEvent:
    """A bonding curve reaching completion."""

    user: Pubkey
    mint: Pubkey
    bonding_curve: Pubkey
    timestamp: int


def _unpack_exact(layout: struct.Struct, payload: bytes) -> tuple:
    payload = bytes(payload)
    if len(payload) < layout.size:
        raise BorshError(
            f"unexpected end of data: need {layout.size} bytes, got {len(payload)}"
        )
    if len(payload) > layout.size:
        raise BorshError(
            f"not all bytes read: {len(payload) - layout.size} bytes left over"
        )
    return layout.unpack(payload)


def decode_create_args(data: bytes) -> tuple[str, str, str]:
    """Decode a payload of three Borsh strings: name, symbol and URI."""
    payload = bytes(data)
    offset = 0
    fields = []
    for _ in range(3):
        if offset + _U32.size > len(payload):
            raise BorshError("unexpected end of data while reading string length")
        (length,) = _U32.unpack_from(payload, offset)
        offset += _U32.size
        if offset + length > len(payload):
            raise BorshError("unexpected end of data while reading string bytes")
        try:
            fields.append(payload[offset:offset + length].decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise BorshError(f"invalid UTF-8 in string: {exc}") from None
        offset += length
    if offset != len(payload):
        raise BorshError(f"not all bytes read: {len(payload) - offset} bytes left over")
    return fields[0], fields[1], fields[2]


def decode_amount_pair(data: bytes) -> tuple[int, int]:
    """Decode a payload of two u64 values (amount and SOL limit)."""
    amount, limit = _unpack_exact(_AMOUNT_PAIR, data)
    return amount, limit


def decode_swap_args(data: bytes) -> tuple[int, int, int, int]:
    """Decode in amount, minimum out amount, input type and output type."""
    in_amount, min_out, input_type, output_type = _unpack_exact(_SWAP, data)
    return in_amount, min_out, input_type, output_type


def decode_set_params_args(data: bytes) -> tuple[Pubkey, int, int, int, int, int]:
    """Decode fee recipient, three initial reserves, total supply and fee basis points."""
    recipient, virtual_token, virtual_sol, real_token, supply, fee_bps = _unpack_exact(
        _SET_PARAMS, data
    )
    return Pubkey(recipient), virtual_token, virtual_sol, real_token, supply, fee_bps


def parse_complete_event(data: bytes) -> CompleteEvent | None:
    """Decode a Complete event from whole instruction data, or None if it does not fit."""
    data = bytes(data)
    if len(data) < _DISCRIMINATOR_LEN + _COMPLETE.size:
        return None
    try:
        user, mint, curve, timestamp = _unpack_exact(_COMPLETE, data[_DISCRIMINATOR_LEN:])
    except BorshError:
        return None
    return CompleteEvent(Pubkey(user), Pubkey(mint), Pubkey(curve), timestamp)


def _civil_from_days(days: int) -> tuple[int, int, int]:
    shifted = days + 719_468
    era = shifted // 146_097
    day_of_era = shifted - era * 146_097
    year_of_era = (
        day_of_era - day_of_era // 1460 + day_of_era // 36_524 - day_of_era // 146_096
    ) // 365
    day_of_year = day_of_era - (365 * year_of_era + year_of_era // 4 - year_of_era // 100)
    month_index = (5 * day_of_year + 2) // 153
    day = day_of_year - (153 * month_index + 2) // 5 + 1
    month = month_index + 3 if month_index < 10 else month_index - 9
    year = year_of_era + era * 400 + (1 if month <= 2 else 0)
    return year, month, day


def format_timestamp(timestamp: int) -> str:
    """Format a millisecond timestamp as a UTC date and time label."""
    if not 0 <= timestamp <= _U64_MAX:
        raise ValueError(f"timestamp out of u64 range: {timestamp}")
    days, second_of_day = divmod(timestamp // 1000, _SECONDS_PER_DAY)
    year, month, day = _civil_from_days(days)
    if year > _MAX_YEAR:
        return f"时间戳={timestamp}"
    hours, rest = divmod(second_of_day, 3600)
    minutes, seconds = divmod(rest, 60)
    year_text = f"{year:04d}" if year <= 9999 else f"+{year}"
    return (
        f"时间戳={year_text}-{month:02d}-{day:02d} "
        f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    )


def _sol_amount(lamports: int) -> str:
    return f"{float(lamports) / _LAMPORTS_PER_SOL:.9f}"


def lamports_to_sol_string(lamports: int) -> str:
    """Show a lamport amount in SOL with nine decimals."""
    return f"{_sol_amount(lamports)} SOL"


def _read_length(data: bytes, offset: int) -> int:
    return _U32.unpack_from(data, offset)[0]


def parse_create_coin_args(data: bytes) -> str | None:
    """Describe a CreateCoin instruction, keeping whatever strings are present."""
    data = bytes(data)
    if len(data) < 20:
        return None
    name_len = _read_length(data, 8)
    if 12 + name_len >= len(data):
        return None
    name = data[12:12 + name_len].decode("utf-8", errors="replace")

    symbol_offset = 12 + name_len
    if symbol_offset + 4 >= len(data):
        return f'创建代币: 名称="{name}"'
    symbol_len = _read_length(data, symbol_offset)
    symbol_end = symbol_offset + 4 + symbol_len
    if symbol_end >= len(data):
        return f'创建代币: 名称="{name}"'
    symbol = data[symbol_offset + 4:symbol_end].decode("utf-8", errors="replace")

    uri_offset = symbol_end
    if uri_offset + 4 >= len(data):
        return f'创建代币: 名称="{name}", 符号="{symbol}"'
    uri_len = _read_length(data, uri_offset)
    uri_end = uri_offset + 4 + uri_len
    if uri_end > len(data):
        return f'创建代币: 名称="{name}", 符号="{symbol}"'
    uri = data[uri_offset + 4:uri_end].decode("utf-8", errors="replace")

    return f'创建代币: 名称="{name}", 符号="{symbol}", URI="{uri}"'


def _leading_amount_pair(data: bytes) -> tuple[int, int] | None:
    data = bytes(data)
    if len(data) < 24:
        return None
    return _AMOUNT_PAIR.unpack_from(data, _DISCRIMINATOR_LEN)


def parse_buy_tokens_args(data: bytes) -> str | None:
    """Describe a BuyTokens instruction from its raw data."""
    pair = _leading_amount_pair(data)
    if pair is None:
        return None
    amount, max_sol = pair
    return (
        f"购买代币: 数量={amount}, 最大SOL成本={_sol_amount(max_sol)} SOL "
        f"({max_sol} lamports)"
    )


def parse_sell_tokens_args(data: bytes) -> str | None:
    """Describe a SellTokens instruction from its raw data."""
    pair = _leading_amount_pair(data)
    if pair is None:
        return None
    amount, min_sol = pair
    return (
        f"出售代币: 数量={amount}, 最小SOL收益={_sol_amount(min_sol)} SOL "
        f"({min_sol} lamports)"
    )


def parse_swap_args(data: bytes) -> str | None:
    """Describe a Swap instruction from its raw data."""
    data = bytes(data)
    if len(data) < _DISCRIMINATOR_LEN + _SWAP.size:
        return None
    in_amount, min_out, input_type, output_type = _SWAP.unpack_from(
        data, _DISCRIMINATOR_LEN
    )
    input_token = "SOL" if input_type == 0 else "代币"
    output_token = "SOL" if output_type == 0 else "代币"
    return (
        f"交换代币: 输入{input_token}数量={in_amount}, "
        f"最小输出{output_token}数量={min_out}"
    )