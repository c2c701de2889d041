"""Recognition of Pump AMM program instructions inside transactions."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Callable, Sequence

from shredwatch.model import CompiledInstruction, Pubkey, VersionedTransaction

__all__ = [
    "PUMPAMM_PROGRAM_ID",
    "CREATE_POOL_IX",
    "DEPOSIT_IX",
    "BUY_IX",
    "SELL_IX",
    "WITHDRAW_IX",
    "PumpAmmInstructionType",
    "ParsedPumpAmmInstruction",
    "PoolInfo",
    "is_instruction_match",
    "parse_pumpamm_instruction",
    "parse_pumpamm_transaction",
    "get_pool_from_instruction",
    "get_token_mints_from_instruction",
    "get_pool_info_from_transaction",
]

PUMPAMM_PROGRAM_ID = "pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA"

CREATE_POOL_IX = bytes([233, 146, 209, 142, 207, 104, 64, 188])
DEPOSIT_IX = bytes([242, 35, 198, 137, 82, 225, 242, 182])
BUY_IX = bytes([102, 6, 61, 18, 1, 218, 235, 234])
SELL_IX = bytes([51, 230, 133, 164, 1, 127, 131, 173])
WITHDRAW_IX = bytes([183, 18, 70, 156, 148, 109, 161, 34])

_DISCRIMINATOR_LEN = 8
_KNOWN = (CREATE_POOL_IX, DEPOSIT_IX, BUY_IX, SELL_IX, WITHDRAW_IX)
_WITH_LP_MINT = (CREATE_POOL_IX, DEPOSIT_IX, WITHDRAW_IX)

_CREATE_POOL = struct.Struct("<HQQ")
_THREE_AMOUNTS = struct.Struct("<QQQ")
_TWO_AMOUNTS = struct.Struct("<QQ")


class PumpAmmInstructionType(enum.Enum):
    CREATE_POOL = "CreatePool"
    DEPOSIT = "Deposit"
    BUY = "Buy"
    SELL = "Sell"
    WITHDRAW = "Withdraw"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class ParsedPumpAmmInstruction:
    """A recognised Pump AMM instruction with a readable description."""

    instruction_type: PumpAmmInstructionType
    name: str
    params: str


@dataclass(frozen=True)
class PoolInfo:
    """The pool, its token mints and, where known, its LP mint."""

    pool: Pubkey
    base_mint: Pubkey
    quote_mint: Pubkey
    lp_mint: Pubkey | None = None


def is_instruction_match(data: bytes, discriminator: bytes) -> bool:
    """Whether instruction data starts with the given 8-byte discriminator."""
    data = bytes(data)
    if len(data) < _DISCRIMINATOR_LEN:
        return False
    return data[:_DISCRIMINATOR_LEN] == bytes(discriminator)[:_DISCRIMINATOR_LEN]


def _unpack_payload(layout: struct.Struct, data: bytes) -> tuple | None:
    payload = data[_DISCRIMINATOR_LEN:]
    if len(payload) != layout.size:
        return None
    return layout.unpack(payload)


@dataclass(frozen=True)
class _Kind:
    instruction_type: PumpAmmInstructionType
    min_len: int
    layout: struct.Struct
    fallback: str
    render: Callable[..., str]


_KINDS: dict[bytes, _Kind] = {
    CREATE_POOL_IX: _Kind(
        PumpAmmInstructionType.CREATE_POOL,
        16,
        _CREATE_POOL,
        "创建池 (无法解析参数)",
        lambda index, base, quote: (
            f"创建池: 索引={index}, 基础代币输入={base}, 报价代币输入={quote}"
        ),
    ),
    DEPOSIT_IX: _Kind(
        PumpAmmInstructionType.DEPOSIT,
        32,
        _THREE_AMOUNTS,
        "存入流动性 (无法解析参数)",
        lambda lp_out, max_base, max_quote: (
            f"存入流动性: LP代币输出={lp_out}, 最大基础代币输入={max_base}, "
            f"最大报价代币输入={max_quote}"
        ),
    ),
    BUY_IX: _Kind(
        PumpAmmInstructionType.BUY,
        24,
        _TWO_AMOUNTS,
        "买入 (无法解析参数)",
        lambda base_out, max_quote: (
            f"买入: 基础代币输出={base_out}, 最大报价代币输入={max_quote}"
        ),
    ),
    SELL_IX: _Kind(
        PumpAmmInstructionType.SELL,
        24,
        _TWO_AMOUNTS,
        "卖出 (无法解析参数)",
        lambda base_in, min_quote: (
            f"卖出: 基础代币输入={base_in}, 最小报价代币输出={min_quote}"
        ),
    ),
    WITHDRAW_IX: _Kind(
        PumpAmmInstructionType.WITHDRAW,
        32,
        _THREE_AMOUNTS,
        "提取流动性 (无法解析参数)",
        lambda lp_in, min_base, min_quote: (
            f"提取流动性: LP代币输入={lp_in}, 最小基础代币输出={min_base}, "
            f"最小报价代币输出={min_quote}"
        ),
    ),
}


def _describe(kind: _Kind, data: bytes) -> str:
    if len(data) < kind.min_len:
        return kind.fallback
    values = _unpack_payload(kind.layout, data)
    if values is None:
        return kind.fallback
    return kind.render(*values)


def _calls_amm(instruction: CompiledInstruction, keys: Sequence[Pubkey]) -> bool:
    return str(instruction.program_id(keys)) == PUMPAMM_PROGRAM_ID


def _amm_instruction(
    transaction: VersionedTransaction, instruction_index: int
) -> CompiledInstruction | None:
    message = transaction.message
    if not 0 <= instruction_index < len(message.instructions):
        return None
    instruction = message.instructions[instruction_index]
    if not _calls_amm(instruction, message.account_keys):
        return None
    return instruction


def _matches_any(data: bytes, discriminators: Sequence[bytes]) -> bool:
    return any(is_instruction_match(data, disc) for disc in discriminators)


def parse_pumpamm_instruction(
    transaction: VersionedTransaction, instruction_index: int
) -> ParsedPumpAmmInstruction | None:
    """Describe one instruction if it calls the Pump AMM program."""
    instruction = _amm_instruction(transaction, instruction_index)
    if instruction is None:
        return None
    data = bytes(instruction.data)
    if len(data) < _DISCRIMINATOR_LEN:
        return ParsedPumpAmmInstruction(
            PumpAmmInstructionType.UNKNOWN, "未知", "数据长度不足"
        )
    kind = _KINDS.get(data[:_DISCRIMINATOR_LEN])
    if kind is None:
        return ParsedPumpAmmInstruction(
            PumpAmmInstructionType.UNKNOWN,
            "未知Pump AMM指令",
            f"未识别的discriminator: {list(data[:_DISCRIMINATOR_LEN])}",
        )
    return ParsedPumpAmmInstruction(
        kind.instruction_type, kind.instruction_type.value, _describe(kind, data)
    )


def parse_pumpamm_transaction(
    transaction: VersionedTransaction,
) -> list[ParsedPumpAmmInstruction]:
    """Describe every Pump AMM instruction of a transaction, in order."""
    parsed = (
        parse_pumpamm_instruction(transaction, index)
        for index in range(len(transaction.message.instructions))
    )
    return [item for item in parsed if item is not None]


def _account_at(
    instruction: CompiledInstruction, keys: Sequence[Pubkey], position: int
) -> Pubkey | None:
    accounts = instruction.accounts
    if position >= len(accounts) or accounts[position] >= len(keys):
        return None
    return keys[accounts[position]]


def get_pool_from_instruction(
    transaction: VersionedTransaction, instruction_index: int
) -> Pubkey | None:
    """The pool account of a known Pump AMM instruction: its first account."""
    instruction = _amm_instruction(transaction, instruction_index)
    if instruction is None or not _matches_any(instruction.data, _KNOWN):
        return None
    return _account_at(instruction, transaction.message.account_keys, 0)


def get_token_mints_from_instruction(
    transaction: VersionedTransaction, instruction_index: int
) -> tuple[Pubkey, Pubkey] | None:
    """The base and quote mints of a known Pump AMM instruction (accounts 3 and 4)."""
    instruction = _amm_instruction(transaction, instruction_index)
    if instruction is None or not _matches_any(instruction.data, _KNOWN):
        return None
    keys = transaction.message.account_keys
    if len(instruction.accounts) <= 4:
        return None
    base = _account_at(instruction, keys, 3)
    quote = _account_at(instruction, keys, 4)
    if base is None or quote is None:
        return None
    return base, quote


def get_pool_info_from_transaction(transaction: VersionedTransaction) -> PoolInfo | None:
    """Pool details from the first Pump AMM instruction of a transaction.

    Only the first instruction calling the program is examined; if it lacks
    the pool or mint accounts, the result is None.
    """
    message = transaction.message
    keys = message.account_keys
    for index, instruction in enumerate(message.instructions):
        if not _calls_amm(instruction, keys):
            continue
        pool = get_pool_from_instruction(transaction, index)
        if pool is None:
            return None
        mints = get_token_mints_from_instruction(transaction, index)
        if mints is None:
            return None
        lp_mint = None
        if _matches_any(instruction.data, _WITH_LP_MINT):
            lp_mint = _account_at(instruction, keys, 5)
        return PoolInfo(pool, mints[0], mints[1], lp_mint)
    return None