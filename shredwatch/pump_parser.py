"""Recognition of Pump program instructions inside transactions."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Callable, Iterator, Sequence, TypeVar

from shredwatch.model import CompiledInstruction, Pubkey, VersionedTransaction
from shredwatch.pump_args import (
    BorshError,
    decode_amount_pair,
    decode_create_args,
    decode_set_params_args,
    decode_swap_args,
    format_timestamp,
    lamports_to_sol_string,
    parse_buy_tokens_args,
    parse_complete_event,
    parse_create_coin_args,
    parse_sell_tokens_args,
    parse_swap_args,
)

__all__ = [
    "PUMP_PROGRAM_ID",
    "INITIALIZE_IX",
    "SET_PARAMS_IX",
    "CREATE_IX",
    "BUY_IX",
    "SELL_IX",
    "WITHDRAW_IX",
    "CREATE_COIN_IX",
    "BUY_TOKENS_IX",
    "SWAP_IX",
    "SELL_TOKENS_IX",
    "EXTENDED_SELL_IX",
    "INIT_IX",
    "COMPLETE_IX",
    "PumpInstructionType",
    "ParsedPumpInstruction",
    "BondingCurveInfo",
    "parse_pump_instruction",
    "get_mint_from_transaction",
    "get_bonding_curve_info",
    "parse_pump_transaction",
]

PUMP_PROGRAM_ID = "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P"

INITIALIZE_IX = 0
SET_PARAMS_IX = 1
CREATE_IX = 2
BUY_IX = 3
SELL_IX = 4
WITHDRAW_IX = 5
CREATE_COIN_IX = 24
BUY_TOKENS_IX = 102
SWAP_IX = 103
SELL_TOKENS_IX = 104
EXTENDED_SELL_IX = 51
INIT_IX = 234
COMPLETE_IX = 200

_DISCRIMINATOR_LEN = 8
_PUMP_SUFFIX = "pump"
_AMOUNT_PAIR = struct.Struct("<QQ")

_MINT_BEARING = frozenset(
    {
        CREATE_IX,
        BUY_IX,
        SELL_IX,
        CREATE_COIN_IX,
        EXTENDED_SELL_IX,
        BUY_TOKENS_IX,
        SWAP_IX,
        SELL_TOKENS_IX,
    }
)
_CURVE_AT_2 = frozenset({CREATE_IX, CREATE_COIN_IX})
_CURVE_AT_3 = frozenset(
    {BUY_IX, BUY_TOKENS_IX, SELL_IX, EXTENDED_SELL_IX, SELL_TOKENS_IX, SWAP_IX}
)

T = TypeVar("T")


class PumpInstructionType(enum.Enum):
    INITIALIZE = "Initialize"
    SET_PARAMS = "SetParams"
    CREATE = "Create"
    BUY = "Buy"
    SELL = "Sell"
    WITHDRAW = "Withdraw"
    CREATE_COIN = "CreateCoin"
    BUY_TOKENS = "BuyTokens"
    SWAP = "Swap"
    SELL_TOKENS = "SellTokens"
    EXTENDED_SELL = "ExtendedSell"
    COMPLETE = "Complete"
    INIT = "Init"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class ParsedPumpInstruction:
    """A recognised Pump instruction with a readable description."""

    instruction_type: PumpInstructionType
    name: str
    params: str


@dataclass
class BondingCurveInfo:
    """The token mint and bonding curve account a transaction touches."""

    mint: Pubkey
    curve_account: Pubkey
    is_complete: bool = False
    virtual_token_reserves: int | None = None
    virtual_sol_reserves: int | None = None
    real_token_reserves: int | None = None
    real_sol_reserves: int | None = None


def _parsed(kind: PumpInstructionType, params: str) -> ParsedPumpInstruction:
    return ParsedPumpInstruction(kind, kind.value, params)


def _try_decode(decoder: Callable[[bytes], T], data: bytes) -> T | None:
    try:
        return decoder(data[_DISCRIMINATOR_LEN:])
    except BorshError:
        return None


def _buy_text(amount: int, max_sol: int) -> str:
    return f"购买代币: 数量={amount}, 最大SOL成本={lamports_to_sol_string(max_sol)}"


def _sell_text(amount: int, min_sol: int) -> str:
    return f"出售代币: 数量={amount}, 最小SOL收益={lamports_to_sol_string(min_sol)}"


def _extended_sell_text(amount: int, min_sol: int) -> str:
    return f"出售代币(扩展): 数量={amount}, 最小SOL收益={lamports_to_sol_string(min_sol)}"


def _initialize(data: bytes) -> ParsedPumpInstruction:
    return _parsed(PumpInstructionType.INITIALIZE, "初始化全局状态")


def _set_params(data: bytes) -> ParsedPumpInstruction:
    args = _try_decode(decode_set_params_args, data)
    if args is None:
        return _parsed(PumpInstructionType.SET_PARAMS, "设置参数 (数据解析失败)")
    recipient, virtual_token, virtual_sol, real_token, supply, fee_bps = args
    return _parsed(
        PumpInstructionType.SET_PARAMS,
        f"设置参数: fee_recipient={recipient}, 初始虚拟代币储备={virtual_token}, "
        f"初始虚拟SOL储备={virtual_sol}, 初始实际代币储备={real_token}, "
        f"代币总供应量={supply}, 费用基点={fee_bps}",
    )


def _create(data: bytes) -> ParsedPumpInstruction:
    args = _try_decode(decode_create_args, data)
    if args is None:
        return _parsed(PumpInstructionType.CREATE, "创建代币 (数据解析失败)")
    name, symbol, uri = args
    return _parsed(
        PumpInstructionType.CREATE,
        f'创建代币: 名称="{name}", 符号="{symbol}", URI="{uri}"',
    )


def _buy(data: bytes) -> ParsedPumpInstruction:
    args = _try_decode(decode_amount_pair, data)
    if args is None:
        return _parsed(PumpInstructionType.BUY, "购买代币 (数据解析失败)")
    return _parsed(PumpInstructionType.BUY, _buy_text(*args))


def _sell(data: bytes) -> ParsedPumpInstruction:
    args = _try_decode(decode_amount_pair, data)
    if args is None:
        return _parsed(PumpInstructionType.SELL, "出售代币 (数据解析失败)")
    return _parsed(PumpInstructionType.SELL, _sell_text(*args))


def _withdraw(data: bytes) -> ParsedPumpInstruction:
    return _parsed(PumpInstructionType.WITHDRAW, "提取流动性")


def _create_coin(data: bytes) -> ParsedPumpInstruction:
    params = parse_create_coin_args(data) or "创建代币 (无法解析参数)"
    return _parsed(PumpInstructionType.CREATE_COIN, params)


def _buy_tokens(data: bytes) -> ParsedPumpInstruction:
    args = _try_decode(decode_amount_pair, data)
    if args is not None:
        params = _buy_text(*args)
    else:
        params = parse_buy_tokens_args(data) or "购买代币 (无法解析参数)"
    return _parsed(PumpInstructionType.BUY_TOKENS, params)


def _swap(data: bytes) -> ParsedPumpInstruction:
    args = _try_decode(decode_swap_args, data)
    if args is not None:
        in_amount, min_out, input_type, output_type = args
        input_token = "SOL" if input_type == 0 else "代币"
        output_token = "SOL" if output_type == 0 else "代币"
        params = (
            f"交换代币: 输入{input_token}数量={in_amount}, "
            f"最小输出{output_token}数量={min_out}"
        )
    else:
        params = parse_swap_args(data) or "交换代币 (无法解析参数)"
    return _parsed(PumpInstructionType.SWAP, params)


def _sell_tokens(data: bytes) -> ParsedPumpInstruction:
    args = _try_decode(decode_amount_pair, data)
    if args is not None:
        params = _sell_text(*args)
    else:
        params = parse_sell_tokens_args(data) or "出售代币 (无法解析参数)"
    return _parsed(PumpInstructionType.SELL_TOKENS, params)


def _extended_sell(data: bytes) -> ParsedPumpInstruction:
    args = _try_decode(decode_amount_pair, data)
    if args is None and len(data) >= _DISCRIMINATOR_LEN + _AMOUNT_PAIR.size:
        args = _AMOUNT_PAIR.unpack_from(data, _DISCRIMINATOR_LEN)
    if args is None:
        return _parsed(PumpInstructionType.EXTENDED_SELL, "出售代币(扩展) (无法解析参数)")
    return _parsed(PumpInstructionType.EXTENDED_SELL, _extended_sell_text(*args))


def _complete(data: bytes) -> ParsedPumpInstruction:
    event = parse_complete_event(data)
    if event is None:
        return _parsed(PumpInstructionType.COMPLETE, "曲线完成 (数据解析失败)")
    return _parsed(
        PumpInstructionType.COMPLETE,
        f"曲线完成: 用户={event.user}, 代币={event.mint}, 曲线={event.bonding_curve}, "
        f"{format_timestamp(event.timestamp)}",
    )


def _init(data: bytes) -> ParsedPumpInstruction:
    return _parsed(PumpInstructionType.INIT, "初始化操作")


_HANDLERS: dict[int, Callable[[bytes], ParsedPumpInstruction]] = {
    INITIALIZE_IX: _initialize,
    SET_PARAMS_IX: _set_params,
    CREATE_IX: _create,
    BUY_IX: _buy,
    SELL_IX: _sell,
    WITHDRAW_IX: _withdraw,
    CREATE_COIN_IX: _create_coin,
    BUY_TOKENS_IX: _buy_tokens,
    SWAP_IX: _swap,
    SELL_TOKENS_IX: _sell_tokens,
    EXTENDED_SELL_IX: _extended_sell,
    COMPLETE_IX: _complete,
    INIT_IX: _init,
}


def _calls_pump(instruction: CompiledInstruction, keys: Sequence[Pubkey]) -> bool:
    return str(instruction.program_id(keys)) == PUMP_PROGRAM_ID


def _pump_instructions(
    transaction: VersionedTransaction,
) -> Iterator[CompiledInstruction]:
    keys = transaction.message.account_keys
    return (ins for ins in transaction.message.instructions if _calls_pump(ins, keys))


def _is_pump_key(key: Pubkey) -> bool:
    return str(key).endswith(_PUMP_SUFFIX)


def parse_pump_instruction(
    transaction: VersionedTransaction, instruction_index: int
) -> ParsedPumpInstruction | None:
    """Describe one instruction if it calls the Pump program and carries data."""
    message = transaction.message
    if not 0 <= instruction_index < len(message.instructions):
        return None
    instruction = message.instructions[instruction_index]
    if not _calls_pump(instruction, message.account_keys):
        return None
    data = bytes(instruction.data)
    if not data:
        return None
    discriminator = data[0]
    handler = _HANDLERS.get(discriminator)
    if handler is None:
        return ParsedPumpInstruction(
            PumpInstructionType.UNKNOWN,
            f"Unknown_{discriminator}",
            f"未知指令: discriminator={discriminator}",
        )
    return handler(data)


def get_mint_from_transaction(transaction: VersionedTransaction) -> Pubkey | None:
    """Find the token mint a transaction trades, if one can be identified."""
    keys = transaction.message.account_keys
    found = next((key for key in keys if _is_pump_key(key)), None)
    if found is not None:
        return found

    for instruction in _pump_instructions(transaction):
        data = bytes(instruction.data)
        if not data:
            continue
        discriminator = data[0]
        if discriminator in _MINT_BEARING:
            for position, account_index in enumerate(instruction.accounts[:3]):
                if account_index >= len(keys):
                    continue
                candidate = keys[account_index]
                if _is_pump_key(candidate) or (
                    discriminator == CREATE_IX and position == 0
                ):
                    return candidate
        elif discriminator == COMPLETE_IX:
            event = parse_complete_event(data)
            if event is not None:
                return event.mint
    return None


def get_bonding_curve_info(transaction: VersionedTransaction) -> BondingCurveInfo | None:
    """Find the mint and bonding curve account of a Pump transaction."""
    mint = get_mint_from_transaction(transaction)
    if mint is None:
        return None
    keys = transaction.message.account_keys
    unset = Pubkey.default()
    info = BondingCurveInfo(mint=mint, curve_account=unset)

    curve = next((key for key in keys if _is_pump_key(key) and key != mint), None)
    if curve is not None:
        info.curve_account = curve
    else:
        for instruction in _pump_instructions(transaction):
            accounts = instruction.accounts
            if not accounts:
                continue
            data = bytes(instruction.data)
            discriminator = data[0] if data else 0
            if discriminator in _CURVE_AT_2 or discriminator in _CURVE_AT_3:
                position = 2 if discriminator in _CURVE_AT_2 else 3
                if len(accounts) > 3 and accounts[position] < len(keys):
                    info.curve_account = keys[accounts[position]]
            elif discriminator == COMPLETE_IX:
                event = parse_complete_event(data)
                if event is not None:
                    info.is_complete = True
                    info.curve_account = event.bonding_curve

    return info if info.curve_account != unset else None


def parse_pump_transaction(transaction: VersionedTransaction) -> list[ParsedPumpInstruction]:
    """Describe every Pump instruction of a transaction, in order."""
    parsed = (
        parse_pump_instruction(transaction, index)
        for index in range(len(transaction.message.instructions))
    )
    return [item for item in parsed if item is not None]