"""Readable reports of transactions and of the slots they arrive in."""

from __future__ import annotations

from typing import Iterable, Sequence

from shredwatch.config import PUMPAMM_PROGRAM_ID, Config
from shredwatch.model import (
    CompiledInstruction,
    Entry,
    Message,
    Pubkey,
    VersionedTransaction,
    b58encode,
)
from shredwatch.pump_parser import (
    PUMP_PROGRAM_ID,
    get_bonding_curve_info,
    get_mint_from_transaction,
    parse_pump_instruction,
    parse_pump_transaction,
)
from shredwatch.pumpamm_parser import (
    ParsedPumpAmmInstruction,
    get_pool_from_instruction,
    get_pool_info_from_transaction,
    get_token_mints_from_instruction,
    parse_pumpamm_instruction,
    parse_pumpamm_transaction,
)

__all__ = [
    "COMPUTE_BUDGET_PROGRAM_ID",
    "ASSOCIATED_TOKEN_PROGRAM_ID",
    "format_transaction_info",
    "print_transaction_info",
    "group_transactions_by_accounts",
    "describe_operation",
    "format_slot_report",
]

COMPUTE_BUDGET_PROGRAM_ID = "ComputeBudget111111111111111111111111111111"
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"

_PUMP_SUFFIX = "pump"
_COMPUTE_BUDGET_OPERATIONS = {
    0: "设置计算单元限制",
    1: "设置优先级费用",
    2: "设置计算单元价格",
    3: "设置堆内存",
}
_OPERATION_PRIORITY = (
    ("CreatePool", "创建流动性池"),
    ("Deposit", "存入流动性"),
    ("Buy", "买入代币"),
    ("Sell", "卖出代币"),
)


def _version_label(message: Message) -> str:
    kind = "Legacy" if message.version is None else "V0"
    return f"{kind}({message!r})"


def _instruction_details(
    transaction: VersionedTransaction,
    index: int,
    instruction: CompiledInstruction,
    keys: Sequence[Pubkey],
) -> list[str]:
    program_id = instruction.program_id(keys)
    program = str(program_id)
    lines = [f"  指令 {index}:", f"    程序: {program_id}"]

    if program == COMPUTE_BUDGET_PROGRAM_ID:
        lines.append("    类型: 计算预算指令")
        if instruction.data:
            operation = _COMPUTE_BUDGET_OPERATIONS.get(
                instruction.data[0], "未知计算预算操作"
            )
            lines.append(f"    操作: {operation}")
    elif program == ASSOCIATED_TOKEN_PROGRAM_ID:
        lines.append("    类型: Associated Token 指令")
    elif program == PUMP_PROGRAM_ID:
        lines.append("    类型: Pump协议指令")
        parsed = parse_pump_instruction(transaction, index)
        if parsed is not None:
            lines.append(f"    操作: {parsed.name}")
            lines.append(f"    内容: {parsed.params}")
            mint = get_mint_from_transaction(transaction)
            if mint is not None:
                lines.append(f"    代币Mint: {mint}")
            curve = get_bonding_curve_info(transaction)
            if curve is not None:
                lines.append(f"    曲线账户: {curve.curve_account}")
                if curve.is_complete:
                    lines.append("    曲线状态: 已完成")
    elif program == PUMPAMM_PROGRAM_ID:
        lines.append("    类型: Pump AMM协议指令")
        parsed_amm = parse_pumpamm_instruction(transaction, index)
        if parsed_amm is not None:
            lines.append(f"    操作: {parsed_amm.name}")
            lines.append(f"    内容: {parsed_amm.params}")
            pool = get_pool_from_instruction(transaction, index)
            if pool is not None:
                lines.append(f"    池地址: {pool}")
            mints = get_token_mints_from_instruction(transaction, index)
            if mints is not None:
                lines.append(f"    基础代币: {mints[0]}")
                lines.append(f"    报价代币: {mints[1]}")
    else:
        lines.append("    类型: 其他程序指令")

    lines.append("    相关账户:")
    for account_index in instruction.accounts:
        if account_index < len(keys):
            lines.append(f"      - {keys[account_index]}")
        else:
            lines.append(f"      - 无效账户索引: {account_index}")
    return lines


def format_transaction_info(transaction: VersionedTransaction) -> str:
    """Describe a transaction, its instructions and any Pump activity, as text."""
    message = transaction.message
    keys = message.account_keys
    lines = [
        "",
        "交易详情:",
        f"签名: {b58encode(transaction.signatures[0])}",
        f"消息版本: {_version_label(message)}",
        "",
        "Pump特殊账户:",
    ]
    lines.extend(
        f"  {index}. {key} (可能的Pump账户)"
        for index, key in enumerate(keys)
        if str(key).endswith(_PUMP_SUFFIX)
    )
    lines.extend(["", f"签名账户: {keys[0]}"])

    mint = get_mint_from_transaction(transaction)
    if mint is not None:
        lines.extend(["", f"识别的代币Mint: {mint}"])
    curve = get_bonding_curve_info(transaction)
    curve_state = None
    if curve is not None:
        curve_state = "已完成" if curve.is_complete else "进行中"
        lines.append(f"识别的曲线账户: {curve.curve_account}")
        lines.append(f"曲线状态: {curve_state}")

    lines.append(f"账户数量: {len(keys)}")
    lines.append(f"指令数量: {len(message.instructions)}")
    for index, instruction in enumerate(message.instructions):
        lines.append(f"指令 {index}:")
        lines.append(f"  程序ID索引: {instruction.program_id_index}")
        lines.append(f"  账户索引: {list(instruction.accounts)}")
        lines.append(f"  数据长度: {len(instruction.data)}")

    signatures = message.header.num_required_signatures
    if signatures == 1:
        tx_type = "单签名交易"
    else:
        tx_type = f"多签名交易 ({signatures}个签名)"
    lines.append(f"交易类型: {tx_type}")

    lines.extend(["", "指令详情:"])
    for index, instruction in enumerate(message.instructions):
        lines.extend(_instruction_details(transaction, index, instruction, keys))

    parsed_pump = parse_pump_transaction(transaction)
    if parsed_pump:
        lines.extend(["", "Pump协议交易解析:"])
        for number, parsed in enumerate(parsed_pump, start=1):
            lines.append(f"  Pump指令 {number}:")
            lines.append(f"    类型: {parsed.name}")
            lines.append(f"    详情: {parsed.params}")
        if curve is not None:
            lines.extend(
                [
                    "",
                    "曲线信息:",
                    f"  代币Mint: {curve.mint}",
                    f"  曲线账户: {curve.curve_account}",
                    f"  状态: {curve_state}",
                ]
            )

    parsed_amm = parse_pumpamm_transaction(transaction)
    if parsed_amm:
        lines.extend(["", "Pump AMM协议交易解析:"])
        for number, parsed in enumerate(parsed_amm, start=1):
            lines.append(f"  Pump AMM指令 {number}:")
            lines.append(f"    类型: {parsed.name}")
            lines.append(f"    详情: {parsed.params}")
        pool_info = get_pool_info_from_transaction(transaction)
        if pool_info is not None:
            lines.extend(
                [
                    "",
                    "池信息:",
                    f"  池地址: {pool_info.pool}",
                    f"  基础代币: {pool_info.base_mint}",
                    f"  报价代币: {pool_info.quote_mint}",
                ]
            )
            if pool_info.lp_mint is not None:
                lines.append(f"  LP代币: {pool_info.lp_mint}")

    lines.extend(["", "-" * 80])
    return "\n".join(lines)


def print_transaction_info(transaction: VersionedTransaction) -> None:
    """Print the report of :func:`format_transaction_info`."""
    print(format_transaction_info(transaction))


def group_transactions_by_accounts(
    entries: Iterable[Entry], target_accounts: Sequence[Pubkey]
) -> dict[Pubkey, list[VersionedTransaction]]:
    """Collect, for each target account, the transactions that list it."""
    grouped: dict[Pubkey, list[VersionedTransaction]] = {}
    for entry in entries:
        for transaction in entry.transactions:
            accounts = set(transaction.message.account_keys)
            for target in target_accounts:
                if target in accounts:
                    grouped.setdefault(target, []).append(transaction)
    return grouped


def describe_operation(
    parsed_instructions: Iterable[ParsedPumpAmmInstruction],
) -> str | None:
    """Name the main Pump AMM operation among parsed instructions, if any."""
    names = {parsed.name for parsed in parsed_instructions}
    return next(
        (label for name, label in _OPERATION_PRIORITY if name in names), None
    )


def format_slot_report(slot: int, entries: Iterable[Entry], config: Config) -> str:
    """Report the watched transactions of one slot; empty when there are none."""
    grouped = group_transactions_by_accounts(entries, config.target_accounts)
    lines: list[str] = []
    for account, transactions in grouped.items():
        if not transactions:
            continue
        is_amm = str(account) == PUMPAMM_PROGRAM_ID
        lines.append(
            f"\n找到账户 {account} 的 {len(transactions)} 笔新交易 当前Slot:[{slot}]"
        )
        if is_amm:
            lines.append("===== Pump AMM协议交易 =====")
        for number, transaction in enumerate(transactions, start=1):
            lines.append(f"\n交易 {number}:")
            lines.append(format_transaction_info(transaction))
            if is_amm:
                parsed = parse_pumpamm_transaction(transaction)
                lines.append(f"\nPump AMM指令总数: {len(parsed)}")
                operation = describe_operation(parsed)
                if operation is not None:
                    lines.append(f"操作类型: {operation}")
    if not lines:
        return ""
    lines.append("\n----------------------------------------------\n")
    return "\n".join(lines)