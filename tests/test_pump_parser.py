import struct

from shredwatch.model import (
    CompiledInstruction,
    Message,
    MessageHeader,
    Pubkey,
    VersionedTransaction,
    b58decode,
)
from shredwatch.pump_args import (
    format_timestamp,
    lamports_to_sol_string,
    parse_buy_tokens_args,
)
from shredwatch.pump_parser import (
    PUMP_PROGRAM_ID,
    BondingCurveInfo,
    PumpInstructionType,
    get_bonding_curve_info,
    get_mint_from_transaction,
    parse_pump_instruction,
    parse_pump_transaction,
)

PROGRAM = Pubkey.from_base58(PUMP_PROGRAM_ID)


def _key(seed):
    return Pubkey(bytes([seed]) * 32)


def _pump_key(seed):
    modulus = 58**4
    suffix = int.from_bytes(b58decode("pump"), "big")
    base = int.from_bytes(bytes([seed]) * 32, "big")
    number = base - base % modulus + suffix
    key = Pubkey(number.to_bytes(32, "big"))
    assert str(key).endswith("pump")
    return key


def _data(discriminator, payload=b""):
    return bytes([discriminator]) + bytes(7) + payload


def _borsh_str(text):
    raw = text.encode("utf-8")
    return struct.pack("<I", len(raw)) + raw


def _tx(keys, instructions):
    message = Message(
        header=MessageHeader(1, 0, 0),
        account_keys=tuple(keys),
        instructions=tuple(instructions),
    )
    return VersionedTransaction(signatures=(bytes(64),), message=message)


def _single(data, accounts=()):
    keys = [_key(1), PROGRAM, _key(2), _key(3), _key(4), _key(5)]
    return _tx(keys, [CompiledInstruction(1, tuple(accounts), data)])


def _complete_payload(user, mint, curve, timestamp):
    return user.raw + mint.raw + curve.raw + struct.pack("<Q", timestamp)


def test_non_pump_program_is_ignored():
    tx = _tx([_key(1), _key(2)], [CompiledInstruction(1, (), _data(0))])
    assert parse_pump_instruction(tx, 0) is None


def test_index_out_of_range():
    assert parse_pump_instruction(_single(_data(0)), 1) is None


def test_empty_data():
    assert parse_pump_instruction(_single(b""), 0) is None


def test_initialize():
    parsed = parse_pump_instruction(_single(_data(0)), 0)
    assert parsed.instruction_type is PumpInstructionType.INITIALIZE
    assert parsed.name == "Initialize"
    assert parsed.params == "初始化全局状态"


def test_create_with_strings():
    payload = _borsh_str("A") + _borsh_str("B") + _borsh_str("C")
    parsed = parse_pump_instruction(_single(_data(2, payload)), 0)
    assert parsed.name == "Create"
    assert parsed.params == '创建代币: 名称="A", 符号="B", URI="C"'


def test_create_bad_payload():
    parsed = parse_pump_instruction(_single(_data(2, b"\x01")), 0)
    assert parsed.params == "创建代币 (数据解析失败)"


def test_buy():
    payload = struct.pack("<QQ", 1000, 1_500_000_000)
    parsed = parse_pump_instruction(_single(_data(3, payload)), 0)
    assert parsed.name == "Buy"
    assert parsed.params == (
        f"购买代币: 数量=1000, 最大SOL成本={lamports_to_sol_string(1_500_000_000)}"
    )


def test_sell_too_short():
    parsed = parse_pump_instruction(_single(_data(4, b"\x00" * 4)), 0)
    assert parsed.instruction_type is PumpInstructionType.SELL
    assert parsed.params == "出售代币 (数据解析失败)"


def test_withdraw_and_init():
    tx = _tx([_key(1), PROGRAM], [
        CompiledInstruction(1, (), _data(5)),
        CompiledInstruction(1, (), _data(234)),
    ])
    assert parse_pump_instruction(tx, 0).params == "提取流动性"
    assert parse_pump_instruction(tx, 1).params == "初始化操作"


def test_buy_tokens_falls_back_to_raw_parse():
    data = _data(102, struct.pack("<QQ", 7, 9) + b"\xff")
    parsed = parse_pump_instruction(_single(data), 0)
    assert parsed.name == "BuyTokens"
    assert parsed.params == parse_buy_tokens_args(data)


def test_buy_tokens_unparseable():
    parsed = parse_pump_instruction(_single(_data(102, b"\x01")), 0)
    assert parsed.params == "购买代币 (无法解析参数)"


def test_swap():
    payload = struct.pack("<QQII", 50, 40, 0, 1)
    parsed = parse_pump_instruction(_single(_data(103, payload)), 0)
    assert parsed.name == "Swap"
    assert parsed.params == "交换代币: 输入SOL数量=50, 最小输出代币数量=40"


def test_extended_sell_manual_parse():
    data = _data(51, struct.pack("<QQ", 11, 22) + b"\x00\x00")
    parsed = parse_pump_instruction(_single(data), 0)
    assert parsed.name == "ExtendedSell"
    assert parsed.params == (
        f"出售代币(扩展): 数量=11, 最小SOL收益={lamports_to_sol_string(22)}"
    )


def test_extended_sell_too_short():
    parsed = parse_pump_instruction(_single(_data(51, b"\x00")), 0)
    assert parsed.params == "出售代币(扩展) (无法解析参数)"


def test_set_params():
    recipient = _key(7)
    payload = recipient.raw + struct.pack("<QQQQQ", 1, 2, 3, 4, 5)
    parsed = parse_pump_instruction(_single(_data(1, payload)), 0)
    assert parsed.name == "SetParams"
    assert parsed.params == (
        f"设置参数: fee_recipient={recipient}, 初始虚拟代币储备=1, 初始虚拟SOL储备=2, "
        "初始实际代币储备=3, 代币总供应量=4, 费用基点=5"
    )


def test_complete_event():
    user, mint, curve = _key(7), _key(8), _key(9)
    data = _data(200, _complete_payload(user, mint, curve, 1_700_000_000_000))
    parsed = parse_pump_instruction(_single(data), 0)
    assert parsed.instruction_type is PumpInstructionType.COMPLETE
    assert parsed.params == (
        f"曲线完成: 用户={user}, 代币={mint}, 曲线={curve}, "
        f"{format_timestamp(1_700_000_000_000)}"
    )


def test_complete_bad_payload():
    parsed = parse_pump_instruction(_single(_data(200, b"\x00" * 10)), 0)
    assert parsed.params == "曲线完成 (数据解析失败)"


def test_unknown_discriminator():
    parsed = parse_pump_instruction(_single(_data(77)), 0)
    assert parsed.instruction_type is PumpInstructionType.UNKNOWN
    assert parsed.name == "Unknown_77"
    assert parsed.params == "未知指令: discriminator=77"


def test_parse_transaction_keeps_only_pump_in_order():
    tx = _tx([_key(1), PROGRAM, _key(2)], [
        CompiledInstruction(2, (), b"\x00"),
        CompiledInstruction(1, (), _data(0)),
        CompiledInstruction(1, (), b""),
        CompiledInstruction(1, (), _data(234)),
    ])
    assert [p.name for p in parse_pump_transaction(tx)] == ["Initialize", "Init"]


def test_mint_from_pump_suffixed_key():
    mint = _pump_key(5)
    tx = _tx([_key(1), mint, PROGRAM], [])
    assert get_mint_from_transaction(tx) == mint


def test_mint_from_create_first_account():
    keys = [_key(1), PROGRAM, _key(2), _key(3), _key(4), _key(5)]
    tx = _tx(keys, [CompiledInstruction(1, (3, 4, 2, 5), _data(2))])
    assert get_mint_from_transaction(tx) == _key(3)


def test_mint_from_complete_event():
    mint = _key(8)
    data = _data(200, _complete_payload(_key(7), mint, _key(9), 0))
    assert get_mint_from_transaction(_single(data)) == mint


def test_no_mint_without_pump():
    tx = _tx([_key(1), _key(2)], [CompiledInstruction(1, (0,), _data(3))])
    assert get_mint_from_transaction(tx) is None
    assert get_bonding_curve_info(tx) is None


def test_curve_from_second_pump_key():
    mint, curve = _pump_key(5), _pump_key(6)
    info = get_bonding_curve_info(_tx([_key(1), mint, curve], []))
    assert info == BondingCurveInfo(mint=mint, curve_account=curve)


def test_curve_from_buy_accounts():
    mint = _pump_key(5)
    keys = [_key(1), mint, PROGRAM, _key(3), _key(4)]
    tx = _tx(keys, [CompiledInstruction(2, (0, 1, 4, 3), _data(3))])
    info = get_bonding_curve_info(tx)
    assert info.mint == mint
    assert info.curve_account == _key(3)
    assert info.is_complete is False


def test_curve_from_create_accounts():
    keys = [_key(1), PROGRAM, _key(2), _key(3), _key(4), _key(5)]
    tx = _tx(keys, [CompiledInstruction(1, (3, 4, 5, 2), _data(2))])
    info = get_bonding_curve_info(tx)
    assert info.mint == _key(3)
    assert info.curve_account == _key(5)


def test_curve_from_complete_event():
    mint, curve = _key(8), _key(9)
    data = _data(200, _complete_payload(_key(7), mint, curve, 0))
    info = get_bonding_curve_info(_single(data, accounts=(0,)))
    assert info.mint == mint
    assert info.curve_account == curve
    assert info.is_complete is True


def test_no_curve_when_accounts_too_few():
    mint = _pump_key(5)
    keys = [_key(1), mint, PROGRAM]
    tx = _tx(keys, [CompiledInstruction(2, (0, 1, 0), _data(3))])
    assert get_mint_from_transaction(tx) == mint
    assert get_bonding_curve_info(tx) is None