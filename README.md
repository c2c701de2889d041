# shredwatch

shredwatch takes the entry batches that a Solana shred-stream proxy hands out
for each slot and explains the transactions in them that touch the accounts
you care about. It understands two programs in detail:

* the Pump bonding-curve program (`6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P`),
  with its create, buy, sell, swap, extended-sell and curve-complete
  instructions, the token mint and the bonding-curve account;
* the Pump AMM program (`pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA`),
  with its create-pool, deposit, withdraw, buy and sell instructions, the pool
  address and the base, quote and LP mints.

Every other instruction is still listed with its program, its accounts and its
data length. Descriptions are written in Chinese.

## Installing

```
pip install .
pip install ".[test]"    # with pytest, to run the tests
```

The only runtime dependency is `python-dotenv`.

## Decoding

`shredwatch.model` holds the wire types: `Pubkey`, `MessageHeader`,
`CompiledInstruction`, `MessageAddressTableLookup`, `Message`,
`VersionedTransaction` and `Entry`. `decode_entries` turns the serialized bytes
of one slot's entry batch into a list of `Entry` objects; `decode_transaction`
does the same for a single transaction. Legacy and version-0 messages are
supported; truncated or malformed input raises `DecodeError` (a `ValueError`).
Trailing bytes after the decoded value are ignored.

`b58encode` and `b58decode` convert between raw bytes and base58 text.
`Pubkey.from_base58` parses an address and raises `ValueError` if it does not
decode to 32 bytes; `str(pubkey)` gives the base58 form and `Pubkey.default()`
is the all-zero key.

```python
from shredwatch.model import Pubkey, b58encode, decode_entries

entries = decode_entries(entry_bytes)       # bytes received for one slot
for entry in entries:
    for tx in entry.transactions:
        print(b58encode(tx.signatures[0]))

pump = Pubkey.from_base58("6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P")
```

## Configuration

`shredwatch.config.Config` has two fields, `server_url` and
`target_accounts`. `Config.from_env(environ)` builds it from a mapping of
variables; called with no argument, it first loads a `.env` file through
python-dotenv and then reads `os.environ`.

| Variable                 | Default                                          |
|--------------------------|--------------------------------------------------|
| `SHREDSTREAM_SERVER_URL` | `http://127.0.0.1:9999`                          |
| `CREATE_ACCOUNT`         | `TSLvdd1pWpHVjahSpsvCXUbgwsL3JAcvokwaKt1eokM`    |
| `SWAP_ACCOUNT`           | `Ce6TQqeHC9p8KetsN6JsjHK7UTZk7nasjjnr7XxXp9F1`   |
| `TARGET_ACCOUNT`         | not set                                          |

The watched accounts are, in this order, the create account, the swap account,
the Pump AMM program and, if given, the target account. Values that are not
valid base58 public keys are left out.

```python
from shredwatch.config import Config

config = Config.from_env({"SWAP_ACCOUNT": "Ce6TQqeHC9p8KetsN6JsjHK7UTZk7nasjjnr7XxXp9F1"})
print(config.server_url, config.target_accounts)
```

## Parsing instructions

```python
from shredwatch.pump_parser import (
    get_bonding_curve_info,
    get_mint_from_transaction,
    parse_pump_transaction,
)
from shredwatch.pumpamm_parser import (
    get_pool_info_from_transaction,
    parse_pumpamm_transaction,
)

for parsed in parse_pump_transaction(tx):
    print(parsed.instruction_type, parsed.name, parsed.params)

mint = get_mint_from_transaction(tx)        # Pubkey or None
curve = get_bonding_curve_info(tx)          # BondingCurveInfo or None

for parsed in parse_pumpamm_transaction(tx):
    print(parsed.instruction_type, parsed.name, parsed.params)

pool = get_pool_info_from_transaction(tx)   # PoolInfo or None
```

The single-instruction forms, `parse_pump_instruction(tx, index)`,
`parse_pumpamm_instruction(tx, index)`, `get_pool_from_instruction(tx, index)`
and `get_token_mints_from_instruction(tx, index)`, return `None` when the
index is out of range or the instruction belongs to another program.
`parse_pump_instruction` also returns `None` for an instruction with no data;
unknown discriminators come back as `PumpInstructionType.UNKNOWN` with a name
such as `Unknown_42`. `is_instruction_match(data, discriminator)` tells whether
instruction data starts with an 8-byte Pump AMM discriminator
(`CREATE_POOL_IX`, `DEPOSIT_IX`, `BUY_IX`, `SELL_IX`, `WITHDRAW_IX`).

`get_pool_info_from_transaction` looks only at the first Pump AMM instruction
of the transaction; if that one lacks the pool or mint accounts, it returns
`None`.

The lower-level argument decoders live in `shredwatch.pump_args`:

* `decode_create_args`, `decode_amount_pair`, `decode_swap_args` and
  `decode_set_params_args` take the payload after the 8-byte discriminator and
  raise `BorshError` unless it matches the layout exactly;
* `parse_complete_event(data)` returns a `CompleteEvent` or `None`;
* `parse_create_coin_args`, `parse_buy_tokens_args`, `parse_sell_tokens_args`
  and `parse_swap_args` take whole instruction data and return a description,
  or `None` when it is too short;
* `format_timestamp(ms)` formats a millisecond timestamp in UTC and raises
  `ValueError` outside the u64 range;
* `lamports_to_sol_string(1_500_000_000)` gives `"1.500000000 SOL"`.

## Reports

`shredwatch.report` turns all of this into text:

* `group_transactions_by_accounts(entries, target_accounts)` maps each watched
  account to the transactions whose account keys contain it;
* `format_transaction_info(tx)` returns the full description of one
  transaction, and `print_transaction_info(tx)` prints it;
* `describe_operation(parsed_instructions)` names the Pump AMM operation of a
  transaction (create pool, deposit, buy or sell, in that priority), or
  returns `None`;
* `format_slot_report(slot, entries, config)` produces the complete report for
  one slot, or an empty string when no watched account was touched.

```python
from shredwatch.config import Config
from shredwatch.model import decode_entries
from shredwatch.report import format_slot_report

config = Config.from_env()
report = format_slot_report(slot, decode_entries(entry_bytes), config)
if report:
    print(report)
```

## What shredwatch does not do

shredwatch has no command-line program and no network client. It does not
connect to a shred-stream proxy, subscribe to entries or retry lost
connections; `Config.server_url` is only carried along for your own client.
Receiving the entry batches is up to you; shredwatch starts from the bytes.

## Tests

```
pytest
```