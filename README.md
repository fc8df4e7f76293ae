# wavelet

Building blocks for a ledger node: account state kept in an ordered
key/value tree, genesis loading, smart contract memory snapshots, payload
batching, and the encoding of transaction payloads.

The package needs only the Python standard library, and Python 3.10 or later.

## Modules

### `wavelet.common`

- Identifier sizes and zero values, for example `SIZE_ACCOUNT_ID` and
  `ZERO_ACCOUNT_ID`.
- `account_id(data)` and `transaction_id(data)` take raw bytes or a hex string
  and return 32 bytes. They raise `ValueError` if the hex is invalid or the
  length is wrong.

### `wavelet.snappy`

A pure-Python Snappy block codec. `encode(data)` compresses data.
`decode(data)` decompresses it and raises `SnappyError` (a `ValueError`) on
corrupt input.

### `wavelet.db`

- `MemoryTree` is an in-memory ordered tree. It has these methods:
  - `lookup(key)` returns the value, or `None`.
  - `insert(key, value)` stores a value.
  - `iterate_prefix(prefix)` yields `(key, value)` pairs in key order.
- Account fields each have a `read_account_*` and a `write_account_*`
  function. The fields are `nonce`, `balance`, `stake`, `reward`,
  `contract_code`, `contract_num_pages` and `contract_page`.
  - A read returns `None` when the field is absent.
  - Contract pages are stored snappy-compressed. A page that is corrupt reads
    as `None`.
- `read_accounts_len(tree)` and `write_accounts_len(tree, size)` read and
  write the stored count of accounts.
- `store_round(kv, round_bytes, current_ix, oldest_ix, stored_count)` and
  `load_rounds(kv, unmarshal)` store and load marshalled rounds.
  - Both work with any object that has `get(key)` and `put(key, value)`.
  - `load_rounds` returns `(rounds, latest_ix, oldest_ix)`.
  - It raises `KeyError` if an entry is missing.
- `RewardWithdrawalRequest(account, amount, round)` is a frozen dataclass with
  `key()`, `marshal()` and `unmarshal(data)`.
  - `store_reward_withdrawal_request(tree, request)` stores a request.
  - `get_reward_withdrawal_requests(tree, round_limit)` returns the requests
    made at or before `round_limit`, ordered by round.

### `wavelet.genesis`

`load_genesis(tree, genesis=None)` reads a JSON object that maps hex account
IDs to `balance`, `stake` and `reward` fields. Without a document it uses the
built-in `DEFAULT_GENESIS`.

For each account it writes the listed fields, sets the nonce to 1 and
increments the accounts count. It returns the account IDs in document order.

It raises `GenesisError` for any of these:

- invalid JSON
- a bad or duplicate account ID
- a value that is not an unsigned 64-bit integer

The document is fully checked before anything is written.

### `wavelet.contract`

- `load_contract_memory_snapshot(tree, account)` rebuilds a contract's memory
  from its 64 KiB pages (`PAGE_SIZE`). It returns `None` if no memory is
  stored.
- `save_contract_memory_snapshot(tree, account, memory)` writes only the
  pages that changed. A page that is all zeros is stored as an empty page.
- `build_contract_payload(round, tx, amount, params)` builds the bytes a
  contract reads, in this order:
  1. the round index
  2. the round ID
  3. the transaction ID
  4. the creator
  5. the amount
  6. the parameters

  `round` and `tx` may be `None`, and missing IDs are then zero.
- `host_hash(name, data)` computes `blake2b_256`, `blake2b_512`, `sha256` or
  `sha512`. The name may carry a `_hash_` prefix. An unknown name raises
  `ContractError`.

### `wavelet.debounce`

- `Limiter(action=None, period=0.05, buffer_limit=16384)` buffers payloads.
  - When the buffered bytes have reached `buffer_limit`, the next `add` first
    hands the buffer to `action`.
  - Otherwise the buffer is handed over once `period` seconds pass with no new
    payload.
- `Deduper(action=None, period=0.05, keys=())` keeps the latest payload for
  each key. The key is built by joining the JSON string fields named in
  `keys`. After a quiet period, all kept payloads are handed to `action`.
- Both take `add(payload)`, where `None` is ignored.
- Both have `close()`, which stops the timer and drops pending payloads. Both
  can also be used as context managers.
- `Factory(DebouncerType.LIMITER or DebouncerType.DEDUPER, **options).init(**kwargs)`
  creates a debouncer. The factory's own options take precedence.

### `wavelet.flood`

- `encode_batch(entries)` encodes `(tag, payload)` pairs as a batch payload:
  1. a count byte
  2. for each entry: the tag, a big-endian uint32 length, then the payload
- `build_stake_batch(tag, op, worker, count=40)` builds a batch of identical
  stake entries.

### `wavelet.payloads`

- `split_command(line)` maps a shell line to a `Command(name, args)`. For
  example `p`/`pay`, `c`/`call` and `ps`/`place-stake`; an empty line means
  `help`. An unknown line raises `PayloadError`.
- `encode_call_params(args)` encodes typed call arguments. Each argument
  starts with one type letter:
  - `S`: a NUL-terminated string
  - `B`: length-prefixed bytes
  - `1`, `2`, `4`, `8`: a little-endian integer of that many bytes
  - `H`: hex bytes
- Payload builders:
  - `build_transfer_payload`
  - `build_pay_payload`: checks the balance, and adds a call to
    `on_money_received` when paying a contract
  - `build_spawn_payload`
  - `build_stake_payload`

## Example

```python
from wavelet.db import MemoryTree, read_account_balance, read_account_nonce
from wavelet.genesis import load_genesis

tree = MemoryTree()
accounts = load_genesis(tree)          # the built-in genesis accounts
print(read_account_balance(tree, accounts[0]))  # 10000000000000000000
print(read_account_nonce(tree, accounts[0]))    # 1
```

Batching payloads:

```python
import time
from wavelet.debounce import Limiter

with Limiter(action=print, period=0.1) as limiter:
    limiter.add(b"first")
    limiter.add(b"second")
    time.sleep(0.2)                    # prints [b'first', b'second']
```

## What this package does not do

This package is a library. It has no command-line programs and no network
node. Specifically, it does not include:

- gossip or consensus
- an HTTP API
- an interactive shell
- a contract virtual machine

`wavelet.payloads` only parses shell lines and builds payloads; it does not
send transactions.

State lives only in `MemoryTree`, in memory. No on-disk store is provided.
`store_round` and `load_rounds` accept any object with `get` and `put`.

## Installing and testing

```
pip install .[test]
pytest
```