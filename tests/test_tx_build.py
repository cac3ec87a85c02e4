from __future__ import annotations

from dataclasses import replace

import pytest

from ledger_sdk.errors import EncodingError, KeyMaterialError
from ledger_sdk.tx.build import TransactionBuilder, build_order, new_add_var_tx, new_evm_tx, timeout_for_round
from ledger_sdk.tx.encode import decode_attributes, decode_order, encode_order, sign_bytes, tx_hash, tx_hash_hex
from ledger_sdk.types.attributes import AddVarAttributes, CallEvmRequest, EvmTxAttributes, NodeInfo, ValidatorAssignmentRecord
from ledger_sdk.types.unit_id import ShardID
from ledger_sdk.utils.bytes import to_hex
from ledger_sdk.utils.cbor import loads
from ledger_sdk.wallet.signer import AccountKey, Keyring, unpack_owner_proof, verify_owner_proof

UNIT_ID = b"\x11" * 32 + b"\x01"


def _var() -> ValidatorAssignmentRecord:
    return ValidatorAssignmentRecord(
        network_id=3,
        partition_id=5,
        shard_id=ShardID.parse("0110"),
        epoch_number=2,
        epoch_start_round=100,
        nodes=(NodeInfo(node_id="node-1", sig_key=b"\x02" * 33, stake=1),),
    )


def _build(**kw):
    args = dict(unit_id=UNIT_ID, network_id=3, partition_id=4, timeout=20, max_fee=5)
    args.update(kw)
    return build_order(AddVarAttributes(var=_var()), **args)


def test_unsigned_build_has_no_proof():
    order = _build()
    assert order.owner_proof is None
    assert order.fee_proof is None
    assert not order.is_signed
    assert order.payload_type == AddVarAttributes.PAYLOAD_TYPE


def test_canonical_round_trip():
    order = _build(fee_credit_record_id=b"\x07" * 33)
    raw = encode_order(order)
    assert encode_order(decode_order(raw)) == raw
    assert decode_order(raw) == order
    assert decode_attributes(order, AddVarAttributes).var == _var()


def test_wire_layout():
    order = _build()
    arr = loads(encode_order(order))
    assert len(arr) == 8
    assert arr[:5] == [3, 4, UNIT_ID, 1, order.attributes]
    assert arr[5] == [20, 5, None]
    assert loads(sign_bytes(order)) == arr[:6]


def test_signed_build_verifies(account_key):
    order = _build(signer=account_key)
    assert order.is_signed
    sig, pub = unpack_owner_proof(order.owner_proof)
    assert pub == account_key.public_key
    assert len(pub) == 33
    assert verify_owner_proof(order.owner_proof, sign_bytes(order), account_key.public_key)


def test_proof_does_not_cover_mutated_order(account_key):
    order = _build(signer=account_key)
    tampered = replace(order, max_fee=order.max_fee + 1)
    assert not verify_owner_proof(tampered.owner_proof, sign_bytes(tampered))
    other = AccountKey.generate()
    assert not verify_owner_proof(order.owner_proof, sign_bytes(order), other.public_key)


def test_tx_hash_covers_full_order(account_key):
    unsigned = _build()
    signed = _build(signer=account_key)
    assert tx_hash(signed) == tx_hash(encode_order(signed))
    assert tx_hash(signed) != tx_hash(unsigned)
    assert len(tx_hash(signed)) == 32
    assert tx_hash_hex(signed) == to_hex(tx_hash(signed), prefix=False)


def test_attributes_without_payload_type_fail():
    with pytest.raises(EncodingError):
        build_order(object(), unit_id=UNIT_ID, network_id=3, partition_id=4, timeout=20, max_fee=5)


def test_attributes_without_canonical_form_fail():
    bad = EvmTxAttributes(from_addr=b"\x01" * 19)
    with pytest.raises(EncodingError):
        build_order(bad, unit_id=UNIT_ID, network_id=3, partition_id=3, timeout=20, max_fee=5)


@pytest.mark.parametrize("field", ["value", "gas", "nonce"])
def test_negative_evm_amounts_fail_at_build(field, account_key):
    attrs = EvmTxAttributes(from_addr=b"\x01" * 20, **{field: -1})
    with pytest.raises(EncodingError) as ei:
        build_order(attrs, unit_id=UNIT_ID, network_id=3, partition_id=3, timeout=20, max_fee=5, signer=account_key)
    assert ei.value.type_name == f"EvmTxAttributes.{field}"


def test_evm_call_request_rejects_negative_value():
    with pytest.raises(EncodingError):
        CallEvmRequest(from_addr=b"\x01" * 20, value=-5).to_cbor()


class _BrokenSigner:
    public_key = b"\x02" * 33

    def owner_proof(self, message: bytes) -> bytes:
        raise ValueError("hsm unavailable")


def test_unusable_signers_raise_key_material_error():
    with pytest.raises(KeyMaterialError):
        _build(signer=object())
    with pytest.raises(KeyMaterialError) as ei:
        _build(signer=_BrokenSigner())
    assert "hsm unavailable" in str(ei.value)


def test_bad_secrets_raise_key_material_error():
    with pytest.raises(KeyMaterialError):
        AccountKey.from_secret(b"\x00" * 32)
    with pytest.raises(KeyMaterialError):
        AccountKey.from_secret(b"\x01" * 31)
    with pytest.raises(KeyMaterialError):
        AccountKey.from_secret("0xzz")


def test_keyring_lookup():
    ring = Keyring()
    idx = ring.add_secret((1).to_bytes(32, "big"))
    assert idx == 0
    assert len(ring) == 1
    with pytest.raises(KeyMaterialError) as ei:
        ring.get_account_key(1)
    assert "account does not exist" in str(ei.value)


def test_evm_address_of_known_key():
    key = AccountKey.from_secret((1).to_bytes(32, "big"))
    assert to_hex(key.evm_address) == "0x7e5f4552091a69125d5dfcb7b8c2659029395bdf"
    assert "AccountKey(" in repr(key)


@pytest.mark.parametrize(
    "field, value",
    [("max_fee", -1), ("timeout", -5), ("network_id", 70_000), ("partition_id", 2**32)],
)
def test_numeric_ranges(field, value):
    with pytest.raises(ValueError):
        _build(**{field: value})


def test_empty_unit_id_rejected():
    with pytest.raises(ValueError):
        _build(unit_id=b"")


def test_timeout_margin_against_observed_round():
    with pytest.raises(ValueError):
        _build(timeout=105, observed_round=100)
    assert _build(timeout=110, observed_round=100).timeout == 110
    assert timeout_for_round(100) == 110
    assert timeout_for_round(100, margin=3) == 103


def test_builder_binds_destination(account_key):
    builder = TransactionBuilder(network_id=3, partition_id=4, timeout_margin=5)
    assert builder.timeout_for(7) == 12
    order = builder.build(
        AddVarAttributes(var=_var()),
        unit_id=UNIT_ID,
        timeout=builder.timeout_for(7),
        max_fee=1,
        signer=account_key,
        observed_round=7,
    )
    assert (order.network_id, order.partition_id) == (3, 4)
    assert order.is_signed


def test_add_var_tx_targets_orchestration(account_key):
    order = new_add_var_tx(_var(), network_id=3, unit_id=UNIT_ID, timeout=13, max_fee=10, signer=account_key)
    assert order.partition_id == 4
    assert order.fee_credit_record_id is None
    assert decode_attributes(order, AddVarAttributes).var.epoch_start_round == 100


def test_evm_tx_unit_is_sender(account_key):
    attrs = EvmTxAttributes(from_addr=account_key.evm_address, to=b"\x22" * 20, data=b"\x01\x02", gas=21_000, nonce=4)
    order = new_evm_tx(attrs, network_id=3, timeout=13, max_fee=1, signer=account_key)
    assert order.partition_id == 3
    assert order.unit_id == account_key.evm_address
    assert decode_attributes(order, EvmTxAttributes) == attrs
