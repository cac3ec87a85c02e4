from __future__ import annotations

import cbor2
import httpx
import pytest
import respx

from ledger_sdk.errors import NotFoundError, ProtocolError
from ledger_sdk.rpc.evm import EvmClient
from ledger_sdk.rpc.http import RpcTransport
from ledger_sdk.rpc.state import StateClient
from ledger_sdk.tx.build import build_order
from ledger_sdk.tx.encode import encode_order, tx_hash
from ledger_sdk.types.attributes import CallEvmRequest, EvmTxAttributes
from ledger_sdk.types.core import FeeCreditBill, RoundInfo
from ledger_sdk.utils.bytes import to_hex

BASE = "http://node.test"
API = f"{BASE}/api/v1"
ADDR = b"\xab" * 20


def _cbor(value) -> httpx.Response:
    return httpx.Response(200, content=cbor2.dumps(value))


def _order():
    attrs = EvmTxAttributes(from_addr=ADDR, gas=1)
    return build_order(attrs, unit_id=ADDR, network_id=3, partition_id=3, timeout=20, max_fee=1)


# --- transport ------------------------------------------------------------------


@respx.mock
def test_get_decodes_cbor_body():
    route = respx.get(f"{API}/rounds/latest").mock(return_value=_cbor(42))
    with RpcTransport(BASE) as rpc:
        assert rpc.get("rounds/latest") == 42
        assert rpc.get("/rounds/latest", shape=RoundInfo.from_round) == RoundInfo(42, 42)
    assert route.call_count == 2
    assert route.calls.last.request.headers["accept"] == "application/cbor"


@respx.mock
def test_404_is_not_found():
    respx.get(f"{API}/transactions/00").mock(return_value=httpx.Response(404))
    with RpcTransport(BASE) as rpc:
        with pytest.raises(NotFoundError):
            rpc.get("transactions/00")


@respx.mock
def test_error_body_message_is_surfaced():
    respx.get(f"{API}/rounds/latest").mock(
        return_value=httpx.Response(500, content=cbor2.dumps(["state store unavailable"]))
    )
    with RpcTransport(BASE) as rpc:
        with pytest.raises(ProtocolError) as ei:
            rpc.get("rounds/latest")
    assert ei.value.status == 500
    assert ei.value.message == "state store unavailable"


@respx.mock
def test_undecodable_error_body_falls_back_to_status_line():
    respx.get(f"{API}/rounds/latest").mock(return_value=httpx.Response(502, content=b"\xff\xff"))
    with RpcTransport(BASE) as rpc:
        with pytest.raises(ProtocolError) as ei:
            rpc.get("rounds/latest")
    assert ei.value.status == 502
    assert ei.value.message == "502 Bad Gateway"


@respx.mock
def test_shape_mismatch_is_protocol_error():
    respx.get(f"{API}/evm/gasPrice").mock(return_value=_cbor({"price": "1"}))
    with RpcTransport(BASE) as rpc:
        with pytest.raises(ProtocolError):
            rpc.get("evm/gasPrice", shape=int)


@respx.mock
def test_empty_body():
    respx.get(f"{API}/empty").mock(return_value=httpx.Response(200))
    with RpcTransport(BASE) as rpc:
        assert rpc.get("empty", allow_empty=True) is None
        with pytest.raises(ProtocolError):
            rpc.get("empty")


@respx.mock
def test_post_sends_cbor_and_checks_status():
    route = respx.post(f"{API}/transactions").mock(return_value=httpx.Response(202))
    with RpcTransport(BASE) as rpc:
        assert rpc.post("transactions", b"\x80", expected_status=202) is None
    request = route.calls.last.request
    assert request.content == b"\x80"
    assert request.headers["content-type"] == "application/cbor"


@respx.mock
def test_post_unexpected_success_status_is_protocol_error():
    respx.post(f"{API}/transactions").mock(return_value=httpx.Response(200))
    with RpcTransport(BASE) as rpc:
        with pytest.raises(ProtocolError) as ei:
            rpc.post("transactions", b"\x80", expected_status=202)
    assert ei.value.status == 200


@respx.mock
def test_network_failure_is_not_retried():
    route = respx.get(f"{API}/rounds/latest").mock(side_effect=httpx.ConnectError("connection refused"))
    with RpcTransport(BASE) as rpc:
        with pytest.raises(ProtocolError) as ei:
            rpc.get("rounds/latest")
    assert ei.value.status is None
    assert isinstance(ei.value.__cause__, httpx.ConnectError)
    assert route.call_count == 1


def test_base_url_scheme_is_checked():
    with pytest.raises(ValueError):
        RpcTransport("node.test:26866")


@respx.mock
def test_injected_client_is_used_as_is():
    respx.get(f"{API}/rounds/latest").mock(return_value=_cbor(7))
    with httpx.Client(base_url=BASE) as http:
        rpc = RpcTransport(BASE, client=http)
        assert rpc.get("rounds/latest") == 7
        rpc.close()
        assert not http.is_closed

        with pytest.raises(ValueError):
            RpcTransport(BASE, client=http, headers={"X-Trace": "1"})
        with pytest.raises(ValueError):
            RpcTransport(BASE, client=http, timeout=2.0)


# --- node endpoints -------------------------------------------------------------


@respx.mock
def test_post_transaction_returns_hash():
    order = _order()
    route = respx.post(f"{API}/transactions").mock(return_value=httpx.Response(202))
    client = StateClient(RpcTransport(BASE))
    assert client.post_transaction(order) == tx_hash(order)
    assert route.calls.last.request.content == encode_order(order)


@respx.mock
def test_post_transaction_rejection_has_context():
    respx.post(f"{API}/transactions").mock(return_value=httpx.Response(400, content=cbor2.dumps(["invalid owner proof"])))
    client = StateClient(RpcTransport(BASE))
    with pytest.raises(ProtocolError) as ei:
        client.post_transaction(_order())
    assert ei.value.message == "transaction send failed: invalid owner proof"
    assert ei.value.status == 400


@respx.mock
def test_round_info_from_plain_round_number():
    respx.get(f"{API}/rounds/latest").mock(return_value=_cbor(1234))
    info = StateClient(RpcTransport(BASE)).get_round_info()
    assert info.round_number == 1234
    assert info.last_indexed_round_number == 1234


@respx.mock
def test_tx_proof_lookup(make_proof):
    order = _order()
    proof = make_proof(order, actual_fee=7)
    url = f"{API}/transactions/{to_hex(tx_hash(order), prefix=False)}"
    route = respx.get(url).mock(side_effect=[httpx.Response(404), _cbor(proof.to_array())])
    client = StateClient(RpcTransport(BASE))

    assert client.get_tx_proof(tx_hash(order)) is None
    got = client.get_tx_proof(tx_hash(order))
    assert got is not None
    assert got.server_metadata.actual_fee == 7
    assert got.tx_record.order() == order
    assert route.call_count == 2


@respx.mock
def test_tx_proof_with_malformed_target_unit(make_proof):
    order = _order()
    body = make_proof(order).to_array()
    body[0][1][1] = [5]
    respx.get(f"{API}/transactions/{to_hex(tx_hash(order), prefix=False)}").mock(return_value=_cbor(body))
    with pytest.raises(ProtocolError) as ei:
        StateClient(RpcTransport(BASE)).get_tx_proof(tx_hash(order))
    assert ei.value.message.startswith("get tx proof request failed: failed to decode response body")
    assert "ServerMetadata.targetUnits" in ei.value.message


# --- evm endpoints ---------------------------------------------------------------


@respx.mock
def test_fee_credit_bill_converts_balance():
    respx.get(f"{API}/evm/balance/{ADDR.hex()}").mock(return_value=_cbor(["120000000000", 7]))
    bill = EvmClient(RpcTransport(BASE)).get_fee_credit_bill(ADDR)
    assert bill == FeeCreditBill(id=ADDR, value=12, counter=7)


@respx.mock
def test_fee_credit_bill_missing_account():
    respx.get(f"{API}/evm/balance/{ADDR.hex()}").mock(return_value=httpx.Response(404))
    client = EvmClient(RpcTransport(BASE))
    assert client.get_fee_credit_bill(ADDR) is None
    with pytest.raises(NotFoundError):
        client.get_balance(ADDR)


@respx.mock
def test_fee_credit_bill_invalid_balance():
    respx.get(f"{API}/evm/balance/{ADDR.hex()}").mock(return_value=_cbor(["12x", 0]))
    with pytest.raises(ProtocolError) as ei:
        EvmClient(RpcTransport(BASE)).get_fee_credit_bill(ADDR)
    assert "invalid balance" in ei.value.message


@respx.mock
def test_gas_price_and_nonce():
    respx.get(f"{API}/evm/gasPrice").mock(return_value=_cbor(["100000000000"]))
    respx.get(f"{API}/evm/transactionCount/{ADDR.hex()}").mock(return_value=_cbor([5]))
    client = EvmClient(RpcTransport(BASE))
    assert client.get_gas_price() == "100000000000"
    assert client.get_transaction_count(ADDR) == 5


@respx.mock
def test_evm_call_returns_processing_details():
    details = ["", b"\x00\x2a", None, []]
    route = respx.post(f"{API}/evm/call").mock(return_value=_cbor([details]))
    request = CallEvmRequest(from_addr=ADDR, to=b"\xcd" * 20, data=b"\x70\xa0\x82\x31", gas=50_000)
    result = EvmClient(RpcTransport(BASE)).call(request)
    assert result is not None
    assert result.return_data == b"\x00\x2a"
    assert not result.reverted
    assert route.calls.last.request.content == request.to_cbor()


@respx.mock
def test_balance_and_nonce_errors_name_the_operation():
    err = httpx.Response(500, content=cbor2.dumps(["state store unavailable"]))
    respx.get(f"{API}/evm/balance/{ADDR.hex()}").mock(return_value=err)
    respx.get(f"{API}/evm/transactionCount/{ADDR.hex()}").mock(return_value=err)
    client = EvmClient(RpcTransport(BASE))

    with pytest.raises(ProtocolError) as ei:
        client.get_balance(ADDR)
    assert ei.value.message == f"failed to read balance for addr {to_hex(ADDR)}: state store unavailable"
    assert ei.value.status == 500

    with pytest.raises(ProtocolError) as ei:
        client.get_transaction_count(ADDR)
    assert ei.value.message == f"failed to read transaction count for addr {to_hex(ADDR)}: state store unavailable"

    with pytest.raises(ProtocolError) as ei:
        client.get_fee_credit_bill(ADDR)
    assert ei.value.message.startswith("failed to read balance for addr")
