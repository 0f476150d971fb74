from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from api.api import PREFIX, app
from services.token_service import TokenService
from tests.constants import ALICE, BOB, CAROL, DEPLOYER

ZERO = "0x" + "0" * 40


@pytest.fixture()
def client(token_service: TokenService) -> TestClient:
    app.state.token_service = token_service
    return TestClient(app)


@pytest.fixture()
def deployed(client: TestClient) -> TestClient:
    assert client.post(f"{PREFIX}/deploy").status_code == 200
    return client


def _post(client: TestClient, path: str, caller: str | None = None, **params: str) -> httpx.Response:
    headers = {"X-Caller": caller} if caller is not None else {}
    return client.post(f"{PREFIX}{path}", params=params, headers=headers)


def _get(client: TestClient, path: str, **params: str) -> dict[str, Any]:
    response = client.get(f"{PREFIX}{path}", params=params)
    assert response.status_code == 200
    return response.json()


def test_address_before_deploy(client: TestClient) -> None:
    assert _get(client, "/address") == {"message": "No contract loaded"}


def test_read_before_deploy_is_conflict(client: TestClient) -> None:
    response = client.get(f"{PREFIX}/total-supply")

    assert response.status_code == 409
    assert response.json()["error"] == "ContractNotLoaded"


def test_deploy_and_load(client: TestClient) -> None:
    address = client.post(f"{PREFIX}/deploy").json()["contractAddress"]

    loaded = _post(client, "/load", address=address.upper().replace("0X", "0x"))

    assert loaded.json() == {"message": "Contract loaded successfully", "contractAddress": address}
    assert _get(client, "/address") == {"contractAddress": address}


def test_load_unknown_contract(client: TestClient) -> None:
    response = _post(client, "/load", address=CAROL)

    assert response.status_code == 404
    assert response.json()["error"] == "ContractNotFound"


def test_mint_and_balance_use_decimal_strings(deployed: TestClient) -> None:
    big = str(10**40)

    minted = _post(deployed, "/mint", to=ALICE, amount=big)
    balance = _get(deployed, f"/balance/{ALICE}")

    assert minted.status_code == 200
    body = minted.json()
    assert set(body) == {"transactionHash", "blockNumber", "status", "contractAddress", "archived", "events"}
    assert body["blockNumber"] == "1"
    assert body["archived"] is True
    assert balance["balance"] == big
    assert balance["owner"] == ALICE
    assert _get(deployed, "/total-supply")["totalSupply"] == big


def test_receipt_lists_emitted_events(deployed: TestClient) -> None:
    big = str(2**255)

    body = _post(deployed, "/mint", to=ALICE, amount=big).json()

    assert body["events"] == [
        {"event_type": "TRANSFER", "sequence": "0", "from_address": ZERO, "to_address": ALICE, "value": big}
    ]


def test_metadata_routes(deployed: TestClient) -> None:
    assert _get(deployed, "/name")["name"] == "WYZToken"
    assert _get(deployed, "/symbol")["symbol"] == "WYZ"
    assert _get(deployed, "/decimals")["decimals"] == "18"


def test_transfer_uses_caller_header(deployed: TestClient) -> None:
    _post(deployed, "/mint", to=ALICE, amount="100")

    response = _post(deployed, "/transfer", caller=ALICE, to=BOB, amount="25")

    assert response.status_code == 200
    assert _get(deployed, f"/balance/{BOB}")["balance"] == "25"


def test_default_caller_applies_without_header(deployed: TestClient) -> None:
    _post(deployed, "/mint", to=DEPLOYER, amount="9")

    _post(deployed, "/burn", amount="4")

    assert _get(deployed, f"/balance/{DEPLOYER}")["balance"] == "5"


def test_delegated_transfer_flow(deployed: TestClient) -> None:
    _post(deployed, "/mint", to=ALICE, amount="100")
    _post(deployed, "/approve", caller=ALICE, spender=BOB, amount="40")

    ok = _post(deployed, "/transfer-from", caller=BOB, **{"from": ALICE, "to": CAROL, "amount": "40"})
    exceeded = _post(deployed, "/transfer-from", caller=BOB, **{"from": ALICE, "to": CAROL, "amount": "1"})

    assert ok.status_code == 200
    assert exceeded.status_code == 409
    assert exceeded.json()["error"] == "AllowanceExceeded"
    allowance = _get(deployed, "/allowance", owner=ALICE, spender=BOB)
    assert allowance["allowance"] == "0"
    assert allowance["spender"] == BOB


@pytest.mark.parametrize(
    ("path", "params", "status", "code"),
    [
        ("/transfer", {"to": ZERO, "amount": "1"}, 400, "InvalidRecipient"),
        ("/mint", {"to": ZERO, "amount": "1"}, 400, "InvalidRecipient"),
        ("/approve", {"spender": ZERO, "amount": "1"}, 400, "InvalidSpender"),
        ("/transfer", {"to": "0x1234", "amount": "1"}, 400, "InvalidAddress"),
        ("/transfer", {"to": "0x" + "1" * 40, "amount": "-1"}, 400, "InvalidAmount"),
        ("/transfer", {"to": "0x" + "1" * 40, "amount": "1.5"}, 400, "InvalidAmount"),
        ("/transfer", {"to": "0x" + "1" * 40, "amount": "٣"}, 400, "InvalidAmount"),
        ("/mint", {"to": "0x" + "1" * 40, "amount": str(2**256)}, 400, "InvalidAmount"),
        ("/mint", {"to": "0x" + "1" * 40, "amount": "9" * 5000}, 400, "InvalidAmount"),
        ("/transfer", {"to": "0x" + "1" * 40, "amount": "1"}, 409, "InsufficientBalance"),
        ("/burn", {"amount": "0"}, 400, "InvalidAmount"),
        ("/mint", {"to": "0x" + "1" * 40}, 400, "MissingParameter"),
    ],
)
def test_errors_are_translated(
    deployed: TestClient, path: str, params: dict[str, str], status: int, code: str
) -> None:
    response = _post(deployed, path, **params)

    assert response.status_code == status
    assert response.json()["error"] == code
    assert response.json()["message"]


def test_leading_zeros_do_not_count_against_amount_length(deployed: TestClient) -> None:
    response = _post(deployed, "/mint", to=ALICE, amount="0" * 100 + "7")

    assert response.status_code == 200
    assert _get(deployed, f"/balance/{ALICE}")["balance"] == "7"


def test_malformed_caller(deployed: TestClient) -> None:
    response = _post(deployed, "/burn", caller="alice", amount="1")

    assert response.status_code == 400
    assert response.json()["error"] == "InvalidAddress"


def test_unknown_route(deployed: TestClient) -> None:
    assert deployed.post(f"{PREFIX}/increase-allowance").status_code == 404
