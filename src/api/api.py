import logging
from contextlib import asynccontextmanager
from time import perf_counter
from typing import Annotated, Any, AsyncGenerator, Awaitable, Callable

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.dependencies import BadRequest, get_caller, get_token_service, to_address, to_amount
from domain.token import Address
from domain.token_ledger import AllowanceExceededError, InsufficientBalanceError, LedgerError
from services.token_service import (
    ContractNotFoundError,
    ContractNotLoadedError,
    TokenService,
    TransactionReceipt,
    build_token_service,
)

logger = logging.getLogger(__name__)

PREFIX = "/api/erc20"

Service = Annotated[TokenService, Depends(get_token_service)]
Caller = Annotated[Address | None, Depends(get_caller)]


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    if getattr(fastapi_app.state, "token_service", None) is None:
        fastapi_app.state.token_service = build_token_service()
    yield


app = FastAPI(lifespan=lifespan)


@app.middleware("http")
async def log_process_time(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    start_time = perf_counter()
    response = await call_next(request)
    process_time = perf_counter() - start_time
    logger.debug("Request time: %s %s: %.4fs", request.method, request.url, process_time)
    return response


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, "message": message})


@app.exception_handler(BadRequest)
async def bad_request_handler(request: Request, exc: BadRequest) -> JSONResponse:
    return _error(400, exc.code, str(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    code = "MissingParameter" if any(error["type"] == "missing" for error in errors) else "InvalidRequest"
    message = "; ".join(f"{'.'.join(map(str, error['loc']))}: {error['msg']}" for error in errors)
    return _error(400, code, message)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = 409 if isinstance(exc, (InsufficientBalanceError, AllowanceExceededError)) else 400
    return _error(status_code, exc.code, str(exc))


@app.exception_handler(ContractNotLoadedError)
async def contract_not_loaded_handler(request: Request, exc: ContractNotLoadedError) -> JSONResponse:
    return _error(409, "ContractNotLoaded", str(exc))


@app.exception_handler(ContractNotFoundError)
async def contract_not_found_handler(request: Request, exc: ContractNotFoundError) -> JSONResponse:
    return _error(404, "ContractNotFound", str(exc))


def _receipt(receipt: TransactionReceipt) -> dict[str, Any]:
    return {
        "transactionHash": receipt.transaction_hash,
        "blockNumber": str(receipt.block_number),
        "status": receipt.status,
        "contractAddress": receipt.contract_address,
        "archived": receipt.archived,
        "events": [
            {key: str(value) for key, value in event.model_dump(mode="json").items()} for event in receipt.events
        ],
    }


def _with_contract(service: TokenService, body: dict[str, str]) -> dict[str, str]:
    body["contractAddress"] = service.contract_address or ""
    return body


# Contract lifecycle


@app.post(f"{PREFIX}/deploy")
def deploy(service: Service) -> dict[str, str]:
    return {"contractAddress": service.deploy_contract()}


@app.post(f"{PREFIX}/load")
def load(service: Service, address: str) -> dict[str, str]:
    contract_address = to_address(address)
    service.load_contract(contract_address)
    return {"message": "Contract loaded successfully", "contractAddress": contract_address}


@app.get(f"{PREFIX}/address")
def address(service: Service) -> dict[str, str]:
    contract_address = service.contract_address
    if contract_address is None:
        return {"message": "No contract loaded"}
    return {"contractAddress": contract_address}


# Mutations


@app.post(f"{PREFIX}/mint")
def mint(service: Service, caller: Caller, to: str, amount: str) -> dict[str, Any]:
    return _receipt(service.mint(to_address(to), to_amount(amount), caller=caller))


@app.post(f"{PREFIX}/transfer")
def transfer(service: Service, caller: Caller, to: str, amount: str) -> dict[str, Any]:
    return _receipt(service.transfer(to_address(to), to_amount(amount), caller=caller))


@app.post(f"{PREFIX}/approve")
def approve(service: Service, caller: Caller, spender: str, amount: str) -> dict[str, Any]:
    return _receipt(service.approve(to_address(spender), to_amount(amount), caller=caller))


@app.post(f"{PREFIX}/transfer-from")
def transfer_from(
    service: Service,
    caller: Caller,
    to: str,
    amount: str,
    from_: Annotated[str, Query(alias="from")],
) -> dict[str, Any]:
    receipt = service.transfer_from(to_address(from_), to_address(to), to_amount(amount), caller=caller)
    return _receipt(receipt)


@app.post(f"{PREFIX}/burn")
def burn(service: Service, caller: Caller, amount: str) -> dict[str, Any]:
    return _receipt(service.burn(to_amount(amount), caller=caller))


# Reads


@app.get(f"{PREFIX}/balance/{{owner}}")
def balance(service: Service, owner: str) -> dict[str, str]:
    owner_address = to_address(owner)
    return _with_contract(service, {"balance": str(service.balance_of(owner_address)), "owner": owner_address})


@app.get(f"{PREFIX}/allowance")
def allowance(service: Service, owner: str, spender: str) -> dict[str, str]:
    owner_address, spender_address = to_address(owner), to_address(spender)
    amount = service.allowance(owner_address, spender_address)
    return _with_contract(
        service, {"allowance": str(amount), "owner": owner_address, "spender": spender_address}
    )


@app.get(f"{PREFIX}/total-supply")
def total_supply(service: Service) -> dict[str, str]:
    return _with_contract(service, {"totalSupply": str(service.total_supply())})


@app.get(f"{PREFIX}/name")
def name(service: Service) -> dict[str, str]:
    return _with_contract(service, {"name": service.name()})


@app.get(f"{PREFIX}/symbol")
def symbol(service: Service) -> dict[str, str]:
    return _with_contract(service, {"symbol": service.symbol()})


@app.get(f"{PREFIX}/decimals")
def decimals(service: Service) -> dict[str, str]:
    return _with_contract(service, {"decimals": str(service.decimals())})
