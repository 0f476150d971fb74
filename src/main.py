from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Sequence

from fastapi.testclient import TestClient

from api.api import PREFIX, app
from config import config
from services.token_service import build_token_service
from utils.holder_summary import compute_holder_summary, render_holder_summary
from utils.operations import Operation, load_operations

logger = logging.getLogger(__name__)

ROUTES: dict[str, tuple[str, str]] = {
    "deploy": ("POST", "/deploy"),
    "load": ("POST", "/load"),
    "mint": ("POST", "/mint"),
    "transfer": ("POST", "/transfer"),
    "approve": ("POST", "/approve"),
    "transfer-from": ("POST", "/transfer-from"),
    "burn": ("POST", "/burn"),
    "balance": ("GET", "/balance/{owner}"),
    "allowance": ("GET", "/allowance"),
    "total-supply": ("GET", "/total-supply"),
    "name": ("GET", "/name"),
    "symbol": ("GET", "/symbol"),
    "decimals": ("GET", "/decimals"),
    "address": ("GET", "/address"),
}


def _send(client: TestClient, operation: Operation) -> tuple[int, dict[str, object]]:
    if operation.route not in ROUTES:
        return 404, {"error": "UnknownRoute", "message": f"Unknown route: {operation.route}"}
    method, path = ROUTES[operation.route]
    params = dict(operation.params)
    if "{owner}" in path:
        path = path.format(owner=params.pop("owner", ""))
    headers = {"X-Caller": operation.caller} if operation.caller is not None else {}
    response = client.request(method, PREFIX + path, params=params, headers=headers)
    return response.status_code, response.json()


def run(ops_path: Path, *, database_url: str) -> int:
    settings = config()
    # Contract addresses are derived from the deploy nonce, so each run starts from an empty archive.
    service = build_token_service(database_url, reset=True)
    operations = load_operations(ops_path, decimals=settings.token_decimals)

    # Scripts may start with their own deploy; otherwise work on a fresh contract.
    if not operations or operations[0].route != "deploy":
        service.deploy_contract()

    app.state.token_service = service
    client = TestClient(app)
    failures = 0
    for operation in operations:
        status_code, body = _send(client, operation)
        if not 200 <= status_code < 300:
            failures += 1
        print(json.dumps({"route": operation.route, "status": status_code, **body}))

    logger.info("Replayed %d operations from %s (%d rejected)", len(operations), ops_path, failures)
    render_holder_summary(compute_holder_summary(service.ledger()))
    return failures


def main(argv: Sequence[str] | None = None) -> None:
    settings = config()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    parser = argparse.ArgumentParser(description="Replay a JSONL script of token operations against a fresh ledger.")
    parser.add_argument("--ops", type=Path, required=True)
    parser.add_argument("--database-url", default=settings.database_url)
    args = parser.parse_args(argv)
    run(args.ops, database_url=args.database_url)


if __name__ == "__main__":
    main()
