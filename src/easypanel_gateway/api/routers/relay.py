from __future__ import annotations

import json
import math
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel, field_validator
from starlette.status import HTTP_400_BAD_REQUEST

from easypanel_gateway.api.deps import trpc_client_dep
from easypanel_gateway.auth.deps import require_api_secret
from easypanel_gateway.trpc.client import TrpcClient
from easypanel_gateway.trpc.transport import CallKind

router = APIRouter(
    prefix="/api/v1/rpc",
    tags=["relay"],
    dependencies=[Depends(require_api_secret)],
)

ProcedureName = Annotated[
    str,
    Path(pattern=r"^[A-Za-z0-9_-]+(\.[A-Za-z0-9_-]+)*$", max_length=200),
]


class RelayRequest(BaseModel):
    input: Any = None
    kind: CallKind = CallKind.MUTATION

    @field_validator("input")
    @classmethod
    def finite_numbers_only(cls, value: Any) -> Any:
        _require_finite(value)
        return value


class RelayResponse(BaseModel):
    data: Any = None


@router.post("/{procedure}", response_model=RelayResponse)
async def relay_call(
    procedure: ProcedureName,
    body: RelayRequest,
    client: TrpcClient = Depends(trpc_client_dep),
) -> RelayResponse:
    data = await client.call(procedure, body.input, body.kind)
    return RelayResponse(data=data)


@router.get("/{procedure}", response_model=RelayResponse)
async def relay_query(
    procedure: ProcedureName,
    raw_input: str | None = Query(
        default=None, alias="input", description="JSON-encoded procedure input"
    ),
    client: TrpcClient = Depends(trpc_client_dep),
) -> RelayResponse:
    payload: Any = None
    if raw_input is not None:
        try:
            payload = json.loads(raw_input, parse_constant=_reject_constant)
        except ValueError as e:
            raise HTTPException(
                status_code=HTTP_400_BAD_REQUEST, detail="input must be valid JSON"
            ) from e
    data = await client.query(procedure, payload)
    return RelayResponse(data=data)


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON; upstream would receive an invalid body.
    raise ValueError(f"unsupported JSON constant: {name}")


def _require_finite(value: Any) -> None:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("input must not contain NaN or Infinity")
    if isinstance(value, dict):
        for item in value.values():
            _require_finite(item)
    elif isinstance(value, list):
        for item in value:
            _require_finite(item)
