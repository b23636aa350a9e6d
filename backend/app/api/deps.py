"""Shared request dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import get_db

LOOPBACK_ADDRESS = "127.0.0.1"
# Largest value a 64-bit signed INTEGER column can hold
MAX_FEATURE_ID = 2**63 - 1


def voter_identifier(request: Request) -> str:
    """Derive the voter identifier from the request's network address.

    Precedence: first non-empty hop of ``X-Forwarded-For``, then ``X-Real-IP``, then
    the socket peer, then loopback. The headers are client-controlled, so
    this identifies a network origin, not a person.
    """
    forwarded_for = request.headers.get("x-forwarded-for", "")
    for hop in forwarded_for.split(","):
        hop = hop.strip()
        if hop:
            return hop

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host

    return LOOPBACK_ADDRESS


def feature_id_path(feature_id: str) -> int:
    # Parsed by hand so a bad id gets our 400 message rather than a generic validation error
    if not feature_id.isascii() or not feature_id.isdigit():
        raise HTTPException(status_code=400, detail="Invalid feature ID")
    value = int(feature_id)
    if value > MAX_FEATURE_ID:
        # No row can carry this id
        raise HTTPException(status_code=404, detail="Feature not found")
    return value


DbDep = Annotated[AsyncSession, Depends(get_db)]
FeatureIdDep = Annotated[int, Depends(feature_id_path)]
VoterDep = Annotated[str, Depends(voter_identifier)]
