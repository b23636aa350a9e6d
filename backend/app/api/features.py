"""Feature request endpoints."""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Request, Response
from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import DbDep, FeatureIdDep, VoterDep
from backend.app.config import settings
from backend.app.limiter import limiter
from backend.app.models.feature import Feature, Vote
from backend.app.schemas.common import ApiResponse
from backend.app.schemas.feature import FeatureCreate, FeatureResponse
from backend.app.services.vote_service import VoteOutcome, cast_vote

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/features", tags=["features"])


def _with_vote_count():
    return (
        select(Feature, func.count(Vote.id).label("vote_count"))
        .outerjoin(Vote, Feature.id == Vote.feature_id)
        .group_by(Feature.id)
    )


def _to_response(feature: Feature, vote_count: int) -> FeatureResponse:
    return FeatureResponse(
        id=feature.id,
        title=feature.title,
        description=feature.description,
        author_name=feature.author_name,
        votes=feature.votes,
        vote_count=vote_count,
        created_at=feature.created_at,
        updated_at=feature.updated_at,
    )


async def _count_votes(db: AsyncSession, feature_id: int) -> int:
    result = await db.execute(select(func.count(Vote.id)).where(Vote.feature_id == feature_id))
    return result.scalar_one()


async def _load_feature(db: AsyncSession, feature_id: int) -> FeatureResponse | None:
    result = await db.execute(_with_vote_count().where(Feature.id == feature_id))
    row = result.one_or_none()
    if row is None:
        return None
    feature, vote_count = row
    return _to_response(feature, vote_count)


@router.get("", response_model=ApiResponse[list[FeatureResponse]])
async def list_features(db: DbDep) -> ApiResponse:
    query = _with_vote_count().order_by(
        desc(Feature.votes), desc(Feature.created_at), desc(Feature.id)
    )
    try:
        result = await db.execute(query)
        rows = result.all()
    except SQLAlchemyError:
        logger.exception("Error fetching features")
        raise HTTPException(status_code=500, detail="Failed to fetch features")

    return ApiResponse.ok([_to_response(feature, vote_count) for feature, vote_count in rows])


@router.post("", response_model=ApiResponse[FeatureResponse], status_code=201)
async def create_feature(data: FeatureCreate, db: DbDep) -> ApiResponse:
    now = datetime.now(UTC).isoformat()
    feature = Feature(
        title=data.title,
        description=data.description,
        author_name=data.author_name,
        votes=0,
        created_at=now,
        updated_at=now,
    )
    try:
        db.add(feature)
        await db.commit()
        await db.refresh(feature)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Error creating feature")
        raise HTTPException(status_code=500, detail="Failed to create feature")

    logger.info("Feature %s created by %s", feature.id, feature.author_name)
    return ApiResponse.ok(_to_response(feature, 0))


@router.get("/{feature_id}", response_model=ApiResponse[FeatureResponse])
async def get_feature(feature_id: FeatureIdDep, db: DbDep) -> ApiResponse:
    try:
        feature = await _load_feature(db, feature_id)
    except SQLAlchemyError:
        logger.exception("Error fetching feature %s", feature_id)
        raise HTTPException(status_code=500, detail="Failed to fetch feature")

    if feature is None:
        raise HTTPException(status_code=404, detail="Feature not found")
    return ApiResponse.ok(feature)


@router.post("/{feature_id}/vote", response_model=ApiResponse[FeatureResponse])
@limiter.limit(settings.vote_rate_limit)
async def vote_feature(
    request: Request,
    response: Response,
    feature_id: FeatureIdDep,
    voter_ip: VoterDep,
    db: DbDep,
) -> ApiResponse:
    vote_count = 0
    try:
        result = await cast_vote(db, feature_id, voter_ip)
        if result.outcome is VoteOutcome.RECORDED:
            vote_count = await _count_votes(db, feature_id)
    except SQLAlchemyError:
        logger.exception("Error voting on feature %s", feature_id)
        raise HTTPException(status_code=500, detail="Failed to record vote")

    if result.outcome is VoteOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Feature not found")
    if result.outcome is VoteOutcome.ALREADY_VOTED:
        raise HTTPException(status_code=409, detail="You have already voted for this feature")

    return ApiResponse.ok(
        _to_response(result.feature, vote_count), message="Vote recorded successfully"
    )
