# ruff: noqa: INP001, S101
"""Integration tests for proposal fan-out, decisions, and cached status."""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel, col
from sqlmodel.ext.asyncio.session import AsyncSession

from proposal_gate.models.approvals import Approval
from proposal_gate.models.approvers import Approver
from proposal_gate.models.audit_entries import AuditEntry
from proposal_gate.models.proposals import Proposal
from proposal_gate.schemas.proposals import ClubFormationCreate, EventProposalCreate
from proposal_gate.services import approval_engine
from proposal_gate.services.approval_engine import (
    list_approvals,
    list_pending_reviews,
    record_decision,
)
from proposal_gate.services.errors import (
    AlreadyProcessed,
    GatingViolation,
    NoActiveApprovers,
    NotAuthorized,
    NotFound,
    ValidationError,
)
from proposal_gate.services.gating import GateResult, can_approve
from proposal_gate.services.proposals import (
    clear_status_override,
    create_proposal,
    force_status,
)
from proposal_gate.services.status_aggregator import compute_overall_status

CORE = ("president", "vice_president", "treasurer")
ROSTER = (
    ("president", 1),
    ("vice_president", 2),
    ("treasurer", 3),
    ("sa_office", 4),
    ("faculty_advisor", 5),
    ("final_approver", 6),
)


def _email(role: str) -> str:
    return f"{role}@college.edu"


async def _make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


async def _make_session() -> tuple[AsyncEngine, AsyncSession]:
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return engine, session_maker()


async def _seed_roster(session: AsyncSession, *, with_developer: bool = True) -> None:
    for role, order in ROSTER:
        session.add(
            Approver(
                email=_email(role),
                name=role.replace("_", " ").title(),
                role=role,
                approval_order=order,
            )
        )
    if with_developer:
        session.add(Approver(email="dev@college.edu", name="Dev", role="developer", approval_order=0))
    await session.commit()


def _event_payload(**overrides: object) -> EventProposalCreate:
    values: dict[str, object] = {
        "event_name": "Spring Hackathon",
        "event_type": "technical",
        "description": "24 hour hackathon",
        "event_date": date(2026, 4, 18),
        "start_time": "09:00",
        "end_time": "21:00",
        "venue": "Main Auditorium",
        "expected_participants": 120,
        "budget_estimate": "1500.00",
        "organizer_name": "Sam Organizer",
        "organizer_email": "Sam@Student.College.edu",
    }
    values.update(overrides)
    return EventProposalCreate.model_validate(values)


async def _decide(session: AsyncSession, proposal: Proposal, role: str, decision: str = "approved") -> Approval:
    return await record_decision(
        session,
        proposal_id=proposal.id,
        approver_email=_email(role),
        actor_email=_email(role),
        decision=decision,
    )


async def _statuses(session: AsyncSession, proposal: Proposal) -> dict[str, str]:
    rows = await list_approvals(session, proposal.id)
    return {row.role: row.status for row in rows}


@pytest.mark.asyncio
async def test_create_proposal_fans_out_pending_rows_in_order() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())

        assert proposal.status == "pending"
        assert proposal.title == "Spring Hackathon"
        assert proposal.proposer_email == "sam@student.college.edu"
        assert proposal.payload is not None
        assert proposal.payload["venue"] == "Main Auditorium"

        rows = await list_approvals(session, proposal.id)
        assert [row.role for row in rows] == [role for role, _ in ROSTER]
        assert all(row.status == "pending" for row in rows)
        assert all(row.approval.decided_at is None for row in rows)

        audit = await AuditEntry.objects.filter_by(proposal_id=proposal.id).all(session)
        assert [entry.action for entry in audit] == ["proposal.create"]
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_create_club_formation_proposal() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        payload = ClubFormationCreate(
            club_name="Astronomy Club",
            club_description="Stargazing nights",
            club_objectives="Observe and learn",
            proposed_by_name="Riley",
            proposed_by_email="riley@student.college.edu",
            initial_members=["a@student.college.edu", "b@student.college.edu"],
        )
        proposal = await create_proposal(session, payload=payload)

        assert proposal.proposal_type == "club_formation"
        assert proposal.title == "Astronomy Club"
        assert len(await list_approvals(session, proposal.id)) == len(ROSTER)
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_create_proposal_requires_active_approvers() -> None:
    engine, session = await _make_session()
    try:
        session.add(Approver(email="dev@college.edu", name="Dev", role="developer"))
        session.add(
            Approver(email=_email("president"), name="P", role="president", is_active=False)
        )
        await session.commit()

        with pytest.raises(NoActiveApprovers) as exc:
            await create_proposal(session, payload=_event_payload())
        assert exc.value.status_code == 503

        assert await Proposal.objects.all().all(session) == []
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_full_chain_approves_proposal() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())

        for role, _ in ROSTER[:-1]:
            await _decide(session, proposal, role)
            await session.refresh(proposal)
            assert proposal.status == "pending"

        approval = await _decide(session, proposal, "final_approver")
        assert approval.status == "approved"
        assert approval.decided_at is not None

        await session.refresh(proposal)
        assert proposal.status == "approved"

        actions = [
            entry.action
            for entry in await AuditEntry.objects.filter_by(proposal_id=proposal.id)
            .order_by(col(AuditEntry.created_at).asc())
            .all(session)
        ]
        assert actions.count("approval.approve") == len(ROSTER)
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_split_decision_keeps_proposal_pending() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())

        rejected = await _decide(session, proposal, "president", "rejected")
        assert rejected.status == "rejected"
        assert rejected.decided_at is not None
        await _decide(session, proposal, "faculty_advisor")

        await session.refresh(proposal)
        assert proposal.status == "pending"
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_sa_office_is_gated_until_core_council_approves() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())
        await _decide(session, proposal, "president")
        await _decide(session, proposal, "vice_president")

        with pytest.raises(GatingViolation) as exc:
            await _decide(session, proposal, "sa_office")
        assert exc.value.status_code == 409
        assert exc.value.detail == "Core student council members must approve first"
        assert (await _statuses(session, proposal))["sa_office"] == "pending"

        await _decide(session, proposal, "treasurer")
        approval = await _decide(session, proposal, "sa_office")
        assert approval.status == "approved"
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_final_approver_is_gated_until_everyone_else_approves() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())
        for role in (*CORE, "sa_office"):
            await _decide(session, proposal, role)

        gate = await can_approve(session, approver_email=_email("final_approver"), proposal_id=proposal.id)
        assert gate == GateResult(allowed=False, reason="All other members must approve first")

        await _decide(session, proposal, "faculty_advisor")
        gate = await can_approve(session, approver_email=_email("final_approver"), proposal_id=proposal.id)
        assert gate.allowed is True
    finally:
        await session.close()
        await engine.dispose()


async def _seed_small_council(session: AsyncSession) -> None:
    for role, order in (("president", 1), ("treasurer", 2), ("sa_office", 3)):
        session.add(Approver(email=_email(role), name=role.title(), role=role, approval_order=order))
    await session.commit()


@pytest.mark.asyncio
async def test_small_council_without_vice_president_walks_the_chain() -> None:
    engine, session = await _make_session()
    try:
        await _seed_small_council(session)
        proposal = await create_proposal(session, payload=_event_payload())
        assert await _statuses(session, proposal) == {
            "president": "pending",
            "treasurer": "pending",
            "sa_office": "pending",
        }

        await _decide(session, proposal, "president")
        rows = await list_approvals(session, proposal.id)
        assert compute_overall_status(row.status for row in rows) == "pending"
        await session.refresh(proposal)
        assert proposal.status == "pending"
        gate = await can_approve(session, approver_email=_email("sa_office"), proposal_id=proposal.id)
        assert gate == GateResult(
            allowed=False,
            reason="Core student council members must approve first",
        )

        await _decide(session, proposal, "treasurer")
        gate = await can_approve(session, approver_email=_email("sa_office"), proposal_id=proposal.id)
        assert gate == GateResult(allowed=True)

        await _decide(session, proposal, "sa_office")
        rows = await list_approvals(session, proposal.id)
        assert compute_overall_status(row.status for row in rows) == "approved"
        await session.refresh(proposal)
        assert proposal.status == "approved"
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_small_council_mixed_decisions_stay_pending() -> None:
    engine, session = await _make_session()
    try:
        await _seed_small_council(session)
        proposal = await create_proposal(session, payload=_event_payload())
        await _decide(session, proposal, "president", "rejected")
        await _decide(session, proposal, "treasurer")

        assert await _statuses(session, proposal) == {
            "president": "rejected",
            "treasurer": "approved",
            "sa_office": "pending",
        }
        rows = await list_approvals(session, proposal.id)
        assert compute_overall_status(row.status for row in rows) == "pending"
        await session.refresh(proposal)
        assert proposal.status == "pending"
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_second_decision_is_already_processed() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())
        await _decide(session, proposal, "president")

        with pytest.raises(AlreadyProcessed):
            await _decide(session, proposal, "president", "rejected")
        assert (await _statuses(session, proposal))["president"] == "approved"
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_conditional_update_rejects_a_concurrently_decided_row(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())
        await _decide(session, proposal, "president", "rejected")

        # Another request decided first; its gate check had already passed.
        async def _stale_gate(*_args: object, **_kwargs: object) -> GateResult:
            return GateResult(allowed=True)

        monkeypatch.setattr(approval_engine, "can_approve", _stale_gate)

        with pytest.raises(AlreadyProcessed):
            await _decide(session, proposal, "president", "approved")

        rows = await list_approvals(session, proposal.id)
        president = next(row for row in rows if row.role == "president")
        assert president.status == "rejected"
        audit = await AuditEntry.objects.filter_by(proposal_id=proposal.id).all(session)
        assert [entry.action for entry in audit].count("approval.approve") == 0
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_invalid_decision_and_foreign_actor_are_rejected() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())

        with pytest.raises(ValidationError):
            await _decide(session, proposal, "president", "maybe")

        with pytest.raises(NotAuthorized):
            await record_decision(
                session,
                proposal_id=proposal.id,
                approver_email=_email("president"),
                actor_email=_email("treasurer"),
                decision="approved",
            )

        with pytest.raises(NotAuthorized):
            await record_decision(
                session,
                proposal_id=proposal.id,
                approver_email="dev@college.edu",
                actor_email="dev@college.edu",
                decision="approved",
            )
        assert set((await _statuses(session, proposal)).values()) == {"pending"}
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_actor_email_is_matched_case_insensitively() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())

        approval = await record_decision(
            session,
            proposal_id=proposal.id,
            approver_email="President@College.edu",
            actor_email=" president@college.EDU ",
            decision="approved",
        )
        assert approval.admin_email == _email("president")
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_unknown_proposal_is_not_found() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())
        await session.delete(proposal)
        await session.commit()

        with pytest.raises(NotFound):
            await _decide(session, proposal, "president")
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_approver_added_after_submission_has_no_record() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())
        session.add(Approver(email="late@college.edu", name="Late", role="faculty_advisor", approval_order=7))
        await session.commit()

        gate = await can_approve(session, approver_email="late@college.edu", proposal_id=proposal.id)
        assert gate == GateResult(allowed=False, reason="Approval record not found")

        with pytest.raises(NotFound):
            await record_decision(
                session,
                proposal_id=proposal.id,
                approver_email="late@college.edu",
                actor_email="late@college.edu",
                decision="approved",
            )
        assert len(await list_approvals(session, proposal.id)) == len(ROSTER)
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_deactivated_approver_rows_stay_in_the_snapshot() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())
        treasurer = await Approver.objects.filter_by(email=_email("treasurer")).first(session)
        assert treasurer is not None
        treasurer.is_active = False
        session.add(treasurer)
        await session.commit()

        assert "treasurer" in await _statuses(session, proposal)

        gate = await can_approve(session, approver_email=_email("treasurer"), proposal_id=proposal.id)
        assert gate.reason == "Not an authorized admin"

        await _decide(session, proposal, "president")
        await _decide(session, proposal, "vice_president")
        gate = await can_approve(session, approver_email=_email("sa_office"), proposal_id=proposal.id)
        assert gate.allowed is True
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_pending_reviews_only_lists_actionable_proposals() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        first = await create_proposal(session, payload=_event_payload(event_name="First"))
        second = await create_proposal(session, payload=_event_payload(event_name="Second"))
        for role in CORE:
            await _decide(session, second, role)

        pending = await list_pending_reviews(session, _email("sa_office"))
        assert [p.id for p in pending] == [second.id]

        pending = await list_pending_reviews(session, _email("president"))
        assert [p.id for p in pending] == [first.id]

        with pytest.raises(NotAuthorized):
            await list_pending_reviews(session, "dev@college.edu")
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_status_override_wins_until_cleared() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())
        await _decide(session, proposal, "president", "rejected")

        forced = await force_status(
            session,
            proposal_id=proposal.id,
            actor_email=_email("final_approver"),
            status="approved",
            reason="Dean sign-off",
        )
        assert forced.status == "approved"
        assert forced.status_override == "approved"
        assert forced.status_override_by == _email("final_approver")
        assert set((await _statuses(session, proposal)).values()) == {"rejected", "pending"}

        # Later decisions do not displace the override.
        await _decide(session, proposal, "vice_president")
        await session.refresh(proposal)
        assert proposal.status == "approved"

        cleared = await clear_status_override(
            session,
            proposal_id=proposal.id,
            actor_email=_email("final_approver"),
        )
        assert cleared.status_override is None
        assert cleared.status == "pending"

        actions = {e.action for e in await AuditEntry.objects.filter_by(proposal_id=proposal.id).all(session)}
        assert {"proposal.status.force", "proposal.status.clear_override"} <= actions
    finally:
        await session.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_status_override_requires_configured_role_and_valid_status() -> None:
    engine, session = await _make_session()
    try:
        await _seed_roster(session)
        proposal = await create_proposal(session, payload=_event_payload())

        with pytest.raises(NotAuthorized):
            await force_status(
                session,
                proposal_id=proposal.id,
                actor_email=_email("president"),
                status="approved",
            )
        with pytest.raises(ValidationError):
            await force_status(
                session,
                proposal_id=proposal.id,
                actor_email=_email("final_approver"),
                status="pending",
            )

        forced = await force_status(
            session,
            proposal_id=proposal.id,
            actor_email=_email("final_approver"),
            status="under_consideration",
        )
        assert forced.status == "under_consideration"
    finally:
        await session.close()
        await engine.dispose()
