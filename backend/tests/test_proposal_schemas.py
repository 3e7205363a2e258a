# ruff: noqa: INP001, S101
"""Validation tests for proposal submission payloads."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from proposal_gate.models.proposals import ProposalType
from proposal_gate.schemas.proposals import ClubFormationCreate, EventProposalCreate

EVENT = {
    "event_name": "Alumni Meet",
    "event_type": "networking",
    "description": "Annual alumni gathering",
    "event_date": "2026-12-05",
    "start_time": "10:00",
    "end_time": "10:00",
    "venue": "Convention Hall",
    "expected_participants": 80,
    "budget_estimate": "250.50",
    "organizer_name": "Morgan",
    "organizer_email": "Morgan@Student.College.edu",
    "pdf_document_url": "https://files.college.edu/alumni.pdf",
}


def test_event_payload_splits_header_fields_from_details() -> None:
    payload = EventProposalCreate.model_validate(EVENT)

    assert payload.proposal_type is ProposalType.EVENT
    assert payload.title() == "Alumni Meet"
    assert payload.proposer() == ("Morgan", "morgan@student.college.edu")

    details = payload.details()
    assert "event_name" not in details
    assert "organizer_email" not in details
    assert details["budget_estimate"] == "250.50"
    assert details["start_time"] == "10:00"


@pytest.mark.parametrize(
    "override",
    [
        {"start_time": "25:00"},
        {"end_time": "09:59"},
        {"expected_participants": 0},
        {"budget_estimate": "-1"},
        {"organizer_email": "not-an-email"},
        {"venue": "   "},
    ],
)
def test_event_payload_rejects_invalid_fields(override: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        EventProposalCreate.model_validate({**EVENT, **override})


def test_club_payload_defaults() -> None:
    payload = ClubFormationCreate(
        club_name="Film Society",
        club_description="Screenings",
        club_objectives="Watch films",
        proposed_by_name="Quinn",
        proposed_by_email="quinn@student.college.edu",
    )

    assert payload.proposal_type is ProposalType.CLUB_FORMATION
    assert payload.details()["initial_members"] == []
    assert payload.details()["charter_document_url"] is None
