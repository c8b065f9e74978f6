"""Enumerations shared by the whole application."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    STUDENT = "STUDENT"
    LECTURER = "LECTURER"
    STAFF = "STAFF"
    ADMIN = "ADMIN"
    TPS_OPERATOR = "TPS_OPERATOR"
    SUPER_ADMIN = "SUPER_ADMIN"


class ElectionPhase(str, Enum):
    REGISTRATION = "REGISTRATION"
    CAMPAIGN = "CAMPAIGN"
    VOTING = "VOTING"
    COUNTING = "COUNTING"
    ANNOUNCEMENT = "ANNOUNCEMENT"


class VotingMode(str, Enum):
    ONLINE = "ONLINE"
    TPS = "TPS"
    HYBRID = "HYBRID"


class VoterStatus(str, Enum):
    ELIGIBLE = "ELIGIBLE"
    VOTED = "VOTED"
    INELIGIBLE = "INELIGIBLE"