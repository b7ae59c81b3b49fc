"""
Enums for the Commune Bot
Provides type safety and consistency across the application
"""
from enum import Enum


class TallyMode(Enum):
    """How a poll's reaction counts are collected"""
    SNAPSHOT_ONCE = "snapshot_once"
    PERIODIC_THEN_FINAL = "periodic_then_final"


class PollKind(Enum):
    """Shape of a poll, which decides its symbol table"""
    VOTE = "vote"
    SURVEY = "survey"


class LivenessStatus(Enum):
    """State of the connection to Discord as seen by the liveness supervisor"""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"
    EXHAUSTED = "exhausted"


class ConnectionStatus(Enum):
    """Raw connection status reported by the gateway"""
    READY = "ready"
    CONNECTING = "connecting"
    DISCONNECTED = "disconnected"
    CLOSED = "closed"


class MutualAidType(Enum):
    """Types of mutual aid posts"""
    OFFER = "offre"
    REQUEST = "demande"


MUTUAL_AID_CONFIG = {
    MutualAidType.OFFER: {
        "text": "Offre d'aide",
        "choice": "Offrir",
    },
    MutualAidType.REQUEST: {
        "text": "Demande d'aide",
        "choice": "Demander",
    },
}
