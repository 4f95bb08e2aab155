"""
Match status and result inference.

Pure functions over opponent records. An opponent is one of three things:
- None: a BYE, nobody will ever fill this side
- {"id": None, ...}: to be determined, filled once an earlier round is decided
- {"id": 12, ...}: a known participant

Every rule below branches on that classification (SlotKind) first.
"""

import copy
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from brackets.models.match import MatchResult, Status
from brackets.services.slot_resolver import ParticipantSlot

Opponent = Optional[Dict[str, Any]]

OPPONENT_SIDES = ("opponent1", "opponent2")


class SlotKind(str, Enum):
    BYE = "bye"
    TBD = "tbd"
    PARTICIPANT = "participant"


def slot_kind(opponent: Union[ParticipantSlot, Opponent]) -> SlotKind:
    if opponent is None:
        return SlotKind.BYE
    opponent_id = opponent.id if isinstance(opponent, ParticipantSlot) else opponent.get("id")
    return SlotKind.TBD if opponent_id is None else SlotKind.PARTICIPANT


def to_result(slot: Optional[ParticipantSlot]) -> Opponent:
    """Opponent record without seed origin (used for match games)"""
    if slot is None:
        return None
    return {"id": slot.id}


def to_result_with_position(slot: Optional[ParticipantSlot]) -> Opponent:
    if slot is None:
        return None
    result: Dict[str, Any] = {"id": slot.id}
    if slot.position is not None:
        result["position"] = slot.position
    return result


def _as_opponent(value: Union[ParticipantSlot, Opponent]) -> Opponent:
    if isinstance(value, ParticipantSlot):
        return to_result_with_position(value)
    return value


def _as_pair(arg: Union[Dict[str, Any], Sequence[Any]]) -> Tuple[Opponent, Opponent]:
    if isinstance(arg, dict):
        return arg.get("opponent1"), arg.get("opponent2")
    first, second = arg
    return _as_opponent(first), _as_opponent(second)


def is_match_forfeit_completed(opponent1: Opponent, opponent2: Opponent) -> bool:
    return any(o is not None and o.get("forfeit") is not None for o in (opponent1, opponent2))


def is_match_result_completed(opponent1: Opponent, opponent2: Opponent) -> bool:
    results = [o.get("result") if o is not None else None for o in (opponent1, opponent2)]
    if results == [MatchResult.DRAW, MatchResult.DRAW]:
        return True
    return any(r in (MatchResult.WIN, MatchResult.LOSS) for r in results)


def is_match_started(opponent1: Opponent, opponent2: Opponent) -> bool:
    return any(o is not None and o.get("score") is not None for o in (opponent1, opponent2))


def get_match_status(arg: Union[Dict[str, Any], Sequence[Any]]) -> Status:
    """
    Highest status consistent with what is known about the two opponents.

    Accepts a match record (opponent1/opponent2 keys) or a pair of slots or
    opponent records.
    """
    opponent1, opponent2 = _as_pair(arg)
    kinds = (slot_kind(opponent1), slot_kind(opponent2))

    if SlotKind.BYE in kinds:
        return Status.LOCKED
    if kinds == (SlotKind.TBD, SlotKind.TBD):
        return Status.LOCKED
    if SlotKind.TBD in kinds:
        return Status.WAITING

    if is_match_forfeit_completed(opponent1, opponent2) or is_match_result_completed(opponent1, opponent2):
        return Status.COMPLETED
    if is_match_started(opponent1, opponent2):
        return Status.RUNNING
    return Status.READY


def _is_defeated(opponent: Dict[str, Any]) -> bool:
    return opponent.get("forfeit") is True or opponent.get("result") == MatchResult.LOSS


def _as_winner(opponent: Dict[str, Any]) -> Dict[str, Any]:
    winner = dict(opponent)
    if winner.get("result") is None:
        winner["result"] = MatchResult.WIN
    return winner


def get_inferred_result(opponent1: Opponent, opponent2: Opponent) -> Dict[str, Opponent]:
    """
    Patch with the results that follow from the opponents alone.

    - someone vs BYE: that someone wins
    - exactly one side forfeited or lost: the other side wins
    Anything else is returned untouched.
    """
    opponent1 = copy.deepcopy(opponent1)
    opponent2 = copy.deepcopy(opponent2)
    kind1, kind2 = slot_kind(opponent1), slot_kind(opponent2)

    if kind1 is SlotKind.BYE or kind2 is SlotKind.BYE:
        if kind1 is not SlotKind.BYE:
            opponent1 = _as_winner(opponent1)
        elif kind2 is not SlotKind.BYE:
            opponent2 = _as_winner(opponent2)
        return {"opponent1": opponent1, "opponent2": opponent2}

    defeated1, defeated2 = _is_defeated(opponent1), _is_defeated(opponent2)
    if defeated1 and not defeated2:
        opponent2 = _as_winner(opponent2)
    elif defeated2 and not defeated1:
        opponent1 = _as_winner(opponent1)

    return {"opponent1": opponent1, "opponent2": opponent2}


def with_inferred_result(match: Dict[str, Any]) -> Dict[str, Any]:
    """The match with get_inferred_result applied to its two opponents."""
    inferred = dict(match)
    inferred.update(get_inferred_result(match.get("opponent1"), match.get("opponent2")))
    return inferred


def merge_opponent(incoming: Opponent, existing: Opponent, enable_byes: bool) -> Opponent:
    """
    Reconcile one side of a match.

    A BYE only replaces what is stored when byes are enabled. A TBD never
    replaces a known participant. Otherwise the stored fields are overlaid
    with every non-null incoming field.
    """
    incoming_kind = slot_kind(incoming)

    if incoming_kind is SlotKind.BYE:
        return None if enable_byes else copy.deepcopy(existing)

    if incoming_kind is SlotKind.TBD and slot_kind(existing) is SlotKind.PARTICIPANT:
        return copy.deepcopy(existing)

    merged: Dict[str, Any] = copy.deepcopy(existing) if existing is not None else {}
    merged.update({key: value for key, value in incoming.items() if value is not None})
    if incoming_kind is SlotKind.TBD:
        merged["id"] = None
    return merged


def get_updated_match_results(
    incoming: Dict[str, Any], existing: Dict[str, Any], enable_byes: bool
) -> Dict[str, Any]:
    """
    Merge a freshly computed match (or match game) into the stored one.

    Status is the higher of the stored and incoming ones and a stored
    child_count is kept. Results are inferred again from the merged opponents:
    a win implied by an incoming BYE is dropped along with the BYE when byes
    are disabled, and a win implied by a stored BYE is dropped once that seat
    is filled.
    """
    merged = copy.deepcopy(existing)

    for key, value in incoming.items():
        if key in OPPONENT_SIDES or key in ("id", "status", "child_count"):
            continue
        if value is not None:
            merged[key] = copy.deepcopy(value)

    for side in OPPONENT_SIDES:
        if side in incoming:
            merged[side] = merge_opponent(incoming[side], existing.get(side), enable_byes)

    # A win implied by a BYE goes away once the BYE seat is filled
    for side, other in (("opponent1", "opponent2"), ("opponent2", "opponent1")):
        if side in incoming and slot_kind(existing.get(side)) is SlotKind.BYE:
            if slot_kind(merged.get(side)) is not SlotKind.BYE and merged.get(other) is not None:
                merged[other].pop("result", None)

    if any(side in merged for side in OPPONENT_SIDES):
        merged = with_inferred_result(merged)

    if "child_count" in incoming or "child_count" in existing:
        stored = existing.get("child_count")
        merged["child_count"] = stored if stored is not None else incoming.get("child_count")

    merged["status"] = int(
        max(
            Status(existing.get("status") or Status.LOCKED),
            Status(incoming.get("status") or Status.LOCKED),
        )
    )
    return merged
