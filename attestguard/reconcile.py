"""
Reconciliation of attested executions against executions inferred from calldata.

Attested records are trusted; inferred records are not. A verification is
accepted only when every attested record whose origin is the verifying chain
is matched to its own inferred record with the same key and an amount that
honors the integration's direction rule.

The direction rule differs between integrations because "amount" does not
mean the same thing everywhere: for bridge and relay deposits the attested
amount is the most the user offered, while for CCTP burns it is the minimum
the user demands to be moved. Each integration therefore has a named rule.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Hashable, List, Sequence, Tuple

from .exceptions import AmountBoundError, ArityError, NoMatchError, ValidityError
from .models import DecodedRelayData, ExecutionInfo, is_zero_address

logger = logging.getLogger(__name__)


class MatchKey(str, Enum):
    """Fields an attested and an inferred record must share to be paired."""
    ROUTE = "ROUTE"    # origin chain, destination chain, origin token
    TOKEN = "TOKEN"    # origin token

    def of(self, info: ExecutionInfo) -> Tuple[Hashable, ...]:
        if self is MatchKey.ROUTE:
            return info.route_key()
        return info.token_key()


class AmountDirection(str, Enum):
    """Which side of the attested amount an inferred amount may fall on."""
    AT_MOST_ATTESTED = "AT_MOST_ATTESTED"
    AT_LEAST_ATTESTED = "AT_LEAST_ATTESTED"

    def allows(self, inferred: int, attested: int) -> bool:
        if self is AmountDirection.AT_MOST_ATTESTED:
            return inferred <= attested
        return inferred >= attested


class Arity(str, Enum):
    """How the attested count must relate to the inferred count."""
    EXACT = "EXACT"
    SUBSET = "SUBSET"

    def allows(self, attested: int, inferred: int) -> bool:
        if self is Arity.EXACT:
            return attested == inferred
        return attested <= inferred


@dataclass(frozen=True)
class ReconciliationRule:
    name: str
    key: MatchKey
    direction: AmountDirection
    arity: Arity = Arity.EXACT
    require_token: bool = False


BRIDGE_RULE = ReconciliationRule(
    name="bridge",
    key=MatchKey.ROUTE,
    direction=AmountDirection.AT_MOST_ATTESTED,
)
CCTP_RULE = ReconciliationRule(
    name="cctp",
    key=MatchKey.ROUTE,
    direction=AmountDirection.AT_LEAST_ATTESTED,
    require_token=True,
)
# relay batches interleave approvals and unrelated calls with the deposits
RELAY_RULE = ReconciliationRule(
    name="relay",
    key=MatchKey.TOKEN,
    direction=AmountDirection.AT_MOST_ATTESTED,
    arity=Arity.SUBSET,
)


@dataclass(frozen=True)
class Match:
    attested_index: int
    inferred_index: int
    attested: ExecutionInfo
    inferred: ExecutionInfo


@dataclass(frozen=True)
class ReconciliationResult:
    """Accepted reconciliation: one match per in-scope attested record."""
    rule: ReconciliationRule
    matches: Tuple[Match, ...]
    skipped: Tuple[int, ...]


def _check_inferred(inferred: Sequence[ExecutionInfo], rule: ReconciliationRule) -> None:
    for index, info in enumerate(inferred):
        if info.amount == 0:
            raise ValidityError(f"inferred execution {index} has zero amount", info)
        if rule.require_token and is_zero_address(info.origin_token):
            raise ValidityError(f"inferred execution {index} has zero token", info)


def reconcile(
    attested: Sequence[ExecutionInfo],
    inferred: Sequence[ExecutionInfo],
    *,
    chain_id: int,
    rule: ReconciliationRule,
) -> ReconciliationResult:
    """
    Match attested executions to inferred executions

    Args:
        attested: Trusted records from the signed attestation, in order
        inferred: Records decoded from the calls about to execute
        chain_id: Chain performing the verification; attested records
            originating elsewhere are skipped
        rule: Key, amount direction and arity of the integration

    Returns:
        The accepted matching

    Raises:
        ArityError: If the sequence lengths violate the rule's arity
        ValidityError: If any inferred record has a zero amount (or zero
            token when the rule requires one)
        NoMatchError: If an in-scope attested record has no unconsumed
            inferred record with the same key
        AmountBoundError: If a paired amount violates the rule's direction
    """
    if not rule.arity.allows(len(attested), len(inferred)):
        raise ArityError(len(attested), len(inferred))

    _check_inferred(inferred, rule)

    consumed = [False] * len(inferred)
    matches: List[Match] = []
    skipped = [i for i, expected in enumerate(attested) if expected.origin_chain_id != chain_id]
    in_scope = [i for i, expected in enumerate(attested) if expected.origin_chain_id == chain_id]

    # Tightest bounds first. The inferred records compatible with a looser
    # bound are a superset of those compatible with a tighter one, so taking
    # the first compatible candidate never starves a later attested record.
    in_scope.sort(
        key=lambda i: attested[i].amount,
        reverse=rule.direction is AmountDirection.AT_LEAST_ATTESTED,
    )

    for attested_index in in_scope:
        expected = attested[attested_index]
        key = rule.key.of(expected)
        candidates = [
            i for i, actual in enumerate(inferred)
            if not consumed[i] and rule.key.of(actual) == key
        ]
        if not candidates:
            raise NoMatchError(key)

        chosen = next(
            (i for i in candidates if rule.direction.allows(inferred[i].amount, expected.amount)),
            None,
        )
        if chosen is None:
            raise AmountBoundError(inferred[candidates[0]].amount, expected.amount, rule.direction)

        consumed[chosen] = True
        matches.append(Match(attested_index, chosen, expected, inferred[chosen]))
        logger.debug(
            "[%s] attested %d matched inferred %d (%d vs %d)",
            rule.name, attested_index, chosen, expected.amount, inferred[chosen].amount,
        )

    matches.sort(key=lambda match: match.attested_index)
    return ReconciliationResult(rule=rule, matches=tuple(matches), skipped=tuple(skipped))


def reconcile_relay(
    attested: Sequence[ExecutionInfo],
    transfers: Sequence[DecodedRelayData],
    *,
    chain_id: int,
    rule: ReconciliationRule = RELAY_RULE,
) -> ReconciliationResult:
    """Reconcile relay deposits, promoting each decoded transfer to an execution record."""
    inferred = [record.to_execution_info(chain_id) for record in transfers]
    return reconcile(attested, inferred, chain_id=chain_id, rule=rule)
