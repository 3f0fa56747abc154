import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ..config import RatingConfig
from ..schemas import Match, Odds

logger = logging.getLogger(__name__)

GLICKO_SCALE = 173.7178
GLICKO_CONVERGENCE = 1e-6


@dataclass
class RatingPlayer:
    """Glicko-2 triple on the display scale (rating, deviation, volatility)."""

    rating: float
    deviation: float
    volatility: float


def _g(phi: float) -> float:
    return 1 / math.sqrt(1 + 3 * (phi**2) / (math.pi**2))


def _expected(mu: float, mu_j: float, phi_j: float) -> float:
    return 1 / (1 + math.exp(-_g(phi_j) * (mu - mu_j)))


def _new_volatility(sigma: float, phi: float, v: float, delta: float, tau: float) -> float:
    """Solve for the post-period volatility with the Illinois iteration."""

    a = math.log(sigma**2)

    def f(x: float) -> float:
        ex = math.exp(x)
        num = ex * (delta**2 - phi**2 - v - ex)
        den = 2 * (phi**2 + v + ex) ** 2
        return num / den - (x - a) / (tau**2)

    lo = a
    if delta**2 > phi**2 + v:
        hi = math.log(delta**2 - phi**2 - v)
    else:
        k = 1
        while f(a - k * tau) < 0:
            k += 1
        hi = a - k * tau

    f_lo, f_hi = f(lo), f(hi)
    while abs(hi - lo) > GLICKO_CONVERGENCE:
        mid = lo + (lo - hi) * f_lo / (f_hi - f_lo)
        f_mid = f(mid)
        if f_mid * f_hi <= 0:
            lo, f_lo = hi, f_hi
        else:
            f_lo /= 2
        hi, f_hi = mid, f_mid

    return math.exp(lo / 2)


def glicko2_update(
    player: RatingPlayer,
    outcomes: Sequence[tuple[RatingPlayer, float]],
    *,
    center: float,
    tau: float,
) -> RatingPlayer:
    """Return the player's rating after one Glicko-2 rating period.

    Args:
        player: Rating before the period.
        outcomes: ``(opponent_before_period, score)`` pairs where ``score`` is
            ``1`` for a win and ``0`` for a loss.
        center: Rating that maps to ``mu = 0`` on the internal scale.
        tau: System constant constraining volatility change.
    """

    mu = (player.rating - center) / GLICKO_SCALE
    phi = player.deviation / GLICKO_SCALE
    sigma = player.volatility

    if not outcomes:
        # No games in the period: only the deviation grows.
        phi_star = math.sqrt(phi**2 + sigma**2)
        return RatingPlayer(player.rating, phi_star * GLICKO_SCALE, sigma)

    denom = 0.0
    delta_sum = 0.0
    for opponent, score in outcomes:
        mu_j = (opponent.rating - center) / GLICKO_SCALE
        phi_j = opponent.deviation / GLICKO_SCALE
        e = _expected(mu, mu_j, phi_j)
        denom += (_g(phi_j) ** 2) * e * (1 - e)
        delta_sum += _g(phi_j) * (score - e)

    v = 1 / denom
    delta = v * delta_sum

    sigma_prime = _new_volatility(sigma, phi, v, delta, tau)
    phi_star = math.sqrt(phi**2 + sigma_prime**2)
    phi_prime = 1 / math.sqrt((1 / (phi_star**2)) + (1 / v))
    mu_prime = mu + (phi_prime**2) * delta_sum

    return RatingPlayer(
        rating=mu_prime * GLICKO_SCALE + center,
        deviation=phi_prime * GLICKO_SCALE,
        volatility=sigma_prime,
    )


class MatchRatingCalculator:
    """Glicko-2 ratings from head-to-head match results.

    One instance per recalculation job. The roster is fixed at construction;
    matches involving anyone else are skipped.
    """

    def __init__(
        self, user_ids: Iterable[str] = (), config: Optional[RatingConfig] = None
    ) -> None:
        self.config = config or RatingConfig()
        self.players: dict[str, RatingPlayer] = {}
        for user_id in user_ids:
            self.players[user_id] = self._new_player()

    def _new_player(self) -> RatingPlayer:
        return RatingPlayer(
            rating=self.config.initial_rating,
            deviation=self.config.glicko_deviation,
            volatility=self.config.glicko_volatility,
        )

    def reset(self) -> None:
        """Forget every player, including the seeded roster."""
        self.players.clear()

    def get_rating(self, user_id: str) -> float:
        player = self.players.get(user_id)
        if player is None:
            return self.config.initial_rating
        return player.rating

    def get_deviation(self, user_id: str) -> float:
        player = self.players.get(user_id)
        if player is None:
            return self.config.glicko_deviation
        return player.deviation

    def get_conservative_rating(self, user_id: str) -> float:
        """Rating minus ``deviation_penalty`` deviations, so sparse histories rank lower."""
        return self.get_rating(user_id) - self.config.deviation_penalty * self.get_deviation(
            user_id
        )

    def get_all_ratings(self) -> dict[str, float]:
        return {user_id: p.rating for user_id, p in self.players.items()}

    def predict(self, user1: Optional[str], user2: Optional[str]) -> Optional[float]:
        """Probability that ``user1`` beats ``user2``."""

        if not user1 or not user2:
            return None

        p1 = self.players.get(user1)
        p2 = self.players.get(user2)
        if p1 is None or p2 is None:
            logger.warning("Player(s) has no rating: %s, %s", user1, user2)
            return None

        mu1 = (p1.rating - self.config.initial_rating) / GLICKO_SCALE
        mu2 = (p2.rating - self.config.initial_rating) / GLICKO_SCALE
        phi = math.sqrt(p1.deviation**2 + p2.deviation**2) / GLICKO_SCALE
        return 1 / (1 + math.exp(-_g(phi) * (mu1 - mu2)))

    def get_odds(self, user1: Optional[str], user2: Optional[str]) -> Optional[Odds]:
        probability = self.predict(user1, user2)
        if probability is None:
            return None
        return Odds(p1Odds=1 / probability, p2Odds=1 / (1 - probability))

    def _is_rateable(self, match: Match) -> bool:
        if match.status != "completed":
            logger.debug("Match %s is %s, skipping", match.id, match.status)
            return False
        if not match.user1 or not match.user2 or not match.winner:
            logger.warning("Match %s is missing participants or winner, skipping", match.id)
            return False
        if match.user1 == match.user2:
            logger.warning("Match %s has the same user on both sides, skipping", match.id)
            return False
        if match.winner not in (match.user1, match.user2):
            logger.warning("Match %s winner is not a participant, skipping", match.id)
            return False
        if match.user1 not in self.players or match.user2 not in self.players:
            logger.warning("Match %s involves an unrated player, skipping", match.id)
            return False
        return True

    def process_matches(self, matches: Iterable[Match]) -> int:
        """Apply all rateable matches as a single Glicko-2 rating period.

        Every player's update uses the pre-period ratings of their opponents,
        so the order of ``matches`` does not matter. Returns the number of
        matches applied.
        """

        outcomes: dict[str, list[tuple[RatingPlayer, float]]] = {
            user_id: [] for user_id in self.players
        }
        applied = 0
        for match in matches:
            if not self._is_rateable(match):
                continue
            p1 = self.players[match.user1]
            p2 = self.players[match.user2]
            score = 1.0 if match.winner == match.user1 else 0.0
            outcomes[match.user1].append((p2, score))
            outcomes[match.user2].append((p1, 1.0 - score))
            applied += 1

        if applied == 0:
            return 0

        updated = {
            user_id: glicko2_update(
                player,
                outcomes[user_id],
                center=self.config.initial_rating,
                tau=self.config.glicko_tau,
            )
            for user_id, player in self.players.items()
        }
        self.players.update(updated)
        logger.info("Applied %d match(es) to %d player rating(s)", applied, len(updated))
        return applied
