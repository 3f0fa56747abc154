import logging
import os

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _parse_float(env_var: str, default: float) -> float:
    raw_value = os.getenv(env_var)
    if raw_value is None or not raw_value.strip():
        return default

    try:
        return float(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid float (got %r); defaulting to %s",
            env_var,
            raw_value,
            default,
        )
        return default


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

# Seconds the latest computed rankings are served before a rebuild.
RANKINGS_TTL_SECONDS = _parse_float("LAPRANK_RANKINGS_TTL", 60.0)


class RatingConfig(BaseModel):
    """Tunable constants shared by the rating calculators.

    Values are injected into each calculator instance so a recalculation job
    can run with its own settings; nothing reads them from module state.
    """

    model_config = ConfigDict(frozen=True)

    initial_rating: float = 1200.0

    # Track lap-time EMA: alpha = min(track_stats_ema_alpha_max, 2 / (n + 1))
    track_stats_ema_alpha_max: float = Field(default=0.1, gt=0, le=1)
    # k in the user x track ratchet blend
    user_track_ema_alpha: float = Field(default=0.3, gt=0, le=1)
    lap_rating_scale: float = Field(default=1000.0, gt=0)
    track_maturity_laps: float = Field(default=5.0, gt=0)
    prior_weight: float = Field(default=1.0, ge=0)

    # totalRating = match_weight * match + (1 - match_weight) * track
    match_weight: float = Field(default=0.5, ge=0, le=1)
    deviation_penalty: float = Field(default=2.0, ge=0)

    glicko_deviation: float = Field(default=350.0, gt=0)
    glicko_volatility: float = Field(default=0.06, gt=0)
    glicko_tau: float = Field(default=0.5, gt=0)


_RATING_ENV_VARS = {
    "initial_rating": "LAPRANK_INITIAL_RATING",
    "track_stats_ema_alpha_max": "LAPRANK_TRACK_EMA_ALPHA_MAX",
    "user_track_ema_alpha": "LAPRANK_USER_TRACK_EMA_ALPHA",
    "lap_rating_scale": "LAPRANK_LAP_RATING_SCALE",
    "track_maturity_laps": "LAPRANK_TRACK_MATURITY_LAPS",
    "prior_weight": "LAPRANK_PRIOR_WEIGHT",
    "match_weight": "LAPRANK_MATCH_WEIGHT",
    "deviation_penalty": "LAPRANK_DEVIATION_PENALTY",
}


def load_rating_config() -> RatingConfig:
    """Build a :class:`RatingConfig` from ``LAPRANK_*`` environment variables.

    A value outside its field's bounds is logged and replaced by the default.
    """

    defaults = RatingConfig()
    overrides: dict[str, float] = {}
    for field_name, env_var in _RATING_ENV_VARS.items():
        default = getattr(defaults, field_name)
        value = _parse_float(env_var, default)
        if value == default:
            continue
        try:
            RatingConfig(**{field_name: value})
        except ValidationError:
            logger.warning(
                "%s is out of range (got %s); defaulting to %s", env_var, value, default
            )
            continue
        overrides[field_name] = value
    return RatingConfig(**overrides)
