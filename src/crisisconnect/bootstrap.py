from crisisconnect.adapters.clock import Clock, SystemClock
from crisisconnect.adapters.scheduler import SweepScheduler
from crisisconnect.config import FlaskBaseConfig, get_config
from crisisconnect.service_layer.login_limiter import LoginAttemptLimiter
from crisisconnect.service_layer.rate_limit_service import RateLimitService, RequestRateLimiter


def bootstrap(
    config: FlaskBaseConfig | None = None,
    clock: Clock | None = None,
) -> RateLimitService:
    if config is None:
        config = get_config()

    if clock is None:
        clock = SystemClock()

    login_limiter = LoginAttemptLimiter(
        max_failures=config.LOGIN_LIMIT.max_failures,
        window=config.LOGIN_LIMIT.window,
        sweep_grace=config.LOGIN_LIMIT.sweep_grace,
        clock=clock,
    )
    need_view_limiter = RequestRateLimiter(
        "need_view",
        limit=config.NEED_VIEW_LIMIT.limit,
        window=config.NEED_VIEW_LIMIT.window,
        clock=clock,
    )
    api_request_limiter = RequestRateLimiter(
        "api_request",
        limit=config.API_REQUEST_LIMIT.limit,
        window=config.API_REQUEST_LIMIT.window,
        clock=clock,
    )
    return RateLimitService(login_limiter, need_view_limiter, api_request_limiter)


def build_sweeper(rate_limits: RateLimitService, config: FlaskBaseConfig | None = None) -> SweepScheduler:
    if config is None:
        config = get_config()
    return SweepScheduler(
        rate_limits.cleanup_expired_entries,
        interval_minutes=config.RATE_LIMIT_SWEEP_INTERVAL_MINUTES,
    )
