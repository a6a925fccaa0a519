# storefront/utils/retry.py
from sqlalchemy.exc import OperationalError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception

from storefront.utils.settings import DB_RETRY_ATTEMPTS

# postgres: serialization_failure, deadlock_detected
PG_RETRY_CODES = {"40001", "40P01"}

_RETRY_MESSAGES = (
    "deadlock detected",
    "could not serialize access",
    "database is locked",
)


def is_transient_db_error(exc: BaseException) -> bool:
    if not isinstance(exc, OperationalError):
        return False
    code = getattr(exc.orig, "pgcode", None)
    if code in PG_RETRY_CODES:
        return True
    msg = str(exc).lower()
    return any(m in msg for m in _RETRY_MESSAGES)


def db_retry():
    # caller has to roll back before the next attempt
    return retry(
        reraise=True,
        stop=stop_after_attempt(DB_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
        retry=retry_if_exception(is_transient_db_error),
    )
