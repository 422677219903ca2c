# shopcart/utils/retry.py
import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from shopcart.utils.settings import HTTP_RETRY_ATTEMPTS

# only failures where the request may never have reached the service
RETRYABLE_ERRORS = (requests.ConnectionError, requests.Timeout)


def http_retry(attempts: int = HTTP_RETRY_ATTEMPTS):
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
    )
